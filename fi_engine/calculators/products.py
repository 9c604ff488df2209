"""
Product Ledger

Deal-level product totals. Pure sums over normalized products.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import Product


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class ProductLedger:
    """Computes product profit, revenue and count for a deal."""

    def product_profit(self, products: list[Product]) -> Decimal:
        return sum((p.profit for p in products), Decimal('0'))

    def product_revenue(self, products: list[Product]) -> Decimal:
        return sum((p.sold_price for p in products), Decimal('0'))

    def product_count(self, products: list[Product]) -> int:
        return len(products)
