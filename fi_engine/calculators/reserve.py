"""
Finance Reserve Calculator

Dealer compensation from the spread between the lender's buy rate and the
rate sold to the customer.
"""

from decimal import Decimal

from ..models import NormalizedDeal
from ..normalizer import to_bool, to_decimal
from .products import quantize_money


class FinanceReserveCalculator:
    """Calculates the finance reserve for a deal."""

    # Percent values are plain numbers: 4.99 means 4.99%
    RESERVE_MULTIPLIER = Decimal('2')
    RESERVE_CAP_PERCENT = Decimal('5')

    def calculate(self, deal: NormalizedDeal) -> Decimal:
        """Finance reserve for a normalized deal."""
        return self.finance_reserve(
            use_manual_reserve=deal.use_manual_reserve,
            manual_reserve_amount=deal.manual_reserve_amount,
            buy_rate=deal.buy_rate,
            sell_rate=deal.sell_rate,
            loan_amount=deal.loan_amount,
            term=deal.term,
        )

    def finance_reserve(
        self,
        use_manual_reserve=False,
        manual_reserve_amount=None,
        buy_rate=0,
        sell_rate=0,
        loan_amount=0,
        term=0,
    ) -> Decimal:
        """
        Calculate the reserve amount.

        Priority order:
        1. Manual reserve (flag set and a positive amount)
        2. Rate spread formula:
           spread   = sell_rate - buy_rate
           percent  = min(spread x 2, 5)
           reserve  = loan_amount x percent / 100

        A missing loan amount or term, or a negative spread, yields no reserve.
        """
        manual = to_decimal(manual_reserve_amount)
        if to_bool(use_manual_reserve) and manual is not None and manual > 0:
            return manual

        buy = to_decimal(buy_rate) or Decimal('0')
        sell = to_decimal(sell_rate) or Decimal('0')
        loan = to_decimal(loan_amount) or Decimal('0')
        months = to_decimal(term) or Decimal('0')

        spread = sell - buy
        if loan <= 0 or months <= 0 or spread < 0:
            return Decimal('0')

        percentage = min(spread * self.RESERVE_MULTIPLIER, self.RESERVE_CAP_PERCENT)
        return quantize_money(loan * percentage / Decimal('100'))
