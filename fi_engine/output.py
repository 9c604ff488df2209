"""
Output Builder

Converts an EngineResult into plain JSON-ready dictionaries for the
presentation layer.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from .models import (
    DealFinancials, EngineResult, FundingStatus, FundingSummary, LenderSummary,
    MonthBucket, PeriodSummary, ProductSummary
)
from .normalizer import customer_name, format_vehicle


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class OutputBuilder:
    """Builds the final output response."""

    def build(self, result: EngineResult) -> dict:
        """Construct the complete response from an aggregation pass."""
        output = {
            "now": to_iso(result.now),
            "summary": self._build_month(result.summary),
            "deals": [self._build_deal(item) for item in result.financials],
            "monthly": [self._build_month(bucket) for bucket in result.monthly],
            "products": [self._build_product(p) for p in result.products],
            "lenders": [self._build_lender(lender) for lender in result.lenders],
            "funding": self._build_funding_summary(result.funding),
        }
        if result.period is not None:
            output["period"] = self._build_period(result.period)
        return output

    def _build_period(self, period: PeriodSummary) -> dict:
        return {
            "start": to_iso(period.start),
            "end": to_iso(period.end),
            "dealCount": period.deal_count,
            "totalProfit": to_money(period.total_profit),
            "avgProfit": to_money(period.avg_profit),
            "totalProducts": period.total_products,
            "productsPerDeal": float(period.products_per_deal),
        }

    def _build_month(self, bucket: MonthBucket) -> dict:
        output = {"label": bucket.label}
        output.update(self._build_period(bucket))
        output["goal"] = to_money(bucket.goal)
        output["goalProgress"] = bucket.goal_progress
        return output

    def _build_deal(self, item: DealFinancials) -> dict:
        deal = item.deal
        return {
            "id": deal.id,
            "customer": customer_name(deal),
            "vehicle": format_vehicle(deal.vehicle),
            "vehicleDetailed": format_vehicle(deal.vehicle, detailed=True),
            "lender": deal.lender_name,
            "dateSold": to_iso(deal.sold_date),
            "products": [
                {
                    "id": p.id,
                    "name": p.name,
                    "soldPrice": to_money(p.sold_price),
                    "cost": to_money(p.cost),
                    "profit": to_money(p.profit),
                }
                for p in deal.products
            ],
            "productCount": item.product_count,
            "productProfit": to_money(item.product_profit),
            "productRevenue": to_money(item.product_revenue),
            "financeReserve": to_money(item.finance_reserve),
            "totalProfit": to_money(item.total_profit),
            "storedProfit": to_money(deal.stored_profit),
            "funding": self._build_funding_status(item.funding),
        }

    def _build_funding_status(self, status: FundingStatus) -> dict:
        return {
            "state": status.state.value,
            "severity": status.severity.value,
            "daysSinceSold": status.days_since_sold,
            "daysInBusinessOffice": status.days_in_business_office,
            "businessOfficeOverdue": status.business_office_overdue,
            "orderingAnomaly": status.ordering_anomaly,
        }

    def _build_product(self, product: ProductSummary) -> dict:
        return {
            "name": product.name,
            "count": product.count,
            "profit": to_money(product.profit),
            "avgProfit": to_money(product.avg_profit),
        }

    def _build_lender(self, lender: LenderSummary) -> dict:
        return {
            "name": lender.name,
            "dealCount": lender.deal_count,
            "totalProfit": to_money(lender.total_profit),
            "avgProfit": to_money(lender.avg_profit),
        }

    def _build_funding_summary(self, funding: FundingSummary) -> dict:
        return {
            "funded": funding.funded,
            "pending": funding.pending,
            "fundedValue": to_money(funding.funded_value),
            "pendingValue": to_money(funding.pending_value),
            "newDeals": funding.new_deals,
            "warningDeals": funding.warning_deals,
            "criticalDeals": funding.critical_deals,
            "inBusinessOffice": funding.in_business_office,
            "withNotes": funding.with_notes,
            "fundedPercentage": funding.funded_percentage,
        }
