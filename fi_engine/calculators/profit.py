"""
Profit Aggregator

Deal profit is always recomputed from products and finance reserve; stored
totals on the record are display caches and are never aggregated. Deals are
rolled up into calendar months, custom ranges, products and lenders.
"""

from datetime import datetime
from decimal import Decimal

from ..dates import as_reference, month_end, month_label, month_starts
from ..models import (
    LenderSummary, MonthBucket, NormalizedDeal, PeriodSummary, ProductSummary
)
from ..normalizer import humanize_key, lender_display_name, to_decimal
from .goals import GoalEvaluator
from .products import ProductLedger, quantize_money
from .reserve import FinanceReserveCalculator

UNKNOWN = "Unknown"


def _average(total: Decimal, count: int) -> Decimal:
    if count <= 0:
        return Decimal('0')
    return quantize_money(total / Decimal(count))


class ProfitAggregator:
    """Per-deal profit and period/category rollups."""

    def __init__(
        self,
        ledger: ProductLedger | None = None,
        reserve_calculator: FinanceReserveCalculator | None = None,
        goal_evaluator: GoalEvaluator | None = None,
    ):
        self.ledger = ledger or ProductLedger()
        self.reserve_calculator = reserve_calculator or FinanceReserveCalculator()
        self.goal_evaluator = goal_evaluator or GoalEvaluator()

    def total_profit(self, deal: NormalizedDeal) -> Decimal:
        """Product profit plus finance reserve."""
        return self.ledger.product_profit(deal.products) + self.reserve_calculator.calculate(deal)

    # ── Periods ──────────────────────────────────────────────────────────────

    def aggregate_by_range(
        self, deals: list[NormalizedDeal], start: datetime, end: datetime
    ) -> PeriodSummary:
        """Totals for deals whose resolved sold date is within [start, end]."""
        start, end = as_reference(start), as_reference(end)
        summary = PeriodSummary(start=start, end=end)
        self._fill(summary, self._within(deals, start, end))
        return summary

    def aggregate_by_month(
        self, deals: list[NormalizedDeal], months_back: int, goal, now: datetime
    ) -> list[MonthBucket]:
        """
        One bucket per calendar month ending at now's month, oldest first.

        Months without deals are still returned with zero values so trend
        series have no gaps. Deals without a resolvable date fall in no bucket.
        """
        if months_back < 1:
            raise ValueError(f"months_back must be at least 1, got: {months_back}")

        goal = to_decimal(goal) or Decimal('0')
        buckets = []
        for start in month_starts(as_reference(now), months_back):
            end = month_end(start)
            bucket = MonthBucket(start=start, end=end, label=month_label(start), goal=goal)
            self._fill(bucket, self._within(deals, start, end))
            bucket.goal_progress = self.goal_evaluator.goal_progress(bucket.total_profit, goal)
            buckets.append(bucket)
        return buckets

    def _within(self, deals, start, end) -> list[NormalizedDeal]:
        matched = []
        for deal in deals:
            sold = deal.sold_date
            if sold is not None and start <= sold <= end:
                matched.append(deal)
        return matched

    def _fill(self, summary: PeriodSummary, deals: list[NormalizedDeal]) -> None:
        summary.deal_count = len(deals)
        summary.total_profit = sum((self.total_profit(d) for d in deals), Decimal('0'))
        summary.avg_profit = _average(summary.total_profit, summary.deal_count)
        summary.total_products = sum(self.ledger.product_count(d.products) for d in deals)
        summary.products_per_deal = _average(Decimal(summary.total_products), summary.deal_count)

    # ── Categories ───────────────────────────────────────────────────────────

    def aggregate_by_product(self, deals: list[NormalizedDeal]) -> list[ProductSummary]:
        """Product popularity, most sold first; ties keep first-seen order."""
        groups: dict[str, ProductSummary] = {}
        for deal in deals:
            for product in deal.products:
                name = product.name or humanize_key(product.id) or UNKNOWN
                summary = groups.setdefault(name, ProductSummary(name=name))
                summary.count += 1
                summary.profit += product.profit

        for summary in groups.values():
            summary.avg_profit = _average(summary.profit, summary.count)

        return sorted(groups.values(), key=lambda s: s.count, reverse=True)

    def aggregate_by_lender(
        self, deals: list[NormalizedDeal], lender_directory: dict | None = None
    ) -> list[LenderSummary]:
        """
        Deal count and profit per lender, busiest first.

        The lender directory (lender id -> name) is authoritative when it
        knows the deal's lender id; otherwise the name stored on the deal is
        used.
        """
        groups: dict[str, LenderSummary] = {}
        for deal in deals:
            name = lender_display_name(deal, lender_directory) or UNKNOWN
            summary = groups.setdefault(name, LenderSummary(name=name))
            summary.deal_count += 1
            summary.total_profit += self.total_profit(deal)

        for summary in groups.values():
            summary.avg_profit = _average(summary.total_profit, summary.deal_count)

        return sorted(groups.values(), key=lambda s: s.deal_count, reverse=True)
