"""
Deal Engine - Main Orchestrator

Runs one complete aggregation pass over a user's deals. Every pass starts
from the raw records: period membership and severity change with the clock,
so results are never patched incrementally.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from .calculators import (
    FinanceReserveCalculator,
    FundingClassifier,
    GoalEvaluator,
    ProductLedger,
    ProfitAggregator,
)
from .config import EngineConfig
from .dates import as_reference, coerce_date, resolve_period
from .models import DealFinancials, EngineContext, EngineResult, NormalizedDeal
from .normalizer import lender_display_name, normalize, to_decimal
from .output import OutputBuilder
from .validators import InputValidator

logger = logging.getLogger(__name__)


class DealEngine:
    """
    Main orchestrator for deal aggregation.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Build Context
    3. Normalize Records
    4. Compute Per-Deal Financials and Funding Status
    5. Aggregate by Month
    6. Aggregate by Product and Lender
    7. Summarize Funding
    8. Build Result
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig.from_env()

        # Initialize all calculators
        self.validator = InputValidator()
        self.ledger = ProductLedger()
        self.reserve_calculator = FinanceReserveCalculator()
        self.goal_evaluator = GoalEvaluator()
        self.aggregator = ProfitAggregator(self.ledger, self.reserve_calculator, self.goal_evaluator)
        self.classifier = FundingClassifier(self.config.thresholds)
        self.output_builder = OutputBuilder()

    def run(
        self,
        records,
        now: datetime,
        monthly_goal=None,
        months_back: int | None = None,
        lender_directory: dict | None = None,
    ) -> EngineResult:
        """
        Run a full aggregation pass.

        Args:
            records: raw deal records, already scoped to one user
            now: the reference instant for periods and severity
            monthly_goal: profit target; None applies the configured default,
                zero or less means no goal
            months_back: number of monthly buckets; None applies the default
            lender_directory: optional lender id -> lender name lookup

        Returns:
            EngineResult with per-deal figures and all aggregates
        """
        if months_back is None:
            months_back = self.config.default_months_back

        # Step 1: Validate
        self.validator.validate(records, now, months_back)

        # Step 2: Build context
        ctx = self._build_context(now, monthly_goal, months_back, lender_directory)

        # Step 3: Normalize
        ctx.deals = [normalize(record) for record in records]
        # Directory names win over names stored on the record
        for deal in ctx.deals:
            deal.lender_name = lender_display_name(deal, ctx.lender_directory)
        undated = sum(1 for deal in ctx.deals if deal.sold_date is None)
        if undated:
            logger.debug(f"{undated} of {len(ctx.deals)} deals have no resolvable sale date")

        # Step 4: Per-deal financials and funding status
        ctx.financials = [self.evaluate(deal, ctx.now) for deal in ctx.deals]

        # Step 5: Monthly buckets
        ctx.monthly = self.aggregator.aggregate_by_month(
            ctx.deals, ctx.months_back, ctx.monthly_goal, ctx.now
        )

        # Step 6: Category aggregates
        ctx.products = self.aggregator.aggregate_by_product(ctx.deals)
        ctx.lenders = self.aggregator.aggregate_by_lender(ctx.deals, ctx.lender_directory)

        # Step 7: Funding summary
        ctx.funding = self.classifier.summarize(ctx.financials)

        # Step 8: Build result
        return EngineResult(
            now=ctx.now,
            summary=ctx.monthly[-1],
            financials=ctx.financials,
            monthly=ctx.monthly,
            products=ctx.products,
            lenders=ctx.lenders,
            funding=ctx.funding,
        )

    def evaluate(self, deal: NormalizedDeal, now: datetime) -> DealFinancials:
        """Per-deal profit breakdown and funding status."""
        product_profit = self.ledger.product_profit(deal.products)
        reserve = self.reserve_calculator.calculate(deal)
        return DealFinancials(
            deal=deal,
            product_profit=product_profit,
            product_revenue=self.ledger.product_revenue(deal.products),
            product_count=self.ledger.product_count(deal.products),
            finance_reserve=reserve,
            total_profit=product_profit + reserve,
            funding=self.classifier.classify(deal, now),
        )

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a pass from a raw request dictionary.

        Convenience method for API usage. Recognized keys: deals (required),
        now, monthlyGoal, monthsBack, lenders, period (with start and end for
        "custom"), status, search, sort and direction. Filters, search and
        sort shape only the returned deal rows; aggregates cover every deal.
        The wall clock is read only when now is absent.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Request body must be an object")
        if "deals" not in data:
            raise ValueError("deals is required")

        now = self._parse_now(data.get("now"))
        months_back = self._parse_months_back(data.get("monthsBack"))
        lenders = data.get("lenders") if isinstance(data.get("lenders"), Mapping) else {}

        result = self.run(
            data["deals"],
            now,
            monthly_goal=data.get("monthlyGoal"),
            months_back=months_back,
            lender_directory=dict(lenders),
        )

        period = data.get("period")
        if period:
            start, end = resolve_period(period, result.now, data.get("start"), data.get("end"))
            result.period = self.aggregator.aggregate_by_range(
                [item.deal for item in result.financials], start, end
            )

        status = data.get("status") or "all"
        result.financials = self.classifier.filter_by_status(result.financials, status)
        result.financials = self.classifier.search(result.financials, data.get("search") or "")
        if data.get("sort"):
            result.financials = self.classifier.sort(
                result.financials, data["sort"], data.get("direction") or "desc"
            )

        return self.output_builder.build(result)

    def _build_context(self, now, monthly_goal, months_back, lender_directory) -> EngineContext:
        """Build the initial pass context."""
        if monthly_goal is None:
            goal = self.config.default_monthly_goal
        else:
            goal = to_decimal(monthly_goal)
            if goal is None:
                logger.warning(f"Unparseable monthly goal {monthly_goal!r}; treating as no goal")
                goal = Decimal("0")

        return EngineContext(
            now=as_reference(now),
            monthly_goal=goal,
            months_back=months_back,
            lender_directory=dict(lender_directory or {}),
        )

    def _parse_now(self, value) -> datetime:
        if value is None:
            return datetime.now(timezone.utc)
        now = coerce_date(value)
        if now is None:
            raise ValueError(f"now is not a recognizable date: {value!r}")
        return now

    def _parse_months_back(self, value) -> int | None:
        if value is None:
            return None
        parsed = to_decimal(value)
        if parsed is None or parsed != parsed.to_integral_value():
            raise ValueError(f"monthsBack must be a whole number, got: {value!r}")
        return int(parsed)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def process_deals_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Run a pass from a Python dict and return a Python dict."""
    engine = DealEngine()
    return engine.process_from_dict(input_data)


def process_deals_from_json(json_input: str) -> str:
    """
    Run a pass from a JSON string and return a JSON string.
    Errors are reported in the body instead of raised.
    """
    import json

    try:
        input_data = json.loads(json_input)
        engine = DealEngine()
        result = engine.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except ValueError as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)

    except Exception as e:
        error_response = {"error": str(e), "status": "failed"}
        return json.dumps(error_response, indent=2)
