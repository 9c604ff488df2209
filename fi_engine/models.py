"""
Domain Models for the F&I Deal Engine

These dataclasses provide typed representations of normalized deals and of
every figure the engine derives from them. All monetary values use Decimal.
Nothing here is persisted: every instance lives for a single aggregation pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

# =============================================================================
# NORMALIZED INPUT MODELS
# =============================================================================


@dataclass
class Product:
    """A product sold on a deal (service contract, GAP, tire & wheel...)."""

    id: str = ""
    name: str = ""
    sold_price: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")

    @property
    def profit(self) -> Decimal:
        # Stored product profit is never trusted
        return self.sold_price - self.cost


@dataclass
class Customer:
    name: str = ""
    phone: str = ""
    email: str = ""


@dataclass
class Vehicle:
    year: str = ""
    model: str = ""
    vin: str = ""


@dataclass
class NormalizedDeal:
    """A deal record with every field coerced to its canonical type."""

    id: str
    user_id: str = ""
    customer: Customer = field(default_factory=Customer)
    vehicle: Vehicle | None = None
    products: list[Product] = field(default_factory=list)
    stored_profit: Decimal = Decimal("0")  # display only, never aggregated
    buy_rate: Decimal = Decimal("0")
    sell_rate: Decimal = Decimal("0")
    loan_amount: Decimal = Decimal("0")
    term: int = 0
    use_manual_reserve: bool = False
    manual_reserve_amount: Decimal = Decimal("0")
    date_sold: datetime | None = None
    date: datetime | None = None
    created_at: datetime | None = None
    sent_to_business_office: datetime | None = None
    funded_date: datetime | None = None
    notes: str = ""
    lender_id: str = ""
    lender_name: str = ""

    @property
    def sold_date(self) -> datetime | None:
        """Resolved sale date: dateSold, then date, then createdAt."""
        for candidate in (self.date_sold, self.date, self.created_at):
            if candidate is not None:
                return candidate
        return None


# =============================================================================
# FUNDING LIFECYCLE
# =============================================================================


class FundingState(str, Enum):
    PENDING = "Pending"
    SENT_TO_BUSINESS_OFFICE = "SentToBusinessOffice"
    FUNDED = "Funded"


class Severity(str, Enum):
    NORMAL = "Normal"
    WARNING = "Warning"
    CRITICAL = "Critical"
    FUNDED = "Funded"


@dataclass(frozen=True)
class SeverityThresholds:
    """Day counts at which an unfunded deal escalates."""

    critical_days: int = 7
    warning_days: int = 3
    business_office_warning_days: int = 3


@dataclass
class FundingStatus:
    """Derived funding position of one deal relative to a given instant."""

    state: FundingState
    severity: Severity
    days_since_sold: int = 0
    days_in_business_office: int | None = None
    business_office_overdue: bool = False
    ordering_anomaly: bool = False  # funded before it was sent to the office


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class DealFinancials:
    """Per-deal figures computed in one pass."""

    deal: NormalizedDeal
    product_profit: Decimal = Decimal("0")
    product_revenue: Decimal = Decimal("0")
    product_count: int = 0
    finance_reserve: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    funding: FundingStatus | None = None


@dataclass
class PeriodSummary:
    """Totals for deals sold within [start, end]."""

    start: datetime
    end: datetime
    deal_count: int = 0
    total_profit: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")
    total_products: int = 0
    products_per_deal: Decimal = Decimal("0")


@dataclass
class MonthBucket(PeriodSummary):
    """One calendar month of a trend series."""

    label: str = ""
    goal: Decimal = Decimal("0")
    goal_progress: int = 0


@dataclass
class ProductSummary:
    name: str
    count: int = 0
    profit: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")


@dataclass
class LenderSummary:
    name: str
    deal_count: int = 0
    total_profit: Decimal = Decimal("0")
    avg_profit: Decimal = Decimal("0")


@dataclass
class FundingSummary:
    """Counts and values behind the funding board header."""

    funded: int = 0
    pending: int = 0
    funded_value: Decimal = Decimal("0")
    pending_value: Decimal = Decimal("0")
    new_deals: int = 0
    warning_deals: int = 0
    critical_deals: int = 0
    in_business_office: int = 0
    with_notes: int = 0
    funded_percentage: int = 0


@dataclass
class EngineContext:
    """
    Holds all intermediate state during one aggregation pass.
    This is the "bag" that flows through the pipeline.
    """

    # Input (immutable during the pass)
    now: datetime
    monthly_goal: Decimal
    months_back: int
    lender_directory: dict = field(default_factory=dict)

    # Step results (populated as we go)
    deals: list[NormalizedDeal] = field(default_factory=list)
    financials: list[DealFinancials] = field(default_factory=list)
    monthly: list[MonthBucket] = field(default_factory=list)
    products: list[ProductSummary] = field(default_factory=list)
    lenders: list[LenderSummary] = field(default_factory=list)
    funding: FundingSummary = field(default_factory=FundingSummary)


@dataclass
class EngineResult:
    """Final output of one aggregation pass."""

    now: datetime
    summary: MonthBucket
    financials: list[DealFinancials]
    monthly: list[MonthBucket]
    products: list[ProductSummary]
    lenders: list[LenderSummary]
    funding: FundingSummary
    period: PeriodSummary | None = None
