"""
Funding Lifecycle Classifier

Derives a deal's funding state and urgency from its lifecycle dates:

    Pending -> SentToBusinessOffice -> Funded
    Pending -> Funded

State is re-derived from the current field values on every call, so a deal
whose funded date is cleared simply classifies as unfunded again.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from ..dates import days_between, ensure_utc
from ..models import (
    DealFinancials, FundingState, FundingStatus, FundingSummary, NormalizedDeal,
    Severity, SeverityThresholds
)
from ..normalizer import customer_name, format_vehicle

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", "pending", "funded", "critical", "sentToBO")
SORT_FIELDS = ("customer", "dateSold", "daysSinceSold", "daysSinceSentToBO", "lender", "totalProfit")
SORT_DIRECTIONS = ("asc", "desc")


class FundingClassifier:
    """Classifies deals in the funding lifecycle."""

    def __init__(self, thresholds: SeverityThresholds | None = None):
        self.thresholds = thresholds or SeverityThresholds()

    def classify(self, deal: NormalizedDeal, now: datetime) -> FundingStatus:
        """
        Funding position of a deal at the given instant.

        A funded date is authoritative regardless of any other field.
        Severity escalates on whole days since the sale:
        - Critical: >= critical_days
        - Warning:  >= warning_days
        - Normal:   otherwise
        """
        now = ensure_utc(now)
        sold = deal.sold_date
        sent = deal.sent_to_business_office
        funded = deal.funded_date

        days_since_sold = days_between(sold, now) if sold is not None else 0

        if funded is not None:
            state = FundingState.FUNDED
        elif sent is not None:
            state = FundingState.SENT_TO_BUSINESS_OFFICE
        else:
            state = FundingState.PENDING

        days_in_office = None
        if state == FundingState.SENT_TO_BUSINESS_OFFICE:
            days_in_office = days_between(sent, now)

        ordering_anomaly = funded is not None and sent is not None and funded < sent
        if ordering_anomaly:
            logger.debug(f"Deal {deal.id} funded before it was sent to the business office")

        return FundingStatus(
            state=state,
            severity=self._severity(state, days_since_sold),
            days_since_sold=days_since_sold,
            days_in_business_office=days_in_office,
            business_office_overdue=(
                days_in_office is not None
                and days_in_office >= self.thresholds.business_office_warning_days
            ),
            ordering_anomaly=ordering_anomaly,
        )

    def _severity(self, state: FundingState, days_since_sold: int) -> Severity:
        if state == FundingState.FUNDED:
            return Severity.FUNDED
        if days_since_sold >= self.thresholds.critical_days:
            return Severity.CRITICAL
        if days_since_sold >= self.thresholds.warning_days:
            return Severity.WARNING
        return Severity.NORMAL

    # ── Funding board ────────────────────────────────────────────────────────

    def summarize(self, financials: list[DealFinancials]) -> FundingSummary:
        """Header counts for the funding board. Values use computed profit."""
        summary = FundingSummary()
        for item in financials:
            status = item.funding
            if status.state == FundingState.FUNDED:
                summary.funded += 1
                summary.funded_value += item.total_profit
            else:
                summary.pending += 1
                summary.pending_value += item.total_profit
                if status.severity == Severity.CRITICAL:
                    summary.critical_deals += 1
                elif status.severity == Severity.WARNING:
                    summary.warning_deals += 1
                else:
                    summary.new_deals += 1

            if status.state == FundingState.SENT_TO_BUSINESS_OFFICE:
                summary.in_business_office += 1

            if item.deal.notes.strip():
                summary.with_notes += 1

        total = summary.funded + summary.pending
        if total > 0:
            percentage = Decimal(summary.funded * 100) / Decimal(total)
            summary.funded_percentage = int(percentage.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        return summary

    def filter_by_status(self, financials: list[DealFinancials], status: str) -> list[DealFinancials]:
        """Board filter: all, pending, funded, critical or sentToBO."""
        if status not in STATUS_FILTERS:
            raise ValueError(f"Invalid status filter: {status}. Must be one of {', '.join(STATUS_FILTERS)}")

        if status == "all":
            return list(financials)
        if status == "funded":
            return [f for f in financials if f.funding.state == FundingState.FUNDED]
        if status == "pending":
            return [f for f in financials if f.funding.state != FundingState.FUNDED]
        if status == "critical":
            return [f for f in financials if f.funding.severity == Severity.CRITICAL]
        return [f for f in financials if f.funding.state == FundingState.SENT_TO_BUSINESS_OFFICE]

    def search(self, financials: list[DealFinancials], term: str) -> list[DealFinancials]:
        """Case-insensitive match on customer, vehicle year/model/VIN and lender."""
        needle = (term or "").strip().lower()
        if not needle:
            return list(financials)

        matches = []
        for item in financials:
            deal = item.deal
            haystack = [customer_name(deal), deal.lender_name, format_vehicle(deal.vehicle)]
            if deal.vehicle is not None:
                haystack.append(deal.vehicle.vin)
            if any(needle in value.lower() for value in haystack if value):
                matches.append(item)
        return matches

    def sort(
        self, financials: list[DealFinancials], field: str = "daysSinceSold", direction: str = "desc"
    ) -> list[DealFinancials]:
        """
        Board ordering. Ties keep their incoming order in both directions and
        missing values sort lowest.
        """
        if field not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {field}. Must be one of {', '.join(SORT_FIELDS)}")
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"Invalid sort direction: {direction}. Must be asc or desc")

        return sorted(financials, key=self._sort_key(field), reverse=direction == "desc")

    def _sort_key(self, field: str):
        if field == "customer":
            return lambda f: customer_name(f.deal).lower()
        if field == "dateSold":
            return lambda f: f.deal.sold_date.timestamp() if f.deal.sold_date is not None else float("-inf")
        if field == "daysSinceSold":
            return lambda f: f.funding.days_since_sold
        if field == "daysSinceSentToBO":
            return lambda f: f.funding.days_in_business_office or 0
        if field == "lender":
            return lambda f: f.deal.lender_name.lower()
        return lambda f: f.total_profit
