"""
Unit Tests for the Funding Lifecycle Classifier

Severity is recomputed from elapsed whole days on every call; a funded date
always wins.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fi_engine.calculators.funding import FundingClassifier
from fi_engine.models import DealFinancials, FundingState, Severity, SeverityThresholds
from fi_engine.normalizer import normalize

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> str:
    return (NOW - timedelta(days=days)).isoformat()


@pytest.fixture
def classifier():
    return FundingClassifier()


class TestFundingState:

    def test_funded_is_authoritative(self, classifier):
        deal = normalize({"dateSold": days_ago(20), "fundedDate": days_ago(1), "sentToBusinessOffice": None})
        status = classifier.classify(deal, NOW)
        assert status.state == FundingState.FUNDED
        assert status.severity == Severity.FUNDED
        assert status.days_in_business_office is None

    def test_funded_after_office(self, classifier):
        deal = normalize({
            "dateSold": days_ago(9), "sentToBusinessOffice": days_ago(6), "fundedDate": days_ago(2),
        })
        status = classifier.classify(deal, NOW)
        assert status.state == FundingState.FUNDED
        assert status.ordering_anomaly is False

    def test_sent_to_business_office(self, classifier):
        deal = normalize({"dateSold": days_ago(5), "sentToBusinessOffice": days_ago(4)})
        status = classifier.classify(deal, NOW)
        assert status.state == FundingState.SENT_TO_BUSINESS_OFFICE
        assert status.days_in_business_office == 4
        assert status.business_office_overdue is True

    def test_recently_sent_not_overdue(self, classifier):
        deal = normalize({"dateSold": days_ago(2), "sentToBusinessOffice": days_ago(1)})
        status = classifier.classify(deal, NOW)
        assert status.days_in_business_office == 1
        assert status.business_office_overdue is False

    def test_pending(self, classifier):
        status = classifier.classify(normalize({"dateSold": days_ago(1)}), NOW)
        assert status.state == FundingState.PENDING
        assert status.days_in_business_office is None

    def test_revert_is_plain_reclassification(self, classifier):
        raw = {"dateSold": days_ago(8), "fundedDate": days_ago(1)}
        assert classifier.classify(normalize(raw), NOW).severity == Severity.FUNDED

        raw["fundedDate"] = None
        status = classifier.classify(normalize(raw), NOW)
        assert status.state == FundingState.PENDING
        assert status.severity == Severity.CRITICAL

    def test_funded_before_sent_is_tolerated(self, classifier):
        deal = normalize({"dateSold": days_ago(9), "sentToBusinessOffice": days_ago(2), "fundedDate": days_ago(5)})
        status = classifier.classify(deal, NOW)
        assert status.state == FundingState.FUNDED
        assert status.ordering_anomaly is True


class TestSeverity:

    @pytest.mark.parametrize("age,expected", [
        (0, Severity.NORMAL),
        (2.9, Severity.NORMAL),
        (3, Severity.WARNING),
        (6.9, Severity.WARNING),
        (7, Severity.CRITICAL),
        (25, Severity.CRITICAL),
    ])
    def test_default_thresholds(self, classifier, age, expected):
        status = classifier.classify(normalize({"dateSold": days_ago(age)}), NOW)
        assert status.severity == expected

    def test_days_since_sold_floored(self, classifier):
        status = classifier.classify(normalize({"dateSold": days_ago(6.9)}), NOW)
        assert status.days_since_sold == 6

    def test_no_sold_date(self, classifier):
        status = classifier.classify(normalize({}), NOW)
        assert status.days_since_sold == 0
        assert status.severity == Severity.NORMAL

    def test_sold_date_from_created_at(self, classifier):
        status = classifier.classify(normalize({"createdAt": days_ago(4)}), NOW)
        assert status.days_since_sold == 4
        assert status.severity == Severity.WARNING

    def test_configured_thresholds(self):
        classifier = FundingClassifier(SeverityThresholds(critical_days=10, warning_days=5))
        assert classifier.classify(normalize({"dateSold": days_ago(7)}), NOW).severity == Severity.WARNING
        assert classifier.classify(normalize({"dateSold": days_ago(4)}), NOW).severity == Severity.NORMAL
        assert classifier.classify(normalize({"dateSold": days_ago(10)}), NOW).severity == Severity.CRITICAL

    def test_naive_now_taken_as_utc(self, classifier):
        status = classifier.classify(normalize({"dateSold": days_ago(3)}), NOW.replace(tzinfo=None))
        assert status.days_since_sold == 3

    def test_scenario(self, classifier):
        deal = normalize({
            "products": [{"soldPrice": 1000, "cost": 400}],
            "buyRate": 2, "sellRate": 6, "loanAmount": 30000, "term": 72,
            "dateSold": days_ago(25), "sentToBusinessOffice": None, "fundedDate": None,
        })
        status = classifier.classify(deal, NOW)
        assert status.state == FundingState.PENDING
        assert status.severity == Severity.CRITICAL
        assert status.days_since_sold == 25


@pytest.fixture
def board(classifier):
    rows = [
        ({"id": "a", "dateSold": days_ago(1), "customer": "Ana Lopez",
          "vehicle": {"year": 2025, "model": "K5", "vin": "5XXG64J2"}}, "1000"),
        ({"id": "b", "dateSold": days_ago(4), "sentToBusinessOffice": days_ago(3),
          "customer": {"name": "Ben Carter"}, "lenderName": "Kia Finance", "notes": "Need POI"}, "500"),
        ({"id": "c", "dateSold": days_ago(12), "customer": "Cy Young", "notes": "   "}, "250"),
        ({"id": "d", "dateSold": days_ago(10), "fundedDate": days_ago(2), "customer": "Dee Park"}, "2000"),
    ]
    financials = []
    for raw, profit in rows:
        deal = normalize(raw)
        financials.append(DealFinancials(
            deal=deal, total_profit=Decimal(profit), funding=classifier.classify(deal, NOW)
        ))
    return financials


class TestFundingBoard:

    def test_summarize(self, classifier, board):
        summary = classifier.summarize(board)
        assert summary.funded == 1
        assert summary.pending == 3
        assert summary.funded_value == Decimal("2000")
        assert summary.pending_value == Decimal("1750")
        assert summary.new_deals == 1
        assert summary.warning_deals == 1
        assert summary.critical_deals == 1
        assert summary.in_business_office == 1
        assert summary.with_notes == 1
        assert summary.funded_percentage == 25

    def test_summarize_empty(self, classifier):
        summary = classifier.summarize([])
        assert summary.funded_percentage == 0
        assert summary.pending == 0

    @pytest.mark.parametrize("status,expected", [
        ("all", ["a", "b", "c", "d"]),
        ("pending", ["a", "b", "c"]),
        ("funded", ["d"]),
        ("critical", ["c"]),
        ("sentToBO", ["b"]),
    ])
    def test_filter_by_status(self, classifier, board, status, expected):
        assert [f.deal.id for f in classifier.filter_by_status(board, status)] == expected

    def test_filter_rejects_unknown_status(self, classifier, board):
        with pytest.raises(ValueError, match="Invalid status filter"):
            classifier.filter_by_status(board, "stale")

    @pytest.mark.parametrize("term,expected", [
        ("ana", ["a"]),
        ("BEN", ["b"]),
        ("k5", ["a"]),
        ("2025", ["a"]),
        ("5xxg", ["a"]),
        ("kia fin", ["b"]),
        ("", ["a", "b", "c", "d"]),
        ("nobody", []),
    ])
    def test_search(self, classifier, board, term, expected):
        assert [f.deal.id for f in classifier.search(board, term)] == expected

    @pytest.mark.parametrize("field,direction,expected", [
        ("customer", "asc", ["a", "b", "c", "d"]),
        ("customer", "desc", ["d", "c", "b", "a"]),
        ("dateSold", "asc", ["c", "d", "b", "a"]),
        ("daysSinceSold", "desc", ["c", "d", "b", "a"]),
        ("daysSinceSentToBO", "desc", ["b", "a", "c", "d"]),
        ("lender", "asc", ["a", "c", "d", "b"]),
        ("lender", "desc", ["b", "a", "c", "d"]),
        ("totalProfit", "desc", ["d", "a", "b", "c"]),
    ])
    def test_sort(self, classifier, board, field, direction, expected):
        assert [f.deal.id for f in classifier.sort(board, field, direction)] == expected

    def test_sort_defaults_to_oldest_sale_first(self, classifier, board):
        assert [f.deal.id for f in classifier.sort(board)] == ["c", "d", "b", "a"]

    def test_sort_missing_sale_date_lowest(self, classifier, board):
        undated = normalize({"id": "e"})
        board.append(DealFinancials(deal=undated, funding=classifier.classify(undated, NOW)))
        assert classifier.sort(board, "dateSold", "asc")[0].deal.id == "e"

    def test_sort_rejects_unknown_field(self, classifier, board):
        with pytest.raises(ValueError, match="Invalid sort field"):
            classifier.sort(board, "financeManager")

    def test_sort_rejects_unknown_direction(self, classifier, board):
        with pytest.raises(ValueError, match="Invalid sort direction"):
            classifier.sort(board, "customer", "up")
