"""
Input Validation for the F&I Deal Engine

Dirty fields inside a record are tolerated and normalized; only violations
of the calling contract are rejected here, with a ValueError.
"""

from collections.abc import Mapping
from datetime import datetime


class InputValidator:
    """Validates the arguments of an aggregation pass."""

    def validate(self, records, now, months_back) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self._validate_records(records)
        self._validate_now(now)
        self._validate_months_back(months_back)

    def _validate_records(self, records) -> None:
        if not isinstance(records, (list, tuple)):
            raise ValueError(f"deals must be a list of records, got: {type(records).__name__}")

        for i, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise ValueError(f"Deal {i} must be an object, got: {type(record).__name__}")

    def _validate_now(self, now) -> None:
        if not isinstance(now, datetime):
            raise ValueError(f"now must be a datetime, got: {now!r}")

    def _validate_months_back(self, months_back) -> None:
        if isinstance(months_back, bool) or not isinstance(months_back, int):
            raise ValueError(f"months_back must be an integer, got: {months_back!r}")
        if months_back < 1:
            raise ValueError(f"months_back must be at least 1, got: {months_back}")
