"""
Tests for input validation and configuration
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fi_engine.config import EngineConfig
from fi_engine.validators import InputValidator

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestInputValidator:

    @pytest.fixture
    def validator(self):
        return InputValidator()

    def test_valid_input(self, validator):
        validator.validate([{"id": "a"}, {}], NOW, 6)
        validator.validate((), NOW, 1)

    def test_dirty_fields_are_not_rejected(self, validator):
        validator.validate([{"loanAmount": "lots", "dateSold": "whenever"}], NOW, 6)

    @pytest.mark.parametrize("records", [None, "deals", {"id": "a"}, 3])
    def test_records_must_be_list(self, validator, records):
        with pytest.raises(ValueError, match="deals must be a list"):
            validator.validate(records, NOW, 6)

    def test_record_must_be_object(self, validator):
        with pytest.raises(ValueError, match="Deal 2 must be an object"):
            validator.validate([{}, {}, None], NOW, 6)

    def test_now_must_be_datetime(self, validator):
        with pytest.raises(ValueError, match="now must be a datetime"):
            validator.validate([], None, 6)

    @pytest.mark.parametrize("months_back", [0, -3, 2.0, "6", True])
    def test_months_back(self, validator, months_back):
        with pytest.raises(ValueError, match="months_back"):
            validator.validate([], NOW, months_back)


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config.environment == "dev"
        assert config.default_monthly_goal == Decimal("10000")
        assert config.default_months_back == 6
        assert config.thresholds.critical_days == 7
        assert config.thresholds.warning_days == 3
        assert config.thresholds.business_office_warning_days == 3

    def test_overrides(self):
        config = EngineConfig.from_env({
            "ENVIRONMENT": "prod",
            "DEFAULT_MONTHLY_GOAL": "25000",
            "DEFAULT_MONTHS_BACK": "12",
            "SEVERITY_CRITICAL_DAYS": "10",
            "SEVERITY_WARNING_DAYS": "5",
            "BUSINESS_OFFICE_WARNING_DAYS": "2",
        })
        assert config.environment == "prod"
        assert config.default_monthly_goal == Decimal("25000")
        assert config.default_months_back == 12
        assert config.thresholds.critical_days == 10
        assert config.thresholds.warning_days == 5
        assert config.thresholds.business_office_warning_days == 2
