"""
Engine configuration read from the environment.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal

from .models import SeverityThresholds


@dataclass
class EngineConfig:
    """Defaults applied when a caller leaves a parameter out."""

    environment: str = "dev"
    default_monthly_goal: Decimal = Decimal("10000")
    default_months_back: int = 6
    thresholds: SeverityThresholds = field(default_factory=SeverityThresholds)

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        defaults = SeverityThresholds()
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            default_monthly_goal=Decimal(env.get("DEFAULT_MONTHLY_GOAL", "10000")),
            default_months_back=int(env.get("DEFAULT_MONTHS_BACK", 6)),
            thresholds=SeverityThresholds(
                critical_days=int(env.get("SEVERITY_CRITICAL_DAYS", defaults.critical_days)),
                warning_days=int(env.get("SEVERITY_WARNING_DAYS", defaults.warning_days)),
                business_office_warning_days=int(
                    env.get("BUSINESS_OFFICE_WARNING_DAYS", defaults.business_office_warning_days)
                ),
            ),
        )
