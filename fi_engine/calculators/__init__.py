"""
Calculators Package

Provides all calculation components for a deal aggregation pass.
"""

from .funding import FundingClassifier
from .goals import GoalEvaluator
from .products import ProductLedger
from .profit import ProfitAggregator
from .reserve import FinanceReserveCalculator

__all__ = [
    "ProductLedger",
    "FinanceReserveCalculator",
    "ProfitAggregator",
    "FundingClassifier",
    "GoalEvaluator",
]
