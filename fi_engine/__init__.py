"""
F&I DEAL FINANCIAL ENGINE
Profit, finance reserve, period rollups and funding lifecycle for dealership deals
"""

from .dates import coerce_date
from .models import EngineResult, FundingState, NormalizedDeal, Severity, SeverityThresholds
from .normalizer import coalesce_profit, normalize
from .processor import DealEngine
from .subscriptions import SubscriptionManager

__all__ = [
    'DealEngine',
    'EngineResult',
    'NormalizedDeal',
    'FundingState',
    'Severity',
    'SeverityThresholds',
    'SubscriptionManager',
    'coalesce_profit',
    'coerce_date',
    'normalize',
]
