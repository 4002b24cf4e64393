"""Domain services exposed by the client"""

from .accounting import AccountingService
from .execution import ExecutionService
from .market_data import MarketDataService

__all__ = ["AccountingService", "ExecutionService", "MarketDataService"]
