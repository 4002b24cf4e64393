"""Async client for the TradeStation brokerage API v3"""

from tradestation.client import Client, ClientBuilder
from tradestation.core.config import Config
from tradestation.domain.models import Scope, Token, TokenBuilder
from tradestation.domain.queries import (
    BarUnit,
    GetBarsQueryBuilder,
    OrderRequestBuilder,
    OrderRequestGroupBuilder,
    OrderUpdate,
    SessionTemplate,
    StreamBarsQueryBuilder,
)
from tradestation.shared.exceptions import (
    AuthError,
    ExecutionError,
    StopStream,
    StreamTransportError,
    TradeStationError,
    ValidationError,
)
from tradestation.streaming import (
    Data,
    Heartbeat,
    Status,
    StreamControl,
    StreamError,
)

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "BarUnit",
    "Client",
    "ClientBuilder",
    "Config",
    "Data",
    "ExecutionError",
    "GetBarsQueryBuilder",
    "Heartbeat",
    "OrderRequestBuilder",
    "OrderRequestGroupBuilder",
    "OrderUpdate",
    "Scope",
    "SessionTemplate",
    "Status",
    "StopStream",
    "StreamBarsQueryBuilder",
    "StreamControl",
    "StreamError",
    "StreamTransportError",
    "Token",
    "TokenBuilder",
    "TradeStationError",
    "ValidationError",
]
