"""Validated, immutable queries and order requests with their builders"""

from .bars import (
    BarUnit,
    GetBarsQuery,
    GetBarsQueryBuilder,
    SessionTemplate,
    StreamBarsQuery,
    StreamBarsQueryBuilder,
)
from .orders import (
    AdvancedOrderOptions,
    BPWarningStatus,
    Duration,
    OrderGroupType,
    OrderRequest,
    OrderRequestBuilder,
    OrderRequestGroup,
    OrderRequestGroupBuilder,
    OrderRequestLeg,
    OrderType,
    OrderUpdate,
    Oso,
    TimeInForce,
    TradeAction,
    TrailingStop,
)

__all__ = [
    "AdvancedOrderOptions",
    "BarUnit",
    "BPWarningStatus",
    "Duration",
    "GetBarsQuery",
    "GetBarsQueryBuilder",
    "OrderGroupType",
    "OrderRequest",
    "OrderRequestBuilder",
    "OrderRequestGroup",
    "OrderRequestGroupBuilder",
    "OrderRequestLeg",
    "OrderType",
    "OrderUpdate",
    "Oso",
    "SessionTemplate",
    "StreamBarsQuery",
    "StreamBarsQueryBuilder",
    "TimeInForce",
    "TradeAction",
    "TrailingStop",
]
