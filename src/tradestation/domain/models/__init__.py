"""Domain models"""

from .account import (
    Account,
    AccountDetail,
    AccountError,
    AccountType,
    Balance,
    BODBalance,
)
from .bar import Bar, BarStatus
from .base import ApiModel
from .execution import (
    ActivationTrigger,
    OrderConfirmation,
    OrderTicket,
    Route,
)
from .market_depth import (
    MarketDepthAggregate,
    MarketDepthAggregates,
    MarketDepthQuote,
    MarketDepthQuotes,
    MarketDepthSide,
)
from .order import Order, OrderLeg
from .position import LongShort, Position
from .quote import MarketFlags, Quote
from .symbol import (
    OptionExpiration,
    OptionExpirationType,
    PriceFormat,
    QuantityFormat,
    SymbolDetails,
)
from .token import Scope, Token, TokenBuilder

__all__ = [
    "Account",
    "AccountDetail",
    "AccountError",
    "AccountType",
    "ActivationTrigger",
    "ApiModel",
    "Balance",
    "Bar",
    "BarStatus",
    "BODBalance",
    "LongShort",
    "MarketDepthAggregate",
    "MarketDepthAggregates",
    "MarketDepthQuote",
    "MarketDepthQuotes",
    "MarketDepthSide",
    "MarketFlags",
    "OptionExpiration",
    "OptionExpirationType",
    "Order",
    "OrderConfirmation",
    "OrderLeg",
    "OrderTicket",
    "Position",
    "PriceFormat",
    "QuantityFormat",
    "Quote",
    "Route",
    "Scope",
    "SymbolDetails",
    "Token",
    "TokenBuilder",
]
