"""Level 2 market depth models"""

from decimal import Decimal
from enum import Enum

from .base import ApiModel


class MarketDepthSide(str, Enum):
    BID = "Bid"
    ASK = "Ask"


class MarketDepthQuote(ApiModel):
    """A single participant's quote at one price level"""

    time_stamp: str
    side: MarketDepthSide
    price: Decimal
    size: int
    order_count: int = 0
    name: str = ""


class MarketDepthQuotes(ApiModel):
    """Bid and ask quotes of a market depth stream update"""

    bids: list[MarketDepthQuote] = []
    asks: list[MarketDepthQuote] = []


class MarketDepthAggregate(ApiModel):
    """All participants' quotes at one price level, aggregated"""

    earliest_time: str
    latest_time: str
    side: MarketDepthSide
    price: Decimal
    total_size: int
    biggest_size: int = 0
    smallest_size: int = 0
    num_participants: int = 0
    total_order_count: int = 0


class MarketDepthAggregates(ApiModel):
    """Bid and ask aggregates of a market depth stream update"""

    bids: list[MarketDepthAggregate] = []
    asks: list[MarketDepthAggregate] = []
