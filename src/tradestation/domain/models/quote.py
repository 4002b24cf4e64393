"""Quote snapshot model"""

from decimal import Decimal

from pydantic import Field

from .base import ApiModel


class MarketFlags(ApiModel):
    """Market conditions flags on a quote"""

    is_bats: bool = False
    is_delayed: bool = False
    is_halted: bool = False
    is_hard_to_borrow: bool = False


class Quote(ApiModel):
    """Quote for a symbol

    Streamed quotes are partial updates: only ``symbol`` is guaranteed, every
    other field is present only when it changed.
    """

    symbol: str
    ask: Decimal | None = None
    ask_size: int | None = None
    bid: Decimal | None = None
    bid_size: int | None = None
    last: Decimal | None = None
    last_size: int | None = None
    last_venue: str | None = None
    open: Decimal | None = None
    high: Decimal | None = None
    low: Decimal | None = None
    close: Decimal | None = None
    previous_close: Decimal | None = None
    net_change: Decimal | None = None
    net_change_pct: Decimal | None = None
    high_52_week: Decimal | None = None
    high_52_week_timestamp: str | None = None
    low_52_week: Decimal | None = None
    low_52_week_timestamp: str | None = None
    volume: int | None = None
    previous_volume: int | None = None
    daily_open_interest: int | None = None
    trade_time: str | None = None
    tick_size_tier: str | None = None
    vwap: Decimal | None = Field(default=None, alias="VWAP")
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    first_notice_date: str | None = None
    last_trading_date: str | None = None
    restrictions: list[str] | None = None
    market_flags: MarketFlags | None = None

    @property
    def mid_price(self) -> Decimal | None:
        """Mid price from bid/ask, when both are known"""
        if self.bid is None or self.ask is None:
            return None
        return (self.bid + self.ask) / 2
