"""Market data bar (candlestick) model"""

from decimal import Decimal
from enum import Enum

from pydantic import Field

from .base import ApiModel


class BarStatus(str, Enum):
    """Whether a bar is still trading or finished"""

    OPEN = "Open"
    CLOSED = "Closed"


class Bar(ApiModel):
    """Aggregated trading activity over one bar interval"""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    time_stamp: str
    total_volume: int = 0
    epoch: int | None = None
    up_ticks: int = 0
    down_ticks: int = 0
    up_volume: int = 0
    down_volume: int = 0
    total_ticks: int = 0

    # Deprecated by the API, always 0
    unchanged_ticks: int = 0
    unchanged_volume: int = 0

    # Futures and options only
    open_interest: Decimal | None = None

    is_realtime: bool | None = None
    is_end_of_history: bool = False
    bar_status: BarStatus = Field(default=BarStatus.CLOSED)

    @property
    def is_closed(self) -> bool:
        return self.bar_status == BarStatus.CLOSED
