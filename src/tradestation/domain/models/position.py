"""Position domain model"""

from decimal import Decimal
from enum import Enum

from pydantic import Field

from .base import ApiModel


class LongShort(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class Position(ApiModel):
    """An open position in an account"""

    account_id: str = Field(alias="AccountID")
    position_id: str = Field(alias="PositionID")
    symbol: str = ""
    asset_type: str = ""
    quantity: Decimal = Decimal(0)
    long_short: LongShort = LongShort.LONG
    average_price: Decimal | None = None
    last: Decimal | None = None
    bid: Decimal | None = None
    ask: Decimal | None = None
    market_value: Decimal | None = None
    total_cost: Decimal | None = None
    unrealized_profit_loss: Decimal | None = None
    unrealized_profit_loss_percent: Decimal | None = None
    todays_profit_loss: Decimal | None = None
    initial_requirement: Decimal | None = None
    maintenance_margin: Decimal | None = None
    conversion_rate: Decimal | None = None
    expiration_date: str | None = None
    timestamp: str | None = None

    # Set on stream updates for positions that were closed
    deleted: bool = False
