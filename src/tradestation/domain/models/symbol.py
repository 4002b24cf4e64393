"""Symbol details and option expiration models"""

from decimal import Decimal
from enum import Enum

from .base import ApiModel


class PriceFormat(ApiModel):
    """How prices for a symbol are formatted"""

    format: str
    decimals: str | None = None
    fraction: str | None = None
    sub_fraction: str | None = None
    increment_style: str | None = None
    increment: Decimal | None = None
    point_value: Decimal | None = None


class QuantityFormat(ApiModel):
    """How quantities for a symbol are formatted"""

    format: str
    decimals: str | None = None
    increment_style: str | None = None
    increment: Decimal | None = None
    minimum_trade_quantity: Decimal | None = None


class SymbolDetails(ApiModel):
    """Reference data for a tradable symbol"""

    symbol: str
    asset_type: str
    description: str = ""
    exchange: str = ""
    currency: str = ""
    country: str = ""
    root: str = ""
    underlying: str | None = None
    expiration_date: str | None = None
    future_type: str | None = None
    option_type: str | None = None
    strike_price: Decimal | None = None
    price_format: PriceFormat | None = None
    quantity_format: QuantityFormat | None = None


class OptionExpirationType(str, Enum):
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    END_OF_MONTH = "EOM"
    OTHER = "Other"


class OptionExpiration(ApiModel):
    """An option expiration date for an underlying"""

    date: str
    type: OptionExpirationType = OptionExpirationType.OTHER
