"""Order domain model, as reported by the brokerage endpoints"""

from decimal import Decimal

from pydantic import Field

from .base import ApiModel


class OrderLeg(ApiModel):
    symbol: str
    asset_type: str = ""
    buy_or_sell: str = ""
    open_or_close: str | None = None
    quantity_ordered: Decimal | None = None
    exec_quantity: Decimal | None = None
    quantity_remaining: Decimal | None = None
    execution_price: Decimal | None = None


class Order(ApiModel):
    """An order placed on an account"""

    account_id: str = Field(alias="AccountID")
    order_id: str = Field(alias="OrderID")
    status: str = ""
    status_description: str = ""
    order_type: str = ""
    duration: str = ""
    opened_date_time: str | None = None
    closed_date_time: str | None = None
    filled_price: Decimal | None = None
    limit_price: Decimal | None = None
    stop_price: Decimal | None = None
    commission_fee: Decimal | None = None
    currency: str | None = None
    reject_reason: str | None = None
    routing: str | None = None
    legs: list[OrderLeg] = []

    @property
    def is_filled(self) -> bool:
        return self.status == "FLL"

    @property
    def symbols(self) -> list[str]:
        return [leg.symbol for leg in self.legs]
