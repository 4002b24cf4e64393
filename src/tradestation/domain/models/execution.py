"""Order execution response models"""

from decimal import Decimal

from pydantic import Field

from .base import ApiModel


class Route(ApiModel):
    """An order execution route"""

    id: str
    name: str
    asset_types: list[str] = []


class ActivationTrigger(ApiModel):
    """A trigger that activates a conditional order"""

    key: str
    name: str
    description: str = ""


class OrderTicket(ApiModel):
    """Acknowledgement of a placed, replaced, or cancelled order"""

    order_id: str = Field(default="", alias="OrderID")
    message: str = ""
    error: str | None = None

    @property
    def is_rejected(self) -> bool:
        return self.error is not None


class OrderConfirmation(ApiModel):
    """Estimated cost and routing of an order that has not been placed"""

    order_confirm_id: str = Field(alias="OrderConfirmID")
    route: str = ""
    duration: str = ""
    account: str = ""
    summary_message: str = ""
    estimated_price: Decimal | None = None
    estimated_cost: Decimal | None = None
    estimated_commission: Decimal | None = None
    debit_credit_estimated_cost: Decimal | None = None
    initial_margin_display: str | None = None
