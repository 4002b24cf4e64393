"""Order requests and their builders"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar

from pydantic import Field, model_validator

from tradestation.domain.models.base import ApiModel
from tradestation.shared.exceptions import ValidationError


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"
    STOP_MARKET = "StopMarket"
    STOP_LIMIT = "StopLimit"


class TradeAction(str, Enum):
    """Direction of an order (equities, futures, and options)"""

    BUY = "BUY"
    SELL = "SELL"
    BUY_TO_COVER = "BUYTOCOVER"
    SELL_SHORT = "SELLSHORT"
    BUY_TO_OPEN = "BUYTOOPEN"
    BUY_TO_CLOSE = "BUYTOCLOSE"
    SELL_TO_OPEN = "SELLTOOPEN"
    SELL_TO_CLOSE = "SELLTOCLOSE"


class Duration(str, Enum):
    """How long an order stays working"""

    DAY = "DAY"
    DAY_PLUS = "DYP"
    GOOD_TILL_CANCELLED = "GTC"
    GOOD_TILL_CANCELLED_PLUS = "GCP"
    GOOD_TILL_DATE = "GTD"
    GOOD_TILL_DATE_PLUS = "GDP"
    AT_OPENING = "OPG"
    AT_CLOSE = "CLO"
    IMMEDIATE_OR_CANCEL = "IOC"
    FILL_OR_KILL = "FOK"
    ONE_MINUTE = "1"
    THREE_MINUTES = "3"
    FIVE_MINUTES = "5"


class OrderGroupType(str, Enum):
    BRACKET = "BRK"
    ONE_CANCELS_OTHER = "OCO"
    NORMAL = "NORMAL"


class BPWarningStatus(str, Enum):
    """How buying power warnings are handled on placement"""

    ENFORCE = "Enforce"
    PREVENTED = "Prevented"
    CONFIRMED = "Confirmed"


DATED_DURATIONS = (Duration.GOOD_TILL_DATE, Duration.GOOD_TILL_DATE_PLUS)
MAX_CONFIRM_ID_LENGTH = 22


class TimeInForce(ApiModel):
    duration: Duration
    # Required for GTD/GDP orders
    expiration: str | None = None

    @model_validator(mode="after")
    def _check_expiration(self) -> "TimeInForce":
        if self.duration in DATED_DURATIONS and not self.expiration:
            raise ValidationError(
                f"{self.duration.value} orders need an expiration date",
                field="time_in_force",
            )
        return self


class TrailingStop(ApiModel):
    amount: Decimal | None = None
    percent: Decimal | None = None


class AdvancedOrderOptions(ApiModel):
    all_or_none: bool | None = None
    add_liquidity: bool | None = None
    book_only: bool | None = None
    non_display: bool | None = None
    show_only_quantity: Decimal | None = None
    trailing_stop: TrailingStop | None = None


class OrderRequestLeg(ApiModel):
    symbol: str
    quantity: Decimal
    trade_action: TradeAction


class OrderRequest(ApiModel):
    """A validated order, ready to confirm or place"""

    account_id: str = Field(alias="AccountID")
    symbol: str
    quantity: Decimal
    order_type: OrderType
    trade_action: TradeAction
    time_in_force: TimeInForce
    route: str = "Intelligent"
    limit_price: Decimal | None = None
    stop_price: Decimal | None = None
    order_confirm_id: str | None = Field(default=None, alias="OrderConfirmID")
    buying_power_warning: BPWarningStatus | None = None
    legs: list[OrderRequestLeg] | None = None
    osos: list["Oso"] | None = Field(default=None, alias="OSOs")
    advanced_options: AdvancedOrderOptions | None = None

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "account_id",
        "symbol",
        "quantity",
        "order_type",
        "trade_action",
        "time_in_force",
    )

    @model_validator(mode="before")
    @classmethod
    def _check_required(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for name in cls.REQUIRED_FIELDS:
            alias = cls.model_fields[name].alias
            if data.get(name) is None and data.get(alias) is None:
                raise ValidationError(f"{name} is required", field=name)
        return data

    @model_validator(mode="after")
    def _check_order(self) -> "OrderRequest":
        _non_empty(self.account_id, "account_id")
        _non_empty(self.symbol, "symbol")
        _decimal(self.quantity, "quantity")
        for name in ("limit_price", "stop_price"):
            price = getattr(self, name)
            if price is not None:
                _decimal(price, name)

        if (
            self.order_type in (OrderType.LIMIT, OrderType.STOP_LIMIT)
            and self.limit_price is None
        ):
            raise ValidationError(
                f"limit_price is required for {self.order_type.value} orders",
                field="limit_price",
            )
        if (
            self.order_type in (OrderType.STOP_MARKET, OrderType.STOP_LIMIT)
            and self.stop_price is None
        ):
            raise ValidationError(
                f"stop_price is required for {self.order_type.value} orders",
                field="stop_price",
            )
        if (
            self.order_confirm_id is not None
            and len(self.order_confirm_id) > MAX_CONFIRM_ID_LENGTH
        ):
            raise ValidationError(
                f"order_confirm_id must be at most {MAX_CONFIRM_ID_LENGTH} characters",
                field="order_confirm_id",
            )
        return self


class Oso(ApiModel):
    """Orders sent when the parent order fills"""

    type: OrderGroupType
    orders: list[OrderRequest]


OrderRequest.model_rebuild()


class OrderRequestGroup(ApiModel):
    """A group of orders placed together (bracket, OCO, or normal)"""

    type: OrderGroupType
    orders: list[OrderRequest]

    @model_validator(mode="after")
    def _check_orders(self) -> "OrderRequestGroup":
        if len(self.orders) < 2:
            raise ValidationError(
                "an order group needs at least two order requests",
                field="order_requests",
            )
        return self


class OrderUpdate(ApiModel):
    """Changes applied to a working order when replacing it"""

    quantity: Decimal | None = None
    limit_price: Decimal | None = None
    stop_price: Decimal | None = None
    order_type: OrderType | None = None
    advanced_options: AdvancedOrderOptions | None = None

    def model_post_init(self, __context: Any) -> None:
        if not self.model_dump(exclude_none=True):
            raise ValidationError(
                "OrderUpdate needs at least one field to change", field="quantity"
            )


def _decimal(value: Any, field: str, allow_zero: bool = False) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            f"{field} must be numeric, got {value!r}", field=field
        ) from e
    if not number.is_finite() or number < 0 or (number == 0 and not allow_zero):
        raise ValidationError(f"{field} must be positive", field=field)
    return number


def _enum_member(enum_type: type[Enum], value: Any, field: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"{field} must be one of {allowed}, got {value!r}", field=field
        ) from e


def _non_empty(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string", field=field)
    return value.strip()


class OrderRequestBuilder:
    """Builder for ``OrderRequest``

    Example:
        order = (
            OrderRequestBuilder()
            .account_id("11111111")
            .symbol("AAPL")
            .quantity(10)
            .order_type(OrderType.LIMIT)
            .limit_price("185.50")
            .trade_action(TradeAction.BUY)
            .time_in_force(Duration.DAY)
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def account_id(self, account_id: str) -> "OrderRequestBuilder":
        self._fields["account_id"] = _non_empty(account_id, "account_id")
        return self

    def symbol(self, symbol: str) -> "OrderRequestBuilder":
        self._fields["symbol"] = _non_empty(symbol, "symbol").upper()
        return self

    def quantity(self, quantity: int | str | Decimal) -> "OrderRequestBuilder":
        self._fields["quantity"] = _decimal(quantity, "quantity")
        return self

    def order_type(self, order_type: OrderType | str) -> "OrderRequestBuilder":
        self._fields["order_type"] = _enum_member(OrderType, order_type, "order_type")
        return self

    def trade_action(self, action: TradeAction | str) -> "OrderRequestBuilder":
        self._fields["trade_action"] = _enum_member(
            TradeAction, action, "trade_action"
        )
        return self

    def time_in_force(
        self, duration: Duration | str, expiration: str | None = None
    ) -> "OrderRequestBuilder":
        """Set the order duration; GTD and GDP orders need an expiration"""
        duration = _enum_member(Duration, duration, "time_in_force")
        self._fields["time_in_force"] = TimeInForce(
            duration=duration, expiration=expiration
        )
        return self

    def route(self, route: str) -> "OrderRequestBuilder":
        """Set the execution route (defaults to ``"Intelligent"``)"""
        self._fields["route"] = _non_empty(route, "route")
        return self

    def limit_price(self, price: int | str | Decimal) -> "OrderRequestBuilder":
        self._fields["limit_price"] = _decimal(price, "limit_price")
        return self

    def stop_price(self, price: int | str | Decimal) -> "OrderRequestBuilder":
        self._fields["stop_price"] = _decimal(price, "stop_price")
        return self

    def order_confirm_id(self, confirm_id: str) -> "OrderRequestBuilder":
        """Set an idempotency id (at most 22 characters)"""
        confirm_id = _non_empty(confirm_id, "order_confirm_id")
        if len(confirm_id) > MAX_CONFIRM_ID_LENGTH:
            raise ValidationError(
                f"order_confirm_id must be at most {MAX_CONFIRM_ID_LENGTH} characters",
                field="order_confirm_id",
            )
        self._fields["order_confirm_id"] = confirm_id
        return self

    def buying_power_warning(
        self, status: BPWarningStatus | str
    ) -> "OrderRequestBuilder":
        self._fields["buying_power_warning"] = _enum_member(
            BPWarningStatus, status, "buying_power_warning"
        )
        return self

    def legs(self, legs: list[OrderRequestLeg]) -> "OrderRequestBuilder":
        if not legs:
            raise ValidationError("legs must not be empty", field="legs")
        self._fields["legs"] = list(legs)
        return self

    def osos(self, osos: list[Oso]) -> "OrderRequestBuilder":
        if not osos:
            raise ValidationError("osos must not be empty", field="osos")
        self._fields["osos"] = list(osos)
        return self

    def advanced_options(
        self, options: AdvancedOrderOptions
    ) -> "OrderRequestBuilder":
        self._fields["advanced_options"] = options
        return self

    def build(self) -> OrderRequest:
        """Finish building

        Raises:
            ValidationError: Naming the first missing required field, or a
                price the order type needs
        """
        return OrderRequest(**self._fields)


class OrderRequestGroupBuilder:
    """Builder for ``OrderRequestGroup``"""

    def __init__(self) -> None:
        self._group_type: OrderGroupType | None = None
        self._orders: list[OrderRequest] = []

    def group_type(self, group_type: OrderGroupType | str) -> "OrderRequestGroupBuilder":
        self._group_type = _enum_member(OrderGroupType, group_type, "group_type")
        return self

    def order_requests(
        self, orders: list[OrderRequest]
    ) -> "OrderRequestGroupBuilder":
        self._orders = list(orders)
        return self

    def add_order_request(self, order: OrderRequest) -> "OrderRequestGroupBuilder":
        self._orders.append(order)
        return self

    def build(self) -> OrderRequestGroup:
        """Finish building

        Raises:
            ValidationError: If the group type is missing or fewer than two
                orders were added
        """
        if self._group_type is None:
            raise ValidationError("group_type is required", field="group_type")
        return OrderRequestGroup(type=self._group_type, orders=self._orders)
