"""Brokerage account and balance models"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import Field

from .base import ApiModel


class AccountType(str, Enum):
    CASH = "Cash"
    MARGIN = "Margin"
    FUTURES = "Futures"
    DVP = "DVP"


class AccountDetail(ApiModel):
    day_trading_qualified: bool | None = None
    enrolled_in_reg_t_program: bool | None = Field(
        default=None, alias="EnrolledInRegTProgram"
    )
    is_stock_locate_eligible: bool | None = None
    option_approval_level: int | None = None
    pattern_day_trader: bool | None = None
    requires_buying_power_warning: bool | None = None


class Account(ApiModel):
    """A TradeStation brokerage account"""

    account_id: str = Field(alias="AccountID")
    account_type: AccountType
    currency: str = "USD"
    status: str = ""
    alias: str | None = None
    account_detail: AccountDetail | None = None


class Balance(ApiModel):
    """Real time balance of an account"""

    account_id: str = Field(alias="AccountID")
    account_type: AccountType
    cash_balance: Decimal
    buying_power: Decimal
    equity: Decimal
    market_value: Decimal
    todays_profit_loss: Decimal | None = None
    uncleared_deposit: Decimal | None = None
    commission: Decimal | None = None
    balance_detail: dict[str, Any] = {}


class BODBalance(ApiModel):
    """Beginning of day balance of an account"""

    account_id: str = Field(alias="AccountID")
    account_type: AccountType
    balance_detail: dict[str, Any] = {}
    currency_details: list[dict[str, Any]] = []


class AccountError(ApiModel):
    """Per-account error entry of a multi-account response"""

    account_id: str = Field(default="", alias="AccountID")
    error: str
    message: str = ""
