"""Accounting service: accounts, balances, orders, and positions"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from loguru import logger

from tradestation.domain.models import Account, Balance, BODBalance, Order, Position
from tradestation.shared.exceptions import AccountNotFoundError, ValidationError
from tradestation.streaming.decoder import RecordShape
from tradestation.streaming.session import EventHandler

from .base import BaseService, join_ids

MAX_ACCOUNT_IDS = 25
MAX_ORDER_IDS = 50
HISTORIC_ORDERS_MAX_DAYS = 90

ORDER_SHAPE = RecordShape(Order, ("OrderID",))
POSITION_SHAPE = RecordShape(Position, ("PositionID",))


class AccountingService(BaseService):
    """Brokerage accounts of the authenticated user

    Multi-account calls accept up to 25 account ids.
    """

    async def get_accounts(self) -> list[Account]:
        """Fetch every account of the authenticated user"""
        endpoint = "brokerage/accounts"
        body = await self._get_json(endpoint)
        accounts = self._parse_list(body, "Accounts", Account, endpoint)
        logger.debug(f"Fetched {len(accounts)} account(s)")
        return accounts

    async def get_account(self, account_id: str) -> Account:
        """Fetch one account by id

        Raises:
            AccountNotFoundError: If the user has no account with that id
        """
        for account in await self.get_accounts():
            if account.account_id == account_id:
                return account
        raise AccountNotFoundError(f"No account found with id {account_id}")

    async def get_balances(self, account_ids: Iterable[str]) -> list[Balance]:
        """Fetch real-time balances"""
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        endpoint = f"brokerage/accounts/{ids}/balances"
        body = await self._get_json(endpoint)
        self._check_partial_errors(body, "Balances", endpoint)
        return self._parse_list(body, "Balances", Balance, endpoint)

    async def get_bod_balances(self, account_ids: Iterable[str]) -> list[BODBalance]:
        """Fetch beginning-of-day balances"""
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        endpoint = f"brokerage/accounts/{ids}/bodbalances"
        body = await self._get_json(endpoint)
        key = "BODBalances" if "BODBalances" in body else "Balances"
        self._check_partial_errors(body, key, endpoint)
        return self._parse_list(body, key, BODBalance, endpoint)

    async def get_orders(self, account_ids: Iterable[str]) -> list[Order]:
        """Fetch today's orders and open orders"""
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        endpoint = f"brokerage/accounts/{ids}/orders"
        body = await self._get_json(endpoint)
        self._check_partial_errors(body, "Orders", endpoint)
        return self._parse_list(body, "Orders", Order, endpoint)

    async def get_orders_by_id(
        self, account_ids: Iterable[str], order_ids: Iterable[str]
    ) -> list[Order]:
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        orders = join_ids(order_ids, "order_ids", MAX_ORDER_IDS)
        endpoint = f"brokerage/accounts/{ids}/orders/{orders}"
        body = await self._get_json(endpoint)
        self._check_partial_errors(body, "Orders", endpoint)
        return self._parse_list(body, "Orders", Order, endpoint)

    async def get_historic_orders(
        self, account_ids: Iterable[str], since: str | date
    ) -> list[Order]:
        """Fetch historical orders, excluding open orders

        Args:
            account_ids: Accounts to query
            since: First day to include (``YYYY-MM-DD``), at most 90 days back

        Raises:
            ValidationError: If ``since`` is malformed or too far back
        """
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        since_date = _historic_since(since)
        endpoint = f"brokerage/accounts/{ids}/historicalorders"
        body = await self._get_json(endpoint, params={"since": since_date})
        self._check_partial_errors(body, "Orders", endpoint)
        return self._parse_list(body, "Orders", Order, endpoint)

    async def get_positions(
        self, account_ids: Iterable[str], symbols: Iterable[str] | None = None
    ) -> list[Position]:
        """Fetch positions, optionally filtered by symbol (``*`` wildcards allowed)"""
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        endpoint = f"brokerage/accounts/{ids}/positions"
        params = None
        if symbols is not None:
            params = {"symbol": join_ids(symbols, "symbols", 50)}
        body = await self._get_json(endpoint, params=params)
        self._check_partial_errors(body, "Positions", endpoint)
        return self._parse_list(body, "Positions", Position, endpoint)

    async def stream_orders(
        self, account_ids: Iterable[str], on_event: EventHandler | None = None
    ) -> list[Order] | None:
        """Stream order updates

        Buffered (no ``on_event``): returns the orders once the stream ends.
        Reactive: hands every event to ``on_event`` and returns None.
        """
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        return await self._stream(
            f"brokerage/stream/accounts/{ids}/orders", ORDER_SHAPE, on_event=on_event
        )

    async def stream_orders_by_id(
        self,
        account_ids: Iterable[str],
        order_ids: Iterable[str],
        on_event: EventHandler | None = None,
    ) -> list[Order] | None:
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        orders = join_ids(order_ids, "order_ids", MAX_ORDER_IDS)
        return await self._stream(
            f"brokerage/stream/accounts/{ids}/orders/{orders}",
            ORDER_SHAPE,
            on_event=on_event,
        )

    async def stream_positions(
        self,
        account_ids: Iterable[str],
        changes: bool = False,
        on_event: EventHandler | None = None,
    ) -> list[Position] | None:
        """Stream positions

        With ``changes`` the server sends only changed fields after the
        initial snapshot, and closed positions arrive with ``Deleted`` set.
        """
        ids = join_ids(account_ids, "account_ids", MAX_ACCOUNT_IDS)
        params = {"changes": "true"} if changes else None
        return await self._stream(
            f"brokerage/stream/accounts/{ids}/positions",
            POSITION_SHAPE,
            params=params,
            on_event=on_event,
        )


def _historic_since(since: str | date) -> str:
    if isinstance(since, datetime):
        since = since.date()
    if isinstance(since, str):
        try:
            since = date.fromisoformat(since.strip())
        except ValueError as e:
            raise ValidationError(
                f"since must be formatted as YYYY-MM-DD, got {since!r}", field="since"
            ) from e
    if not isinstance(since, date):
        raise ValidationError("since must be a date or YYYY-MM-DD string", field="since")

    today = datetime.now(UTC).date()
    if since < today - timedelta(days=HISTORIC_ORDERS_MAX_DAYS):
        raise ValidationError(
            f"since must be within the last {HISTORIC_ORDERS_MAX_DAYS} days",
            field="since",
        )
    return since.isoformat()
