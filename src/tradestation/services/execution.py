"""Execution service: confirm, place, replace, and cancel orders"""

from typing import Any

from loguru import logger

from tradestation.domain.models import (
    ActivationTrigger,
    OrderConfirmation,
    OrderTicket,
    Route,
)
from tradestation.domain.queries import OrderRequest, OrderRequestGroup, OrderUpdate
from tradestation.shared.exceptions import ExecutionError, OrderRejectedError

from .base import BaseService, join_ids


class ExecutionService(BaseService):
    """Order execution

    Placement calls raise ``OrderRejectedError`` when any returned ticket
    carries an error.
    """

    async def get_routes(self) -> list[Route]:
        endpoint = "orderexecution/routes"
        body = await self._get_json(endpoint)
        return self._parse_list(body, "Routes", Route, endpoint)

    async def get_activation_triggers(self) -> list[ActivationTrigger]:
        endpoint = "orderexecution/activationtriggers"
        body = await self._get_json(endpoint)
        return self._parse_list(body, "ActivationTriggers", ActivationTrigger, endpoint)

    async def confirm_order(self, order: OrderRequest) -> list[OrderConfirmation]:
        """Estimate cost and commission of an order without placing it"""
        return await self._confirm("orderexecution/orderconfirm", order.to_api())

    async def confirm_order_group(
        self, group: OrderRequestGroup
    ) -> list[OrderConfirmation]:
        return await self._confirm("orderexecution/ordergroupconfirm", group.to_api())

    async def place_order(self, order: OrderRequest) -> list[OrderTicket]:
        """Place an order

        Returns:
            One ticket per order created (OSOs create several)

        Raises:
            OrderRejectedError: If a ticket comes back with an error
        """
        logger.info(
            f"Placing {order.order_type.value} order: {order.trade_action.value} "
            f"{order.quantity} {order.symbol} ({order.account_id})"
        )
        return await self._place("POST", "orderexecution/orders", order.to_api())

    async def place_order_group(self, group: OrderRequestGroup) -> list[OrderTicket]:
        """Place a bracket, OCO, or normal order group"""
        logger.info(
            f"Placing {group.type.value} order group of {len(group.orders)} orders"
        )
        return await self._place("POST", "orderexecution/ordergroups", group.to_api())

    async def replace_order(self, order_id: str, update: OrderUpdate) -> OrderTicket:
        """Replace a working order with the changes in ``update``"""
        order_id = join_ids([order_id], "order_id", 1)
        logger.info(f"Replacing order {order_id}")
        tickets = await self._place(
            "PUT", f"orderexecution/orders/{order_id}", update.to_api()
        )
        return tickets[0]

    async def cancel_order(self, order_id: str) -> OrderTicket:
        """Cancel a working order"""
        order_id = join_ids([order_id], "order_id", 1)
        logger.info(f"Cancelling order {order_id}")
        tickets = await self._place("DELETE", f"orderexecution/orders/{order_id}")
        return tickets[0]

    async def _confirm(
        self, endpoint: str, payload: dict[str, Any]
    ) -> list[OrderConfirmation]:
        body = await self._executor.execute_json("POST", endpoint, json=payload)
        if not isinstance(body, dict):
            raise ExecutionError(f"{endpoint} returned an unexpected body")
        if body.get("Error") and not body.get("Confirmations"):
            raise OrderRejectedError(
                f"Order confirmation failed: {body.get('Message') or body['Error']}",
                error=body.get("Error"),
                api_message=body.get("Message"),
            )
        return self._parse_list(body, "Confirmations", OrderConfirmation, endpoint)

    async def _place(
        self, method: str, endpoint: str, payload: dict[str, Any] | None = None
    ) -> list[OrderTicket]:
        body = await self._executor.execute_json(method, endpoint, json=payload)
        if not isinstance(body, dict):
            raise ExecutionError(f"{endpoint} returned an unexpected body")

        # Placement answers with an "Orders" list; replace and cancel with one ticket
        if "Orders" in body or "Errors" in body:
            entries = list(body.get("Orders") or []) + list(body.get("Errors") or [])
        else:
            entries = [body]
        tickets = self._parse_list({"Tickets": entries}, "Tickets", OrderTicket, endpoint)

        rejected = [ticket for ticket in tickets if ticket.is_rejected]
        if rejected or not tickets:
            first = rejected[0] if rejected else None
            reason = (first.message or first.error) if first else "no ticket returned"
            logger.error(f"Order rejected at {endpoint}: {reason}")
            raise OrderRejectedError(
                f"Order rejected: {reason}",
                error=first.error if first else None,
                api_message=first.message if first else None,
            )

        for ticket in tickets:
            logger.info(f"Order {ticket.order_id}: {ticket.message}")
        return tickets
