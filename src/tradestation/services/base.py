"""Shared plumbing for the domain services"""

from collections.abc import Iterable
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tradestation.infrastructure.requests import RequestExecutor
from tradestation.shared.exceptions import ApiError, ExecutionError, ValidationError
from tradestation.streaming.decoder import RecordShape
from tradestation.streaming.session import EventHandler, StreamSession

M = TypeVar("M", bound=BaseModel)


class BaseService:
    """Base for the accounting, market data, and execution services"""

    def __init__(self, executor: RequestExecutor) -> None:
        """Initialize service

        Args:
            executor: Executor shared by every service of a client
        """
        self._executor = executor

    async def _get_json(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        body = await self._executor.execute_json("GET", endpoint, params=params)
        if not isinstance(body, dict):
            raise ExecutionError(
                f"GET {endpoint} returned {type(body).__name__}, expected an object"
            )
        return body

    async def _stream(
        self,
        endpoint: str,
        shape: RecordShape[M],
        params: dict[str, Any] | None = None,
        on_event: EventHandler | None = None,
    ) -> list[M] | None:
        """Open a stream session in buffered or reactive mode

        Returns:
            The data records when ``on_event`` is None, otherwise None
        """
        session: StreamSession[M] = StreamSession(
            self._executor, endpoint, shape, params=params
        )
        if on_event is None:
            return await session.collect()
        await session.run(on_event)
        return None

    @staticmethod
    def _parse_list(
        body: dict[str, Any], key: str, model: type[M], endpoint: str
    ) -> list[M]:
        """Validate ``body[key]`` as a list of ``model``"""
        try:
            return [model.model_validate(item) for item in body.get(key) or []]
        except PydanticValidationError as e:
            raise ExecutionError(
                f"{endpoint} returned malformed {model.__name__} data: {e}"
            ) from e

    @staticmethod
    def _check_partial_errors(
        body: dict[str, Any], key: str, endpoint: str
    ) -> None:
        """Log per-item ``Errors``; raise when nothing else came back

        Raises:
            ApiError: If the response holds errors and no results
        """
        errors = body.get("Errors") or []
        for entry in errors:
            logger.warning(
                f"{endpoint}: {entry.get('AccountID') or entry.get('Symbol') or ''} "
                f"{entry.get('Error', '')} {entry.get('Message', '')}".strip()
            )
        if errors and not body.get(key):
            first = errors[0]
            raise ApiError(
                f"{endpoint} failed: {first.get('Message') or first.get('Error')}",
                error=first.get("Error"),
                api_message=first.get("Message"),
            )


def join_ids(values: Iterable[str], field: str, limit: int) -> str:
    """Comma-join ids for a path segment

    Raises:
        ValidationError: If the list is empty, holds blanks, or exceeds the limit
    """
    if isinstance(values, str):
        values = [values]
    cleaned = [str(value).strip() for value in values]
    if not cleaned:
        raise ValidationError(f"{field} must not be empty", field=field)
    if any(not value for value in cleaned):
        raise ValidationError(f"{field} must not contain blank entries", field=field)
    if len(cleaned) > limit:
        raise ValidationError(
            f"{field} allows at most {limit} entries, got {len(cleaned)}",
            field=field,
        )
    return ",".join(cleaned)
