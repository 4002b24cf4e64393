"""StreamSession - lifecycle of one long-lived stream

Sessions run in one of two modes:

- buffered, via ``collect()``: runs to the natural end of the stream and
  returns the data records
- reactive, via ``run(handler)``: hands every event to the handler, which
  may stop the stream at any event boundary

State machine::

    OPENING -> STREAMING -> DRAINING | CANCELLED | FAILED -> CLOSED

Token staleness is checked once, when the stream opens. There is no
mid-stream re-authentication and no reconnect.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx
from loguru import logger

from tradestation.infrastructure.requests import RequestExecutor
from tradestation.shared.exceptions import (
    StopStream,
    StreamSessionError,
    StreamTransportError,
)

from .decoder import RecordShape, StreamDecoder
from .events import Data, Heartbeat, Status, StreamError, StreamEvent

T = TypeVar("T")


class SessionState(str, Enum):
    CREATED = "created"
    OPENING = "opening"
    STREAMING = "streaming"
    DRAINING = "draining"
    CANCELLED = "cancelled"
    FAILED = "failed"
    CLOSED = "closed"


class StreamControl(str, Enum):
    """What a reactive handler wants after an event"""

    CONTINUE = "continue"
    STOP = "stop"


EventHandler = Callable[
    [StreamEvent], StreamControl | None | Awaitable[StreamControl | None]
]


class StreamSession(Generic[T]):
    """One stream connection, from open to close

    A session is single use; running it a second time raises
    ``StreamSessionError``.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        endpoint: str,
        shape: RecordShape,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Initialize stream session

        Args:
            executor: Executor used to open the authenticated stream
            endpoint: Stream endpoint below the base URL
            shape: Data record shape for this endpoint
            params: Query parameters
        """
        self._executor = executor
        self._endpoint = endpoint
        self._shape = shape
        self._params = params
        self._state = SessionState.CREATED
        self._outcome: SessionState | None = None
        self._last_heartbeat: int | None = None
        self._records_received = 0
        self._cancelled = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> SessionState | None:
        """Terminal state reached before CLOSED (DRAINING, CANCELLED or FAILED)"""
        return self._outcome

    @property
    def last_heartbeat(self) -> int | None:
        return self._last_heartbeat

    @property
    def records_received(self) -> int:
        return self._records_received

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def collect(self) -> list[T]:
        """Run to the natural end of the stream and return the data records

        Heartbeats, status changes and in-band errors are logged, not kept.

        Raises:
            AuthError: If the stream could not be authorized
            ExecutionError: If the stream could not be opened
            StreamTransportError: If the connection fails mid-stream
        """
        records: list[T] = []

        def keep(event: StreamEvent) -> None:
            if isinstance(event, Data):
                records.append(event.record)

        await self.run(keep)
        return records

    async def run(self, handler: EventHandler) -> None:
        """Hand every event to ``handler`` until the stream ends or is stopped

        The handler may be sync or async. Returning ``StreamControl.STOP`` or
        raising ``StopStream`` closes the connection before the next read.
        Any other exception fails the session and propagates.

        Raises:
            StreamSessionError: If the session was already run
            AuthError: If the stream could not be authorized
            ExecutionError: If the stream could not be opened
            StreamTransportError: If the connection fails mid-stream
        """
        if self._state != SessionState.CREATED:
            raise StreamSessionError(
                f"Stream session already {self._state.value}; sessions are single use"
            )

        self._state = SessionState.OPENING
        try:
            async with self._executor.open_stream(
                self._endpoint, self._params
            ) as response:
                self._state = SessionState.STREAMING
                await self._pump(response, handler)
        except StopStream:
            self._finish(SessionState.CANCELLED)
        except asyncio.CancelledError:
            self._finish(SessionState.CANCELLED)
            raise
        except BaseException:
            self._finish(SessionState.FAILED)
            raise
        else:
            self._finish(
                SessionState.CANCELLED if self._cancelled else SessionState.DRAINING
            )

    async def _pump(self, response: httpx.Response, handler: EventHandler) -> None:
        decoder: StreamDecoder = StreamDecoder(self._shape)
        async with aclosing(decoder.decode(response.aiter_bytes())) as events:
            while True:
                try:
                    event = await anext(events)
                except StopAsyncIteration:
                    break
                except httpx.HTTPError as e:
                    logger.error(f"Stream transport failed: {self._endpoint}: {e}")
                    raise StreamTransportError(
                        f"Stream connection failed: {self._endpoint}: {e}"
                    ) from e

                self._observe(event)
                control = handler(event)
                if inspect.isawaitable(control):
                    control = await control
                if control == StreamControl.STOP:
                    logger.info(f"Stream stopped by handler: {self._endpoint}")
                    self._cancelled = True
                    return
        self._state = SessionState.DRAINING

    def _observe(self, event: StreamEvent) -> None:
        if isinstance(event, Data):
            self._records_received += 1
        elif isinstance(event, Heartbeat):
            self._last_heartbeat = event.counter
            logger.debug(f"Heartbeat {event.counter} on {self._endpoint}")
        elif isinstance(event, Status):
            logger.info(f"Stream status on {self._endpoint}: {event.message}")
        elif isinstance(event, StreamError):
            logger.warning(
                f"Stream error on {self._endpoint}: {event.error} {event.message}"
            )

    def _finish(self, outcome: SessionState) -> None:
        if outcome == SessionState.CANCELLED:
            self._cancelled = True
        self._outcome = outcome
        self._state = SessionState.CLOSED
        logger.info(
            f"Stream closed: {self._endpoint} ({outcome.value}, "
            f"{self._records_received} records)"
        )
