"""StreamDecoder - newline-delimited JSON bytes to typed stream events

Chunks arrive at arbitrary boundaries: a line may span several chunks and a
chunk may hold several lines, possibly splitting a multi-byte character.
Lines are framed on raw bytes and decoded as strict UTF-8 one at a time.
Each complete line is classified in a fixed order:

1. heartbeat (``Heartbeat`` key)
2. status (``StreamStatus`` key)
3. data (the endpoint's marker keys, validated against its model)
4. error (``Error`` key)

Anything else becomes a ``StreamError`` carrying a ``StreamDecodeError``.
"""

import json
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tradestation.shared.exceptions import StreamDecodeError

from .events import Data, Heartbeat, Status, StreamError, StreamEvent

T = TypeVar("T", bound=BaseModel)

_DELIMITER = b"\n"


@dataclass(frozen=True)
class RecordShape(Generic[T]):
    """How to recognise and parse an endpoint's data records

    Args:
        model: Pydantic model the record validates against
        markers: Keys of which at least one is present in every data record
    """

    model: type[T]
    markers: tuple[str, ...]

    def matches(self, payload: dict[str, Any]) -> bool:
        if "Error" in payload:
            return False
        return any(marker in payload for marker in self.markers)

    def parse(self, payload: dict[str, Any]) -> T:
        return self.model.model_validate(payload)


class StreamDecoder(Generic[T]):
    """Incremental decoder for one stream connection

    Not seekable and not reusable across connections: create one per stream.
    """

    def __init__(self, shape: RecordShape[T]) -> None:
        self._shape = shape
        self._buffer = b""
        self._closed = False

    @property
    def pending(self) -> str:
        """Incomplete trailing fragment waiting for its newline"""
        return self._buffer.decode("utf-8", errors="replace")

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Append a chunk and return the events of every line it completes"""
        if self._closed:
            raise RuntimeError("decoder is closed")
        if not chunk:
            return []

        self._buffer += chunk
        if _DELIMITER not in self._buffer:
            return []

        *lines, self._buffer = self._buffer.split(_DELIMITER)
        events = []
        for raw in lines:
            event = self._parse_raw(raw)
            if event is not None:
                events.append(event)
        return events

    def close(self) -> list[StreamEvent]:
        """Flush at end of body

        A trailing unterminated fragment is emitted only when it is a whole
        JSON object; anything else is dropped without an event.
        """
        if self._closed:
            return []
        self._closed = True

        raw = self._buffer.strip()
        self._buffer = b""
        if not raw:
            return []
        try:
            fragment = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug(f"Discarding trailing stream fragment: {raw[:80]!r}")
            return []

        try:
            payload = json.loads(fragment)
        except ValueError:
            logger.debug(f"Discarding trailing stream fragment: {fragment[:80]!r}")
            return []
        if not isinstance(payload, dict):
            logger.debug(f"Discarding trailing stream fragment: {fragment[:80]!r}")
            return []
        return [self.classify(payload, fragment)]

    def _parse_raw(self, raw: bytes) -> StreamEvent | None:
        if not raw.strip():
            return None
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return _decode_error(
                f"line is not valid UTF-8: {e.reason}",
                raw.decode("utf-8", errors="replace").strip(),
            )
        return self.parse_line(line)

    def parse_line(self, line: str) -> StreamEvent | None:
        """Decode one complete line; blank lines yield None"""
        line = line.strip()
        if not line:
            return None

        try:
            payload = json.loads(line)
        except ValueError as e:
            return _decode_error(f"invalid JSON: {e}", line)
        if not isinstance(payload, dict):
            return _decode_error(
                f"expected a JSON object, got {type(payload).__name__}", line
            )
        return self.classify(payload, line)

    def classify(self, payload: dict[str, Any], line: str = "") -> StreamEvent:
        """Map a decoded object to its event"""
        if "Heartbeat" in payload:
            try:
                return Heartbeat(
                    counter=int(payload["Heartbeat"]),
                    timestamp=payload.get("Timestamp"),
                )
            except (TypeError, ValueError):
                return _decode_error("heartbeat counter is not an integer", line)

        if "StreamStatus" in payload:
            return Status(message=str(payload["StreamStatus"]))

        if self._shape.matches(payload):
            try:
                return Data(self._shape.parse(payload))
            except PydanticValidationError as e:
                return _decode_error(
                    f"{self._shape.model.__name__} record failed validation: "
                    f"{e.error_count()} error(s)",
                    line,
                )

        if "Error" in payload:
            return StreamError(
                error=str(payload["Error"]),
                message=str(payload.get("Message", "")),
                symbol=payload.get("Symbol"),
                account_id=payload.get("AccountID"),
            )

        return _decode_error("record matches no known shape", line)

    async def decode(
        self, chunks: AsyncIterable[bytes]
    ) -> AsyncIterator[StreamEvent]:
        """Lazily decode an async byte stream into events, in arrival order"""
        async for chunk in chunks:
            for event in self.feed(chunk):
                yield event
        for event in self.close():
            yield event


def _decode_error(message: str, line: str) -> StreamError:
    logger.warning(f"Undecodable stream record: {message}")
    return StreamError(
        error="DecodeError",
        message=message,
        cause=StreamDecodeError(message, line=line),
    )
