"""Stream events produced by the decoder"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from tradestation.shared.exceptions import StreamDecodeError

T = TypeVar("T")


@dataclass(frozen=True)
class Data(Generic[T]):
    """A domain record (bar, quote, order, position, ...)"""

    record: T


@dataclass(frozen=True)
class Heartbeat:
    """Liveness signal, sent after a few seconds without data"""

    counter: int
    timestamp: str | None = None


@dataclass(frozen=True)
class Status:
    """Stream state change, e.g. ``EndSnapshot`` or ``GoAway``"""

    message: str

    @property
    def is_end_snapshot(self) -> bool:
        return self.message == "EndSnapshot"

    @property
    def is_go_away(self) -> bool:
        return self.message == "GoAway"


@dataclass(frozen=True)
class StreamError:
    """In-band error; the stream keeps going

    Sent by the server with an ``Error`` marker, or produced locally when a
    line cannot be decoded, in which case ``cause`` holds the decode failure.
    """

    error: str
    message: str = ""
    symbol: str | None = None
    account_id: str | None = None
    cause: StreamDecodeError | None = field(default=None, compare=False)

    @property
    def is_decode_error(self) -> bool:
        return self.cause is not None


StreamEvent = Data | Heartbeat | Status | StreamError
