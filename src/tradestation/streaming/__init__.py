"""Streaming: decoding newline-delimited JSON and driving stream sessions"""

from .decoder import RecordShape, StreamDecoder
from .events import Data, Heartbeat, Status, StreamError, StreamEvent
from .session import EventHandler, SessionState, StreamControl, StreamSession

__all__ = [
    "Data",
    "EventHandler",
    "Heartbeat",
    "RecordShape",
    "SessionState",
    "Status",
    "StreamControl",
    "StreamDecoder",
    "StreamError",
    "StreamEvent",
    "StreamSession",
]
