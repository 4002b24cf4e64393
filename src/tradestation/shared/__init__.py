"""Shared utilities: exceptions and logging"""

from .exceptions import (
    AccountNotFoundError,
    ApiError,
    AuthError,
    ConfigurationError,
    ExecutionError,
    NotAuthenticatedError,
    OrderRejectedError,
    RefreshFailedError,
    RefreshFailure,
    StopStream,
    StreamDecodeError,
    StreamSessionError,
    StreamTransportError,
    TradeStationError,
    ValidationError,
)
from .logging import install_logging_bridge

__all__ = [
    "AccountNotFoundError",
    "ApiError",
    "AuthError",
    "ConfigurationError",
    "ExecutionError",
    "NotAuthenticatedError",
    "OrderRejectedError",
    "RefreshFailedError",
    "RefreshFailure",
    "StopStream",
    "StreamDecodeError",
    "StreamSessionError",
    "StreamTransportError",
    "TradeStationError",
    "ValidationError",
    "install_logging_bridge",
]
