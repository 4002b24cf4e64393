"""Consolidated exceptions for the TradeStation client.

All custom exceptions are defined here to provide a single source of truth
for error handling across the client.
"""

from enum import Enum


class TradeStationError(Exception):
    """Base exception for TradeStation client errors"""

    pass


class ConfigurationError(TradeStationError):
    """Raised when configuration is invalid or missing"""

    pass


class ValidationError(TradeStationError):
    """Raised when builder or request input is malformed or incomplete

    Never sent over the wire. ``field`` names the first offending field.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(TradeStationError):
    """Raised when credential exchange or authorization fails"""

    pass


class NotAuthenticatedError(AuthError):
    """Raised when no token has been set on the client"""

    pass


class RefreshFailure(str, Enum):
    """Why a refresh token exchange failed"""

    EXPIRED_REFRESH_TOKEN = "expired_refresh_token"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"


class RefreshFailedError(AuthError):
    """Raised when exchanging the refresh token for a new access token fails"""

    def __init__(self, reason: RefreshFailure, message: str) -> None:
        super().__init__(f"Token refresh failed ({reason.value}): {message}")
        self.reason = reason


class ExecutionError(TradeStationError):
    """Raised when a request fails at the transport, server, or API level"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: str | None = None,
        api_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.api_message = api_message


class ApiError(ExecutionError):
    """Raised when the API answers successfully but reports errors in the body"""

    pass


class AccountNotFoundError(ExecutionError):
    """Raised when no account is registered under the requested id"""

    pass


class OrderRejectedError(ExecutionError):
    """Raised when an order ticket comes back with an error"""

    pass


class StreamDecodeError(TradeStationError):
    """A single stream record could not be decoded

    Non-fatal: it is attached to an in-band ``StreamError`` event and the
    stream keeps going.
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class StreamTransportError(TradeStationError):
    """Raised when the connection of an open stream fails"""

    pass


class StreamSessionError(TradeStationError):
    """Raised when a stream session is misused, e.g. run twice"""

    pass


class StopStream(TradeStationError):
    """Control signal a stream handler raises to end a stream early

    Not a failure: the session treats it as a deliberate cancellation.
    """

    pass
