"""RequestExecutor - authenticated HTTP requests with a single auth retry"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from loguru import logger

from tradestation.core.config import DEFAULT_BASE_URL
from tradestation.shared.exceptions import AuthError, ExecutionError
from tradestation.shared.logging import install_logging_bridge

from .auth import TokenStore


def build_http_client(
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient with httpx request/response logging hooks."""
    install_logging_bridge()
    return httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
        event_hooks={
            "request": [_log_httpx_request],
            "response": [_log_httpx_response],
        },
    )


async def _log_httpx_request(request: httpx.Request) -> None:
    """Log outbound httpx requests with headers (auth masked)."""
    headers = {
        k: ("***" if k.lower() == "authorization" else v)
        for k, v in request.headers.items()
    }
    logger.debug(f"HTTPX request: {request.method} {request.url} {headers}")


async def _log_httpx_response(response: httpx.Response) -> None:
    """Log httpx responses; the body is left unread so streams stay intact."""
    logger.debug(
        f"HTTPX response: status={response.status_code} url={response.url}"
    )


class RequestExecutor:
    """Sends authenticated requests to the TradeStation API

    Responsibilities:
    - Eager refresh of a stale token before sending
    - Bearer header injection
    - Exactly one refresh-and-retry on 401
    - Mapping transport and HTTP failures to ExecutionError
    """

    def __init__(
        self,
        token_store: TokenStore,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        """Initialize request executor

        Args:
            token_store: Store holding the live token
            http_client: HTTP client used for API requests
            base_url: API root, e.g. ``https://api.tradestation.com/v3``
        """
        self._token_store = token_store
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    def url_for(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    async def execute(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Make an authenticated request

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Path below the base URL, e.g. ``"brokerage/accounts"``
            params: Query parameters
            json: JSON payload

        Returns:
            The successful response with its body read

        Raises:
            AuthError: If the request is unauthorized after a refresh, or the
                refresh itself fails
            ExecutionError: On transport failure or any other non-2xx status
        """
        response = await self._send(method, endpoint, params=params, json=json)
        if not response.is_success:
            self._raise_for_status(response)
        return response

    async def execute_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Make an authenticated request and decode the JSON body

        An empty body decodes to an empty dict.
        """
        response = await self.execute(method, endpoint, params=params, json=json)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ExecutionError(
                f"{method.upper()} {endpoint} returned a non-JSON body",
                status_code=response.status_code,
            ) from e

    @asynccontextmanager
    async def open_stream(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming GET with the same auth policy as ``execute``

        The yielded response body is not read; callers iterate it with
        ``aiter_bytes``. The connection is closed on exit.

        Raises:
            AuthError: If the stream is unauthorized after a refresh
            ExecutionError: If the stream cannot be opened
        """
        response = await self._send("GET", endpoint, params=params, stream=True)
        try:
            if not response.is_success:
                try:
                    await response.aread()
                except httpx.TransportError as e:
                    logger.error(f"Network error reading stream error: {endpoint}: {e}")
                    raise ExecutionError(
                        f"Stream failed to open: {response.status_code} - {e}",
                        status_code=response.status_code,
                    ) from e
                self._raise_for_status(response)
            logger.info(f"Stream opened: {endpoint}")
            yield response
        finally:
            await response.aclose()
            logger.debug(f"Stream connection closed: {endpoint}")

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send with the auth policy applied; returns the final response"""
        token = self._token_store.current()
        if self._token_store.is_stale(token):
            logger.info("Access token stale - refreshing before request")
            token = await self._token_store.refresh(token)

        url = self.url_for(endpoint)
        logger.debug(f"{method.upper()} {url}")
        response = await self._send_once(
            method, url, token.authorization_header, params, json, stream
        )
        if response.status_code != 401:
            return response

        await self._discard(response, stream)
        logger.warning(f"Unauthorized - refreshing token and retrying {url}")
        token = await self._token_store.refresh(token)

        response = await self._send_once(
            method, url, token.authorization_header, params, json, stream
        )
        if response.status_code == 401:
            await self._discard(response, stream)
            logger.error(f"Request still unauthorized after refresh: {url}")
            raise AuthError(
                f"Authentication failed after token refresh: {method.upper()} {endpoint}"
            )
        return response

    async def _send_once(
        self,
        method: str,
        url: str,
        authorization: str,
        params: dict[str, Any] | None,
        json: Any,
        stream: bool,
    ) -> httpx.Response:
        request = self._http_client.build_request(
            method.upper(),
            url,
            params=params,
            json=json,
            headers={"Authorization": authorization},
        )
        try:
            return await self._http_client.send(request, stream=stream)
        except httpx.TransportError as e:
            logger.error(f"Network error: {method.upper()} {url}: {e}")
            raise ExecutionError(f"Request failed: {e}") from e

    @staticmethod
    async def _discard(response: httpx.Response, stream: bool) -> None:
        if stream:
            await response.aclose()

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise ExecutionError describing a non-2xx response"""
        error, api_message = _error_fields(response)
        detail = api_message or error or response.text
        logger.error(
            f"Request failed {response.status_code}: {response.request.url} {detail}"
        )
        raise ExecutionError(
            f"Request failed: {response.status_code} - {detail}",
            status_code=response.status_code,
            error=error,
            api_message=api_message,
        )


def _error_fields(response: httpx.Response) -> tuple[str | None, str | None]:
    """Read the API's ``Error``/``Message`` fields without assuming keys."""
    try:
        body = response.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None
    error = body.get("Error")
    message = body.get("Message")
    return (
        str(error) if error is not None else None,
        str(message) if message is not None else None,
    )
