"""Client - entry point tying the token store, executor, and services together"""

import httpx
from loguru import logger

from tradestation.core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_REDIRECT_URI,
    DEFAULT_TOKEN_URL,
    Config,
)
from tradestation.domain.models.token import Token
from tradestation.infrastructure.auth import TokenStore
from tradestation.infrastructure.requests import RequestExecutor, build_http_client
from tradestation.services import AccountingService, ExecutionService, MarketDataService
from tradestation.shared.exceptions import ConfigurationError

TEST_MODE_PLACEHOLDER = "NO_{}_IN_TEST_MODE"


class Client:
    """TradeStation API client

    Build one with ``ClientBuilder``. Use as an async context manager, or call
    ``aclose()`` when done, to release the HTTP connection pool.

    Example:
        async with await (
            ClientBuilder()
            .credentials("API_KEY", "API_SECRET")
            .token(token)
            .build()
        ) as client:
            accounts = await client.accounting.get_accounts()
    """

    def __init__(
        self,
        token_store: TokenStore,
        executor: RequestExecutor,
        http_client: httpx.AsyncClient,
        owns_http_client: bool = True,
    ) -> None:
        self._token_store = token_store
        self._executor = executor
        self._http_client = http_client
        self._owns_http_client = owns_http_client
        self.accounting = AccountingService(executor)
        self.market_data = MarketDataService(executor)
        self.execution = ExecutionService(executor)

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    @property
    def token(self) -> Token:
        """The token currently in use"""
        return self._token_store.current()

    @property
    def base_url(self) -> str:
        return self._executor.base_url

    async def refresh_token(self) -> Token:
        """Force a refresh of the current token"""
        return await self._token_store.refresh()

    async def aclose(self) -> None:
        """Close the HTTP client unless it was supplied by the caller"""
        if self._owns_http_client:
            await self._http_client.aclose()
            logger.debug("HTTP client closed")

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class ClientBuilder:
    """Fluent builder for ``Client``

    Steps:
    1. ``credentials(client_id, client_secret)``
    2. ``token(token)`` or ``await authorize(code)``
    3. ``await build()``

    ``testing_url(url)`` replaces steps 1 and 2 with placeholder credentials
    for use against a mock server.
    """

    def __init__(self) -> None:
        self._client_id: str | None = None
        self._client_secret: str | None = None
        self._token: Token | None = None
        self._base_url = DEFAULT_BASE_URL
        self._token_url = DEFAULT_TOKEN_URL
        self._redirect_uri = DEFAULT_REDIRECT_URI
        self._testing = False
        self._timeout = 30.0
        self._refresh_margin = 60
        self._transport: httpx.AsyncBaseTransport | None = None
        self._http_client: httpx.AsyncClient | None = None
        self._owns_http_client = True
        self._token_store: TokenStore | None = None

    @classmethod
    def from_config(cls, config: Config) -> "ClientBuilder":
        """Start a builder from environment-driven configuration

        The configured refresh token is exchanged for an access token when
        ``build()`` runs.

        Raises:
            ConfigurationError: If the config carries no refresh token
        """
        if not config.refresh_token:
            raise ConfigurationError(
                "TRADESTATION_REFRESH_TOKEN is required to build a client from config"
            )
        return (
            cls()
            .credentials(config.client_id, config.client_secret)
            .base_url(config.base_url)
            .token_url(config.token_url)
            .redirect_uri(config.redirect_uri)
            .timeout(config.timeout)
            .refresh_margin(config.refresh_margin)
            .token(
                Token(
                    access_token="",
                    refresh_token=config.refresh_token,
                    expires_in=0,
                )
            )
        )

    def credentials(self, client_id: str, client_secret: str) -> "ClientBuilder":
        if not client_id or not client_secret:
            raise ConfigurationError("client_id and client_secret are required")
        self._client_id = client_id
        self._client_secret = client_secret
        return self

    def token(self, token: Token) -> "ClientBuilder":
        """Use a previously obtained token"""
        self._require_credentials("token")
        self._token = token
        return self

    async def authorize(self, authorization_code: str) -> "ClientBuilder":
        """Exchange an authorization code for the client's first token

        Raises:
            AuthError: If the exchange fails
        """
        self._require_credentials("authorize")
        self._token = await self._ensure_token_store().authorize(authorization_code)
        return self

    def testing_url(self, url: str) -> "ClientBuilder":
        """Point the client at a mock server with placeholder credentials"""
        self._testing = True
        self._base_url = url
        return self

    def base_url(self, url: str) -> "ClientBuilder":
        self._base_url = url
        return self

    def token_url(self, url: str) -> "ClientBuilder":
        self._token_url = url
        return self

    def redirect_uri(self, uri: str) -> "ClientBuilder":
        self._redirect_uri = uri
        return self

    def timeout(self, seconds: float) -> "ClientBuilder":
        self._timeout = seconds
        return self

    def refresh_margin(self, seconds: int) -> "ClientBuilder":
        self._refresh_margin = seconds
        return self

    def transport(self, transport: httpx.AsyncBaseTransport) -> "ClientBuilder":
        """Use a custom transport, e.g. ``httpx.MockTransport`` in tests"""
        self._transport = transport
        return self

    def http_client(self, client: httpx.AsyncClient) -> "ClientBuilder":
        """Use a caller-owned HTTP client; the built client will not close it"""
        self._http_client = client
        self._owns_http_client = False
        return self

    async def build(self) -> Client:
        """Finish building

        A stale token is refreshed before the client is returned.

        Raises:
            ConfigurationError: If credentials or a token are missing
            RefreshFailedError: If refreshing a stale token fails
        """
        if self._testing:
            self._apply_test_placeholders()
        self._require_credentials("build")
        if self._token is None:
            raise ConfigurationError(
                "No token: call token() or authorize() before build()"
            )

        store = self._ensure_token_store()
        store.set(self._token)
        if not self._testing and store.is_stale():
            logger.info("Supplied token is stale - refreshing before first use")
            await store.refresh()

        executor = RequestExecutor(store, self._http_client, base_url=self._base_url)  # type: ignore[arg-type]
        logger.info(f"TradeStation client built for {self._base_url}")
        return Client(
            store,
            executor,
            self._http_client,  # type: ignore[arg-type]
            owns_http_client=self._owns_http_client,
        )

    def _apply_test_placeholders(self) -> None:
        self._client_id = self._client_id or TEST_MODE_PLACEHOLDER.format("CLIENT_ID")
        self._client_secret = self._client_secret or TEST_MODE_PLACEHOLDER.format(
            "CLIENT_SECRET"
        )
        if self._token is None:
            self._token = Token(
                access_token=TEST_MODE_PLACEHOLDER.format("ACCESS_TOKEN"),
                refresh_token=TEST_MODE_PLACEHOLDER.format("REFRESH_TOKEN"),
                id_token=TEST_MODE_PLACEHOLDER.format("ID_TOKEN"),
                token_type="TESTING",
            )

    def _require_credentials(self, step: str) -> None:
        if self._client_id is None or self._client_secret is None:
            raise ConfigurationError(f"credentials() must be called before {step}()")

    def _ensure_token_store(self) -> TokenStore:
        if self._http_client is None:
            self._http_client = build_http_client(self._timeout, self._transport)
        if self._token_store is None:
            self._token_store = TokenStore(
                self._client_id,  # type: ignore[arg-type]
                self._client_secret,  # type: ignore[arg-type]
                self._http_client,
                token_url=self._token_url,
                redirect_uri=self._redirect_uri,
                refresh_margin=self._refresh_margin,
            )
        return self._token_store
