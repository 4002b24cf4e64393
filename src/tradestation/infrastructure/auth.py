"""TokenStore - OAuth2 token ownership, acquisition, and refresh"""

import asyncio
from datetime import datetime
from typing import Any

import httpx
from loguru import logger

from tradestation.core.config import DEFAULT_REDIRECT_URI, DEFAULT_TOKEN_URL
from tradestation.domain.models.token import Token
from tradestation.shared.exceptions import (
    AuthError,
    NotAuthenticatedError,
    RefreshFailedError,
    RefreshFailure,
)


class TokenStore:
    """Owns the client's single live token

    Responsibilities:
    - Token access and staleness checks
    - Authorization code exchange via authorize()
    - Refresh token exchange via refresh(), coalesced so concurrent callers
      share one exchange

    The store talks to the token endpoint with the raw HTTP client, never
    through the authenticated request path.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient,
        token: Token | None = None,
        token_url: str = DEFAULT_TOKEN_URL,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        refresh_margin: int = 60,
    ) -> None:
        """Initialize token store

        Args:
            client_id: TradeStation API key
            client_secret: TradeStation API secret
            http_client: HTTP client used for the token endpoint
            token: Pre-obtained token, if any
            token_url: OAuth token endpoint
            redirect_uri: Redirect URI registered for the API key
            refresh_margin: Seconds before expiry at which a token is stale
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._http_client = http_client
        self._token = token
        self._token_url = token_url
        self._redirect_uri = redirect_uri
        self._refresh_margin = refresh_margin
        self._inflight: asyncio.Task[Token] | None = None

    @property
    def refresh_margin(self) -> int:
        return self._refresh_margin

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def current(self) -> Token:
        """Get the active token

        Raises:
            NotAuthenticatedError: If no token was ever set
        """
        if self._token is None:
            raise NotAuthenticatedError(
                "No token set - authorize the client or supply a token"
            )
        return self._token

    def set(self, token: Token) -> None:
        """Replace the stored token with a caller-supplied one"""
        self._token = token
        logger.debug(f"Token set, expires at {token.expires_at.isoformat()}")

    def clear(self) -> None:
        self._token = None
        logger.debug("Token cleared")

    def is_stale(self, token: Token | None = None, now: datetime | None = None) -> bool:
        """Check whether a token is within the refresh margin of expiry

        Args:
            token: Token to check, defaults to the current one
            now: Point in time to check against, defaults to now
        """
        token = token or self.current()
        return token.is_stale(margin=self._refresh_margin, now=now)

    async def authorize(self, authorization_code: str, redirect_uri: str | None = None) -> Token:
        """Exchange an authorization code for the initial token

        Raises:
            AuthError: If the exchange fails
        """
        logger.info("Exchanging authorization code for a token...")
        form = {
            "grant_type": "authorization_code",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "code": authorization_code,
            "redirect_uri": redirect_uri or self._redirect_uri,
        }
        try:
            payload = await self._post_token_form(form)
            token = Token.from_response(payload)
        except RefreshFailedError as e:
            raise AuthError(f"Authorization code exchange failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise AuthError(
                f"Authorization code exchange returned a malformed token: {e}"
            ) from e

        self._token = token
        logger.info(f"Token acquired, expires at {token.expires_at.isoformat()}")
        return token

    async def refresh(self, token: Token | None = None) -> Token:
        """Exchange the refresh token for a new token

        Concurrent calls join the exchange already in flight and all receive
        its result or its failure. When ``token`` is given and the store
        already holds a different token, that token has been replaced since
        the caller looked, and it is returned without a new exchange.

        Args:
            token: The token the caller found stale or unauthorized

        Returns:
            The new current token

        Raises:
            NotAuthenticatedError: If no token was ever set
            RefreshFailedError: If the exchange fails; the prior token is kept
        """
        current = self.current()
        if token is not None and token is not current and self._inflight is None:
            logger.debug("Token already replaced - skipping refresh")
            return current

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._run_refresh(current))
        else:
            logger.debug("Joining token refresh already in flight")

        return await asyncio.shield(self._inflight)

    async def _run_refresh(self, source: Token) -> Token:
        try:
            logger.info("Refreshing access token...")
            form = {
                "grant_type": "refresh_token",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": source.refresh_token,
                "redirect_uri": self._redirect_uri,
            }
            payload = await self._post_token_form(form)

            try:
                refreshed = Token.from_response(
                    payload, refresh_token=source.refresh_token
                )
            except (KeyError, TypeError, ValueError) as e:
                raise RefreshFailedError(
                    RefreshFailure.MALFORMED_RESPONSE,
                    f"token response missing or invalid field: {e}",
                ) from e

            if self._token is source:
                self._token = refreshed
            else:
                logger.warning("Token replaced during refresh - keeping the newer token")

            logger.info(
                f"Access token refreshed, expires at {refreshed.expires_at.isoformat()}"
            )
            return self._token or refreshed
        except RefreshFailedError as e:
            logger.error(str(e))
            raise
        finally:
            self._inflight = None

    async def _post_token_form(self, form: dict[str, str]) -> dict[str, Any]:
        """POST a form to the token endpoint and return the JSON body

        Raises:
            RefreshFailedError: Classified by failure kind
        """
        try:
            response = await self._http_client.post(
                self._token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.TransportError as e:
            raise RefreshFailedError(RefreshFailure.NETWORK, str(e)) from e

        if response.status_code in (400, 401, 403):
            raise RefreshFailedError(
                RefreshFailure.EXPIRED_REFRESH_TOKEN,
                f"{response.status_code} - {response.text}",
            )
        if not response.is_success:
            raise RefreshFailedError(
                RefreshFailure.NETWORK,
                f"token endpoint answered {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RefreshFailedError(
                RefreshFailure.MALFORMED_RESPONSE, "token response is not JSON"
            ) from e
        if not isinstance(payload, dict):
            raise RefreshFailedError(
                RefreshFailure.MALFORMED_RESPONSE, "token response is not an object"
            )
        return payload
