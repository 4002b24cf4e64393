"""Pytest fixtures for TradeStation client tests"""

import sys
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

# =============================================================================
# Global Test Setup
# =============================================================================

# Add src to Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tradestation.core.config import DEFAULT_BASE_URL, DEFAULT_TOKEN_URL  # noqa: E402
from tradestation.domain.models.token import Scope, Token  # noqa: E402
from tradestation.infrastructure.auth import TokenStore  # noqa: E402
from tradestation.infrastructure.requests import (  # noqa: E402
    RequestExecutor,
    build_http_client,
)

API_URL = DEFAULT_BASE_URL
TOKEN_URL = DEFAULT_TOKEN_URL


# =============================================================================
# Tokens
# =============================================================================


@pytest.fixture
def fresh_token() -> Token:
    """Token issued just now, valid for 20 minutes"""
    return Token(
        access_token="access-1",
        refresh_token="refresh-1",
        id_token="id-1",
        scopes=(Scope.OPEN_ID, Scope.OFFLINE_ACCESS, Scope.MARKET_DATA),
        expires_in=1200,
    )


@pytest.fixture
def stale_token() -> Token:
    """Token that expired an hour ago"""
    return Token(
        access_token="access-stale",
        refresh_token="refresh-1",
        id_token="id-1",
        scopes=(Scope.OPEN_ID, Scope.MARKET_DATA),
        expires_in=1200,
        issued_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )


# =============================================================================
# Transport
# =============================================================================


@pytest.fixture
def make_executor() -> Callable:
    """Build a RequestExecutor over an httpx.MockTransport

    Usage:
        executor, store = make_executor(handler, token)
    """
    def _make(handler, token: Token | None) -> tuple[RequestExecutor, TokenStore]:
        http_client = build_http_client(
            timeout=5, transport=httpx.MockTransport(handler)
        )
        store = TokenStore("client-id", "client-secret", http_client, token=token)
        return RequestExecutor(store, http_client, base_url=API_URL), store

    return _make
