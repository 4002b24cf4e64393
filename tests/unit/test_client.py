"""Tests for Client and ClientBuilder"""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from tests.factories import MOCK_BASE_URL, build_test_client, token_response
from tradestation.client import TEST_MODE_PLACEHOLDER, ClientBuilder
from tradestation.core.config import Config
from tradestation.domain.models.token import Token
from tradestation.shared.exceptions import ConfigurationError, RefreshFailedError

TOKEN_HOST = "signin.tradestation.com"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_testing_url_uses_placeholders():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Accounts": []})

    async with await build_test_client(handler) as client:
        await client.accounting.get_accounts()

    assert client.base_url == MOCK_BASE_URL
    assert client.token.token_type == "TESTING"
    assert seen[0].headers["Authorization"] == "Bearer " + TEST_MODE_PLACEHOLDER.format(
        "ACCESS_TOKEN"
    )
    assert all(request.url.host != TOKEN_HOST for request in seen)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_requires_credentials():
    with pytest.raises(ConfigurationError):
        await ClientBuilder().build()


@pytest.mark.unit
def test_token_requires_credentials(fresh_token):
    with pytest.raises(ConfigurationError):
        ClientBuilder().token(fresh_token)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_requires_token():
    with pytest.raises(ConfigurationError):
        await ClientBuilder().credentials("key", "secret").build()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_refreshes_stale_token(stale_token):
    refreshes = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal refreshes
        assert request.url.host == TOKEN_HOST
        refreshes += 1
        return httpx.Response(200, json=token_response("built-access"))

    client = await (
        ClientBuilder()
        .credentials("key", "secret")
        .token(stale_token)
        .transport(httpx.MockTransport(handler))
        .build()
    )

    assert refreshes == 1
    assert client.token.access_token == "built-access"
    await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_keeps_fresh_token(fresh_token):
    client = await (
        ClientBuilder()
        .credentials("key", "secret")
        .token(fresh_token)
        .transport(httpx.MockTransport(lambda request: httpx.Response(500)))
        .build()
    )

    assert client.token is fresh_token
    await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_surfaces_refresh_failure(stale_token):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    builder = (
        ClientBuilder()
        .credentials("key", "secret")
        .token(stale_token)
        .transport(httpx.MockTransport(handler))
    )

    with pytest.raises(RefreshFailedError):
        await builder.build()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_authorize_exchanges_code():
    forms: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(parse_qs(request.content.decode()))
        return httpx.Response(200, json=token_response("code-access", "code-refresh"))

    builder = (
        ClientBuilder()
        .credentials("key", "secret")
        .transport(httpx.MockTransport(handler))
    )
    await builder.authorize("auth-code")
    client = await builder.build()

    assert forms[0]["grant_type"] == ["authorization_code"]
    assert forms[0]["code"] == ["auth-code"]
    assert client.token.refresh_token == "code-refresh"
    await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_from_config_refreshes_on_build():
    config = Config(
        client_id="key",
        client_secret="secret",
        refresh_token="stored-refresh",
        base_url="https://sim-api.tradestation.com/v3",
    )
    forms: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(parse_qs(request.content.decode()))
        return httpx.Response(200, json=token_response("config-access"))

    client = await (
        ClientBuilder.from_config(config).transport(httpx.MockTransport(handler)).build()
    )

    assert forms[0]["refresh_token"] == ["stored-refresh"]
    assert client.token.access_token == "config-access"
    assert client.token.refresh_token == "stored-refresh"
    assert client.base_url == "https://sim-api.tradestation.com/v3"
    await client.aclose()


@pytest.mark.unit
def test_from_config_without_refresh_token():
    with pytest.raises(ConfigurationError):
        ClientBuilder.from_config(Config(client_id="key", client_secret="secret"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_caller_owned_http_client_is_not_closed(fresh_token):
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    )

    async with await (
        ClientBuilder()
        .credentials("key", "secret")
        .token(fresh_token)
        .http_client(http_client)
        .build()
    ):
        pass

    assert not http_client.is_closed
    await http_client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_token_forces_exchange():
    token = Token(
        access_token="old",
        refresh_token="refresh-1",
        issued_at=datetime.now(timezone.utc) - timedelta(seconds=10),
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=token_response("forced"))

    client = await (
        ClientBuilder()
        .credentials("key", "secret")
        .token(token)
        .transport(httpx.MockTransport(handler))
        .build()
    )
    refreshed = await client.refresh_token()

    assert refreshed.access_token == "forced"
    assert client.token is refreshed
    await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_owned_http_client_closed_on_exit(mocker):
    client = await build_test_client(lambda request: httpx.Response(200, json={}))
    close_spy = mocker.spy(client._http_client, "aclose")

    async with client:
        pass

    close_spy.assert_called_once()
