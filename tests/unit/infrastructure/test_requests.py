"""Tests for RequestExecutor auth policy and error mapping"""

import asyncio

import httpx
import pytest
from loguru import logger

from tests.factories import ChunkedStream, ndjson, token_response
from tradestation.shared.exceptions import (
    AuthError,
    ExecutionError,
    RefreshFailedError,
)

TOKEN_HOST = "signin.tradestation.com"


class FakeApi:
    """Routes token exchanges and API calls, recording both"""

    def __init__(self, api_responses: list[httpx.Response], token_status: int = 200):
        self.api_responses = list(api_responses)
        self.token_status = token_status
        self.api_calls: list[httpx.Request] = []
        self.refreshes = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == TOKEN_HOST:
            self.refreshes += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(
                200, json=token_response(f"access-after-{self.refreshes}")
            )
        self.api_calls.append(request)
        return self.api_responses.pop(0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_attaches_bearer_header(make_executor, fresh_token):
    api = FakeApi([httpx.Response(200, json={"Accounts": []})])
    executor, _ = make_executor(api, fresh_token)

    body = await executor.execute_json("GET", "brokerage/accounts")

    assert body == {"Accounts": []}
    assert api.api_calls[0].headers["Authorization"] == "Bearer access-1"
    assert str(api.api_calls[0].url) == "https://api.tradestation.com/v3/brokerage/accounts"
    assert api.refreshes == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stale_token_refreshed_before_sending(make_executor, stale_token):
    api = FakeApi([httpx.Response(200, json={})])
    executor, store = make_executor(api, stale_token)

    await executor.execute("GET", "brokerage/accounts")

    assert api.refreshes == 1
    assert api.api_calls[0].headers["Authorization"] == "Bearer access-after-1"
    assert store.current().access_token == "access-after-1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_unauthorized_then_success(make_executor, fresh_token):
    api = FakeApi(
        [httpx.Response(401, json={"Error": "Unauthorized"}), httpx.Response(200, json={"ok": True})]
    )
    executor, _ = make_executor(api, fresh_token)

    body = await executor.execute_json("GET", "brokerage/accounts")

    assert body == {"ok": True}
    assert api.refreshes == 1
    assert len(api.api_calls) == 2
    assert api.api_calls[1].headers["Authorization"] == "Bearer access-after-1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unauthorized_twice_raises_auth_error(make_executor, fresh_token):
    api = FakeApi([httpx.Response(401), httpx.Response(401)])
    executor, _ = make_executor(api, fresh_token)

    with pytest.raises(AuthError):
        await executor.execute("GET", "brokerage/accounts")

    assert api.refreshes == 1
    assert len(api.api_calls) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_refresh_after_unauthorized(make_executor, fresh_token):
    api = FakeApi([httpx.Response(401)], token_status=401)
    executor, store = make_executor(api, fresh_token)

    with pytest.raises(RefreshFailedError):
        await executor.execute("GET", "brokerage/accounts")

    assert store.current() is fresh_token


@pytest.mark.unit
@pytest.mark.asyncio
async def test_server_error_not_retried(make_executor, fresh_token):
    api = FakeApi(
        [
            httpx.Response(
                500, json={"Error": "InternalServerError", "Message": "Try again"}
            )
        ]
    )
    executor, _ = make_executor(api, fresh_token)

    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute("GET", "brokerage/accounts")

    assert exc_info.value.status_code == 500
    assert exc_info.value.error == "InternalServerError"
    assert exc_info.value.api_message == "Try again"
    assert api.refreshes == 0
    assert len(api.api_calls) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_client_error_carries_status(make_executor, fresh_token):
    api = FakeApi([httpx.Response(404, text="not found")])
    executor, _ = make_executor(api, fresh_token)

    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute("GET", "marketdata/quotes/NOPE")

    assert exc_info.value.status_code == 404
    assert exc_info.value.error is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_error_maps_to_execution_error(make_executor, fresh_token):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    executor, _ = make_executor(handler, fresh_token)

    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute("GET", "brokerage/accounts")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_body_decodes_to_empty_dict(make_executor, fresh_token):
    api = FakeApi([httpx.Response(200)])
    executor, _ = make_executor(api, fresh_token)

    assert await executor.execute_json("DELETE", "orderexecution/orders/1") == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_stale_requests_refresh_once(make_executor, stale_token):
    api = FakeApi([httpx.Response(200, json={}), httpx.Response(200, json={})])
    executor, store = make_executor(api, stale_token)

    await asyncio.gather(
        executor.execute("GET", "brokerage/accounts"),
        executor.execute("GET", "brokerage/accounts"),
    )

    assert api.refreshes == 1
    assert {call.headers["Authorization"] for call in api.api_calls} == {
        "Bearer access-after-1"
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_stream_retries_once_on_unauthorized(make_executor, fresh_token):
    body = ChunkedStream([ndjson({"Heartbeat": 1})])
    api = FakeApi([httpx.Response(401), httpx.Response(200, stream=body)])
    executor, _ = make_executor(api, fresh_token)

    async with executor.open_stream("marketdata/stream/quotes/AAPL") as response:
        chunks = [chunk async for chunk in response.aiter_bytes()]

    assert b"".join(chunks) == b'{"Heartbeat": 1}\n'
    assert api.refreshes == 1
    assert body.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_stream_error_status(make_executor, fresh_token):
    api = FakeApi([httpx.Response(403, json={"Error": "Forbidden", "Message": "No scope"})])
    executor, _ = make_executor(api, fresh_token)

    with pytest.raises(ExecutionError) as exc_info:
        async with executor.open_stream("marketdata/stream/quotes/AAPL"):
            pass

    assert exc_info.value.status_code == 403
    assert exc_info.value.api_message == "No scope"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_stream_error_body_read_failure(make_executor, fresh_token):
    body = ChunkedStream([b'{"Error": '], fail_after=0)
    api = FakeApi([httpx.Response(503, stream=body)])
    executor, _ = make_executor(api, fresh_token)

    with pytest.raises(ExecutionError) as exc_info:
        async with executor.open_stream("marketdata/stream/quotes/AAPL"):
            pass

    assert exc_info.value.status_code == 503
    assert isinstance(exc_info.value.__cause__, httpx.ReadError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_httpx_event_hooks_log_request_and_mask_auth(make_executor, fresh_token):
    messages: list[str] = []
    token = logger.add(messages.append, format="{message}")

    api = FakeApi([httpx.Response(200, json={})])
    executor, _ = make_executor(api, fresh_token)

    try:
        await executor.execute("GET", "brokerage/accounts")
    finally:
        logger.remove(token)

    assert any("HTTPX request: GET" in msg and "brokerage/accounts" in msg for msg in messages)
    assert any("status=200" in msg for msg in messages)
    assert not any("access-1" in msg for msg in messages)
