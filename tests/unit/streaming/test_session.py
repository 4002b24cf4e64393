"""Tests for StreamSession lifecycle in buffered and reactive modes"""

import asyncio

import httpx
import pytest

from tests.factories import ChunkedStream, PayloadFactory, ndjson
from tradestation.domain.models import Bar
from tradestation.shared.exceptions import (
    AuthError,
    ExecutionError,
    StopStream,
    StreamSessionError,
    StreamTransportError,
)
from tradestation.streaming import (
    Data,
    Heartbeat,
    RecordShape,
    SessionState,
    StreamControl,
    StreamSession,
)

BAR_SHAPE = RecordShape(Bar, ("Open",))
ENDPOINT = "marketdata/stream/barcharts/CLX30"


def _one_record_per_chunk(count: int) -> ChunkedStream:
    return ChunkedStream(
        [ndjson(PayloadFactory.bar(close=f"71.{i}")) for i in range(count)]
    )


def _session(make_executor, token, body: ChunkedStream | httpx.Response) -> StreamSession:
    def handler(request: httpx.Request) -> httpx.Response:
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, stream=body)

    executor, _ = make_executor(handler, token)
    return StreamSession(executor, ENDPOINT, BAR_SHAPE)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_collect_returns_only_data_records(make_executor, fresh_token):
    body = ChunkedStream(
        [
            ndjson(PayloadFactory.bar(close="71.1"), PayloadFactory.heartbeat(1)),
            ndjson({"StreamStatus": "EndSnapshot"}, PayloadFactory.bar(close="71.2")),
            b"{broken\n",
        ]
    )
    session = _session(make_executor, fresh_token, body)

    bars = await session.collect()

    assert [str(bar.close) for bar in bars] == ["71.1", "71.2"]
    assert session.state == SessionState.CLOSED
    assert session.outcome == SessionState.DRAINING
    assert session.records_received == 2
    assert session.last_heartbeat == 1
    assert session.cancelled is False
    assert body.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stop_on_third_event_pulls_nothing_more(make_executor, fresh_token):
    body = _one_record_per_chunk(10)
    session = _session(make_executor, fresh_token, body)
    seen = []

    def handler(event):
        seen.append(event)
        if len(seen) == 3:
            return StreamControl.STOP
        return StreamControl.CONTINUE

    await session.run(handler)

    assert len(seen) == 3
    assert body.pulled == 3
    assert body.closed
    assert session.cancelled is True
    assert session.outcome == SessionState.CANCELLED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_raising_stop_stream_cancels(make_executor, fresh_token):
    body = _one_record_per_chunk(5)
    session = _session(make_executor, fresh_token, body)
    seen = []

    async def handler(event):
        seen.append(event)
        if len(seen) == 2:
            raise StopStream()

    await session.run(handler)

    assert len(seen) == 2
    assert body.pulled == 2
    assert session.outcome == SessionState.CANCELLED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_handler_sees_every_event_kind(make_executor, fresh_token):
    body = ChunkedStream(
        [
            ndjson(
                PayloadFactory.heartbeat(7),
                {"StreamStatus": "EndSnapshot"},
                PayloadFactory.bar(),
                {"Error": "Throttled", "Message": "Slow down"},
            )
        ]
    )
    session = _session(make_executor, fresh_token, body)
    kinds = []

    await session.run(lambda event: kinds.append(type(event).__name__))

    assert kinds == ["Heartbeat", "Status", "Data", "StreamError"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_handler_exception_fails_session(make_executor, fresh_token):
    body = _one_record_per_chunk(3)
    session = _session(make_executor, fresh_token, body)

    def handler(event):
        raise RuntimeError("handler bug")

    with pytest.raises(RuntimeError):
        await session.run(handler)

    assert session.outcome == SessionState.FAILED
    assert body.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_handler_httpx_error_propagates(make_executor, fresh_token):
    body = _one_record_per_chunk(3)
    session = _session(make_executor, fresh_token, body)

    async def handler(event):
        raise httpx.ConnectError("handler request failed")

    with pytest.raises(httpx.ConnectError) as exc_info:
        await session.run(handler)

    assert not isinstance(exc_info.value, StreamTransportError)
    assert str(exc_info.value) == "handler request failed"
    assert session.outcome == SessionState.FAILED
    assert body.pulled == 1
    assert body.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_failure_mid_stream(make_executor, fresh_token):
    body = ChunkedStream(
        [ndjson(PayloadFactory.bar()), ndjson(PayloadFactory.bar())], fail_after=1
    )
    session = _session(make_executor, fresh_token, body)
    received = []

    with pytest.raises(StreamTransportError):
        await session.run(received.append)

    assert len(received) == 1
    assert isinstance(received[0], Data)
    assert session.outcome == SessionState.FAILED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_failure_leaves_session_failed(make_executor, fresh_token):
    session = _session(
        make_executor, fresh_token, httpx.Response(404, json={"Message": "Unknown symbol"})
    )

    with pytest.raises(ExecutionError):
        await session.collect()

    assert session.outcome == SessionState.FAILED
    assert session.records_received == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unauthorized_stream_raises_auth_error(make_executor, fresh_token):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        if request.url.host == "signin.tradestation.com":
            return httpx.Response(
                200, json={"access_token": "again", "expires_in": 1200}
            )
        calls += 1
        return httpx.Response(401)

    executor, _ = make_executor(handler, fresh_token)
    session = StreamSession(executor, ENDPOINT, BAR_SHAPE)

    with pytest.raises(AuthError):
        await session.collect()

    assert calls == 2
    assert session.outcome == SessionState.FAILED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_session_is_single_use(make_executor, fresh_token):
    session = _session(make_executor, fresh_token, _one_record_per_chunk(1))
    await session.collect()

    with pytest.raises(StreamSessionError):
        await session.collect()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_task_cancellation_marks_session_cancelled(make_executor, fresh_token):
    started = asyncio.Event()

    class SlowStream(ChunkedStream):
        async def __aiter__(self):
            yield ndjson(PayloadFactory.heartbeat(1))
            await asyncio.sleep(3600)
            yield b""

    body = SlowStream([])
    session = _session(make_executor, fresh_token, body)

    def handler(event):
        if isinstance(event, Heartbeat):
            started.set()

    task = asyncio.create_task(session.run(handler))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.outcome == SessionState.CANCELLED
    assert body.closed
