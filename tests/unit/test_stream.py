# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import pytest

from duplexhttp.errors import CancellationError, ResponseStatusError, StreamError, TransportError
from duplexhttp.http.adapters import StubReply
from duplexhttp.http.operation import OperationState, PendingOperation
from duplexhttp.http.options import EffectiveConfig
from duplexhttp.http.response import ResponseMode
from duplexhttp.http.stream import DEFAULT_HIGH_WATER_MARK, DuplexStream
from duplexhttp.http.transport import ResponseHead

UPLOAD_URL = "http://example.com/upload"


class NullExchange:
    def __init__(self):
        self.aborted = False

    def abort(self) -> None:
        self.aborted = True


class ManualTransport:
    """Records the listener so tests can drive events by hand."""

    def __init__(self):
        self.listener = None
        self.body = None
        self.exchange = NullExchange()

    def open(self, config, body, listener):  # noqa: ANN001
        self.listener = listener
        self.body = body
        return self.exchange


class ListSink:
    def __init__(self):
        self.chunks: list[bytes] = []

    def write(self, chunk: bytes) -> None:
        self.chunks.append(chunk)


class AsyncSink(ListSink):
    async def write(self, chunk: bytes) -> None:  # type: ignore[override]
        await asyncio.sleep(0)
        self.chunks.append(chunk)


@pytest.mark.asyncio
async def test_stream_returns_handle_before_exchange_starts(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(chunks=[b"ack"]))
    operation = dispatcher.stream(UPLOAD_URL, method="PUT")
    assert operation.state is OperationState.OPENED
    assert not operation.response.done()
    assert transport.exchanges == []
    operation.stream.write(b"hello ")
    operation.stream.end(b"world")
    response = await operation.response
    assert response.status_code == 200
    assert response.content is None
    assert response.body is None
    assert transport.exchanges[0].body == b"hello world"
    assert transport.exchanges[0].config.method == "PUT"


@pytest.mark.asyncio
async def test_stream_request_body_is_streamed_after_start(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(chunks=[b"ok"]))
    operation = dispatcher.stream(UPLOAD_URL, method="POST")
    operation.stream.write(b"a")
    await asyncio.sleep(0)
    operation.stream.write(b"b")
    operation.stream.end()
    await operation
    assert transport.exchanges[0].streamed_body is True
    assert transport.exchanges[0].body == b"ab"


@pytest.mark.asyncio
async def test_stream_readable_side_yields_chunks_in_order(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(chunks=[b"A", b"B", b"C"]))
    operation = dispatcher.stream(UPLOAD_URL)
    received = [chunk async for chunk in operation.stream]
    response = await operation
    assert received == [b"A", b"B", b"C"]
    assert response.content is None


@pytest.mark.asyncio
async def test_pipe_from_and_pipe_to(dispatcher, transport):
    async def source():
        for part in (b"x", b"y", "z"):
            await asyncio.sleep(0)
            yield part

    transport.add(UPLOAD_URL, StubReply(chunks=[b"1", b"2"]))
    operation = dispatcher.stream(UPLOAD_URL, method="PUT")
    operation.stream.pipe_from(source())
    sink = AsyncSink()
    await operation.stream.pipe_to(sink)
    await operation
    assert transport.exchanges[0].body == b"xyz"
    assert sink.chunks == [b"1", b"2"]


@pytest.mark.asyncio
async def test_stream_read_collects_remaining_body(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(chunks=[b"he", b"llo"]))
    operation = dispatcher.stream(UPLOAD_URL)
    assert await operation.stream.read() == b"hello"
    with pytest.raises(StreamError):
        operation.stream.__aiter__()


@pytest.mark.asyncio
async def test_unused_writable_side_closes_when_exchange_starts(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply())
    operation = dispatcher.stream(UPLOAD_URL)
    await asyncio.sleep(0)
    with pytest.raises(StreamError):
        operation.stream.write(b"late")
    await operation
    assert transport.exchanges[0].body is None


@pytest.mark.asyncio
async def test_explicit_body_closes_writable_side(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply())
    operation = dispatcher.stream(UPLOAD_URL, {"method": "POST"}, b"fixed")
    with pytest.raises(StreamError):
        operation.stream.write(b"more")
    await operation
    assert transport.exchanges[0].body == b"fixed"


@pytest.mark.asyncio
async def test_buffered_operation_has_no_readable_side(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply.text("body"))
    operation = dispatcher.open(UPLOAD_URL)
    with pytest.raises(StreamError):
        operation.stream.__aiter__()
    await operation


@pytest.mark.asyncio
async def test_stream_classification_applies(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(status_code=502, reason="Bad Gateway", chunks=[b"upstream"]))
    operation = dispatcher.stream(UPLOAD_URL, throw_response_error=True)
    with pytest.raises(ResponseStatusError) as excinfo:
        await operation.response
    assert excinfo.value.response.status_code == 502
    assert excinfo.value.response.content is None


@pytest.mark.asyncio
async def test_stream_error_reaches_readable_side(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(chunks=[b"a"], error=ConnectionResetError("reset"), error_after_headers=True))
    operation = dispatcher.stream(UPLOAD_URL)
    received = []
    with pytest.raises(TransportError):
        async for chunk in operation.stream:
            received.append(chunk)
    assert received == [b"a"]
    with pytest.raises(TransportError):
        await operation


@pytest.mark.asyncio
async def test_aborting_through_stream_handle(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply(hold=asyncio.Event()))
    operation = dispatcher.stream(UPLOAD_URL, method="PUT")
    operation.stream.write(b"partial")
    await asyncio.sleep(0)
    operation.stream.abort()
    assert operation.state is OperationState.SETTLED_ERROR
    with pytest.raises(CancellationError):
        await operation


@pytest.mark.asyncio
async def test_events_after_settlement_are_ignored():
    transport = ManualTransport()
    config = EffectiveConfig(url="http://example.com/manual")
    operation = PendingOperation(config, transport, ResponseMode.TEXT).start()
    await asyncio.sleep(0)
    listener = transport.listener
    assert listener is operation
    listener.on_response(ResponseHead(status_code=200, reason="OK"))
    assert operation.state is OperationState.HEADERS_RECEIVED
    listener.on_data(b"one")
    assert operation.state is OperationState.BODY_STREAMING
    listener.on_end()
    listener.on_data(b"two")
    listener.on_error(RuntimeError("late"))
    listener.on_end()
    response = await operation
    assert operation.state is OperationState.SETTLED_SUCCESS
    assert response.content == "one"
    assert operation.abort() is False
    assert transport.exchange.aborted is False


@pytest.mark.asyncio
async def test_end_without_headers_is_transport_error():
    transport = ManualTransport()
    operation = PendingOperation(EffectiveConfig(url="http://example.com/x"), transport).start()
    await asyncio.sleep(0)
    transport.listener.on_end()
    with pytest.raises(TransportError):
        await operation


@pytest.mark.asyncio
async def test_transport_open_failure_settles_operation():
    class BrokenTransport:
        def open(self, config, body, listener):  # noqa: ANN001,ARG002
            raise OSError("no route")

    operation = PendingOperation(EffectiveConfig(url="http://example.com/x"), BrokenTransport()).start()
    with pytest.raises(TransportError):
        await operation
    assert operation.state is OperationState.SETTLED_ERROR


@pytest.mark.asyncio
async def test_late_observer_gets_settled_outcome(dispatcher, transport):
    transport.add(UPLOAD_URL, StubReply.text("done"))
    operation = dispatcher.open(UPLOAD_URL)
    first = await operation
    second = await operation.response
    assert first is second
    assert len(transport.exchanges) == 1


@pytest.mark.asyncio
async def test_slow_reader_paces_the_transport(dispatcher, transport):
    total = DEFAULT_HIGH_WATER_MARK * 3
    transport.add(UPLOAD_URL, StubReply(chunks=[b"x"] * total))
    operation = dispatcher.stream(UPLOAD_URL)
    for _ in range(total * 2):
        await asyncio.sleep(0)
    assert operation.stream.incoming_backlog == DEFAULT_HIGH_WATER_MARK
    assert not operation.response.done()

    assert await operation.stream.read() == b"x" * total
    assert (await operation).status_code == 200


@pytest.mark.asyncio
async def test_pipe_from_waits_for_the_body_consumer():
    total = DEFAULT_HIGH_WATER_MARK * 2

    async def source():
        for _ in range(total):
            yield b"c"

    stream = DuplexStream(readable=False)
    stream.pipe_from(source())
    for _ in range(10):
        await asyncio.sleep(0)
    assert stream.outgoing_backlog == DEFAULT_HIGH_WATER_MARK
    assert not stream.writable_ended

    body = b"".join([chunk async for chunk in stream.iter_outgoing()])
    assert body == b"c" * total
    assert stream.writable_ended


@pytest.mark.asyncio
async def test_settlement_releases_a_waiting_producer():
    stream = DuplexStream(high_water_mark=1)
    stream.feed(b"unread")
    waiter = asyncio.ensure_future(stream.wait_for_room())
    await asyncio.sleep(0)
    assert not waiter.done()
    stream.finish()
    await asyncio.wait_for(waiter, timeout=1.0)
