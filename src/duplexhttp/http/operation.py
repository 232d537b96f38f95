# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
One in-flight exchange and its single settlement.

A PendingOperation listens to transport events and turns them into exactly one outcome on
an ``asyncio.Future``. Buffered modes collect body chunks internally; stream mode forwards
them to the readable side of ``operation.stream``. Events arriving after settlement are
ignored.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from enum import Enum
from typing import Any, Generic, TypeVar

from ..errors import (
    CancellationError,
    DecodeError,
    DuplexHttpError,
    ResponseStatusError,
    TransportError,
    wrap_transport_exception,
)
from ..log import logger
from .classify import classify_response
from .options import EffectiveConfig
from .response import Response, ResponseMode, decode_body, decode_text, response_charset
from .stream import DuplexStream
from .transport import Exchange, RequestBody, ResponseHead, Transport

T = TypeVar("T")


class OperationState(str, Enum):
    OPENED = "opened"
    HEADERS_RECEIVED = "headers-received"
    BODY_STREAMING = "body-streaming"
    SETTLED_SUCCESS = "settled-success"
    SETTLED_ERROR = "settled-error"


class PendingOperation(Generic[T]):
    """
    Handle on one exchange.

    ``stream`` is usable as soon as the operation exists; ``response`` is the settlement
    future. Awaiting the operation itself awaits ``response``.
    """

    def __init__(
        self,
        config: EffectiveConfig,
        transport: Transport,
        mode: ResponseMode = ResponseMode.TEXT,
        *,
        model: Callable[[Any], T] | None = None,
    ):
        self.config = config
        self.mode = mode
        self._transport = transport
        self._model = model
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[Response[T]] = self._loop.create_future()
        self._future.add_done_callback(self._on_future_done)
        self._state = OperationState.OPENED
        self._head: ResponseHead | None = None
        self._chunks: list[bytes] = []
        self._exchange: Exchange | None = None
        self._error: BaseException | None = None
        self.stream = DuplexStream(on_abort=self.abort, readable=mode is ResponseMode.STREAM)
        if config.body is not None:
            self.stream.close_writable()

    def start(self) -> PendingOperation[T]:
        """Schedule the exchange on the next loop iteration and return immediately."""
        self._loop.call_soon(self._open)
        return self

    # -- introspection -------------------------------------------------------------

    @property
    def state(self) -> OperationState:
        return self._state

    @property
    def response(self) -> asyncio.Future[Response[T]]:
        return self._future

    @property
    def error(self) -> BaseException | None:
        return self._error

    def done(self) -> bool:
        return self._state in (OperationState.SETTLED_SUCCESS, OperationState.SETTLED_ERROR)

    def __await__(self) -> Generator[Any, None, Response[T]]:
        return self._future.__await__()

    def __repr__(self) -> str:
        return f"<PendingOperation {self.config.method} {self.config.url} [{self._state.value}]>"

    # -- lifecycle -----------------------------------------------------------------

    def _select_body(self) -> RequestBody:
        if self.config.body is not None:
            return self.config.body
        if self.stream.writable_ended:
            body = self.stream.buffered_body()
            self.stream.close_writable()
            return body
        if self.stream.writable_touched:
            return self.stream.iter_outgoing()
        # Nothing written before the exchange started: send without a body.
        self.stream.close_writable()
        return None

    def _open(self) -> None:
        if self.done():
            return
        body = self._select_body()
        logger.debug("%s %s", self.config.method, self.config.url)
        try:
            self._exchange = self._transport.open(self.config, body, self)
        except Exception as exc:  # noqa: BLE001 - settles the operation instead
            self._settle_error(wrap_transport_exception(exc))

    def abort(self) -> bool:
        """Abort the exchange; returns False when the operation had already settled."""
        if self.done():
            return False
        exchange = self._exchange
        self._settle_error(CancellationError(f"{self.config.method} {self.config.url} was aborted"))
        if exchange is not None:
            exchange.abort()
        return True

    def _on_future_done(self, future: asyncio.Future[Any]) -> None:
        # A caller cancelled the future (e.g. the awaiting task was cancelled).
        if not future.cancelled() or self.done():
            return
        self._state = OperationState.SETTLED_ERROR
        self._error = CancellationError(f"{self.config.method} {self.config.url} was cancelled")
        self._chunks = []
        logger.debug("%s %s cancelled by caller", self.config.method, self.config.url)
        if self._exchange is not None:
            self._exchange.abort()
        self.stream.finish()
        if self.mode is ResponseMode.STREAM:
            self.stream.feed_error(self._error)

    # -- transport events ----------------------------------------------------------

    def on_response(self, head: ResponseHead) -> None:
        if self.done() or self._head is not None:
            return
        self._head = head
        self._state = OperationState.HEADERS_RECEIVED
        logger.debug("%s %s -> %s %s", self.config.method, self.config.url, head.status_code, head.reason)

    def on_data(self, chunk: bytes) -> None:
        if self.done() or self._head is None or not chunk:
            return
        self._state = OperationState.BODY_STREAMING
        if self.mode.buffered:
            self._chunks.append(chunk)
        elif self.mode is ResponseMode.STREAM:
            self.stream.feed(chunk)

    async def drain(self) -> None:
        if self.mode is ResponseMode.STREAM and not self.done():
            await self.stream.wait_for_room()

    def on_end(self) -> None:
        if self.done():
            return
        if self._head is None:
            self._settle_error(TransportError("exchange ended before a response was received"))
            return
        try:
            self._complete(self._head)
        except Exception as exc:  # noqa: BLE001 - settles the operation instead
            self._settle_error(wrap_transport_exception(exc))

    def on_error(self, exc: BaseException) -> None:
        if self.done():
            return
        self._settle_error(wrap_transport_exception(exc))

    # -- settlement ----------------------------------------------------------------

    def _decode(self, body: bytes | None, charset: str | None) -> tuple[Any, DecodeError | None]:
        try:
            content = decode_body(body, self.mode, charset)
            if self._model is not None and content is not None:
                content = self._model(content)
            return content, None
        except DecodeError as exc:
            error = exc
        except Exception as exc:  # noqa: BLE001 - any model failure is a decode failure
            error = DecodeError(f"response body does not fit {getattr(self._model, '__name__', 'model')}: {exc}")
            error.__cause__ = exc
        fallback = decode_text(body, charset) if body is not None else None
        return fallback, error

    def _complete(self, head: ResponseHead) -> None:
        body = b"".join(self._chunks) if self.mode.buffered else None
        self._chunks = []
        content, decode_error = self._decode(body, response_charset(head.headers))
        response: Response[T] = Response(
            head,
            method=self.config.method,
            url=self.config.url,
            mode=self.mode,
            body=body,
            content=content,
        )
        try:
            classify_response(response, self.config.throw_response_error)
        except ResponseStatusError as exc:
            self._settle_error(exc)
            return
        if decode_error is not None:
            decode_error.response = response
            self._settle_error(decode_error)
            return
        self._settle_success(response)

    def _settle_success(self, response: Response[T]) -> None:
        if self.done():
            return
        self._state = OperationState.SETTLED_SUCCESS
        self._future.set_result(response)
        self.stream.finish()
        if self.mode is ResponseMode.STREAM:
            self.stream.feed_eof()
        logger.debug("%s %s settled with %s", self.config.method, self.config.url, response.status_code)

    def _settle_error(self, exc: DuplexHttpError) -> None:
        if self.done():
            return
        self._state = OperationState.SETTLED_ERROR
        self._error = exc
        self._chunks = []
        if not self._future.done():
            self._future.set_exception(exc)
        self.stream.finish()
        if self.mode is ResponseMode.STREAM:
            self.stream.feed_error(exc)
        logger.debug("%s %s failed: %s (%s)", self.config.method, self.config.url, exc, exc.category.value)


__all__ = ["OperationState", "PendingOperation"]
