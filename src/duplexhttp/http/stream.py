# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Duplex byte stream exposed by a pending operation.

The writable side feeds the outgoing request body; the readable side yields response
body chunks in the order the transport delivered them. Chunks are handed through as the
same ``bytes`` objects the transport produced.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

from ..errors import StreamError
from ..log import logger

_EOF = object()

# Chunks either side may hold before its producer has to wait.
DEFAULT_HIGH_WATER_MARK = 16


class DuplexStream:
    def __init__(
        self,
        *,
        on_abort: Callable[[], None] | None = None,
        readable: bool = True,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ):
        self._on_abort = on_abort
        self._high_water_mark = max(1, high_water_mark)
        # writable side
        self._outgoing: asyncio.Queue[Any] = asyncio.Queue()
        self._pending: list[bytes] = []
        self._touched = False
        self._sending = False
        self._ended = False
        self._closed = False
        self._source_task: asyncio.Task[None] | None = None
        self._space = asyncio.Event()
        self._space.set()
        # readable side
        self._readable = readable
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()
        self._read_started = False
        self._released = False
        self._room = asyncio.Event()
        self._room.set()

    # -- writable side -------------------------------------------------------------

    @property
    def writable(self) -> bool:
        return not (self._ended or self._closed)

    @property
    def writable_touched(self) -> bool:
        """True once anything was written or piped into the writable side."""
        return self._touched

    @property
    def writable_ended(self) -> bool:
        return self._ended

    @property
    def outgoing_backlog(self) -> int:
        return self._outgoing.qsize()

    def write(self, data: bytes | str) -> None:
        if not self.writable:
            raise StreamError("write after end of request body")
        if isinstance(data, str):
            data = data.encode("utf-8")
        chunk = bytes(data)
        self._touched = True
        if chunk:
            if not self._sending:
                self._pending.append(chunk)
            self._outgoing.put_nowait(chunk)

    def end(self, data: bytes | str | None = None) -> None:
        """Finish the request body, optionally writing a last chunk."""
        if data is not None:
            self.write(data)
        if self._ended:
            return
        if self._closed:
            raise StreamError("request body is closed")
        self._ended = True
        self._outgoing.put_nowait(_EOF)

    def pipe_from(self, source: AsyncIterable[bytes | str]) -> None:
        """Copy ``source`` into the writable side, ending it when the source is exhausted."""
        if not self.writable:
            raise StreamError("cannot pipe into a finished request body")
        if self._source_task is not None:
            raise StreamError("request body already has a source")
        self._touched = True
        self._source_task = asyncio.get_running_loop().create_task(self._pump(source))

    async def _pump(self, source: AsyncIterable[bytes | str]) -> None:
        try:
            async for chunk in source:
                if not self.writable:
                    return
                self.write(chunk)
                await self.drain()
        except Exception as exc:  # noqa: BLE001 - surfaced through the operation
            logger.debug("request body source failed: %s", exc)
            self._outgoing.put_nowait(exc)
            self._closed = True
            return
        if self.writable:
            self.end()

    def close_writable(self) -> None:
        """Close the writable side without sending anything further."""
        if self._closed:
            return
        self._closed = True
        if not self._ended:
            self._outgoing.put_nowait(_EOF)
        self._space.set()

    def buffered_body(self) -> bytes:
        """Everything written so far, joined; used when the body ended before sending began."""
        return b"".join(self._pending)

    async def iter_outgoing(self) -> AsyncIterator[bytes]:
        """Yield request body chunks until the writable side ends."""
        self._sending = True
        self._pending = []
        while True:
            item = await self._outgoing.get()
            if item is _EOF:
                return
            if self._outgoing.qsize() < self._high_water_mark:
                self._space.set()
            if isinstance(item, BaseException):
                raise item
            yield item

    async def drain(self) -> None:
        """Wait until the request body consumer has caught up below the high-water mark."""
        while self._outgoing.qsize() >= self._high_water_mark and not self._closed:
            self._space.clear()
            await self._space.wait()

    def abort(self) -> None:
        """Abort the whole exchange."""
        self.close_writable()
        if self._on_abort is not None:
            self._on_abort()

    # -- readable side -------------------------------------------------------------

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def incoming_backlog(self) -> int:
        return self._incoming.qsize()

    def feed(self, chunk: bytes) -> None:
        self._incoming.put_nowait(chunk)

    def feed_eof(self) -> None:
        self._incoming.put_nowait(_EOF)

    def feed_error(self, exc: BaseException) -> None:
        self._incoming.put_nowait(exc)

    def finish(self) -> None:
        """Release the writable side once the operation settled."""
        self.close_writable()
        self._released = True
        self._room.set()
        if self._source_task is not None and not self._source_task.done():
            self._source_task.cancel()

    async def wait_for_room(self) -> None:
        """Suspend the producer while the reader is a high-water mark of chunks behind."""
        while self._incoming.qsize() >= self._high_water_mark and not self._released:
            self._room.clear()
            await self._room.wait()

    def __aiter__(self) -> AsyncIterator[bytes]:
        if not self._readable:
            raise StreamError("response body is buffered by the operation and not readable as a stream")
        if self._read_started:
            raise StreamError("response body stream was already consumed")
        self._read_started = True
        return self._iter_incoming()

    async def _iter_incoming(self) -> AsyncIterator[bytes]:
        while True:
            item = await self._incoming.get()
            if item is _EOF:
                return
            if self._incoming.qsize() < self._high_water_mark:
                self._room.set()
            if isinstance(item, BaseException):
                raise item
            yield item

    async def read(self) -> bytes:
        """Read the remaining response body into memory."""
        return b"".join([chunk async for chunk in self])

    async def pipe_to(self, sink: Any) -> None:
        """Write every response chunk to ``sink.write``; awaits it when it is a coroutine."""
        async for chunk in self:
            result = sink.write(chunk)
            if inspect.isawaitable(result):
                await result


__all__ = ["DEFAULT_HIGH_WATER_MARK", "DuplexStream"]
