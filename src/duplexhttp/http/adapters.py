# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory transport adapters."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from .options import EffectiveConfig
from .transport import ExchangeListener, RequestBody, ResponseHead, Transport


@dataclass
class StubReply:
    """Programmed outcome for one URL."""

    status_code: int = 200
    reason: str = "OK"
    headers: list[tuple[str, str]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)
    error: BaseException | None = None
    error_after_headers: bool = False
    hold: asyncio.Event | None = None

    @classmethod
    def text(cls, body: str, status_code: int = 200, content_type: str = "text/plain; charset=utf-8", **kwargs) -> StubReply:
        headers = [("Content-Type", content_type), *kwargs.pop("headers", [])]
        return cls(status_code=status_code, headers=headers, chunks=[body.encode("utf-8")], **kwargs)


@dataclass
class RecordedExchange:
    config: EffectiveConfig
    body: bytes | None = None
    streamed_body: bool = False
    aborted: bool = False


class StubExchange:
    def __init__(self, record: RecordedExchange, task: asyncio.Task[None]):
        self.record = record
        self.task = task

    def abort(self) -> None:
        self.record.aborted = True
        if not self.task.done():
            self.task.cancel()


class StubTransport(Transport):
    """Deterministic, programmable Transport for tests."""

    def __init__(self, replies: dict[str, StubReply] | None = None):
        self._replies = replies or {}
        self.exchanges: list[RecordedExchange] = []
        self.closed = False

    def add(self, url: str, reply: StubReply) -> None:
        self._replies[url] = reply

    def open(self, config: EffectiveConfig, body: RequestBody, listener: ExchangeListener) -> StubExchange:
        record = RecordedExchange(config=config)
        self.exchanges.append(record)
        task = asyncio.get_running_loop().create_task(self._run(record, body, listener))
        return StubExchange(record, task)

    async def _consume_body(self, record: RecordedExchange, body: RequestBody) -> None:
        if body is None or isinstance(body, bytes):
            record.body = body
            return
        record.streamed_body = True
        record.body = b"".join([chunk async for chunk in body])

    async def _run(self, record: RecordedExchange, body: RequestBody, listener: ExchangeListener) -> None:
        try:
            await self._consume_body(record, body)
        except Exception as exc:  # noqa: BLE001
            listener.on_error(exc)
            return
        reply = self._replies.get(record.config.url)
        if reply is None:
            listener.on_error(ConnectionError(f"No stubbed reply configured for {record.config.url}"))
            return
        if reply.error is not None and not reply.error_after_headers:
            listener.on_error(reply.error)
            return
        listener.on_response(
            ResponseHead(
                status_code=reply.status_code,
                reason=reply.reason,
                headers=tuple(reply.headers),
                url=record.config.url,
            )
        )
        for chunk in reply.chunks:
            await asyncio.sleep(0)
            listener.on_data(chunk)
            await listener.drain()
        if reply.hold is not None:
            await reply.hold.wait()
        if reply.error is not None:
            listener.on_error(reply.error)
            return
        listener.on_end()

    async def aclose(self) -> None:
        self.closed = True


__all__ = ["RecordedExchange", "StubExchange", "StubReply", "StubTransport"]
