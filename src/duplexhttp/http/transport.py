# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Event-driven transport abstraction consumed by pending operations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Protocol, Union

from .options import EffectiveConfig

RequestBody = Union[bytes, AsyncIterator[bytes], None]


@dataclass(frozen=True)
class ResponseHead:
    """Status line and headers of a response, delivered before any body bytes."""

    status_code: int
    reason: str = ""
    headers: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    http_version: str = "HTTP/1.1"
    url: str | None = None


class ExchangeListener(Protocol):
    """Receiver for the lifecycle events of one exchange."""

    def on_response(self, head: ResponseHead) -> None: ...

    def on_data(self, chunk: bytes) -> None: ...

    async def drain(self) -> None:
        """Awaited after each ``on_data``; returns once the consumer can take more chunks."""
        ...

    def on_end(self) -> None: ...

    def on_error(self, exc: BaseException) -> None: ...


class Exchange(Protocol):
    """Handle on one in-flight exchange."""

    def abort(self) -> None: ...


class Transport(Protocol):
    """Minimal protocol for issuing event-driven HTTP exchanges."""

    def open(self, config: EffectiveConfig, body: RequestBody, listener: ExchangeListener) -> Exchange: ...

    async def aclose(self) -> None:  # pragma: no cover - optional for adapters
        ...


__all__ = ["Exchange", "ExchangeListener", "RequestBody", "ResponseHead", "Transport"]
