# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Process-wide request functions.

These delegate to a lazily created Dispatcher that uses the process-wide defaults and the
default httpx transport. ``set_dispatcher`` swaps it out (tests, custom transports).
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

from .http.dispatcher import Dispatcher
from .http.operation import PendingOperation
from .http.options import PROCESS_DEFAULTS, OptionsLike
from .http.response import Response
from .log import set_debug

T = TypeVar("T")

_dispatcher: Dispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> Dispatcher:
    """Return the shared Dispatcher, creating it on first use."""
    global _dispatcher
    if _dispatcher is None:
        with _dispatcher_lock:
            if _dispatcher is None:
                _dispatcher = Dispatcher(defaults=PROCESS_DEFAULTS)
    return _dispatcher


def set_dispatcher(dispatcher: Dispatcher | None) -> Dispatcher | None:
    """Replace the shared Dispatcher; returns the previous one."""
    global _dispatcher
    with _dispatcher_lock:
        previous, _dispatcher = _dispatcher, dispatcher
    return previous


async def aclose() -> None:
    previous = set_dispatcher(None)
    if previous is not None:
        await previous.aclose()


def defaults(options: OptionsLike = None, **overrides: Any) -> None:
    """Accumulate options into the process-wide defaults."""
    PROCESS_DEFAULTS.update(options, **overrides)


def debug(value: bool | None = None) -> bool:
    """Return the debug flag, or set it when ``value`` is given."""
    return set_debug(value)


async def request(method: str | None, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().request(method, url, options, body, **overrides)


async def get(url: str, options: OptionsLike = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().get(url, options, **overrides)


async def head(url: str, options: OptionsLike = None, **overrides: Any) -> Response[None]:
    return await get_dispatcher().head(url, options, **overrides)


async def post(url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().post(url, options, body, **overrides)


async def put(url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().put(url, options, body, **overrides)


async def patch(url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().patch(url, options, body, **overrides)


async def delete(url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
    return await get_dispatcher().delete(url, options, body, **overrides)


async def json(url: str, options: OptionsLike = None, **overrides: Any) -> Any:
    return await get_dispatcher().json(url, options, **overrides)


async def create(
    url: str,
    options: OptionsLike = None,
    body: Any = None,
    *,
    model: Callable[[Any], T] | None = None,
    **overrides: Any,
) -> Response[T]:
    return await get_dispatcher().create(url, options, body, model=model, **overrides)


def stream(url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> PendingOperation[Any]:
    return get_dispatcher().stream(url, options, body, **overrides)


__all__ = [
    "aclose",
    "create",
    "debug",
    "defaults",
    "delete",
    "get",
    "get_dispatcher",
    "head",
    "json",
    "patch",
    "post",
    "put",
    "request",
    "set_dispatcher",
    "stream",
]
