# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Verb-level entry points: merge options, open an operation, await its settlement."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from ..config import HttpSettings, load_http_settings
from ..log import set_debug
from .httpx_transport import create_default_transport
from .operation import PendingOperation
from .options import (
    PROCESS_DEFAULTS,
    EffectiveConfig,
    OptionsLike,
    ProcessDefaults,
    coerce_options,
    merge_options,
)
from .response import Response, ResponseMode
from .transport import Transport

T = TypeVar("T")


class Dispatcher:
    """
    Issues requests through a Transport using layered options.

    Single-shot verbs buffer the body and return the settled Response; ``stream`` returns
    the PendingOperation right away. Defaults are shared through ``defaults`` (the
    process-wide holder unless another is given) and snapshotted on every call.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        defaults: ProcessDefaults | None = None,
        settings: HttpSettings | None = None,
    ):
        self.settings = settings or load_http_settings()
        self.transport = transport or create_default_transport(self.settings)
        self.defaults = defaults if defaults is not None else PROCESS_DEFAULTS
        if self.settings.debug:
            set_debug(True)

    # -- configuration -------------------------------------------------------------

    def set_defaults(self, options: OptionsLike = None, **overrides: Any) -> None:
        """Accumulate options into the shared defaults; later calls add to earlier ones."""
        self.defaults.update(options, **overrides)

    def debug(self, value: bool | None = None) -> bool:
        return set_debug(value)

    def build_config(
        self,
        url: str,
        options: OptionsLike = None,
        *,
        method: str | None = None,
        body: Any = None,
        **overrides: Any,
    ) -> EffectiveConfig:
        """Merge a snapshot of the defaults with call-site options into an EffectiveConfig."""
        call = coerce_options(options, **overrides)
        forced: dict[str, Any] = {}
        if method is not None:
            forced["method"] = method
        if body is not None:
            forced["body"] = body
        if forced:
            call = coerce_options(call, **forced)
        return merge_options(self.defaults.snapshot(), call, url)

    # -- generic entry points --------------------------------------------------------

    def open(
        self,
        url: str,
        options: OptionsLike = None,
        *,
        mode: ResponseMode = ResponseMode.TEXT,
        method: str | None = None,
        body: Any = None,
        model: Callable[[Any], T] | None = None,
        **overrides: Any,
    ) -> PendingOperation[T]:
        """Start an exchange and return its PendingOperation without waiting."""
        config = self.build_config(url, options, method=method, body=body, **overrides)
        return PendingOperation(config, self.transport, mode, model=model).start()

    async def request(
        self,
        method: str | None,
        url: str,
        options: OptionsLike = None,
        body: Any = None,
        *,
        mode: ResponseMode = ResponseMode.TEXT,
        model: Callable[[Any], T] | None = None,
        **overrides: Any,
    ) -> Response[T]:
        """Run one buffered exchange and return its settled Response."""
        operation = self.open(url, options, mode=mode, method=method, body=body, model=model, **overrides)
        return await operation

    def stream(self, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> PendingOperation[Any]:
        """
        Start a pass-through exchange.

        The returned operation's ``stream`` accepts request bytes immediately and yields
        response bytes as they arrive. ``operation.response`` settles once the transport
        reports completion, with a Response that carries metadata only.
        """
        return self.open(url, options, mode=ResponseMode.STREAM, body=body, **overrides)

    async def create(
        self,
        url: str,
        options: OptionsLike = None,
        body: Any = None,
        *,
        model: Callable[[Any], T] | None = None,
        **overrides: Any,
    ) -> Response[T]:
        """JSON-decode the response, optionally passing the decoded value through ``model``."""
        method = overrides.pop("method", None)
        return await self.request(method, url, options, body, mode=ResponseMode.JSON, model=model, **overrides)

    async def json(self, url: str, options: OptionsLike = None, **overrides: Any) -> Any:
        """Return the decoded JSON body rather than the Response."""
        method = overrides.pop("method", None)
        response = await self.request(method, url, options, mode=ResponseMode.JSON, **overrides)
        return response.content

    # -- verbs ---------------------------------------------------------------------

    async def get(self, url: str, options: OptionsLike = None, **overrides: Any) -> Response[str]:
        return await self.request("GET", url, options, **overrides)

    async def head(self, url: str, options: OptionsLike = None, **overrides: Any) -> Response[None]:
        return await self.request("HEAD", url, options, mode=ResponseMode.DISCARD, **overrides)

    async def post(self, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
        return await self.request("POST", url, options, body, **overrides)

    async def put(self, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
        return await self.request("PUT", url, options, body, **overrides)

    async def patch(self, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
        return await self.request("PATCH", url, options, body, **overrides)

    async def delete(self, url: str, options: OptionsLike = None, body: Any = None, **overrides: Any) -> Response[str]:
        return await self.request("DELETE", url, options, body, **overrides)

    # -- lifecycle -----------------------------------------------------------------

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> Dispatcher:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


__all__ = ["Dispatcher"]
