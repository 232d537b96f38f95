# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed Transport implementation."""

from __future__ import annotations

import asyncio
import inspect
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx

from ..config import HttpSettings, load_http_settings
from ..log import logger
from .options import EffectiveConfig
from .transport import ExchangeListener, RequestBody, ResponseHead, Transport

# build_request arguments the transport sets itself.
_MANAGED_ARGS = frozenset({"self", "method", "url", "content", "params", "headers", "cookies", "timeout"})
PASS_THROUGH_ARGS = frozenset(inspect.signature(httpx.AsyncClient.build_request).parameters) - _MANAGED_ARGS


def _refusing_cookies() -> CookieJar:
    # Cookies live in per-call jars; the client store never keeps any.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class HttpxExchange:
    """One exchange running as an asyncio task."""

    def __init__(self, task: asyncio.Task[None]):
        self._task = task

    def abort(self) -> None:
        if not self._task.done():
            self._task.cancel()

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task


class HttpxTransport(Transport):
    """
    Drives httpx.AsyncClient and reports each exchange as listener events.

    Redirects are followed here rather than by httpx so that every hop reads from and
    writes to the cookie jar selected by the call's ``jar`` option.
    """

    def __init__(self, settings: HttpSettings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or load_http_settings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
            http2=self.settings.http2,
        )
        self._client.cookies = _refusing_cookies()
        self.jar = httpx.Cookies()

    def open(self, config: EffectiveConfig, body: RequestBody, listener: ExchangeListener) -> HttpxExchange:
        task = asyncio.get_running_loop().create_task(self._run(config, body, listener))
        return HttpxExchange(task)

    def _resolve_jar(self, jar: Any) -> httpx.Cookies | None:
        if isinstance(jar, httpx.Cookies):
            return jar
        if jar is True:
            return self.jar
        if jar:
            return httpx.Cookies(jar)
        return None

    def _build_request(self, config: EffectiveConfig, body: RequestBody) -> httpx.Request:
        headers = dict(config.headers)
        if not config.header("user-agent"):
            headers["User-Agent"] = self.settings.user_agent

        kwargs: dict[str, Any] = {}
        for key, value in config.extra.items():
            if key in PASS_THROUGH_ARGS:
                kwargs[key] = value
            else:
                logger.debug("ignoring option %r not understood by httpx", key)
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout
        return self._client.build_request(
            config.method,
            config.url,
            headers=headers,
            content=body,
            params=dict(config.params) if config.params else None,
            **kwargs,
        )

    async def _send(self, config: EffectiveConfig, body: RequestBody, jar: httpx.Cookies | None) -> httpx.Response:
        follow = config.follow_redirects if config.follow_redirects is not None else self.settings.allow_redirects
        request = self._build_request(config, body)
        auth = config.auth if config.auth is not None else httpx.USE_CLIENT_DEFAULT
        hops = 0
        while True:
            if jar is not None:
                jar.set_cookie_header(request)
            response = await self._client.send(request, stream=True, follow_redirects=False, auth=auth)
            if jar is not None:
                jar.extract_cookies(response)
            if not follow or response.next_request is None:
                return response
            hops += 1
            if hops > self._client.max_redirects:
                await response.aclose()
                raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)
            await response.aclose()
            request = response.next_request
            # The hop request carries the client's cookie header; the jar sets its own.
            request.headers.pop("cookie", None)
            auth = httpx.USE_CLIENT_DEFAULT
            logger.debug("%s %s redirected to %s", config.method, config.url, request.url)

    async def _run(self, config: EffectiveConfig, body: RequestBody, listener: ExchangeListener) -> None:
        try:
            response = await self._send(config, body, self._resolve_jar(config.jar))
            try:
                listener.on_response(
                    ResponseHead(
                        status_code=response.status_code,
                        reason=response.reason_phrase,
                        headers=tuple(response.headers.multi_items()),
                        http_version=response.http_version,
                        url=str(response.url),
                    )
                )
                async for chunk in response.aiter_bytes():
                    listener.on_data(chunk)
                    await listener.drain()
            finally:
                await response.aclose()
        except asyncio.CancelledError:
            logger.debug("%s %s aborted", config.method, config.url)
            raise
        except Exception as exc:  # noqa: BLE001 - reported through the listener
            listener.on_error(exc)
            return
        listener.on_end()

    async def aclose(self) -> None:
        await self._client.aclose()


def create_default_transport(settings: HttpSettings | None = None) -> Transport:
    """Factory for the default httpx-backed transport."""
    return HttpxTransport(settings or load_http_settings())


__all__ = ["PASS_THROUGH_ARGS", "HttpxExchange", "HttpxTransport", "create_default_transport"]
