# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read-only response facade built once an exchange completes."""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from datetime import datetime
from email.message import Message
from email.utils import parsedate_to_datetime
from enum import Enum
from http.cookies import CookieError, SimpleCookie
from typing import Any, Generic, TypeVar

from ..errors import DecodeError
from .headers import ResponseHeaders
from .transport import ResponseHead

T = TypeVar("T")

DEFAULT_CHARSET = "utf-8"


class ResponseMode(str, Enum):
    """How the owning call consumes the response body."""

    TEXT = "text"
    JSON = "json"
    DISCARD = "discard"
    STREAM = "stream"

    @property
    def buffered(self) -> bool:
        return self in (ResponseMode.TEXT, ResponseMode.JSON)


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    domain: str | None = None
    path: str | None = None
    expires: str | None = None
    max_age: int | None = None
    secure: bool = False
    http_only: bool = False


def parse_cookies(lines: list[str]) -> list[Cookie]:
    """Parse Set-Cookie lines; lines that fail to parse are skipped."""
    cookies: list[Cookie] = []
    for line in lines:
        jar: SimpleCookie = SimpleCookie()
        try:
            jar.load(line)
        except CookieError:
            continue
        for morsel in jar.values():
            max_age: int | None
            try:
                max_age = int(morsel["max-age"]) if morsel["max-age"] else None
            except ValueError:
                max_age = None
            cookies.append(
                Cookie(
                    name=morsel.key,
                    value=morsel.value,
                    domain=morsel["domain"] or None,
                    path=morsel["path"] or None,
                    expires=morsel["expires"] or None,
                    max_age=max_age,
                    secure=bool(morsel["secure"]),
                    http_only=bool(morsel["httponly"]),
                )
            )
    return cookies


def _content_type_params(value: str) -> tuple[str | None, dict[str, str]]:
    if not value:
        return None, {}
    message = Message()
    message["content-type"] = value
    media_type = message.get_content_type() if "/" in value.split(";", 1)[0] else None
    params = {str(k).lower(): str(v) for k, v in (message.get_params() or [])[1:]}
    return media_type, params


def _parse_content_length(value: str | None) -> int | None:
    if not value:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def _parse_http_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def response_charset(raw_headers: tuple[tuple[str, str], ...] | list[tuple[str, str]]) -> str | None:
    """Return the ``charset`` parameter of the Content-Type header, if any."""
    value = ResponseHeaders(raw_headers).get("content-type", "")
    return _content_type_params(value)[1].get("charset") or None


def decode_text(body: bytes, charset: str | None) -> str:
    encoding = charset or DEFAULT_CHARSET
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode(DEFAULT_CHARSET, errors="replace")


def decode_body(body: bytes | None, mode: ResponseMode, charset: str | None = None) -> Any:
    """
    Decode a buffered body for ``mode``.

    Returns ``None`` for modes that do not buffer. Text is decoded leniently; JSON is decoded
    strictly and raises DecodeError when the body is empty, not valid in its charset, or not
    valid JSON.
    """
    if not mode.buffered or body is None:
        return None
    if mode is ResponseMode.TEXT:
        return decode_text(body, charset)
    encoding = charset or DEFAULT_CHARSET
    try:
        codecs.lookup(encoding)
    except LookupError:
        encoding = DEFAULT_CHARSET
    try:
        text = body.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DecodeError(f"response body is not valid {exc.encoding}: {exc.reason}") from exc
    if not text.strip():
        raise DecodeError("expected a JSON body but the response was empty")
    try:
        return json.loads(text)
    except ValueError as exc:
        raise DecodeError(f"response body is not valid JSON: {exc}") from exc


class Response(Generic[T]):
    """
    Immutable view over a completed exchange.

    Derived fields are computed once here; nothing on this object talks to the transport.
    ``content`` is the decoded body for text and JSON calls and ``None`` for HEAD and
    streamed calls, where ``body`` is also ``None``.
    """

    __slots__ = (
        "_status_code",
        "_status_message",
        "_headers",
        "_http_version",
        "_method",
        "_url",
        "_body",
        "_content",
        "_mode",
        "_cookies",
        "_charset",
        "_content_type",
        "_content_length",
        "_last_modified",
    )

    def __init__(
        self,
        head: ResponseHead,
        *,
        method: str,
        url: str,
        mode: ResponseMode = ResponseMode.TEXT,
        body: bytes | None = None,
        content: T | None = None,
    ):
        headers = ResponseHeaders(head.headers)
        media_type, params = _content_type_params(headers.get("content-type", ""))
        self._status_code = int(head.status_code)
        self._status_message = head.reason or ""
        self._headers = headers
        self._http_version = head.http_version
        self._method = method
        self._url = head.url or url
        self._mode = mode
        self._body = body if mode.buffered else None
        self._content = content if mode.buffered else None
        self._cookies = tuple(parse_cookies(headers.get_list("set-cookie")))
        self._charset = params.get("charset") or None
        self._content_type = media_type
        self._content_length = _parse_content_length(headers.get("content-length"))
        self._last_modified = _parse_http_date(headers.get("last-modified"))

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def status_message(self) -> str:
        return self._status_message

    @property
    def headers(self) -> ResponseHeaders:
        return self._headers

    def header(self, name: str, default: str | None = None) -> str | None:
        return self._headers.get(name, default)

    @property
    def http_version(self) -> str:
        return self._http_version

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def mode(self) -> ResponseMode:
        return self._mode

    @property
    def body(self) -> bytes | None:
        return self._body

    @property
    def content(self) -> T | None:
        return self._content

    @property
    def cookies(self) -> list[Cookie]:
        return list(self._cookies)

    @property
    def charset(self) -> str | None:
        return self._charset

    @property
    def content_type(self) -> str | None:
        return self._content_type

    @property
    def content_length(self) -> int | None:
        return self._content_length

    @property
    def last_modified(self) -> datetime | None:
        return self._last_modified

    @property
    def ok(self) -> bool:
        return self._status_code < 400

    @property
    def is_error(self) -> bool:
        return 400 <= self._status_code <= 599

    def __repr__(self) -> str:
        return f"<Response [{self._status_code}] {self._method} {self._url}>"


__all__ = [
    "Cookie",
    "Response",
    "ResponseMode",
    "decode_body",
    "decode_text",
    "parse_cookies",
    "response_charset",
]
