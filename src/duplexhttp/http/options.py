# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Call-site options, process-wide defaults and the merge that produces an effective config.

``RequestOptions`` is a sparse record: ``None`` means "not set" and is filled from the
layer below. ``merge_options`` is pure; ``ProcessDefaults`` is the only mutable holder and
hands out frozen snapshots, so an in-flight call never observes a later ``set_defaults``.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Union

from .headers import header_value, merge_headers
from .url import resolve_url

DEFAULT_METHOD = "GET"

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_ALIASES = {
    "throw_response_errors": "throw_response_error",
    "allow_redirects": "follow_redirects",
    "data": "body",
}


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if mapping is None:
        return None
    return MappingProxyType(dict(mapping))


def _merge_mapping(base: Mapping[str, Any] | None, overrides: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if base is None and overrides is None:
        return None
    merged = dict(base or {})
    merged.update(overrides or {})
    return MappingProxyType(merged)


@dataclass(frozen=True)
class RequestOptions:
    """Options recognized at a call site or stored as process-wide defaults."""

    method: str | None = None
    headers: Mapping[str, str | None] | None = None
    base_url: str | None = None
    auth: Any = None
    jar: Any = None
    body: Any = None
    throw_response_error: bool | None = None
    timeout: float | None = None
    params: Mapping[str, Any] | None = None
    follow_redirects: bool | None = None
    extra: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        # Freeze copied mappings to avoid post-init mutation side effects.
        object.__setattr__(self, "headers", _freeze(self.headers))
        object.__setattr__(self, "params", _freeze(self.params))
        object.__setattr__(self, "extra", _freeze(self.extra))
        if self.method is not None:
            object.__setattr__(self, "method", str(self.method).upper())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RequestOptions:
        """Build options from a plain mapping; unknown keys become transport pass-through."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = dict(data.get("extra") or {})
        for key, value in data.items():
            if key == "extra":
                continue
            name = _ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
            else:
                extra[key] = value
        if extra:
            kwargs["extra"] = extra
        return cls(**kwargs)


OptionsLike = Union[RequestOptions, Mapping[str, Any], None]


def coerce_options(options: OptionsLike = None, **overrides: Any) -> RequestOptions:
    """Normalize ``options`` (record, mapping or None) and layer keyword overrides on top."""
    if options is None:
        base = RequestOptions()
    elif isinstance(options, RequestOptions):
        base = options
    elif isinstance(options, Mapping):
        base = RequestOptions.from_mapping(options)
    else:
        raise TypeError(f"options must be RequestOptions or a mapping, not {type(options).__name__}")
    if not overrides:
        return base
    return combine_options(base, RequestOptions.from_mapping(overrides))


def combine_options(base: RequestOptions, overrides: RequestOptions) -> RequestOptions:
    """
    Layer ``overrides`` onto ``base`` field by field.

    Set fields win, unset fields inherit. ``headers`` merge case-insensitively key by key;
    ``params`` and ``extra`` merge key by key.
    """
    updates: dict[str, Any] = {}
    for f in fields(RequestOptions):
        value = getattr(overrides, f.name)
        if f.name == "headers":
            if value is not None:
                updates["headers"] = merge_headers(base.headers, value)
        elif f.name in ("params", "extra"):
            if value is not None:
                updates[f.name] = _merge_mapping(getattr(base, f.name), value)
        elif value is not None:
            updates[f.name] = value
    if not updates:
        return base
    return replace(base, **updates)


def encode_body(body: Any, headers: dict[str, str]) -> bytes | None:
    """
    Encode a body payload for the wire.

    ``bytes`` pass through, ``str`` is UTF-8 encoded, and mappings/lists are JSON-encoded with a
    JSON content type added when the caller did not set one. ``headers`` is updated in place.
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (Mapping, list, tuple)):
        if not header_value(headers, "content-type"):
            headers["Content-Type"] = "application/json"
        return json.dumps(body, separators=(",", ":")).encode("utf-8")
    raise TypeError(f"unsupported body type: {type(body).__name__}")


@dataclass(frozen=True)
class EffectiveConfig:
    """Fully resolved options governing exactly one call."""

    url: str
    method: str = DEFAULT_METHOD
    headers: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    body: bytes | None = None
    auth: Any = None
    jar: Any = None
    throw_response_error: bool = False
    timeout: float | None = None
    params: Mapping[str, Any] | None = None
    follow_redirects: bool | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))
        object.__setattr__(self, "params", _freeze(self.params))

    def header(self, name: str, default: str = "") -> str:
        return header_value(self.headers, name, default)


def merge_options(defaults: RequestOptions, overrides: RequestOptions, url: str = "") -> EffectiveConfig:
    """
    Produce the effective configuration for one call.

    ``url`` is the call-site URI; it is resolved against the merged ``base_url`` unless it
    is absolute. Neither input is modified.
    """
    merged = combine_options(defaults, overrides)
    headers = merge_headers(None, merged.headers)
    body = encode_body(merged.body, headers)
    return EffectiveConfig(
        url=resolve_url(url, merged.base_url),
        method=merged.method or DEFAULT_METHOD,
        headers=headers,
        body=body,
        auth=merged.auth,
        jar=merged.jar,
        throw_response_error=bool(merged.throw_response_error),
        timeout=merged.timeout,
        params=merged.params,
        follow_redirects=merged.follow_redirects,
        extra=merged.extra or _EMPTY,
    )


class ProcessDefaults:
    """Mutable holder for defaults shared by every call of a dispatcher."""

    def __init__(self, options: OptionsLike = None):
        self._lock = threading.Lock()
        self._options = coerce_options(options)

    def snapshot(self) -> RequestOptions:
        """Return the current defaults; the returned record is frozen."""
        return self._options

    def update(self, options: OptionsLike = None, **overrides: Any) -> None:
        """Accumulate ``options`` into the stored defaults using the call-site merge rule."""
        incoming = coerce_options(options, **overrides)
        with self._lock:
            self._options = combine_options(self._options, incoming)

    def reset(self) -> None:
        with self._lock:
            self._options = RequestOptions()


PROCESS_DEFAULTS = ProcessDefaults()


__all__ = [
    "DEFAULT_METHOD",
    "EffectiveConfig",
    "OptionsLike",
    "PROCESS_DEFAULTS",
    "ProcessDefaults",
    "RequestOptions",
    "coerce_options",
    "combine_options",
    "encode_body",
    "merge_options",
]
