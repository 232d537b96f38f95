# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header normalization utilities.

HTTP header field names are case-insensitive (RFC 9110). Options carry headers as plain
mappings supplied by callers, so merging and lookups compare lowercased names while keeping
the caller's spelling for the wire.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import httpx


def _as_mapping(headers: Any) -> Mapping[object, object]:
    """Accept mappings, httpx.Headers and iterables of pairs."""
    if not headers:
        return {}
    if isinstance(headers, Mapping):
        return headers
    if isinstance(headers, httpx.Headers):
        return dict(headers.multi_items())
    return dict(headers)


def header_value(headers: Mapping[object, object] | None, name: str, default: str = "") -> str:
    """Return a header value using case-insensitive key matching."""
    if not name:
        return default
    lower = str(name).lower()
    for key, value in _as_mapping(headers).items():
        if key is not None and str(key).lower() == lower:
            return default if value is None else str(value).strip()
    return default


def merge_headers(
    base: Mapping[str, str] | None,
    overrides: Mapping[str, str | None] | None,
) -> dict[str, str]:
    """
    Merge ``overrides`` into ``base`` key by key, comparing names case-insensitively.

    The override's spelling replaces the base spelling. A ``None`` override value removes
    the header.
    """
    merged: dict[str, str] = {}
    index: dict[str, str] = {}
    for source in (_as_mapping(base), _as_mapping(overrides)):
        for key, value in source.items():
            if key is None:
                continue
            name = str(key).strip()
            if not name:
                continue
            lower = name.lower()
            previous = index.pop(lower, None)
            if previous is not None:
                del merged[previous]
            if value is None:
                continue
            merged[name] = str(value)
            index[lower] = name
    return merged


class ResponseHeaders(Mapping[str, str]):
    """Read-only mapping over the ``httpx.Headers`` of a completed response."""

    __slots__ = ("_headers",)

    def __init__(self, raw: Iterable[tuple[str, str]] = ()):
        self._headers = httpx.Headers(list(raw))

    def __getitem__(self, key: str) -> str:
        # httpx joins repeated fields with ", "
        return self._headers[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers.keys())

    def __len__(self) -> int:
        return len(self._headers.keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._headers

    def get_list(self, key: str) -> list[str]:
        """Return every value sent for ``key`` (e.g. repeated Set-Cookie lines)."""
        return self._headers.get_list(key)

    def raw(self) -> list[tuple[str, str]]:
        return self._headers.multi_items()

    def __repr__(self) -> str:
        return f"ResponseHeaders({self.raw()!r})"


__all__ = ["ResponseHeaders", "header_value", "merge_headers"]
