# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers for base-URL resolution."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse


def is_absolute_url(url: str) -> bool:
    """Return True when ``url`` carries its own scheme and host."""
    parsed = urlparse(str(url or ""))
    return bool(parsed.scheme and parsed.netloc)


def build_base_dir_url(base_url: str) -> str:
    """
    Convert a base URL into a "directory" URL suitable for relative `urljoin()` calls.

    Example:
      http://host/app -> http://host/app/
    """
    parsed = urlparse(str(base_url or ""))
    path = parsed.path.rstrip("/") + "/"
    return parsed._replace(path=path, params="", query="", fragment="").geturl()


def resolve_url(url: str, base_url: str | None = None) -> str:
    """
    Resolve a call-site URL against an optional base URL.

    Absolute URLs are returned untouched. Relative URLs are appended to the base
    path, so both ``users`` and ``/users`` against ``http://host/api`` resolve to
    ``http://host/api/users``.
    """
    raw = str(url or "")
    if not base_url or is_absolute_url(raw):
        return raw
    if raw.startswith("//"):
        return urljoin(base_url, raw)
    if not raw:
        return str(base_url)
    base_dir = build_base_dir_url(base_url)
    return urljoin(base_dir, raw.lstrip("/"))


__all__ = ["build_base_dir_url", "is_absolute_url", "resolve_url"]
