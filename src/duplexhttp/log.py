# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for duplexhttp."""

from __future__ import annotations

import logging
import os
import threading

DEFAULT_LOG_LEVEL = os.getenv("DUPLEXHTTP_LOG_LEVEL", "WARNING").upper()

logger = logging.getLogger("duplexhttp")

_debug_lock = threading.Lock()
_debug_enabled = False


def setup_logging(level: str | None = None) -> None:
    """Configure standard logging for library use."""
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def set_debug(value: bool | None = None) -> bool:
    """
    Read or set the process-wide debug flag.

    Without a value the current flag is returned unchanged. With a value the flag is
    stored, the ``duplexhttp`` logger level follows it, and the new value is returned.
    """
    global _debug_enabled
    if value is None:
        return _debug_enabled
    with _debug_lock:
        _debug_enabled = bool(value)
        logger.setLevel(logging.DEBUG if _debug_enabled else logging.NOTSET)
    return _debug_enabled


__all__ = ["logger", "set_debug", "setup_logging"]
