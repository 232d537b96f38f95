# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Response-error classification.

Error statuses are successful outcomes unless the call opted in with
``throw_response_error``; callers that keep the default must inspect ``status_code``.
"""

from __future__ import annotations

from typing import TypeVar

from ..errors import ResponseStatusError
from .response import Response

R = TypeVar("R", bound=Response)


def is_error_status(status_code: int | None) -> bool:
    return status_code is not None and 400 <= status_code <= 599


def classify_response(response: R, throw_response_error: bool) -> R:
    """Return ``response`` unchanged, or raise ResponseStatusError when the policy asks for it."""
    if throw_response_error and is_error_status(response.status_code):
        raise ResponseStatusError(response)
    return response


__all__ = ["classify_response", "is_error_status"]
