# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from .http.response import Response


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    HTTP_STATUS = "HTTP_STATUS"
    CANCELLED = "CANCELLED"
    STREAM_ERROR = "STREAM_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


class DuplexHttpError(Exception):
    """Base class for every failure a pending operation can settle with."""

    category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory | None = None,
        response: Response | None = None,
    ):
        super().__init__(message)
        if category is not None:
            self.category = category
        self.response = response

    @property
    def has_response(self) -> bool:
        """True when the failure happened after a response was received."""
        return self.response is not None


class TransportError(DuplexHttpError):
    """Connection, DNS, TLS or timeout failure reported by the transport."""


class DecodeError(DuplexHttpError):
    category = ErrorCategory.DECODE_ERROR


class ResponseStatusError(DuplexHttpError):
    """A 4xx/5xx status turned into a failure by ``throw_response_error``."""

    category = ErrorCategory.HTTP_STATUS

    def __init__(self, response: Response, message: str | None = None):
        if message is None:
            reason = f" {response.status_message}" if response.status_message else ""
            message = f"{response.status_code}{reason} for {response.method} {response.url}"
        super().__init__(message, response=response)

    @property
    def status_code(self) -> int:
        assert self.response is not None
        return self.response.status_code


ResponseError = ResponseStatusError


class CancellationError(DuplexHttpError):
    category = ErrorCategory.CANCELLED


class StreamError(DuplexHttpError):
    category = ErrorCategory.STREAM_ERROR


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, DuplexHttpError):
        return exc.category

    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    # httpx wraps the underlying socket/ssl failure; inspect the chain before
    # settling on a generic connection error.
    cause = exc.__cause__ or exc.__context__
    if isinstance(exc, httpx.ConnectError) and cause is not None and cause is not exc:
        nested = categorize_exception(cause)
        if nested not in (ErrorCategory.UNKNOWN_ERROR, ErrorCategory.CONNECTION_ERROR):
            return nested

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError, httpx.DecodingError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (ssl_module.SSLError, ssl_module.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, TimeoutError):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: Optional[ErrorCategory]) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.PROTOCOL_ERROR: "Malformed HTTP exchange",
        ErrorCategory.DECODE_ERROR: "Response body could not be decoded",
        ErrorCategory.HTTP_STATUS: "Server answered with an error status",
        ErrorCategory.CANCELLED: "Request was aborted",
        ErrorCategory.STREAM_ERROR: "Invalid stream usage",
        ErrorCategory.UNKNOWN_ERROR: "Network error",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Request failed due to network error")


def wrap_transport_exception(exc: BaseException) -> DuplexHttpError:
    """Return ``exc`` as a DuplexHttpError, wrapping foreign exceptions in TransportError."""
    if isinstance(exc, DuplexHttpError):
        return exc
    category = categorize_exception(exc)
    detail = str(exc) or type(exc).__name__
    wrapped = TransportError(f"{error_category_to_reason(category)}: {detail}", category=category)
    wrapped.__cause__ = exc
    return wrapped


__all__ = [
    "CancellationError",
    "DecodeError",
    "DuplexHttpError",
    "ErrorCategory",
    "ResponseError",
    "ResponseStatusError",
    "StreamError",
    "TransportError",
    "categorize_exception",
    "error_category_to_reason",
    "wrap_transport_exception",
]
