# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
duplexhttp package entrypoint.

An asyncio request API over an event-driven transport. Single-shot calls buffer the
response and resolve to a read-only Response; ``stream`` hands back the in-flight
operation at once so request and response bytes can be piped. Options layer over
process-wide defaults, and 4xx/5xx statuses only fail a call that sets
``throw_response_error``.
"""

from .api import (
    aclose,
    create,
    debug,
    defaults,
    delete,
    get,
    get_dispatcher,
    head,
    json,
    patch,
    post,
    put,
    request,
    set_dispatcher,
    stream,
)
from .config import HttpSettings, load_http_settings
from .errors import (
    CancellationError,
    DecodeError,
    DuplexHttpError,
    ErrorCategory,
    ResponseError,
    ResponseStatusError,
    StreamError,
    TransportError,
)
from .http import (
    Cookie,
    Dispatcher,
    HttpxTransport,
    OperationState,
    PendingOperation,
    RequestOptions,
    Response,
    ResponseMode,
    StubReply,
    StubTransport,
    Transport,
)
from .log import setup_logging
from .version import __version__

__all__ = [
    "CancellationError",
    "Cookie",
    "DecodeError",
    "Dispatcher",
    "DuplexHttpError",
    "ErrorCategory",
    "HttpSettings",
    "HttpxTransport",
    "OperationState",
    "PendingOperation",
    "RequestOptions",
    "Response",
    "ResponseError",
    "ResponseMode",
    "ResponseStatusError",
    "StreamError",
    "StubReply",
    "StubTransport",
    "Transport",
    "TransportError",
    "aclose",
    "create",
    "debug",
    "defaults",
    "delete",
    "get",
    "get_dispatcher",
    "head",
    "json",
    "load_http_settings",
    "patch",
    "post",
    "put",
    "request",
    "set_dispatcher",
    "setup_logging",
    "stream",
    "__version__",
]
