# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request orchestration exports."""

from .adapters import StubReply, StubTransport
from .classify import classify_response, is_error_status
from .dispatcher import Dispatcher
from .headers import ResponseHeaders, header_value, merge_headers
from .httpx_transport import HttpxTransport, create_default_transport
from .operation import OperationState, PendingOperation
from .options import (
    PROCESS_DEFAULTS,
    EffectiveConfig,
    ProcessDefaults,
    RequestOptions,
    coerce_options,
    combine_options,
    merge_options,
)
from .response import Cookie, Response, ResponseMode, decode_body, parse_cookies
from .stream import DuplexStream
from .transport import Exchange, ExchangeListener, ResponseHead, Transport
from .url import build_base_dir_url, is_absolute_url, resolve_url

__all__ = [
    "PROCESS_DEFAULTS",
    "Cookie",
    "Dispatcher",
    "DuplexStream",
    "EffectiveConfig",
    "Exchange",
    "ExchangeListener",
    "HttpxTransport",
    "OperationState",
    "PendingOperation",
    "ProcessDefaults",
    "RequestOptions",
    "Response",
    "ResponseHead",
    "ResponseHeaders",
    "ResponseMode",
    "StubReply",
    "StubTransport",
    "Transport",
    "build_base_dir_url",
    "classify_response",
    "coerce_options",
    "combine_options",
    "create_default_transport",
    "decode_body",
    "header_value",
    "is_absolute_url",
    "is_error_status",
    "merge_headers",
    "merge_options",
    "parse_cookies",
    "resolve_url",
]
