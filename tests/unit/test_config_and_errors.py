# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
import socket
import ssl

import httpx
import pytest

from duplexhttp import config
from duplexhttp.config import DEFAULT_USER_AGENT
from duplexhttp.errors import (
    CancellationError,
    DecodeError,
    ErrorCategory,
    ResponseError,
    ResponseStatusError,
    TransportError,
    categorize_exception,
    error_category_to_reason,
    wrap_transport_exception,
)
from duplexhttp.log import logger, set_debug, setup_logging


def test_http_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("DUPLEXHTTP_HTTP_TIMEOUT", "5.5")
    monkeypatch.setenv("DUPLEXHTTP_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("DUPLEXHTTP_HTTP_REDIRECTS", "false")
    monkeypatch.setenv("DUPLEXHTTP_HTTP_VERIFY_SSL", "0")
    monkeypatch.setenv("DUPLEXHTTP_HTTP2", "on")
    monkeypatch.setenv("DUPLEXHTTP_DEBUG", "yes")

    settings = config.load_http_settings()

    assert settings.timeout == 5.5
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.allow_redirects is False
    assert settings.verify_ssl is False
    assert settings.http2 is True
    assert settings.debug is True


def test_http_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("DUPLEXHTTP_HTTP_TIMEOUT", "not-a-number")
    settings = config.load_http_settings()
    assert settings.timeout == config.HttpSettings.timeout
    assert DEFAULT_USER_AGENT in settings.user_agent

    monkeypatch.setenv("DUPLEXHTTP_HTTP_TIMEOUT", "-3")
    assert config.load_http_settings().timeout == config.HttpSettings.timeout


def test_load_http_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("DUPLEXHTTP_HTTP_TIMEOUT", "7.7")
    assert config.load_http_settings().timeout == 7.7
    monkeypatch.setenv("DUPLEXHTTP_HTTP_TIMEOUT", "8.8")
    assert config.load_http_settings().timeout == 8.8


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (httpx.ConnectTimeout("slow"), ErrorCategory.TIMEOUT),
        (httpx.ReadTimeout("slow"), ErrorCategory.TIMEOUT),
        (httpx.ConnectError("refused"), ErrorCategory.CONNECTION_ERROR),
        (httpx.RemoteProtocolError("bad frame"), ErrorCategory.PROTOCOL_ERROR),
        (ssl.SSLError("handshake"), ErrorCategory.SSL_ERROR),
        (socket.gaierror("nodename"), ErrorCategory.DNS_ERROR),
        (ConnectionResetError("reset"), ErrorCategory.CONNECTION_ERROR),
        (TimeoutError("late"), ErrorCategory.TIMEOUT),
        (RuntimeError("boom"), ErrorCategory.UNKNOWN_ERROR),
        (CancellationError("aborted"), ErrorCategory.CANCELLED),
        (DecodeError("nope"), ErrorCategory.DECODE_ERROR),
    ],
)
def test_categorize_exception(exc, expected):
    assert categorize_exception(exc) is expected


def test_categorize_connect_error_uses_cause():
    try:
        try:
            raise socket.gaierror("Name or service not known")
        except socket.gaierror as inner:
            raise httpx.ConnectError("could not connect") from inner
    except httpx.ConnectError as exc:
        assert categorize_exception(exc) is ErrorCategory.DNS_ERROR


def test_wrap_transport_exception():
    original = httpx.ReadTimeout("slow")
    wrapped = wrap_transport_exception(original)
    assert isinstance(wrapped, TransportError)
    assert wrapped.category is ErrorCategory.TIMEOUT
    assert wrapped.__cause__ is original
    assert wrapped.has_response is False
    assert str(wrapped) == "Network timeout: slow"

    already = CancellationError("aborted")
    assert wrap_transport_exception(already) is already


def test_error_category_reasons():
    assert error_category_to_reason(ErrorCategory.TIMEOUT) == "Network timeout"
    assert error_category_to_reason(ErrorCategory.NONE) == ""
    assert error_category_to_reason(None) == ""
    assert ResponseError is ResponseStatusError


def test_debug_flag_controls_logger_level():
    assert set_debug() is False
    assert set_debug(True) is True
    assert logger.level == logging.DEBUG
    assert set_debug() is True
    assert set_debug(False) is False
    assert logger.level == logging.NOTSET


def test_setup_logging_accepts_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    setup_logging("debug")
    assert calls["level"] == logging.DEBUG
