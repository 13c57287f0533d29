# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
import socket
import ssl

import httpx

from httpbridge import config
from httpbridge.config import DEFAULT_USER_AGENT, HttpSettings
from httpbridge.errors import (
    ClientClosedError,
    ErrorCategory,
    HttpBridgeError,
    UnknownBodyError,
    categorize_exception,
    error_category_to_reason,
)
from httpbridge.log import resolve_log_level, setup_logging
from httpbridge.version import __version__


def test_http_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("HTTPBRIDGE_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("HTTPBRIDGE_FOLLOW_REDIRECTS", "false")
    monkeypatch.setenv("HTTPBRIDGE_MAX_REDIRECTS", "9")
    monkeypatch.setenv("HTTPBRIDGE_VERIFY_SSL", "0")
    monkeypatch.setenv("HTTPBRIDGE_IDLE_TIMEOUT", "2.5")
    monkeypatch.setenv("HTTPBRIDGE_MAX_CONNECTIONS_PER_HOST", "4")
    monkeypatch.setenv("HTTPBRIDGE_AUTO_UNCOMPRESS", "no")
    monkeypatch.setenv("HTTPBRIDGE_PROXY", "PROXY proxy.test:3128; DIRECT")
    monkeypatch.setenv("HTTPBRIDGE_CONNECT_TIMEOUT", "3")

    settings = config.load_http_settings()

    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.follow_redirects is False
    assert settings.max_redirects == 9
    assert settings.verify_ssl is False
    assert settings.idle_timeout == 2.5
    assert settings.max_connections_per_host == 4
    assert settings.auto_uncompress is False
    assert settings.proxy == "PROXY proxy.test:3128; DIRECT"
    assert settings.connect_timeout == 3.0


def test_http_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("HTTPBRIDGE_MAX_REDIRECTS", "ten")
    monkeypatch.setenv("HTTPBRIDGE_IDLE_TIMEOUT", "soon")
    monkeypatch.setenv("HTTPBRIDGE_MAX_CONNECTIONS_PER_HOST", "0")
    monkeypatch.setenv("HTTPBRIDGE_CONNECT_TIMEOUT", "-1")

    settings = config.load_http_settings()

    assert settings.max_redirects == HttpSettings.max_redirects
    assert settings.idle_timeout == HttpSettings.idle_timeout
    assert settings.max_connections_per_host is None
    assert settings.connect_timeout is None
    assert settings.user_agent == DEFAULT_USER_AGENT
    assert __version__ in DEFAULT_USER_AGENT


def test_load_http_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("HTTPBRIDGE_MAX_REDIRECTS", "1")
    assert config.load_http_settings().max_redirects == 1
    monkeypatch.setenv("HTTPBRIDGE_MAX_REDIRECTS", "2")
    assert config.load_http_settings().max_redirects == 2


def test_error_types_hierarchy():
    err = UnknownBodyError(42)
    assert isinstance(err, HttpBridgeError)
    assert isinstance(err, TypeError)
    assert err.body == 42
    assert str(err) == "Unknown request body: 42"
    assert isinstance(ClientClosedError("closed"), RuntimeError)


def test_categorize_exception():
    request = httpx.Request("GET", "http://example.test/")
    assert categorize_exception(TimeoutError()) is ErrorCategory.TIMEOUT
    assert categorize_exception(httpx.ReadTimeout("slow", request=request)) is ErrorCategory.TIMEOUT
    assert categorize_exception(UnknownBodyError(1)) is ErrorCategory.INVALID_REQUEST
    assert categorize_exception(httpx.TooManyRedirects("loop", request=request)) is ErrorCategory.REDIRECT_ERROR
    assert categorize_exception(httpx.ProxyError("nope", request=request)) is ErrorCategory.PROXY_ERROR
    assert categorize_exception(httpx.ConnectError("refused", request=request)) is ErrorCategory.CONNECTION_ERROR
    assert categorize_exception(ConnectionResetError()) is ErrorCategory.CONNECTION_ERROR
    assert categorize_exception(RuntimeError("boom")) is ErrorCategory.UNKNOWN_ERROR

    dns = httpx.ConnectError("lookup failed", request=request)
    dns.__cause__ = socket.gaierror("Name or service not known")
    assert categorize_exception(dns) is ErrorCategory.DNS_ERROR

    tls = httpx.ConnectError("handshake", request=request)
    tls.__cause__ = ssl.SSLError("certificate verify failed")
    assert categorize_exception(tls) is ErrorCategory.SSL_ERROR


def test_error_category_to_reason():
    assert error_category_to_reason(ErrorCategory.TIMEOUT) == "Request timed out"
    assert error_category_to_reason(ErrorCategory.NONE) == ""
    assert error_category_to_reason(None) == ""


def test_log_level_precedence(monkeypatch):
    monkeypatch.delenv("HTTPBRIDGE_LOG_LEVEL", raising=False)
    assert resolve_log_level() == logging.WARNING

    monkeypatch.setenv("HTTPBRIDGE_LOG_LEVEL", "info")
    assert resolve_log_level() == logging.INFO
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level(logging.ERROR) == logging.ERROR
    assert resolve_log_level("nonsense") == logging.INFO

    monkeypatch.setenv("HTTPBRIDGE_LOG_LEVEL", "bogus")
    assert resolve_log_level() == logging.WARNING


def test_setup_logging_quiets_engine_loggers_unless_debugging(monkeypatch):
    monkeypatch.delenv("HTTPBRIDGE_LOG_LEVEL", raising=False)

    assert setup_logging("info") == logging.INFO
    assert logging.getLogger("httpbridge").level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING

    assert setup_logging("debug") == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.DEBUG
