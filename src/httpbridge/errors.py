# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception types and error taxonomy."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum

import httpx


class HttpBridgeError(Exception):
    """Base class for errors raised by httpbridge itself (engine errors pass through untouched)."""


class UnknownBodyError(HttpBridgeError, TypeError):
    """Raised when a request body is not one of the supported variants."""

    def __init__(self, body: object):
        super().__init__(f"Unknown request body: {body!r}")
        self.body = body


class ClientClosedError(HttpBridgeError, RuntimeError):
    """Raised when a request is sent through a client that is closed or closing."""


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROXY_ERROR = "PROXY_ERROR"
    DNS_ERROR = "DNS_ERROR"
    REDIRECT_ERROR = "REDIRECT_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def _cause_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map builtin/httpx exceptions to ErrorCategory.

    httpx wraps socket and TLS failures, so the cause chain is inspected for the
    underlying DNS/TLS error before falling back to the httpx class.
    """
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (UnknownBodyError, httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return ErrorCategory.INVALID_REQUEST

    if isinstance(exc, httpx.TooManyRedirects):
        return ErrorCategory.REDIRECT_ERROR

    if isinstance(exc, httpx.ProxyError):
        return ErrorCategory.PROXY_ERROR

    for cause in _cause_chain(exc):
        if isinstance(cause, (ssl_module.SSLError, ssl_module.CertificateError)):
            return ErrorCategory.SSL_ERROR
        if isinstance(cause, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, ConnectionError):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, ValueError):
        return ErrorCategory.INVALID_REQUEST

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Request timed out",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.PROXY_ERROR: "Proxy refused or failed the connection",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.REDIRECT_ERROR: "Too many redirects",
        ErrorCategory.INVALID_REQUEST: "Invalid request",
        ErrorCategory.UNKNOWN_ERROR: "Request failed",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Request failed")


__all__ = [
    "ClientClosedError",
    "ErrorCategory",
    "HttpBridgeError",
    "UnknownBodyError",
    "categorize_exception",
    "error_category_to_reason",
]
