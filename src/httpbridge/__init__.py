# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httpbridge package entrypoint.

A common Client/Request/Response interface for HTTP, with a server/console
implementation that delegates connection handling, TLS, proxies and keep-alive
to httpx. Consumers program against the Client protocol so the backend can be
swapped (or stubbed in tests) without touching call sites.
"""

from .config import HttpSettings, load_http_settings
from .errors import ClientClosedError, ErrorCategory, HttpBridgeError, UnknownBodyError, categorize_exception
from .http import (
    BytesBody,
    Client,
    ClientOptions,
    ConsoleClient,
    FileBody,
    Headers,
    RedirectInfo,
    Request,
    Response,
    StreamBody,
    StreamFactoryBody,
    StubClient,
    create_default_client,
)
from .log import setup_logging
from .version import __version__

__all__ = [
    "BytesBody",
    "Client",
    "ClientClosedError",
    "ClientOptions",
    "ConsoleClient",
    "ErrorCategory",
    "FileBody",
    "Headers",
    "HttpBridgeError",
    "HttpSettings",
    "RedirectInfo",
    "Request",
    "Response",
    "StreamBody",
    "StreamFactoryBody",
    "StubClient",
    "UnknownBodyError",
    "categorize_exception",
    "create_default_client",
    "load_http_settings",
    "setup_logging",
    "__version__",
]
