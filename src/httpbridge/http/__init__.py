# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .adapters import StubClient
from .client import Client, create_default_client
from .console import ConsoleClient
from .headers import Headers, header_value, wrap_headers
from .models import (
    BytesBody,
    ClientOptions,
    FileBody,
    RedirectInfo,
    Request,
    Response,
    StreamBody,
    StreamFactoryBody,
    coerce_body,
)
from .proxy import parse_proxy_directives
from .transport import RoutingTransport

__all__ = [
    "BytesBody",
    "Client",
    "ClientOptions",
    "ConsoleClient",
    "FileBody",
    "Headers",
    "RedirectInfo",
    "Request",
    "Response",
    "RoutingTransport",
    "StreamBody",
    "StreamFactoryBody",
    "StubClient",
    "coerce_body",
    "create_default_client",
    "header_value",
    "parse_proxy_directives",
    "wrap_headers",
]
