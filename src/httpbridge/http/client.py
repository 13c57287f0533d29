# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client abstraction and factory."""

from typing import Protocol

from ..config import HttpSettings
from .models import ClientOptions, Request, Response


class Client(Protocol):
    """Environment-independent HTTP client."""

    async def send(self, request: Request) -> Response: ...

    async def close(self, *, force: bool = False) -> None: ...


def create_default_client(options: ClientOptions | None = None, settings: HttpSettings | None = None) -> Client:
    """Factory for the default httpx-backed client."""
    from .console import ConsoleClient

    return ConsoleClient(options, settings=settings)
