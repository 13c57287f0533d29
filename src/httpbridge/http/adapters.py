# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory Client implementation for tests and offline consumers."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Union

from ..errors import ClientClosedError
from .client import Client
from .models import Request, Response, coerce_body

StubResponder = Union[Response, Callable[[Request], Union[Response, Awaitable[Response]]]]


class StubClient(Client):
    """Deterministic, programmable Client for tests."""

    def __init__(self, responses: dict[str, StubResponder] | None = None):
        self._responses: dict[str, StubResponder] = dict(responses or {})
        self.requests: list[Request] = []
        self.closed = False

    def add(self, uri: str, response: StubResponder) -> None:
        self._responses[uri] = response

    async def send(self, request: Request) -> Response:
        coerce_body(request.body)
        if self.closed:
            raise ClientClosedError("Cannot send a request, as the client has been closed.")
        self.requests.append(request)

        responder = self._responses.get(str(request.uri))
        if responder is None:
            return Response.from_bytes(404, b"No stubbed response configured")
        if isinstance(responder, Response):
            return responder
        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def close(self, *, force: bool = False) -> None:  # noqa: ARG002
        self.closed = True
