# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models shared by every Client implementation."""

from __future__ import annotations

import json
import os
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Union

import httpx

from ..errors import UnknownBodyError
from .headers import Headers, header_value, wrap_headers

StreamFactory = Callable[[], Union[AsyncIterable[bytes], Awaitable[AsyncIterable[bytes]]]]
ProxyResolver = Callable[[str], str]


@dataclass(frozen=True)
class BytesBody:
    """In-memory payload; Content-Length is derived from its size."""

    data: bytes


@dataclass(frozen=True)
class StreamBody:
    """Payload piped from an async byte stream."""

    stream: AsyncIterable[bytes]


@dataclass(frozen=True)
class StreamFactoryBody:
    """Payload produced lazily by calling a (possibly async) factory at send time."""

    factory: StreamFactory


@dataclass(frozen=True)
class FileBody:
    """Payload streamed from a file; Content-Length is the file size."""

    path: str | os.PathLike[str]


BodyVariant = Union[BytesBody, StreamBody, StreamFactoryBody, FileBody]
_VARIANTS = (BytesBody, StreamBody, StreamFactoryBody, FileBody)


def coerce_body(body: Any) -> BodyVariant | None:
    """
    Map a request body onto one of the supported variants.

    bytes-like values are sent as-is, async iterables are piped, callables are
    treated as stream factories and path-like objects as file references. Anything
    else raises UnknownBodyError.

    `str` is the one non-byte value accepted: it is encoded to UTF-8 and sent as
    a BytesBody, so Content-Length counts encoded bytes, not characters.
    Sync iterables (including lists of chunks) stay unknown bodies.
    """
    if body is None or isinstance(body, _VARIANTS):
        return body
    if isinstance(body, (bytes, bytearray, memoryview)):
        return BytesBody(bytes(body))
    if isinstance(body, str):
        return BytesBody(body.encode("utf-8"))
    if isinstance(body, os.PathLike):
        return FileBody(body)
    if hasattr(body, "__aiter__"):
        return StreamBody(body)
    if callable(body):
        return StreamFactoryBody(body)
    raise UnknownBodyError(body)


def to_seconds(value: float | timedelta | None) -> float | None:
    """Normalize a duration to seconds; None stays None."""
    if value is None:
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


@dataclass
class Request:
    """A single HTTP exchange to be sent through a Client."""

    method: str
    uri: str | httpx.URL
    headers: Headers | Mapping[str, Any] | None = None
    body: Any = None
    timeout: float | timedelta | None = None
    persistent_connection: bool | None = None
    follow_redirects: bool | None = None
    max_redirects: int | None = None

    def __post_init__(self) -> None:
        self.method = str(self.method).upper()
        self.headers = wrap_headers(self.headers)

    @property
    def timeout_seconds(self) -> float | None:
        """Positive timeout in seconds, or None when the request should not be time-limited."""
        seconds = to_seconds(self.timeout)
        if seconds is None or seconds <= 0:
            return None
        return seconds


@dataclass(frozen=True)
class RedirectInfo:
    """One automatically followed redirect hop."""

    status_code: int
    method: str
    location: str


async def _empty_body() -> AsyncIterator[bytes]:
    return
    yield b""  # pragma: no cover


async def _bytes_body(data: bytes) -> AsyncIterator[bytes]:
    if data:
        yield data


def _charset(content_type: str) -> str | None:
    for part in content_type.split(";")[1:]:
        name, _, value = part.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return None


@dataclass
class Response:
    """HTTP response with a streamed body."""

    status_code: int
    reason_phrase: str = ""
    headers: Headers = field(default_factory=Headers)
    body: AsyncIterator[bytes] = field(default_factory=_empty_body)
    redirects: list[RedirectInfo] = field(default_factory=list)
    request_address: str | None = None
    response_address: str | None = None
    _content: bytes | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.headers = wrap_headers(self.headers)

    @classmethod
    def from_bytes(
        cls,
        status_code: int,
        content: bytes | str = b"",
        *,
        reason_phrase: str | None = None,
        headers: Headers | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Response:
        """Build a fully in-memory response (used by stubs and tests)."""
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        if reason_phrase is None:
            reason_phrase = httpx.codes.get_reason_phrase(status_code)
        return cls(
            status_code=status_code,
            reason_phrase=reason_phrase,
            headers=wrap_headers(headers, clone=True),
            body=_bytes_body(data),
            **kwargs,
        )

    @property
    def is_redirect(self) -> bool:
        return bool(self.redirects)

    async def read(self) -> bytes:
        """Drain the body stream and return its bytes (cached after the first call)."""
        if self._content is None:
            chunks = [chunk async for chunk in self.body]
            self._content = b"".join(chunks)
        return self._content

    async def text(self, encoding: str | None = None) -> str:
        content = await self.read()
        encoding = encoding or _charset(header_value(self.headers, "content-type")) or "utf-8"
        try:
            return content.decode(encoding, errors="replace")
        except LookupError:
            return content.decode("utf-8", errors="replace")

    async def json(self) -> Any:
        return json.loads(await self.text())

    async def aclose(self) -> None:
        """Release the body, and the connection behind it, without reading it."""
        aclose = getattr(self.body, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> Response:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


@dataclass
class ClientOptions:
    """
    Construction options for a Client; None means "not set".

    Unset fields fall back to HttpSettings and then to the engine's own defaults.
    `proxy` takes precedence over `proxy_fn`. Proxy strings use directive syntax,
    e.g. "PROXY host:port; PROXY host2:port2; DIRECT". An empty `user_agent`
    disables the User-Agent header.
    """

    proxy: str | None = None
    proxy_fn: ProxyResolver | None = None
    headers: Headers | Mapping[str, Any] | None = None
    idle_timeout: float | timedelta | None = None
    max_connections_per_host: int | None = None
    auto_uncompress: bool | None = None
    user_agent: str | None = None
    ignore_bad_certificates: bool | None = None


__all__ = [
    "BodyVariant",
    "BytesBody",
    "ClientOptions",
    "FileBody",
    "ProxyResolver",
    "RedirectInfo",
    "Request",
    "Response",
    "StreamBody",
    "StreamFactory",
    "StreamFactoryBody",
    "coerce_body",
    "to_seconds",
]
