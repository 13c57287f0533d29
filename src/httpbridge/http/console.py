# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed Client for server/console environments."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import AsyncIterable, AsyncIterator, Callable

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import ClientClosedError
from .client import Client
from .headers import Headers, wrap_headers
from .models import (
    BodyVariant,
    BytesBody,
    ClientOptions,
    FileBody,
    RedirectInfo,
    Request,
    Response,
    StreamBody,
    StreamFactoryBody,
    coerce_body,
    to_seconds,
)
from .proxy import build_proxy_resolver
from .transport import RoutingTransport, TransportFactory, default_transport_factory

logger = logging.getLogger(__name__)

FILE_CHUNK_SIZE = 64 * 1024


async def _iter_file(path: str | os.PathLike[str]) -> AsyncIterator[bytes]:
    handle = await asyncio.to_thread(open, path, "rb")
    try:
        while True:
            chunk = await asyncio.to_thread(handle.read, FILE_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


class _EngineBody:
    """
    Response body backed by an open httpx response.

    The exchange ends when the body is exhausted, fails or is closed, and
    `on_done` runs at that point (possibly more than once, so it must be
    idempotent). A response the engine already read in full holds no
    connection, so it ends the exchange at once.
    """

    def __init__(self, rs: httpx.Response, *, decode: bool, on_done: Callable[[], None]):
        self._rs = rs
        self._decode = decode
        self._on_done = on_done
        self._chunks: AsyncIterator[bytes] | None = None
        if rs.is_closed:
            on_done()

    def __aiter__(self) -> _EngineBody:
        return self

    async def __anext__(self) -> bytes:
        if self._chunks is None:
            rs = self._rs
            self._chunks = rs.aiter_bytes() if self._decode or rs.is_stream_consumed else rs.aiter_raw()
        try:
            return await anext(self._chunks)
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        try:
            if self._chunks is not None:
                await self._chunks.aclose()
            await self._rs.aclose()
        finally:
            self._on_done()


def _peer_address(rs: httpx.Response) -> str | None:
    """Remote IP of the connection that carried `rs`, when the engine exposes it."""
    stream = rs.extensions.get("network_stream")
    if stream is None:
        return None
    try:
        addr = stream.get_extra_info("server_addr")
    except OSError:
        return None
    if not addr:
        return None
    return str(addr[0])


class ConsoleClient(Client):
    """Client for server/console environments, delegating to an httpx.AsyncClient."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        settings: HttpSettings | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        options = options or ClientOptions()
        self.settings = settings or load_http_settings()

        idle_timeout = to_seconds(options.idle_timeout)
        if idle_timeout is None:
            idle_timeout = self.settings.idle_timeout
        max_per_host = options.max_connections_per_host
        if max_per_host is None:
            max_per_host = self.settings.max_connections_per_host
        ignore_bad_certificates = bool(options.ignore_bad_certificates)
        verify = self.settings.verify_ssl and not ignore_bad_certificates
        auto_uncompress = options.auto_uncompress
        self._auto_uncompress = self.settings.auto_uncompress if auto_uncompress is None else auto_uncompress

        if options.proxy is None and options.proxy_fn is None:
            resolver = build_proxy_resolver(self.settings.proxy)
        else:
            resolver = build_proxy_resolver(options.proxy, options.proxy_fn)

        factory = transport_factory or default_transport_factory(
            verify=verify,
            limits=httpx.Limits(keepalive_expiry=idle_timeout),
        )
        self._engine = httpx.AsyncClient(
            transport=RoutingTransport(
                resolver,
                transport_factory=factory,
                max_connections_per_host=max_per_host,
            ),
            follow_redirects=self.settings.follow_redirects,
            max_redirects=self.settings.max_redirects,
            timeout=httpx.Timeout(None, connect=self.settings.connect_timeout),
        )

        user_agent = options.user_agent if options.user_agent is not None else self.settings.user_agent
        if user_agent:
            self._engine.headers["User-Agent"] = user_agent
        else:
            self._engine.headers.pop("User-Agent", None)

        self._headers = wrap_headers(options.headers, clone=True)
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._closing = False

    @property
    def default_headers(self) -> Headers:
        return self._headers

    @property
    def closed(self) -> bool:
        return self._closing

    async def send(self, request: Request) -> Response:
        """
        Send `request` and return once the response head has arrived.

        The exchange stays in flight until the response body is exhausted or
        closed, so a graceful `close()` lets unread bodies finish streaming.
        """
        body = coerce_body(request.body)
        if self._closing:
            raise ClientClosedError("Cannot send a request, as the client has been closed.")

        end_exchange = self._begin_exchange()
        try:
            timeout = request.timeout_seconds
            if timeout is None:
                return await self._send(request, body, end_exchange)
            try:
                return await asyncio.wait_for(self._send(request, body, end_exchange), timeout)
            except TimeoutError as exc:
                raise TimeoutError(f"{request.method} {request.uri} timed out after {timeout:g}s") from exc
        except BaseException:
            end_exchange()
            raise

    def _begin_exchange(self) -> Callable[[], None]:
        """Count one exchange in flight; the returned callback ends it, once."""
        self._in_flight += 1
        self._idle.clear()
        ended = False

        def end_exchange() -> None:
            nonlocal ended
            if ended:
                return
            ended = True
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

        return end_exchange

    def _build_headers(self, request: Request, body: BodyVariant | None) -> list[tuple[str, str]]:
        applied: set[str] = set()
        out: list[tuple[str, str]] = []

        def apply(headers: Headers, name: str) -> None:
            values = headers.get(name)
            if not values:
                return
            applied.add(name.lower())
            out.extend((name, value) for value in values)

        for name in request.headers:
            apply(request.headers, name)
        for name in self._headers:
            if name.lower() in applied:
                continue
            apply(self._headers, name)

        if request.persistent_connection is not None and "connection" not in applied:
            out.append(("Connection", "keep-alive" if request.persistent_connection else "close"))

        if "content-length" not in applied:
            if isinstance(body, BytesBody):
                out.append(("Content-Length", str(len(body.data))))
            elif isinstance(body, FileBody):
                out.append(("Content-Length", str(os.path.getsize(body.path))))
        return out

    async def _content(self, body: BodyVariant | None) -> bytes | AsyncIterable[bytes] | None:
        if body is None:
            return None
        if isinstance(body, BytesBody):
            return body.data
        if isinstance(body, StreamBody):
            return body.stream
        if isinstance(body, StreamFactoryBody):
            stream = body.factory()
            if inspect.isawaitable(stream):
                stream = await stream
            return stream
        return _iter_file(body.path)

    async def _send(self, request: Request, body: BodyVariant | None, end_exchange: Callable[[], None]) -> Response:
        headers = self._build_headers(request, body)
        content = await self._content(body)
        rq = self._engine.build_request(request.method, request.uri, headers=headers, content=content)

        follow = self._engine.follow_redirects if request.follow_redirects is None else request.follow_redirects
        max_redirects = self._engine.max_redirects if request.max_redirects is None else request.max_redirects

        logger.debug("%s %s", rq.method, rq.url)
        rs = await self._engine.send(rq, stream=True, follow_redirects=False)
        try:
            request_address = _peer_address(rs)
            redirects: list[RedirectInfo] = []
            while follow and rs.next_request is not None:
                next_request = rs.next_request
                if len(redirects) >= max_redirects:
                    raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=next_request)
                redirects.append(RedirectInfo(rs.status_code, next_request.method, str(next_request.url)))
                logger.debug("Redirect %s -> %s %s", rs.status_code, next_request.method, next_request.url)
                await rs.aclose()
                rs = await self._engine.send(next_request, stream=True, follow_redirects=False)
        except BaseException:
            await rs.aclose()
            raise

        response_headers = Headers()
        for name, value in rs.headers.multi_items():
            response_headers.add(name, value)

        return Response(
            status_code=rs.status_code,
            reason_phrase=rs.reason_phrase,
            headers=response_headers,
            body=_EngineBody(rs, decode=self._auto_uncompress, on_done=end_exchange),
            redirects=redirects,
            request_address=request_address,
            response_address=_peer_address(rs),
        )

    async def close(self, *, force: bool = False) -> None:
        self._closing = True
        if not force and self._in_flight:
            logger.debug("Waiting for %d in-flight exchange(s) before closing", self._in_flight)
            await self._idle.wait()
        await self._engine.aclose()

    async def __aenter__(self) -> ConsoleClient:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.close()


__all__ = ["ConsoleClient"]
