# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx transport that adds per-URL proxy routing and per-host connection caps."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Optional

import httpx

from .proxy import Route

logger = logging.getLogger(__name__)

TransportFactory = Callable[[Route], httpx.AsyncBaseTransport]
HostKey = tuple[str, str, Optional[int]]


def default_transport_factory(*, verify: bool = True, limits: httpx.Limits | None = None) -> TransportFactory:
    """Build one pooled AsyncHTTPTransport per route (proxy URL or direct)."""

    def factory(route: Route) -> httpx.AsyncBaseTransport:
        return httpx.AsyncHTTPTransport(
            verify=verify,
            limits=limits or httpx.Limits(),
            proxy=route,
        )

    return factory


class _SlotReleasingStream(httpx.AsyncByteStream):
    """Response stream that frees a per-host slot once the body is closed."""

    def __init__(self, stream: httpx.AsyncByteStream, release: Callable[[], None]):
        self._stream = stream
        self._release = release
        self._released = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            yield chunk

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            if not self._released:
                self._released = True
                self._release()


@dataclass
class _HostSlot:
    """Connection cap for one (scheme, host, port); `users` counts holders and waiters."""

    semaphore: asyncio.Semaphore
    users: int = 0


class RoutingTransport(httpx.AsyncBaseTransport):
    """
    Dispatch each request through the transport for its resolved proxy route.

    Routes are tried in order; a connect/proxy failure falls through to the next route.
    When `max_connections_per_host` is set, at most that many exchanges per
    (scheme, host, port) are in flight, where an exchange lasts until its response
    stream is closed.
    """

    def __init__(
        self,
        resolver: Callable[[str], list[Route]],
        *,
        transport_factory: TransportFactory,
        max_connections_per_host: int | None = None,
    ):
        self._resolver = resolver
        self._factory = transport_factory
        self._transports: dict[Route, httpx.AsyncBaseTransport] = {}
        self._max_per_host = max_connections_per_host if max_connections_per_host and max_connections_per_host > 0 else None
        self._host_slots: dict[HostKey, _HostSlot] = {}

    def _transport_for(self, route: Route) -> httpx.AsyncBaseTransport:
        transport = self._transports.get(route)
        if transport is None:
            transport = self._factory(route)
            self._transports[route] = transport
        return transport

    async def _acquire_slot(self, key: HostKey) -> Callable[[], None]:
        """Wait for a free connection slot on `key`; returns its one-shot release."""
        slot = self._host_slots.get(key)
        if slot is None:
            slot = _HostSlot(asyncio.Semaphore(self._max_per_host))
            self._host_slots[key] = slot
        slot.users += 1
        try:
            await slot.semaphore.acquire()
        except BaseException:
            self._drop_user(key, slot)
            raise

        def release() -> None:
            slot.semaphore.release()
            self._drop_user(key, slot)

        return release

    def _drop_user(self, key: HostKey, slot: _HostSlot) -> None:
        slot.users -= 1
        if slot.users == 0 and self._host_slots.get(key) is slot:
            del self._host_slots[key]

    async def _send_via_routes(self, request: httpx.Request) -> httpx.Response:
        routes = self._resolver(str(request.url)) or [None]
        last = len(routes) - 1
        for index, route in enumerate(routes):
            transport = self._transport_for(route)
            try:
                return await transport.handle_async_request(request)
            except (httpx.ConnectError, httpx.ProxyError) as exc:
                if index == last:
                    raise
                logger.debug("Route %s failed for %s (%s); trying next route", route or "DIRECT", request.url, exc)
        raise AssertionError("unreachable")  # pragma: no cover

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._max_per_host is None:
            return await self._send_via_routes(request)

        release = await self._acquire_slot((request.url.scheme, request.url.host, request.url.port))
        try:
            response = await self._send_via_routes(request)
        except BaseException:
            release()
            raise
        if response.is_closed:
            release()
            return response
        response.stream = _SlotReleasingStream(response.stream, release)
        return response

    async def aclose(self) -> None:
        closed: set[int] = set()
        for transport in self._transports.values():
            if id(transport) in closed:
                continue
            closed.add(id(transport))
            await transport.aclose()
        self._transports.clear()


__all__ = ["RoutingTransport", "TransportFactory", "default_transport_factory"]
