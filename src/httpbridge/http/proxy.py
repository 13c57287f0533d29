# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Proxy directive parsing.

Proxy settings use PAC-style directives, tried in order:

    "PROXY proxy.local:3128; PROXY backup.local:8080; DIRECT"

A bare proxy URL ("http://proxy.local:3128", "socks5://...") is accepted as a single
route. Each route is returned as a proxy URL, or None for a direct connection.
"""

from __future__ import annotations

from collections.abc import Callable

from .models import ProxyResolver

Route = str | None


def _proxy_url(target: str) -> str:
    target = target.strip()
    if not target:
        raise ValueError("PROXY directive requires host:port")
    if "://" in target:
        return target
    return f"http://{target}"


def parse_proxy_directives(value: str | None) -> list[Route]:
    """Parse a directive string into an ordered list of routes (None = DIRECT)."""
    if value is None or not value.strip():
        return [None]

    routes: list[Route] = []
    for entry in value.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        keyword, _, target = entry.partition(" ")
        keyword = keyword.upper()
        if keyword == "DIRECT":
            route: Route = None
        elif keyword == "PROXY":
            route = _proxy_url(target)
        elif "://" in entry and not target:
            route = entry
        else:
            raise ValueError(f"Invalid proxy directive: {entry!r}")
        if route not in routes:
            routes.append(route)
    return routes or [None]


def build_proxy_resolver(proxy: str | None = None, proxy_fn: ProxyResolver | None = None) -> Callable[[str], list[Route]]:
    """
    Return a url -> routes resolver.

    A static `proxy` takes precedence over the per-URL `proxy_fn`; with neither, every
    request goes direct.
    """
    if proxy is not None:
        routes = parse_proxy_directives(proxy)
        return lambda _url: list(routes)
    if proxy_fn is not None:
        return lambda url: parse_proxy_directives(proxy_fn(url))
    return lambda _url: [None]


__all__ = ["Route", "build_proxy_resolver", "parse_proxy_directives"]
