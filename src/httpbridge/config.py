# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for httpbridge."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"httpbridge/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_int_env(name: str, default: int | None) -> int | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = int(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


def _optional_float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = float(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


@dataclass
class HttpSettings:
    """Engine defaults applied when ClientOptions leaves a field unset."""

    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True
    max_redirects: int = 5
    verify_ssl: bool = True
    idle_timeout: float | None = 15.0
    max_connections_per_host: int | None = None
    auto_uncompress: bool = True
    proxy: str | None = None
    connect_timeout: float | None = None

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_redirects = _int_env("HTTPBRIDGE_MAX_REDIRECTS", cls.max_redirects)
        if max_redirects < 0:
            max_redirects = cls.max_redirects
        return cls(
            user_agent=os.getenv("HTTPBRIDGE_USER_AGENT", cls.user_agent),
            follow_redirects=_bool_env("HTTPBRIDGE_FOLLOW_REDIRECTS", cls.follow_redirects),
            max_redirects=max_redirects,
            verify_ssl=_bool_env("HTTPBRIDGE_VERIFY_SSL", cls.verify_ssl),
            idle_timeout=_optional_float_env("HTTPBRIDGE_IDLE_TIMEOUT", cls.idle_timeout),
            max_connections_per_host=_optional_int_env("HTTPBRIDGE_MAX_CONNECTIONS_PER_HOST", cls.max_connections_per_host),
            auto_uncompress=_bool_env("HTTPBRIDGE_AUTO_UNCOMPRESS", cls.auto_uncompress),
            proxy=os.getenv("HTTPBRIDGE_PROXY") or cls.proxy,
            connect_timeout=_optional_float_env("HTTPBRIDGE_CONNECT_TIMEOUT", cls.connect_timeout),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()
