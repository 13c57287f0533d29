# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for httpbridge."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "HTTPBRIDGE_LOG_LEVEL"
FALLBACK_LOG_LEVEL = logging.WARNING

# httpx logs every request at INFO; only let it through when debugging.
ENGINE_LOGGERS = ("httpx", "httpcore")


def resolve_log_level(level: str | int | None = None) -> int:
    """
    Pick the effective log level.

    Precedence: an explicit `level` (e.g. the CLI's --log-level), then
    HTTPBRIDGE_LOG_LEVEL, then WARNING. Unknown names fall through to the
    next source instead of raising.
    """
    for candidate in (level, os.getenv(LOG_LEVEL_ENV)):
        if candidate is None or candidate == "":
            continue
        if isinstance(candidate, int):
            return candidate
        value = logging.getLevelName(str(candidate).strip().upper())
        if isinstance(value, int):
            return value
    return FALLBACK_LOG_LEVEL


def setup_logging(level: str | int | None = None) -> int:
    """Configure standard logging for CLI/library use and return the level applied."""
    effective = resolve_log_level(level)
    logging.basicConfig(level=effective, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("httpbridge").setLevel(effective)
    engine_level = effective if effective <= logging.DEBUG else max(effective, logging.WARNING)
    for name in ENGINE_LOGGERS:
        logging.getLogger(name).setLevel(engine_level)
    return effective


__all__ = ["resolve_log_level", "setup_logging"]
