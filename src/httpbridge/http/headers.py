# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Multi-valued header container.

HTTP header field names are case-insensitive (RFC 9110) and a field may repeat, so
headers are stored as an ordered mapping from name to a list of values. Lookups are
case-insensitive; the first-seen spelling of a name is kept for output.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Union

HeaderValues = Union[str, Iterable[str]]


def _as_values(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value.decode("latin-1") if isinstance(value, bytes) else value]
    if isinstance(value, Iterable):
        return ["" if item is None else str(item) for item in value]
    return [str(value)]


class Headers(MutableMapping[str, list[str]]):
    """Ordered, case-insensitive mapping of header name -> list of values."""

    def __init__(self, initial: Mapping[str, HeaderValues] | Iterable[tuple[str, str]] | None = None):
        self._names: dict[str, str] = {}
        self._values: dict[str, list[str]] = {}
        if initial is None:
            return
        if isinstance(initial, Headers):
            for name, values in initial.items():
                self.add(name, values)
        elif isinstance(initial, Mapping):
            for name, value in initial.items():
                self.add(name, value)
        else:
            for name, value in initial:
                self.add(name, value)

    def add(self, name: str, value: HeaderValues) -> None:
        """Append one or more values to a header."""
        key = str(name).lower()
        if key not in self._names:
            self._names[key] = str(name)
            self._values[key] = []
        self._values[key].extend(_as_values(value))

    def set(self, name: str, value: HeaderValues) -> None:
        """Replace all values of a header, keeping its original position."""
        key = str(name).lower()
        if key not in self._names:
            self._names[key] = str(name)
        self._values[key] = _as_values(value)

    def value(self, name: str, default: str = "") -> str:
        """Return all values of a header joined with ', ' (or default when missing/empty)."""
        values = self.get(name)
        if not values:
            return default
        return ", ".join(values)

    def multi_items(self) -> list[tuple[str, str]]:
        """Return flat (name, value) pairs, one per value."""
        return [(self._names[key], value) for key, values in self._values.items() for value in values]

    def copy(self) -> Headers:
        return Headers(self)

    def __getitem__(self, name: str) -> list[str]:
        return self._values[str(name).lower()]

    def __setitem__(self, name: str, value: HeaderValues) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        key = str(name).lower()
        del self._values[key]
        del self._names[key]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names.values()))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self == Headers(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({self.multi_items()!r})"


def wrap_headers(headers: Any, *, clone: bool = False) -> Headers:
    """
    Coerce a header container into Headers.

    Accepts None, Headers, a mapping of name -> str | list[str], or an iterable of
    (name, value) pairs. A Headers instance is returned as-is unless clone=True.
    """
    if headers is None:
        return Headers()
    if isinstance(headers, Headers):
        return headers.copy() if clone else headers
    if isinstance(headers, Mapping):
        return Headers(headers)
    if isinstance(headers, Iterable) and not isinstance(headers, (str, bytes)):
        return Headers(list(headers))
    raise TypeError(f"Unsupported headers container: {type(headers).__name__}")


def header_value(headers: Mapping[str, Any] | None, name: str, default: str = "") -> str:
    """
    Return a single header value using case-insensitive key matching.

    Works on Headers (values joined with ', ') and on plain str -> str mappings.
    """
    if not headers or not name:
        return default
    if isinstance(headers, Headers):
        return headers.value(name, default).strip() or default

    lower = str(name).lower()
    for key, value in headers.items():
        if key is None or str(key).lower() != lower:
            continue
        if value is None:
            return default
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value).strip()
        return str(value).strip()
    return default


__all__ = ["Headers", "HeaderValues", "header_value", "wrap_headers"]
