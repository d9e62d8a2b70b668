# SPDX-License-Identifier: Apache-2.0
"""Layered option lookup across data items, series and defaults.

Options are looked up by dotted path (``itemStyle.normal.areaStyle.color``)
against an ordered list of candidates. The first candidate that defines the
path wins, so callers put the most specific source first: a data point, then
the series that contributed to it, then the series group, then defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Sequence

_MISSING = object()


def _step(obj: Any, part: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(part, _MISSING)
    if obj is None or isinstance(obj, (str, bytes, int, float, list, tuple)):
        return _MISSING
    getter = getattr(obj, "get", None)
    if callable(getter):
        value = getter(part, _MISSING)
        if value is not _MISSING:
            return value
    return getattr(obj, part, _MISSING)


def get_by_path(obj: Any, path: str) -> Any:
    """Return the value at dotted ``path`` inside ``obj`` or ``None``.

    Missing segments and non-container intermediates resolve to ``None``.
    """
    cur = obj
    for part in path.split(".") if path else []:
        cur = _step(cur, part)
        if cur is _MISSING:
            return None
    return cur


def deep_query(candidates: Iterable[Any], path: str) -> Any:
    """Return the first non-null value for ``path`` across ``candidates``."""
    for candidate in candidates:
        if candidate is None:
            continue
        value = get_by_path(candidate, path)
        if value is not None:
            return value
    return None


class ConfigResolver:
    """Ordered candidate list with path queries.

    ``defaults`` are always consulted last, after every explicit candidate.
    """

    def __init__(
        self, candidates: Sequence[Any], *, defaults: Sequence[Any] = ()
    ) -> None:
        self._candidates: tuple[Any, ...] = tuple(candidates) + tuple(defaults)

    @property
    def candidates(self) -> tuple[Any, ...]:
        return self._candidates

    def query(self, path: str, default: Any = None) -> Any:
        value = deep_query(self._candidates, path)
        return default if value is None else value

    def __call__(self, path: str, default: Any = None) -> Any:
        return self.query(path, default)
