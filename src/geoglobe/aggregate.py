# SPDX-License-Identifier: Apache-2.0
"""Merge data from several map series that share region names."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence

from .defaults import CHART_TYPE_MAP3D, DEFAULT_MAP_TYPE

NO_DATA = "-"


@dataclass
class DataPoint:
    """Aggregated data for one region of one map type."""

    name: str
    value: float = 0.0
    series_indices: list[int] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key == "value":
            return self.value
        if key == "name":
            return self.name
        if key in ("seriesIdx", "series_indices"):
            return self.series_indices
        return self.extra.get(key, default)


AggregateMap = dict[str, dict[str, DataPoint]]


def coerce_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_selected(series: Mapping[str, Any], selected: Mapping[str, bool] | None) -> bool:
    if not selected:
        return True
    return bool(selected.get(series.get("name"), True))


def _eligible(
    series_list: Sequence[Mapping[str, Any]],
    selected: Mapping[str, bool] | None,
    chart_type: str,
):
    for idx, series in enumerate(series_list):
        if series.get("type") != chart_type:
            continue
        if not is_selected(series, selected):
            continue
        yield idx, series


def group_series_by_map_type(
    series_list: Sequence[Mapping[str, Any]],
    selected: Mapping[str, bool] | None = None,
    *,
    chart_type: str = CHART_TYPE_MAP3D,
) -> dict[str, list[tuple[int, Mapping[str, Any]]]]:
    """Group selected series of ``chart_type`` by ``mapType``, keeping indices."""
    groups: dict[str, list[tuple[int, Mapping[str, Any]]]] = {}
    for idx, series in _eligible(series_list, selected, chart_type):
        map_type = series.get("mapType") or DEFAULT_MAP_TYPE
        groups.setdefault(map_type, []).append((idx, series))
    return groups


def aggregate_series(
    series_list: Sequence[Mapping[str, Any]],
    selected: Mapping[str, bool] | None = None,
    name_map: Mapping[str, Mapping[str, str]] | None = None,
    *,
    chart_type: str = CHART_TYPE_MAP3D,
) -> AggregateMap:
    """Aggregate series data per ``(mapType, region name)``.

    Numeric ``value`` fields are summed (non-numeric ones are skipped), the
    contributing series indices are appended in iteration order and every
    other field is copied with the last series winning.
    """
    name_map = name_map or {}
    result: AggregateMap = {}
    for idx, series in _eligible(series_list, selected, chart_type):
        map_type = series.get("mapType") or DEFAULT_MAP_TYPE
        remap = name_map.get(map_type) or {}
        bucket = result.setdefault(map_type, {})
        for entry in series.get("data") or []:
            if not isinstance(entry, Mapping):
                continue
            raw_name = entry.get("name") or ""
            name = remap.get(raw_name, raw_name)
            point = bucket.get(name)
            if point is None:
                point = bucket[name] = DataPoint(name=name)
            point.series_indices.append(idx)
            for key, val in entry.items():
                if key == "value":
                    number = coerce_number(val)
                    if number is not None:
                        point.value += number
                elif key != "name":
                    point.extra[key] = val
    return result
