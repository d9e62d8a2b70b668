# SPDX-License-Identifier: Apache-2.0
"""Equirectangular projection between geographic and texture coordinates.

The texture spans 360 degrees horizontally and 180 degrees vertically. It is
normally square, so one pixel covers twice as many degrees of longitude as of
latitude; the sphere's UV mapping undoes that stretch.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Sequence

import numpy as np

# Chukotka sits west of -168.5 degrees; shift it so it joins the rest of Russia.
ANTIMERIDIAN_LON = -168.5
ANTIMERIDIAN_LAT = 63.8

REFERENCE_TEXTURE_SIZE = 2048
MAX_LABEL_STRETCH = 8.0


class GeoTable(Mapping):
    """Read-only base table with a per-instance override layer on top."""

    def __init__(self, base: Mapping[str, Any] | None = None) -> None:
        self._base: Mapping[str, Any] = base or {}
        self._overrides: dict[str, Any] = {}

    def update(self, values: Mapping[str, Any] | None) -> None:
        if values:
            self._overrides.update(values)

    def clear_overrides(self) -> None:
        self._overrides.clear()

    def __getitem__(self, key: str) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        return self._base[key]

    def __iter__(self) -> Iterator[str]:
        yield from self._overrides
        for key in self._base:
            if key not in self._overrides:
                yield key

    def __len__(self) -> int:
        return len(set(self._overrides) | set(self._base))


def coord_pair(coord: Any) -> tuple[float, float]:
    """Accept ``[lon, lat]`` sequences or ``{"x": lon, "y": lat}`` mappings."""
    if isinstance(coord, Mapping):
        return float(coord["x"]), float(coord["y"])
    seq = list(coord)
    if len(seq) < 2:
        raise ValueError("Coordinate must have at least two values")
    return float(seq[0]), float(seq[1])


def format_geo_point(lon: float, lat: float) -> tuple[float, float]:
    if lon < ANTIMERIDIAN_LON and lat > ANTIMERIDIAN_LAT:
        lon += 360.0
    return lon, lat


class GeoProjector:
    """Project lon/lat into pixels of a ``width`` x ``height`` texture."""

    def __init__(
        self,
        width: int,
        height: int | None = None,
        *,
        geo_coords: Mapping[str, Any] | None = None,
        text_fixed: Mapping[str, Any] | None = None,
    ) -> None:
        self.width = int(width)
        self.height = int(height if height is not None else width)
        self.geo_coords = geo_coords if geo_coords is not None else GeoTable()
        self.text_fixed = text_fixed if text_fixed is not None else GeoTable()

    @property
    def scale_x(self) -> float:
        return self.width / 360.0

    @property
    def scale_y(self) -> float:
        return self.height / 180.0

    def project(self, lon: float, lat: float) -> tuple[float, float]:
        lon, lat = format_geo_point(lon, lat)
        return (lon + 180.0) * self.scale_x, (90.0 - lat) * self.scale_y

    def project_ring(self, ring: Iterable[Sequence[float]]) -> np.ndarray:
        """Project a ring of ``[lon, lat]`` pairs to an ``(N, 2)`` pixel array."""
        coords = np.asarray([coord_pair(c) for c in ring], dtype=float)
        if coords.size == 0:
            return np.empty((0, 2), dtype=float)
        lon = coords[:, 0].copy()
        lat = coords[:, 1]
        lon[(lon < ANTIMERIDIAN_LON) & (lat > ANTIMERIDIAN_LAT)] += 360.0
        return np.column_stack(
            ((lon + 180.0) * self.scale_x, (90.0 - lat) * self.scale_y)
        )

    def unproject(self, x: float, y: float) -> tuple[float, float]:
        """Inverse of the linear mapping (the antimeridian shift is not undone)."""
        return x / self.scale_x - 180.0, 90.0 - y / self.scale_y

    def label_anchor(
        self,
        name: str,
        cp: Sequence[float] | None = None,
        bbox: tuple[float, float, float, float] | None = None,
        *,
        anchor: Sequence[float] | None = None,
        offset: Sequence[float] | None = None,
    ) -> tuple[float, float]:
        """Pixel position for the label of region ``name``.

        An explicit geo coordinate wins, then the control point shifted by the
        region's fixed offset (degrees), then the bbox center shifted by the
        same offset (pixels). ``anchor``/``offset`` are region-level values
        used when the instance tables have no entry for ``name``.
        """
        fixed = self.text_fixed.get(name) or offset or (0.0, 0.0)
        fx, fy = coord_pair(fixed)
        geo = self.geo_coords.get(name)
        if geo is None:
            geo = anchor
        if geo is not None:
            lon, lat = coord_pair(geo)
            return (lon + 180.0) * self.scale_x, (90.0 - lat) * self.scale_y
        if cp is not None:
            lon, lat = coord_pair(cp)
            return (
                (lon + fx + 180.0) * self.scale_x,
                (90.0 - (lat + fy)) * self.scale_y,
            )
        if bbox is None:
            return self.width / 2.0, self.height / 2.0
        x, y, w, h = bbox
        return x + w / 2.0 + fx, y + h / 2.0 + fy

    def label_scale(self, y: float) -> tuple[float, float]:
        """Label scale compensating the horizontal pinch at latitude of ``y``."""
        lat = (0.5 - y / self.height) * math.pi
        cos_lat = abs(math.cos(lat))
        stretch = MAX_LABEL_STRETCH if cos_lat < 1e-6 else 1.0 / cos_lat
        stretch = min(max(stretch, 1.0), MAX_LABEL_STRETCH)
        base = self.height / REFERENCE_TEXTURE_SIZE
        return 0.5 * stretch * base, base


def bounding_box(rings: Iterable[np.ndarray]) -> tuple[float, float, float, float] | None:
    """Return ``(x, y, width, height)`` covering every point of ``rings``."""
    arrays = [r for r in rings if len(r)]
    if not arrays:
        return None
    points = np.vstack(arrays)
    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    return (
        float(mins[0]),
        float(mins[1]),
        float(maxs[0] - mins[0]),
        float(maxs[1] - mins[1]),
    )
