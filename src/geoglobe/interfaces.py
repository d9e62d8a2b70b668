# SPDX-License-Identifier: Apache-2.0
"""Contracts for the collaborators the compositor drives.

The 3D engine, the text rasterizer and the host chart framework live outside
this package. The globe only talks to them through these interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence


class SurfaceRenderer(ABC):
    """2D drawing surface whose texture is wrapped around the sphere."""

    background_color: str = ""
    background_image: Any = None

    @abstractmethod
    def add_element(self, element: Any) -> None:
        """Queue a drawable (polygon bundle or label) for the next refresh."""

    @abstractmethod
    def clear_elements(self) -> None:
        """Remove every queued drawable."""

    @abstractmethod
    def refresh(self) -> None:
        """Repaint the texture from the queued drawables."""

    @abstractmethod
    def resize(self, width: int, height: int) -> None:
        """Change the texture resolution."""

    @abstractmethod
    def get_width(self) -> int: ...

    @abstractmethod
    def get_height(self) -> int: ...

    @abstractmethod
    def hover(self, x: float, y: float) -> Any:
        """Return the topmost drawable under texture pixel ``(x, y)``, if any."""


class GeoJsonSource(ABC):
    """Provides the GeoJSON feature collection for one map type."""

    @abstractmethod
    async def get_geo_json(self) -> dict[str, Any]:
        """Resolve to a GeoJSON ``FeatureCollection`` mapping."""


class RasterLoader(ABC):
    """Loads and decodes a raster resource identified by a string key."""

    @abstractmethod
    async def load(self, source: str) -> Any:
        """Resolve to a decoded raster handle or raise on failure."""


class OrbitControl(ABC):
    """Camera orbit controller driving animated rotate / zoom transitions."""

    auto_rotate: bool = False
    auto_rotate_after_still: float = 0.0

    @abstractmethod
    async def rotate_to(self, *, rotation: Sequence[float], easing: str) -> None:
        """Animate to ``rotation`` (quaternion ``x, y, z, w``)."""

    @abstractmethod
    async def zoom_to(self, *, zoom: float, easing: str) -> None:
        """Animate to a normalized zoom level."""

    @abstractmethod
    def update(self, delta_time: float) -> None: ...


class ColorLegend(ABC):
    """Maps aggregate values to fill colors (a range legend)."""

    @abstractmethod
    def get_color(self, value: float) -> str: ...


class LegendSelection(ABC):
    """Series visibility as toggled in the host legend."""

    @abstractmethod
    def is_selected(self, series_name: str) -> bool: ...


class ParticleSurface(ABC):
    """Running particle advection layer created from a VectorFieldSpec."""

    @abstractmethod
    def update(self, delta_seconds: float) -> None: ...

    @abstractmethod
    def dispose(self) -> None: ...


class ParticleEngine(ABC):
    """Factory for particle advection layers."""

    @abstractmethod
    def create(self, spec: Any, *, radius: float) -> ParticleSurface: ...
