# SPDX-License-Identifier: Apache-2.0
"""Globe chart: ties aggregation, projection, layers and focus together.

A :class:`GlobeChart` owns every piece of per-instance state (map data,
name remap tables, geo overrides, the raster cache) from construction until
:meth:`GlobeChart.dispose`. ``refresh`` and ``focus_on`` must run on the event
loop thread; asynchronous map and raster loads complete on the same loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Sequence

from .aggregate import AggregateMap, aggregate_series, group_series_by_map_type
from .cache import LRUCache, ResourceLoader
from .defaults import (
    BASE_TEXTURE_SIZE,
    CHART_TYPE_MAP3D,
    DEFAULT_MAP_TYPE,
    EARTH_RADIUS,
    IMAGE_CACHE_SIZE,
    MAP3D_DEFAULTS,
    is_value_none,
    texture_size_for_quality,
)
from .focus import CameraState, FocusController, FocusTarget
from .interfaces import (
    ColorLegend,
    GeoJsonSource,
    LegendSelection,
    OrbitControl,
    ParticleEngine,
    ParticleSurface,
    RasterLoader,
    SurfaceRenderer,
)
from .lighting import LightSettings, resolve_light
from .projection import GeoProjector, GeoTable
from .regions import Region, RegionLayer, RegionLayerBuilder, regions_from_geojson
from .resolver import ConfigResolver
from .surface_layers import LayerContext, SurfaceLayer, build_surface_layers
from .utils.env import env_float, env_int

LOGGER = logging.getLogger(__name__)

SeriesGroup = list[tuple[int, Mapping[str, Any]]]


def parse_percent(value: Any, total: float) -> float | None:
    """Resolve ``"50%"`` against ``total``; plain numbers pass through."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.endswith("%"):
                return float(text[:-1]) / 100.0 * total
            return float(text)
        except ValueError:
            return None
    return None


class GlobeChart:
    """Interactive globe with region polygons, surface layers and focus."""

    def __init__(
        self,
        surface: SurfaceRenderer,
        geo_sources: Mapping[str, GeoJsonSource],
        raster_loader: RasterLoader,
        *,
        orbit: OrbitControl | None = None,
        legend: ColorLegend | None = None,
        selection: LegendSelection | None = None,
        particle_engine: ParticleEngine | None = None,
        camera: CameraState | None = None,
        view_size: tuple[int, int] = (800, 600),
        earth_radius: float | None = None,
        cache_size: int | None = None,
        base_geo_coords: Mapping[str, Any] | None = None,
        base_text_fixed: Mapping[str, Any] | None = None,
        chart_type: str = CHART_TYPE_MAP3D,
    ) -> None:
        self.surface = surface
        self.geo_sources = dict(geo_sources)
        self.orbit = orbit
        self.legend = legend
        self.selection = selection
        self.particle_engine = particle_engine
        self.view_size = view_size
        self.chart_type = chart_type
        self.earth_radius = float(
            earth_radius if earth_radius is not None else env_float("EARTH_RADIUS", EARTH_RADIUS)
        )
        self.camera = camera or CameraState(z=self.earth_radius * 2.5)
        self.focus_controller = FocusController(
            orbit, radius=self.earth_radius, camera=self.camera
        )

        capacity = cache_size if cache_size is not None else env_int("IMAGE_CACHE_SIZE", IMAGE_CACHE_SIZE)
        self.loader = ResourceLoader(
            raster_loader, cache=LRUCache(capacity), on_refresh=self._request_redraw
        )

        self.option: dict[str, Any] = {}
        self.series: list[Mapping[str, Any]] = []
        self.selected: dict[str, bool] = {}
        self.name_map: dict[str, dict[str, str]] = {}
        self.geo_coords = GeoTable(base_geo_coords)
        self.text_fixed = GeoTable(base_text_fixed)

        self.texture_size = BASE_TEXTURE_SIZE
        self.projector = GeoProjector(
            self.texture_size, geo_coords=self.geo_coords, text_fixed=self.text_fixed
        )
        self.map_type: str | None = None
        self.series_group: SeriesGroup = []
        self.aggregate: AggregateMap = {}
        self.region_layer = RegionLayer()
        self.surface_layers: list[SurfaceLayer] = []
        self.light = LightSettings()
        self.height_image: Any = None
        self.skydome_image: Any = None
        self.viewport: tuple[float, float, float, float] = (
            0.0,
            0.0,
            float(view_size[0]),
            float(view_size[1]),
        )

        self._map_data: dict[str, list[Region]] = {}
        self._map_tasks: dict[str, asyncio.Task] = {}
        self._particle_surfaces: list[ParticleSurface] = []
        self._generation = 0
        self._disposed = False

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def disposed(self) -> bool:
        return self._disposed

    def refresh(self, option: Mapping[str, Any] | None = None) -> None:
        """Rebuild the globe from ``option`` (or the last option)."""
        if self._disposed:
            return
        if option is not None:
            self.option = dict(option)
            self.series = list(self.option.get("series") or [])
        try:
            self._init()
        except Exception:
            LOGGER.exception("Globe refresh failed")

    def dispose(self) -> None:
        self._disposed = True
        self.loader.dispose()
        self._dispose_particles()
        self.surface_layers = []

    async def wait_idle(self) -> None:
        """Wait for pending map and raster loads (headless rendering)."""
        while self._map_tasks or self.loader.busy:
            if self._map_tasks:
                await asyncio.gather(
                    *list(self._map_tasks.values()), return_exceptions=True
                )
            await self.loader.wait_idle()

    def on_frame(self, delta_time: float) -> None:
        """Advance animations by ``delta_time`` milliseconds."""
        if self._disposed or self.map_type is None:
            return
        if self.orbit is not None:
            self.orbit.update(delta_time)
        step = min(delta_time / 1000.0, 0.5)
        for particles in self._particle_surfaces:
            particles.update(step)

    # ------------------------------------------------------------------
    # Refresh pipeline

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._generation

    def _request_redraw(self) -> None:
        if not self._disposed:
            self.surface.refresh()

    def _collect_series_tables(self) -> None:
        self.selected = {}
        for series in self.series:
            if series.get("type") != self.chart_type:
                continue
            name = series.get("name")
            self.selected[name] = (
                self.selection.is_selected(name) if self.selection is not None else True
            )
            self.geo_coords.update(series.get("geoCoord"))
            self.text_fixed.update(series.get("textFixed"))
            name_map = series.get("nameMap")
            if name_map:
                map_type = series.get("mapType") or DEFAULT_MAP_TYPE
                self.name_map.setdefault(map_type, {}).update(name_map)

    def _init(self) -> None:
        self._generation += 1
        self.loader.forget_callbacks()
        self._dispose_particles()
        self.surface_layers = []

        self._collect_series_tables()
        groups = group_series_by_map_type(
            self.series, self.selected, chart_type=self.chart_type
        )
        self.aggregate = aggregate_series(
            self.series, self.selected, self.name_map, chart_type=self.chart_type
        )
        if not groups:
            LOGGER.debug("No selected %s series; drawing the bare globe", self.chart_type)
            self.map_type = None
            self.series_group = []
            self.region_layer = RegionLayer()
            self.surface.clear_elements()
            self.surface.refresh()
            return

        # Only the first map type is drawn.
        map_type, series_group = next(iter(groups.items()))
        if len(groups) > 1:
            LOGGER.info(
                "Drawing map type %r; ignoring %s", map_type, ", ".join(list(groups)[1:])
            )
        self.map_type = map_type
        self.series_group = series_group
        resolver = ConfigResolver(
            [series for _, series in series_group], defaults=(MAP3D_DEFAULTS,)
        )

        self.texture_size = texture_size_for_quality(resolver.query("baseLayer.quality"))
        self.surface.resize(self.texture_size, self.texture_size)
        self.projector = GeoProjector(
            self.texture_size, geo_coords=self.geo_coords, text_fixed=self.text_fixed
        )

        self._update_light(resolver)
        self._update_skydome(resolver)
        self._update_background(resolver)
        self._update_regions(map_type)
        self._update_surface_layers(series_group)
        self.viewport = self.compute_viewport(resolver)

        if self.orbit is not None:
            self.orbit.auto_rotate = bool(resolver.query("autoRotate"))
            self.orbit.auto_rotate_after_still = float(
                resolver.query("autoRotateAfterStill", 0)
            )
        self.camera.z = self.earth_radius * 2.5

    def _load_raster(self, source: Any, assign) -> Any:
        """Return ``source`` as a raster handle, loading string keys lazily.

        ``assign`` receives the handle when an asynchronous load finishes
        during the same refresh.
        """
        if is_value_none(source):
            return None
        if not isinstance(source, str):
            return source
        generation = self._generation

        def on_ready(handle: Any) -> None:
            if self._is_current(generation):
                assign(handle)

        return self.loader.request(source, on_ready)

    def _update_light(self, resolver: ConfigResolver) -> None:
        self.light = resolve_light(resolver)

        def assign(handle: Any) -> None:
            self.height_image = handle

        self.height_image = self._load_raster(self.light.height_image, assign)

    def _update_skydome(self, resolver: ConfigResolver) -> None:
        def assign(handle: Any) -> None:
            self.skydome_image = handle

        self.skydome_image = self._load_raster(resolver.query("background"), assign)

    def _update_background(self, resolver: ConfigResolver) -> None:
        color = resolver.query("baseLayer.backgroundColor")
        self.surface.background_color = "" if is_value_none(color) else color

        def assign(handle: Any) -> None:
            self.surface.background_image = handle

        self.surface.background_image = self._load_raster(
            resolver.query("baseLayer.backgroundImage"), assign
        )

    def _update_regions(self, map_type: str) -> None:
        if map_type in self._map_data:
            self._draw_regions(map_type)
            self.surface.refresh()
            return
        source = self.geo_sources.get(map_type)
        if source is None:
            LOGGER.warning("No map data source for map type %r", map_type)
            self.region_layer = RegionLayer()
            self.surface.clear_elements()
            self.surface.refresh()
            return
        if map_type not in self._map_tasks:
            loop = asyncio.get_running_loop()
            self._map_tasks[map_type] = loop.create_task(
                self._load_map(map_type, source)
            )

    async def _load_map(self, map_type: str, source: GeoJsonSource) -> None:
        try:
            payload = await source.get_geo_json()
            regions = regions_from_geojson(payload)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Failed to load map data for %r: %s", map_type, exc)
            return
        except Exception:
            LOGGER.exception("Unexpected failure loading map data for %r", map_type)
            return
        finally:
            self._map_tasks.pop(map_type, None)
        if self._disposed:
            return
        self._map_data[map_type] = regions
        if self.map_type == map_type:
            self._draw_regions(map_type)
            self.surface.refresh()

    def _draw_regions(self, map_type: str) -> None:
        builder = RegionLayerBuilder(
            self.projector, name_map=self.name_map.get(map_type), legend=self.legend
        )
        layer = builder.build(
            map_type,
            self.aggregate.get(map_type, {}),
            self._map_data.get(map_type, []),
            self.series_group,
        )
        self.surface.clear_elements()
        for shape, label in zip(layer.shapes, layer.labels):
            self.surface.add_element(shape)
            self.surface.add_element(label)
        self.region_layer = layer

    def _update_surface_layers(self, series_group: SeriesGroup) -> None:
        generation = self._generation
        ctx = LayerContext(
            loader=self.loader,
            alive=lambda: self._is_current(generation),
            start_particles=self._start_particles,
        )
        for idx, series in series_group:
            self.surface_layers.extend(
                build_surface_layers(
                    idx, series, earth_radius=self.earth_radius, ctx=ctx
                )
            )

    def _start_particles(self, layer: SurfaceLayer) -> None:
        if self.particle_engine is None or layer.vector_field is None:
            return
        particles = self.particle_engine.create(layer.vector_field, radius=layer.radius)
        layer.particle_surface = particles
        self._particle_surfaces.append(particles)

    def _dispose_particles(self) -> None:
        for particles in self._particle_surfaces:
            particles.dispose()
        self._particle_surfaces = []

    # ------------------------------------------------------------------
    # Viewport and focus

    def compute_viewport(
        self, resolver: ConfigResolver
    ) -> tuple[float, float, float, float]:
        """Resolve ``mapLocation`` against the view size.

        Missing offsets default to 0 and missing sizes to the full view.
        """
        view_w, view_h = self.view_size
        location = resolver.query("mapLocation") or {}
        if not isinstance(location, Mapping):
            location = {}
        x = parse_percent(location.get("x"), view_w)
        y = parse_percent(location.get("y"), view_h)
        width = parse_percent(location.get("width"), view_w)
        height = parse_percent(location.get("height"), view_h)
        return (
            0.0 if x is None else x,
            0.0 if y is None else y,
            float(view_w) if width is None else width,
            float(view_h) if height is None else height,
        )

    def hover(self, x: float, y: float) -> Any:
        return self.surface.hover(x, y)

    async def focus_on(self, name: str) -> FocusTarget:
        """Rotate and zoom so the region ``name`` fills the view."""
        shape = self.region_layer.find(name)
        if shape is None:
            LOGGER.warning("Cannot focus on unknown region %r", name)
            return FocusTarget()
        return await self.focus_controller.focus(
            shape.get_rect(), (self.surface.get_width(), self.surface.get_height())
        )

    def visible_regions(self) -> Sequence[str]:
        return [shape.name for shape in self.region_layer.shapes]
