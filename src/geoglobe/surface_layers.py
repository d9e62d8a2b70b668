# SPDX-License-Identifier: Apache-2.0
"""Data layers stacked above the globe surface (textures, particle fields).

Layer builders are registered by the ``type`` slug used in a series'
``surfaceLayers`` option.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from .cache import ResourceLoader
from .defaults import is_value_none
from .resolver import get_by_path
from .vector_field import VectorFieldError, VectorFieldSpec, configure_vector_field

LOGGER = logging.getLogger(__name__)

DEFAULT_LAYER_TYPE = "texture"


@dataclass
class SurfaceLayer:
    series_index: int
    index: int
    type: str
    radius: float
    source: str | None = None
    texture: Any = field(default=None, repr=False)
    vector_field: VectorFieldSpec | None = None
    particle_surface: Any = field(default=None, repr=False)

    @property
    def ready(self) -> bool:
        return self.texture is not None or self.vector_field is not None


@dataclass
class LayerContext:
    loader: ResourceLoader
    # False once the refresh that created the layer has been superseded.
    alive: Callable[[], bool] = lambda: True
    start_particles: Callable[[SurfaceLayer], None] = lambda layer: None


LayerBuilder = Callable[[SurfaceLayer, Mapping[str, Any], LayerContext], None]

_REGISTRY: dict[str, LayerBuilder] = {}


def register(slug: str) -> Callable[[LayerBuilder], LayerBuilder]:
    """Register a layer builder under ``slug``."""

    if not slug:
        raise ValueError("layer type slug must be non-empty")
    if slug in _REGISTRY:
        raise ValueError(f"layer type already registered: {slug}")

    def decorator(fn: LayerBuilder) -> LayerBuilder:
        _REGISTRY[slug] = fn
        return fn

    return decorator


def get(slug: str) -> LayerBuilder:
    try:
        return _REGISTRY[slug]
    except KeyError as exc:
        raise KeyError(f"unknown surface layer type: {slug}") from exc


def available() -> Iterable[str]:
    return _REGISTRY.keys()


@register("texture")
def build_texture_layer(
    layer: SurfaceLayer, config: Mapping[str, Any], ctx: LayerContext
) -> None:
    image = config.get("image")
    if is_value_none(image):
        return
    if not isinstance(image, str):
        layer.texture = image
        return

    def on_ready(handle: Any) -> None:
        if ctx.alive():
            layer.texture = handle

    layer.source = image
    layer.texture = ctx.loader.request(image, on_ready)


@register("particle")
def build_particle_layer(
    layer: SurfaceLayer, config: Mapping[str, Any], ctx: LayerContext
) -> None:
    data = get_by_path(config, "particle.vectorField")
    if isinstance(data, str):

        def on_ready(handle: Any) -> None:
            if not ctx.alive():
                return
            try:
                layer.vector_field = configure_vector_field(config, handle)
            except VectorFieldError as exc:
                LOGGER.warning("Skipping particle layer %d: %s", layer.index, exc)
                return
            ctx.start_particles(layer)

        layer.source = data
        data = ctx.loader.request(data, on_ready)
        if data is None:
            return
    layer.vector_field = configure_vector_field(config, data)
    ctx.start_particles(layer)


def build_surface_layers(
    series_index: int,
    series: Mapping[str, Any],
    *,
    earth_radius: float,
    ctx: LayerContext,
) -> list[SurfaceLayer]:
    """Build every ``surfaceLayers`` entry of one series.

    Layer ``i`` floats ``distance`` units above the globe (``i + 1`` when
    unset). Invalid layers are logged and skipped.
    """
    layers: list[SurfaceLayer] = []
    for idx, config in enumerate(series.get("surfaceLayers") or []):
        if not isinstance(config, Mapping):
            continue
        layer_type = config.get("type") or DEFAULT_LAYER_TYPE
        if layer_type not in _REGISTRY:
            LOGGER.debug("Unknown surface layer type %r, drawing as texture", layer_type)
            layer_type = DEFAULT_LAYER_TYPE
        distance = config.get("distance")
        if distance is None:
            distance = idx + 1
        layer = SurfaceLayer(
            series_index=series_index,
            index=idx,
            type=layer_type,
            radius=earth_radius + float(distance),
        )
        try:
            get(layer_type)(layer, config, ctx)
        except (VectorFieldError, TypeError, ValueError) as exc:
            LOGGER.warning(
                "Skipping surface layer %d of series %d: %s", idx, series_index, exc
            )
            continue
        layers.append(layer)
    return layers
