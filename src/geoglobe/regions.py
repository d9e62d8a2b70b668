# SPDX-License-Identifier: Apache-2.0
"""Region polygons and the layer of filled shapes / labels painted on the globe."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from .aggregate import NO_DATA, DataPoint, coerce_number
from .defaults import MAP3D_DEFAULTS, TEXT_STYLE_DEFAULTS
from .interfaces import ColorLegend
from .projection import GeoProjector, coord_pair
from .resolver import ConfigResolver
from .shapes import LabelShape, LabelStyle, ShapeStyle, TextureSpaceShape

LOGGER = logging.getLogger(__name__)

Ring = list[tuple[float, float]]


class RegionGeometryError(ValueError):
    pass


# ----------------------------------------------------------------------------
# GeoJSON parsing


@dataclass
class Region:
    name: str
    rings: list[Ring] = field(default_factory=list)
    cp: tuple[float, float] | None = None
    label_offset: tuple[float, float] | None = None
    label_anchor: tuple[float, float] | None = None


def _ring(coords: Iterable[Any]) -> Ring:
    points: Ring = []
    for coord in coords:
        try:
            points.append(coord_pair(coord))
        except (TypeError, ValueError, KeyError):
            continue
    return points


def _iter_polygon_rings(
    geometry: Mapping[str, Any], *, nested: bool = False
) -> Iterator[Ring]:
    gtype = geometry.get("type")
    if gtype == "Polygon":
        polygons = [geometry.get("coordinates") or []]
    elif gtype == "MultiPolygon":
        polygons = geometry.get("coordinates") or []
    elif gtype == "GeometryCollection":
        for geom in geometry.get("geometries") or []:
            if isinstance(geom, Mapping):
                yield from _iter_polygon_rings(geom, nested=True)
        return
    elif nested:
        # Points and lines inside a collection carry no fill.
        LOGGER.debug("Ignoring %r member of geometry collection", gtype)
        return
    else:
        raise RegionGeometryError(f"Unsupported geometry type: {gtype!r}")
    for polygon in polygons:
        for coords in polygon or []:
            ring = _ring(coords)
            if ring:
                yield ring


def _optional_pair(value: Any) -> tuple[float, float] | None:
    if value is None:
        return None
    try:
        return coord_pair(value)
    except (TypeError, ValueError, KeyError):
        return None


def region_from_feature(feature: Mapping[str, Any]) -> Region:
    """Build a :class:`Region` from a GeoJSON ``Feature`` or geometry collection."""
    properties = feature.get("properties") or {}
    name = properties.get("name")
    if not name:
        raise RegionGeometryError("Feature has no properties.name")
    if feature.get("type") == "GeometryCollection":
        geometry: Mapping[str, Any] = feature
    else:
        geometry = feature.get("geometry") or {}
    if not geometry.get("type"):
        raise RegionGeometryError(f"Feature {name!r} has no geometry type")
    return Region(
        name=str(name),
        rings=list(_iter_polygon_rings(geometry)),
        cp=_optional_pair(properties.get("cp")),
        label_offset=_optional_pair(properties.get("textFixed")),
        label_anchor=_optional_pair(properties.get("geoCoord")),
    )


def regions_from_geojson(payload: Mapping[str, Any]) -> list[Region]:
    """Extract regions from a FeatureCollection, skipping malformed features."""
    if not isinstance(payload, Mapping):
        raise RegionGeometryError("Map data must be a JSON object")
    if payload.get("type") == "FeatureCollection":
        features = payload.get("features") or []
    elif payload.get("type") == "Feature":
        features = [payload]
    else:
        raise RegionGeometryError(
            "Map data must be a GeoJSON FeatureCollection or Feature"
        )
    regions: list[Region] = []
    for idx, feature in enumerate(features):
        if not isinstance(feature, Mapping):
            continue
        try:
            regions.append(region_from_feature(feature))
        except RegionGeometryError as exc:
            LOGGER.warning("Skipping map feature %d: %s", idx, exc)
    return regions


# ----------------------------------------------------------------------------
# Label helpers


def format_label_text(
    name: str, value: Any, resolver: ConfigResolver, status: str
) -> str:
    """Render label text with ``itemStyle.<status>.label.formatter``.

    Callable formatters receive ``(name, value)``. String templates replace
    ``{a}`` with the region name and ``{b}`` with the value.
    """
    formatter = resolver.query(f"itemStyle.{status}.label.formatter")
    if callable(formatter):
        return str(formatter(name, value))
    if isinstance(formatter, str) and formatter:
        text = formatter.replace("{a}", "{a0}").replace("{b}", "{b0}")
        return text.replace("{a0}", str(name)).replace("{b0}", _format_value(value))
    return name


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def font_from_text_style(text_style: Mapping[str, Any] | None) -> str:
    style = dict(TEXT_STYLE_DEFAULTS)
    if text_style:
        style.update({k: v for k, v in text_style.items() if v is not None})
    return "{} {} {}px {}".format(
        style["fontStyle"], style["fontWeight"], style["fontSize"], style["fontFamily"]
    )


# ----------------------------------------------------------------------------
# Layer builder


@dataclass
class RegionLayer:
    shapes: list[TextureSpaceShape] = field(default_factory=list)
    labels: list[LabelShape] = field(default_factory=list)

    def find(self, name: str) -> TextureSpaceShape | None:
        for shape in self.shapes:
            if shape.name == name:
                return shape
        return None


class RegionLayerBuilder:
    """Turn regions plus aggregated data into styled texture-space primitives."""

    def __init__(
        self,
        projector: GeoProjector,
        *,
        name_map: Mapping[str, str] | None = None,
        legend: ColorLegend | None = None,
        defaults: Mapping[str, Any] = MAP3D_DEFAULTS,
    ) -> None:
        self.projector = projector
        self.name_map = name_map or {}
        self.legend = legend
        self.defaults = defaults

    def _candidates(
        self,
        point: DataPoint | None,
        series_group: Sequence[tuple[int, Mapping[str, Any]]],
    ) -> tuple[list[Any], list[str]]:
        if point is None:
            return [series for _, series in series_group], []
        by_index = dict(series_group)
        candidates: list[Any] = [point]
        names: list[str] = []
        for idx in point.series_indices:
            series = by_index.get(idx)
            if series is None:
                continue
            candidates.append(series)
            names.append(str(series.get("name", "")))
        return candidates, names

    def _shape_style(self, resolver: ConfigResolver, status: str) -> ShapeStyle:
        prefix = f"itemStyle.{status}"
        return ShapeStyle(
            color=resolver.query(f"{prefix}.areaStyle.color"),
            stroke_color=resolver.query(f"{prefix}.borderColor"),
            line_width=resolver.query(f"{prefix}.borderWidth"),
            opacity=resolver.query(f"{prefix}.opacity"),
        )

    def _label_style(
        self, name: str, value: Any, resolver: ConfigResolver, status: str
    ) -> LabelStyle:
        prefix = f"itemStyle.{status}.label"
        return LabelStyle(
            text=format_label_text(name, value, resolver, status),
            color=resolver.query(f"{prefix}.textStyle.color"),
            opacity=1.0 if resolver.query(f"{prefix}.show") else 0.0,
            font=font_from_text_style(resolver.query(f"{prefix}.textStyle")),
        )

    def build_region(
        self,
        region: Region,
        data: Mapping[str, DataPoint],
        series_group: Sequence[tuple[int, Mapping[str, Any]]],
    ) -> tuple[TextureSpaceShape, LabelShape]:
        name = self.name_map.get(region.name, region.name)
        point = data.get(name)
        candidates, series_names = self._candidates(point, series_group)
        resolver = ConfigResolver(candidates, defaults=(self.defaults,))
        value: Any = point.value if point is not None else NO_DATA

        style = self._shape_style(resolver, "normal")
        number = coerce_number(value)
        if self.legend is not None and number is not None:
            style.color = self.legend.get_color(number)

        shape = TextureSpaceShape(
            name=name,
            rings=[self.projector.project_ring(ring) for ring in region.rings],
            style=style,
            highlight_style=self._shape_style(resolver, "emphasis"),
            cp=region.cp,
            value=value,
            data=point,
            series_name=" ".join(series_names),
            tooltip=resolver.query("tooltip"),
        )

        position = self.projector.label_anchor(
            name,
            region.cp,
            shape.get_rect(),
            anchor=region.label_anchor,
            offset=region.label_offset,
        )
        label = LabelShape(
            name=name,
            position=position,
            scale=self.projector.label_scale(position[1]),
            style=self._label_style(name, value, resolver, "normal"),
            highlight_style=self._label_style(name, value, resolver, "emphasis"),
        )
        return shape, label

    def build(
        self,
        map_type: str,
        data: Mapping[str, DataPoint],
        regions: Iterable[Region],
        series_group: Sequence[tuple[int, Mapping[str, Any]]],
    ) -> RegionLayer:
        """Build shapes and labels in region order for ``map_type``."""
        layer = RegionLayer()
        for region in regions:
            if not region.rings:
                LOGGER.debug("Region %r of map %r has no rings", region.name, map_type)
                continue
            try:
                shape, label = self.build_region(region, data, series_group)
            except Exception as exc:
                LOGGER.warning(
                    "Skipping region %r of map %r: %s",
                    region.name,
                    map_type,
                    exc,
                    exc_info=True,
                )
                continue
            layer.shapes.append(shape)
            layer.labels.append(label)
        return layer
