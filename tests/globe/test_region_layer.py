# SPDX-License-Identifier: Apache-2.0
import logging

import pytest

from geoglobe.aggregate import aggregate_series, group_series_by_map_type
from geoglobe.legend import RangeLegend
from geoglobe.projection import GeoProjector
from geoglobe.regions import (
    RegionGeometryError,
    RegionLayerBuilder,
    font_from_text_style,
    region_from_feature,
    regions_from_geojson,
)


def _square(name, lon, lat, size=10.0, **props):
    ring = [[lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat]]
    return {
        "type": "Feature",
        "properties": {"name": name, **props},
        "geometry": {"type": "Polygon", "coordinates": [ring]},
    }


WORLD = {
    "type": "FeatureCollection",
    "features": [
        _square("Brazil", -60, -20),
        _square("France", 0, 42, 8),
        _square("Chile", -75, -40, 5),
    ],
}


def _build(series, *, legend=None, name_map=None, regions=None):
    groups = group_series_by_map_type(series)
    data = aggregate_series(series, name_map={"world": name_map or {}})
    builder = RegionLayerBuilder(GeoProjector(2048), name_map=name_map, legend=legend)
    return builder.build(
        "world",
        data.get("world", {}),
        regions if regions is not None else regions_from_geojson(WORLD),
        groups.get("world", []),
    )


def test_features_are_parsed_in_order_and_bad_ones_skipped(caplog):
    payload = {
        "type": "FeatureCollection",
        "features": [
            _square("A", 0, 0),
            {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": []}},
            {"type": "Feature", "properties": {"name": "P"}, "geometry": {"type": "Point", "coordinates": [0, 0]}},
            _square("B", 10, 10),
        ],
    }
    with caplog.at_level(logging.WARNING):
        regions = regions_from_geojson(payload)

    assert [r.name for r in regions] == ["A", "B"]
    assert "Skipping map feature" in caplog.text


def test_multipolygon_and_collection_rings_are_all_kept():
    outer = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
    hole = [[2, 2], [4, 2], [4, 4], [2, 4], [2, 2]]
    feature = {
        "type": "Feature",
        "properties": {"name": "Islands", "cp": [5, 5]},
        "geometry": {
            "type": "MultiPolygon",
            "coordinates": [[outer, hole], [[[20, 20], [21, 20], [21, 21], [20, 20]]]],
        },
    }
    region = region_from_feature(feature)
    assert len(region.rings) == 3
    assert region.cp == (5.0, 5.0)

    collection = {
        "type": "GeometryCollection",
        "properties": {"name": "Mixed"},
        "geometries": [
            {"type": "Polygon", "coordinates": [outer]},
            {"type": "MultiPolygon", "coordinates": [[hole]]},
        ],
    }
    assert len(region_from_feature(collection).rings) == 2


def test_non_collection_payload_is_rejected():
    with pytest.raises(RegionGeometryError):
        regions_from_geojson({"type": "Topology"})


def test_shapes_carry_aggregated_values_and_default_styles():
    series = [
        {"type": "map3d", "name": "A", "data": [{"name": "Brazil", "value": 10}]},
        {"type": "map3d", "name": "B", "data": [{"name": "Brazil", "value": 5}]},
    ]
    layer = _build(series)

    assert [s.name for s in layer.shapes] == ["Brazil", "France", "Chile"]
    assert [lbl.name for lbl in layer.labels] == ["Brazil", "France", "Chile"]

    brazil = layer.find("Brazil")
    assert brazil.value == 15
    assert brazil.data.series_indices == [0, 1]
    assert brazil.series_name == "A B"
    assert brazil.style.color == "#396696"
    assert brazil.highlight_style.color == "rgba(255,215,0,0.5)"
    assert brazil.zlevel == 0

    france = layer.find("France")
    assert france.value == "-"
    assert france.data is None
    assert france.series_name == ""

    label = layer.labels[0]
    assert label.zlevel == 1
    assert label.style.opacity == 0.0
    assert label.style.text == "Brazil"
    assert label.style.font == "normal normal 12px Arial, Verdana, sans-serif"


def test_data_point_style_overrides_series_style():
    series = [
        {
            "type": "map3d",
            "name": "A",
            "itemStyle": {"normal": {"areaStyle": {"color": "blue"}}},
            "data": [
                {
                    "name": "Brazil",
                    "value": 1,
                    "itemStyle": {"normal": {"areaStyle": {"color": "green"}}},
                }
            ],
        }
    ]
    layer = _build(series)

    assert layer.find("Brazil").style.color == "green"
    # Regions without data resolve against the series group.
    assert layer.find("France").style.color == "blue"


def test_legend_overrides_fill_for_numeric_values_only():
    legend = RangeLegend(0, 20, colors=["#000000", "#ffffff"])
    series = [{"type": "map3d", "name": "A", "data": [{"name": "Chile", "value": 20}]}]
    layer = _build(series, legend=legend)

    assert layer.find("Chile").style.color == "#ffffff"
    assert layer.find("France").style.color == "#396696"


def test_label_formatter_template_and_callable():
    base = {
        "type": "map3d",
        "name": "A",
        "data": [{"name": "Brazil", "value": 15}],
    }
    template = dict(base, itemStyle={"normal": {"label": {"show": True, "formatter": "{a}: {b}"}}})
    layer = _build([template])
    label = layer.labels[0]
    assert label.style.text == "Brazil: 15"
    assert label.style.opacity == 1.0
    assert label.highlight_style.opacity == 0.0

    func = dict(
        base,
        itemStyle={"normal": {"label": {"formatter": lambda name, value: f"{name}={value}"}}},
    )
    assert _build([func]).labels[0].style.text == "Brazil=15.0"


def test_region_names_go_through_name_map():
    series = [{"type": "map3d", "name": "A", "data": [{"name": "Brasil", "value": 2}]}]
    regions = regions_from_geojson({"type": "FeatureCollection", "features": [_square("Brasil", -60, -20)]})
    layer = _build(series, name_map={"Brasil": "Brazil"}, regions=regions)

    shape = layer.find("Brazil")
    assert shape is not None
    assert shape.value == 2


def test_label_uses_control_point_and_scale():
    regions = regions_from_geojson(
        {"type": "FeatureCollection", "features": [_square("Iceland", -24, 63, 5, cp=[-19, 65])]}
    )
    layer = _build([{"type": "map3d", "name": "A", "data": []}], regions=regions)
    proj = GeoProjector(2048)

    label = layer.labels[0]
    assert label.position == pytest.approx(proj.project(-19, 65))
    assert label.scale == pytest.approx(proj.label_scale(label.position[1]))


def test_shape_rect_covers_projected_ring():
    layer = _build([{"type": "map3d", "name": "A", "data": []}])
    proj = GeoProjector(2048)
    x, y, w, h = layer.find("Brazil").get_rect()

    assert (x, y) == pytest.approx(proj.project(-60, -10))
    assert w == pytest.approx(10 * proj.scale_x)
    assert h == pytest.approx(10 * proj.scale_y)


def test_font_from_text_style_overrides():
    font = font_from_text_style({"fontSize": 20, "fontWeight": "bold", "fontFamily": None})
    assert font == "normal bold 20px Arial, Verdana, sans-serif"


def test_collection_keeps_polygons_and_ignores_points():
    ring = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
    feature = {
        "type": "Feature",
        "properties": {"name": "Atoll"},
        "geometry": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "coordinates": [ring]},
                {"type": "Point", "coordinates": [5, 5]},
                {"type": "LineString", "coordinates": [[0, 0], [1, 1]]},
            ],
        },
    }
    (region,) = regions_from_geojson({"type": "FeatureCollection", "features": [feature]})

    assert region.name == "Atoll"
    assert len(region.rings) == 1


def test_regions_without_rings_are_not_drawn():
    feature = {
        "type": "Feature",
        "properties": {"name": "Reef"},
        "geometry": {
            "type": "GeometryCollection",
            "geometries": [{"type": "Point", "coordinates": [5, 5]}],
        },
    }
    regions = regions_from_geojson(
        {"type": "FeatureCollection", "features": [feature, _square("Brazil", -60, -20)]}
    )
    layer = _build([{"type": "map3d", "name": "A", "data": []}], regions=regions)

    assert [s.name for s in layer.shapes] == ["Brazil"]
    assert [lbl.name for lbl in layer.labels] == ["Brazil"]


def test_failing_formatter_skips_only_that_region(caplog):
    def formatter(name, value):
        if name == "France":
            raise KeyError("label lookup")
        return name.upper()

    series = [
        {
            "type": "map3d",
            "name": "A",
            "data": [],
            "itemStyle": {"normal": {"label": {"formatter": formatter}}},
        }
    ]
    with caplog.at_level(logging.WARNING):
        layer = _build(series)

    assert [s.name for s in layer.shapes] == ["Brazil", "Chile"]
    assert [lbl.style.text for lbl in layer.labels] == ["BRAZIL", "CHILE"]
    assert "Skipping region 'France'" in caplog.text
