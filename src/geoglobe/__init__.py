# SPDX-License-Identifier: Apache-2.0
"""Geographic surface compositor for an interactive 3D globe."""

from geoglobe.aggregate import DataPoint, aggregate_series, group_series_by_map_type
from geoglobe.cache import LRUCache, ResourceLoader
from geoglobe.chart import GlobeChart
from geoglobe.focus import FocusController, FocusTarget
from geoglobe.projection import GeoProjector, GeoTable
from geoglobe.regions import RegionLayerBuilder, regions_from_geojson
from geoglobe.resolver import ConfigResolver, get_by_path
from geoglobe.vector_field import VectorFieldSpec, configure_vector_field

__all__ = [
    "ConfigResolver",
    "DataPoint",
    "FocusController",
    "FocusTarget",
    "GeoProjector",
    "GeoTable",
    "GlobeChart",
    "LRUCache",
    "RegionLayerBuilder",
    "ResourceLoader",
    "VectorFieldSpec",
    "aggregate_series",
    "configure_vector_field",
    "get_by_path",
    "group_series_by_map_type",
    "regions_from_geojson",
]
