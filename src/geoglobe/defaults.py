# SPDX-License-Identifier: Apache-2.0
"""Default 3D map options and texture quality tiers."""

from __future__ import annotations

from typing import Any

CHART_TYPE_MAP3D = "map3d"
DEFAULT_MAP_TYPE = "world"

EARTH_RADIUS = 100.0
BASE_TEXTURE_SIZE = 2048
IMAGE_CACHE_SIZE = 6

QUALITY_TIERS: dict[str, int] = {
    "low": 1024,
    "medium": 2048,
    "high": 4096,
}

# Consulted after every series, so any series value overrides these.
MAP3D_DEFAULTS: dict[str, Any] = {
    "mapType": DEFAULT_MAP_TYPE,
    "clickable": True,
    "hoverable": True,
    "autoRotate": True,
    "autoRotateAfterStill": 3,
    "mapLocation": {"x": 0, "y": 0, "width": "100%", "height": "100%"},
    "baseLayer": {
        "backgroundColor": "black",
        "backgroundImage": "",
        "quality": "medium",
        "heightImage": "",
    },
    "light": {
        "enable": False,
        "sunIntensity": 1,
        "ambientIntensity": 0.1,
        "time": "",
    },
    "surfaceLayers": [],
    "itemStyle": {
        "normal": {
            "label": {
                "show": False,
                "textStyle": {"color": "black"},
            },
            "borderColor": "black",
            "borderWidth": 1,
            "areaStyle": {"color": "#396696"},
            "opacity": 1,
        },
        "emphasis": {
            "label": {
                "show": False,
                "textStyle": {"color": "black"},
            },
            "borderColor": "rgba(0,0,0,0)",
            "borderWidth": 1,
            "areaStyle": {"color": "rgba(255,215,0,0.5)"},
            "opacity": 1,
        },
    },
}

TEXT_STYLE_DEFAULTS: dict[str, Any] = {
    "fontStyle": "normal",
    "fontWeight": "normal",
    "fontSize": 12,
    "fontFamily": "Arial, Verdana, sans-serif",
}


def texture_size_for_quality(quality: Any) -> int:
    """Map ``baseLayer.quality`` to a square texture size in pixels.

    Numeric values are used as-is; unknown labels fall back to ``medium``.
    """
    if isinstance(quality, bool):
        return QUALITY_TIERS["medium"]
    if isinstance(quality, (int, float)) and quality > 0:
        return int(quality)
    if isinstance(quality, str):
        text = quality.strip().lower()
        try:
            value = float(text)
        except ValueError:
            return QUALITY_TIERS.get(text, QUALITY_TIERS["medium"])
        if value > 0:
            return int(value)
    return QUALITY_TIERS["medium"]


def is_value_none(value: Any) -> bool:
    """Treat ``None``, ``""`` and ``"none"`` as an unset option."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == "" or value.strip().lower() == "none"
    return False
