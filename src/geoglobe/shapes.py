# SPDX-License-Identifier: Apache-2.0
"""Drawable primitives handed to the surface renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .projection import bounding_box


@dataclass
class ShapeStyle:
    color: Any = None
    stroke_color: Any = None
    line_width: Any = None
    opacity: Any = None


@dataclass
class TextureSpaceShape:
    """All projected rings of one region drawn as a single bundle."""

    name: str
    rings: list[np.ndarray] = field(default_factory=list, repr=False)
    style: ShapeStyle = field(default_factory=ShapeStyle)
    highlight_style: ShapeStyle = field(default_factory=ShapeStyle)
    zlevel: int = 0
    cp: tuple[float, float] | None = None
    value: Any = None
    data: Any = None
    series_name: str = ""
    tooltip: Any = None

    def get_rect(self) -> tuple[float, float, float, float] | None:
        return bounding_box(self.rings)

    @property
    def points(self) -> list[list[list[float]]]:
        return [ring.tolist() for ring in self.rings]


@dataclass
class LabelStyle:
    text: str = ""
    color: Any = None
    opacity: float = 0.0
    font: str = ""


@dataclass
class LabelShape:
    name: str
    position: tuple[float, float]
    scale: tuple[float, float]
    style: LabelStyle = field(default_factory=LabelStyle)
    highlight_style: LabelStyle = field(default_factory=LabelStyle)
    zlevel: int = 1
    text_align: str = "center"
