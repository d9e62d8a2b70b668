# SPDX-License-Identifier: Apache-2.0
"""In-memory surface renderer used for headless composition and tests."""

from __future__ import annotations

import logging
from typing import Any

from matplotlib.path import Path as MplPath

from .interfaces import SurfaceRenderer
from .shapes import TextureSpaceShape

LOGGER = logging.getLogger(__name__)


class RecordingSurface(SurfaceRenderer):
    """Keeps drawables in a list and counts repaint requests."""

    def __init__(self, width: int = 2048, height: int = 2048) -> None:
        self.width = int(width)
        self.height = int(height)
        self.elements: list[Any] = []
        self.refresh_count = 0
        self.background_color = ""
        self.background_image = None

    def add_element(self, element: Any) -> None:
        self.elements.append(element)

    def clear_elements(self) -> None:
        self.elements.clear()

    def refresh(self) -> None:
        self.refresh_count += 1
        LOGGER.debug(
            "Surface refresh #%d with %d elements", self.refresh_count, len(self.elements)
        )

    def resize(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    def get_width(self) -> int:
        return self.width

    def get_height(self) -> int:
        return self.height

    @property
    def shapes(self) -> list[TextureSpaceShape]:
        return [el for el in self.elements if isinstance(el, TextureSpaceShape)]

    def hover(self, x: float, y: float) -> TextureSpaceShape | None:
        """Hit-test region polygons, last drawn first."""
        for shape in reversed(self.shapes):
            for ring in shape.rings:
                if len(ring) < 3:
                    continue
                if MplPath(ring).contains_point((x, y)):
                    return shape
        return None
