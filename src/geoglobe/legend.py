# SPDX-License-Identifier: Apache-2.0
"""Value-to-color range legend backed by a Matplotlib colormap."""

from __future__ import annotations

from typing import Sequence

import matplotlib
from matplotlib.colors import LinearSegmentedColormap, Normalize, to_hex

from .interfaces import ColorLegend, LegendSelection


class RangeLegend(ColorLegend):
    """Continuous legend mapping ``[vmin, vmax]`` onto a colormap.

    ``colors`` builds a linear colormap from explicit stops; otherwise the
    named Matplotlib colormap ``cmap`` is used. Values outside the range are
    clamped.
    """

    def __init__(
        self,
        vmin: float,
        vmax: float,
        *,
        cmap: str = "viridis",
        colors: Sequence[str] | None = None,
    ) -> None:
        if vmax < vmin:
            vmin, vmax = vmax, vmin
        self.norm = Normalize(vmin=vmin, vmax=vmax, clip=True)
        if colors:
            self.cmap = LinearSegmentedColormap.from_list("range-legend", list(colors))
        else:
            self.cmap = matplotlib.colormaps[cmap]

    def get_color(self, value: float) -> str:
        return to_hex(self.cmap(self.norm(value)), keep_alpha=False)


class StaticSelection(LegendSelection):
    """Legend selection from a fixed ``{series name: selected}`` mapping."""

    def __init__(self, selected: dict[str, bool] | None = None) -> None:
        self.selected = dict(selected or {})

    def is_selected(self, series_name: str) -> bool:
        return bool(self.selected.get(series_name, True))
