# SPDX-License-Identifier: Apache-2.0
"""Vector-field particle layer parameters.

Vector samples travel to the particle engine as an RGBA raster where red and
green carry ``u`` and ``v`` remapped from ``[-1, 1]`` to ``[0, 255]`` with
``channel = value * 128 + 128``; blue is 0 and alpha is 255.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
from matplotlib.colors import to_rgba
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .resolver import get_by_path

LOGGER = logging.getLogger(__name__)

DEFAULT_PARTICLE_NUMBER = 256 * 256
DEFAULT_SURFACE_SIZE = (2048, 1024)
REFERENCE_SURFACE_WIDTH = 1024

_CSS_RGBA = re.compile(
    r"rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)


class VectorFieldError(ValueError):
    """Raised when vector-field samples or particle options are unusable."""


class ParticleOptions(BaseModel):
    """``particle`` block of a particle surface layer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    number: int = Field(DEFAULT_PARTICLE_NUMBER, ge=1)
    size_scaling: float = Field(1.0, alias="sizeScaling", gt=0)
    speed_scaling: float = Field(1.0, alias="speedScaling")
    color: Any = "white"
    motion_blur_factor: float = Field(0.99, alias="motionBlurFactor", ge=0, le=1)

    @field_validator("size_scaling", mode="before")
    @classmethod
    def _falsy_size_is_default(cls, value: Any) -> Any:
        return value or 1.0


@dataclass(frozen=True)
class VectorFieldSpec:
    """Everything the particle engine needs to run one advection layer."""

    particle_count: int
    particle_grid: tuple[int, int]
    size_scaling: float
    speed_scaling: float
    color: tuple[float, float, float, float]
    motion_blur_factor: float
    surface_size: tuple[int, int]
    field_size: tuple[int, int]
    raster: np.ndarray = field(repr=False, compare=False)
    # Rows of the field run from -90 to 90 degrees latitude.
    flip_y: bool = True


# ----------------------------------------------------------------------------
# Encoding


def encode_uv(u: Any, v: Any) -> np.ndarray:
    """Encode ``u``/``v`` arrays into an RGBA ``uint8`` raster."""
    u_arr = np.asarray(u, dtype=float)
    v_arr = np.asarray(v, dtype=float)
    if u_arr.shape != v_arr.shape:
        raise VectorFieldError(
            f"u and v must share a shape, got {u_arr.shape} and {v_arr.shape}"
        )
    # Missing samples (land, gaps) encode as calm air.
    u_arr = np.nan_to_num(u_arr, nan=0.0)
    v_arr = np.nan_to_num(v_arr, nan=0.0)
    rgba = np.empty(u_arr.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = np.clip(np.rint(u_arr * 128.0 + 128.0), 0, 255)
    rgba[..., 1] = np.clip(np.rint(v_arr * 128.0 + 128.0), 0, 255)
    rgba[..., 2] = 0
    rgba[..., 3] = 255
    return rgba


def decode_uv(raster: Any) -> tuple[np.ndarray, np.ndarray]:
    """Recover ``u``/``v`` arrays from an encoded raster."""
    arr = raster_to_rgba(raster).astype(float)
    return (arr[..., 0] - 128.0) / 128.0, (arr[..., 1] - 128.0) / 128.0


def _cell_uv(cell: Any, row: int, col: int) -> tuple[float, float]:
    if isinstance(cell, np.ndarray):
        cell = cell.tolist()
    if isinstance(cell, Mapping):
        try:
            return float(cell["x"]), float(cell["y"])
        except (KeyError, TypeError, ValueError) as exc:
            raise VectorFieldError(
                f"Cell ({row}, {col}) must provide numeric 'x' and 'y'"
            ) from exc
    if isinstance(cell, (str, bytes)) or not isinstance(cell, Sequence):
        raise VectorFieldError(f"Cell ({row}, {col}) is not a 2-component vector")
    if len(cell) != 2:
        raise VectorFieldError(
            f"Cell ({row}, {col}) has {len(cell)} components, expected 2"
        )
    try:
        return float(cell[0]), float(cell[1])
    except (TypeError, ValueError) as exc:
        raise VectorFieldError(f"Cell ({row}, {col}) has non-numeric components") from exc


def grid_to_uv(grid: Sequence[Sequence[Any]]) -> tuple[np.ndarray, np.ndarray]:
    """Validate a row-major grid of ``(u, v)`` cells and split it into arrays."""
    if not isinstance(grid, Sequence) or isinstance(grid, (str, bytes)) or not grid:
        raise VectorFieldError("Vector field grid must be a non-empty list of rows")
    first = grid[0]
    if isinstance(first, (str, bytes)) or not isinstance(first, Sequence) or not first:
        raise VectorFieldError("Vector field rows must be non-empty lists of cells")
    width = len(first)
    u = np.empty((len(grid), width), dtype=float)
    v = np.empty((len(grid), width), dtype=float)
    for j, row in enumerate(grid):
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise VectorFieldError(f"Row {j} is not a list of cells")
        if len(row) != width:
            raise VectorFieldError(
                f"Vector field grid is not rectangular: row {j} has {len(row)} "
                f"cells, expected {width}"
            )
        for i, cell in enumerate(row):
            u[j, i], v[j, i] = _cell_uv(cell, j, i)
    return u, v


def raster_to_rgba(raster: Any) -> np.ndarray:
    """Return an ``H x W x 4`` ``uint8`` view of a decoded raster."""
    if isinstance(raster, Image.Image):
        return np.asarray(raster.convert("RGBA"), dtype=np.uint8)
    arr = np.asarray(raster)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise VectorFieldError(
            f"Raster must be H x W x 3 or H x W x 4, got shape {arr.shape}"
        )
    arr = arr.astype(np.uint8, copy=False)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def vector_field_raster(data: Any) -> np.ndarray:
    """Normalize any supported vector-field input to an encoded RGBA raster.

    Accepts a nested list grid, an ``H x W x 2`` float array of ``(u, v)``
    samples, or an already encoded raster (PIL image or ``H x W x 3|4`` array).
    """
    if isinstance(data, Image.Image):
        raster = raster_to_rgba(data)
    elif isinstance(data, np.ndarray):
        if data.ndim == 3 and data.shape[2] == 2:
            raster = encode_uv(data[..., 0], data[..., 1])
        else:
            raster = raster_to_rgba(data)
    elif isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        raster = encode_uv(*grid_to_uv(data))
    else:
        raise VectorFieldError(
            f"Unsupported vector field data of type {type(data).__name__}"
        )
    if raster.shape[0] == 0 or raster.shape[1] == 0:
        raise VectorFieldError("Vector field is empty")
    return raster


# ----------------------------------------------------------------------------
# Configuration


def resolve_surface_size(size: Any) -> tuple[int, int]:
    if size is None or size == "":
        return DEFAULT_SURFACE_SIZE
    if isinstance(size, (int, float)) and not isinstance(size, bool):
        if size <= 0:
            raise VectorFieldError(f"Surface size must be positive, got {size}")
        return int(size), int(size)
    if isinstance(size, Sequence) and not isinstance(size, str) and len(size) == 2:
        width, height = int(size[0]), int(size[1])
        if width <= 0 or height <= 0:
            raise VectorFieldError(f"Surface size must be positive, got {size}")
        return width, height
    raise VectorFieldError(f"Invalid surface size: {size!r}")


def parse_color(color: Any) -> tuple[float, float, float, float]:
    """Parse matplotlib color specs and CSS ``rgb()``/``rgba()`` strings."""
    if isinstance(color, str):
        match = _CSS_RGBA.match(color.strip())
        if match:
            r, g, b = (float(match.group(i)) / 255.0 for i in (1, 2, 3))
            alpha = match.group(4)
            return r, g, b, float(alpha) if alpha is not None else 1.0
    try:
        return tuple(float(c) for c in to_rgba(color))  # type: ignore[return-value]
    except (TypeError, ValueError) as exc:
        raise VectorFieldError(f"Invalid particle color: {color!r}") from exc


def particle_grid_side(count: int) -> int:
    return max(1, int(round(math.sqrt(count))))


def configure_vector_field(
    layer: Mapping[str, Any], data: Any | None = None
) -> VectorFieldSpec:
    """Derive a :class:`VectorFieldSpec` from a particle surface layer config.

    ``data`` overrides ``particle.vectorField`` (used once a raster key has
    been loaded).
    """
    if data is None:
        data = get_by_path(layer, "particle.vectorField")
    if data is None:
        raise VectorFieldError("Particle layer has no particle.vectorField")
    raster = vector_field_raster(data)

    raw = get_by_path(layer, "particle") or {}
    if not isinstance(raw, Mapping):
        raise VectorFieldError("particle options must be a mapping")
    try:
        options = ParticleOptions.model_validate(
            {k: v for k, v in raw.items() if v is not None and k != "vectorField"}
        )
    except ValidationError as exc:
        raise VectorFieldError(f"Invalid particle options: {exc}") from exc

    surface_size = resolve_surface_size(get_by_path(layer, "size"))
    side = particle_grid_side(options.number)
    spec = VectorFieldSpec(
        particle_count=options.number,
        particle_grid=(side, side),
        size_scaling=options.size_scaling * surface_size[0] / REFERENCE_SURFACE_WIDTH,
        speed_scaling=options.speed_scaling,
        color=parse_color(options.color),
        motion_blur_factor=options.motion_blur_factor,
        surface_size=surface_size,
        field_size=(int(raster.shape[1]), int(raster.shape[0])),
        raster=raster,
    )
    LOGGER.debug(
        "Vector field %dx%d, %d particles on %dx%d surface",
        spec.field_size[0],
        spec.field_size[1],
        spec.particle_count,
        *surface_size,
    )
    return spec
