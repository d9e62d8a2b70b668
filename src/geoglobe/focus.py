# SPDX-License-Identifier: Apache-2.0
"""Rotate and zoom the camera so a texture-space box faces the viewer."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from .interfaces import OrbitControl

LOGGER = logging.getLogger(__name__)

UP = np.array([0.0, 1.0, 0.0])
# Used when the target normal is parallel to UP (a pole).
FALLBACK_UP = np.array([1.0, 0.0, 0.0])
IDENTITY = (0.0, 0.0, 0.0, 1.0)
EASING = "CubicOut"
_EPS = 1e-9


@dataclass
class CameraState:
    """Perspective camera looking at the globe center from ``+z``."""

    fov: float = 50.0
    aspect: float = 1.0
    z: float = 250.0


@dataclass
class FocusTarget:
    rotation: tuple[float, float, float, float] = IDENTITY
    distance: float | None = None
    zoom: float | None = None

    @property
    def is_identity(self) -> bool:
        return self.distance is None


def texture_to_sphere(x: float, y: float, radius: float) -> np.ndarray:
    """Map normalized texture coordinates to a point on the sphere."""
    r0 = radius * math.sin(y * math.pi)
    return np.array(
        [
            -r0 * math.cos(x * 2 * math.pi),
            radius * math.cos(y * math.pi),
            r0 * math.sin(x * 2 * math.pi),
        ]
    )


def _normalize(vec: np.ndarray) -> np.ndarray | None:
    norm = float(np.linalg.norm(vec))
    if not math.isfinite(norm) or norm < _EPS:
        return None
    return vec / norm


class FocusController:
    """Compute focus targets and drive an orbit control through them."""

    def __init__(
        self,
        orbit: OrbitControl | None,
        *,
        radius: float,
        camera: CameraState | None = None,
    ) -> None:
        self.orbit = orbit
        self.radius = float(radius)
        self.camera = camera or CameraState()

    def corners(
        self,
        rect: tuple[float, float, float, float],
        surface_size: tuple[float, float],
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        x, y, width, height = rect
        w, h = surface_size

        def convert(px: float, py: float) -> np.ndarray:
            return texture_to_sphere(px / w, py / h, self.radius)

        return (
            convert(x, y),
            convert(x + width, y),
            convert(x, y + height),
            convert(x + width, y + height),
        )

    def compute(
        self,
        rect: tuple[float, float, float, float] | None,
        surface_size: tuple[float, float],
    ) -> FocusTarget:
        """Return the rotation and zoom that bring ``rect`` into view.

        Boxes without area (or whose corners cancel out) yield the identity
        rotation and no zoom.
        """
        if rect is None:
            return FocusTarget()
        _, _, width, height = rect
        w, h = surface_size
        if width <= 0 or height <= 0 or w <= 0 or h <= 0:
            return FocusTarget()

        lt, rt, lb, rb = self.corners(rect, surface_size)
        normal = _normalize(lt + rt + lb + rb)
        if normal is None:
            return FocusTarget()

        bitangent = _normalize(np.cross(UP, normal))
        if bitangent is None:
            bitangent = _normalize(np.cross(FALLBACK_UP, normal))
        tangent = _normalize(np.cross(normal, bitangent))
        # Columns map camera axes (x, y, z) onto (bitangent, tangent, normal).
        align = Rotation.from_matrix(np.column_stack([bitangent, tangent, normal]))
        rotation = tuple(float(c) for c in align.inv().as_quat())

        span_w = max(np.linalg.norm(lt - rt), np.linalg.norm(lb - rb))
        span_h = max(np.linalg.norm(lt - lb), np.linalg.norm(rt - rb))
        tan_half = math.tan(math.radians(self.camera.fov) / 2.0)
        distance = max(
            span_w / 2.0 / tan_half / self.camera.aspect,
            span_h / 2.0 / tan_half,
        )
        zoom = (self.camera.z - distance) / self.radius
        return FocusTarget(
            rotation=rotation,  # type: ignore[arg-type]
            distance=float(distance),
            zoom=float(zoom),
        )

    async def focus(
        self,
        rect: tuple[float, float, float, float] | None,
        surface_size: tuple[float, float],
    ) -> FocusTarget:
        """Rotate, then zoom once the rotation has finished."""
        target = self.compute(rect, surface_size)
        if target.is_identity:
            LOGGER.debug("Focus target %s is degenerate; camera unchanged", rect)
            return target
        if self.orbit is None:
            return target
        await self.orbit.rotate_to(rotation=target.rotation, easing=EASING)
        await self.orbit.zoom_to(zoom=target.zoom, easing=EASING)
        return target
