# SPDX-License-Identifier: Apache-2.0
import asyncio
import math

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from geoglobe.focus import EASING, IDENTITY, CameraState, FocusController, texture_to_sphere

SURFACE = (2048, 2048)


def test_texture_to_sphere_landmarks():
    np.testing.assert_allclose(texture_to_sphere(0.0, 0.0, 100), [0, 100, 0], atol=1e-9)
    np.testing.assert_allclose(texture_to_sphere(0.0, 0.5, 100), [-100, 0, 0], atol=1e-9)
    np.testing.assert_allclose(texture_to_sphere(0.25, 0.5, 100), [0, 0, 100], atol=1e-9)


def test_quadrant_produces_finite_rotation_and_zoom():
    controller = FocusController(None, radius=100, camera=CameraState(z=250))
    rect = (256, 512, 512, 512)
    target = controller.compute(rect, SURFACE)

    assert not target.is_identity
    assert all(math.isfinite(c) for c in target.rotation)
    assert target.rotation != IDENTITY
    assert np.linalg.norm(target.rotation) == pytest.approx(1.0)
    assert target.distance > 0
    assert target.zoom == pytest.approx((250 - target.distance) / 100)


def test_rotation_brings_box_normal_to_camera_axis():
    controller = FocusController(None, radius=100)
    rect = (256, 512, 512, 512)
    corners = controller.corners(rect, SURFACE)
    normal = sum(corners) / np.linalg.norm(sum(corners))

    target = controller.compute(rect, SURFACE)
    rotated = Rotation.from_quat(target.rotation).apply(normal)

    np.testing.assert_allclose(rotated, [0, 0, 1], atol=1e-9)


def test_fit_distance_uses_widest_span():
    camera = CameraState(fov=50, aspect=2.0, z=250)
    controller = FocusController(None, radius=100, camera=camera)
    rect = (900, 900, 200, 200)
    lt, rt, lb, rb = controller.corners(rect, SURFACE)
    span_w = max(np.linalg.norm(lt - rt), np.linalg.norm(lb - rb))
    span_h = max(np.linalg.norm(lt - lb), np.linalg.norm(rt - rb))
    tan_half = math.tan(math.radians(50) / 2)

    target = controller.compute(rect, SURFACE)

    assert target.distance == pytest.approx(
        max(span_w / 2 / tan_half / 2.0, span_h / 2 / tan_half)
    )


@pytest.mark.parametrize("rect", [(10, 10, 0, 5), (10, 10, 5, 0), None])
def test_degenerate_box_keeps_camera(rect, orbit):
    controller = FocusController(orbit, radius=100)
    target = asyncio.run(controller.focus(rect, SURFACE))

    assert target.is_identity
    assert target.rotation == IDENTITY
    assert orbit.calls == []


def test_normal_parallel_to_up_uses_fallback_axis():
    controller = FocusController(None, radius=100)
    # Band around the north pole: the corner sum points straight up.
    target = controller.compute((0, 0, 1024, 10), SURFACE)

    assert not target.is_identity
    assert all(math.isfinite(c) for c in target.rotation)
    assert math.isfinite(target.zoom)


def test_focus_rotates_before_zooming(orbit):
    controller = FocusController(orbit, radius=100)
    target = asyncio.run(controller.focus((256, 512, 512, 512), SURFACE))

    assert [call[0] for call in orbit.calls] == ["rotate", "zoom"]
    assert orbit.calls[0][1] == pytest.approx(target.rotation)
    assert orbit.calls[1][1] == pytest.approx(target.zoom)
    assert orbit.calls[0][2] == EASING
