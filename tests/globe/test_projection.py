# SPDX-License-Identifier: Apache-2.0
import numpy as np
import pytest

from geoglobe.projection import GeoProjector, GeoTable, bounding_box


def test_project_center_and_corners():
    proj = GeoProjector(2048)
    assert proj.project(0, 0) == pytest.approx((1024, 1024))
    assert proj.project(-180, 0) == pytest.approx((0, 1024))
    assert proj.project(180, -90) == pytest.approx((2048, 2048))


@pytest.mark.parametrize("lon", [-179.0, -90.0, 0.0, 45.5, 179.9])
@pytest.mark.parametrize("lat", [-89.0, -30.0, 0.0, 45.0, 63.0])
def test_unproject_round_trip_within_a_pixel(lon, lat):
    proj = GeoProjector(2048, 2048)
    x, y = proj.project(lon, lat)
    lon2, lat2 = proj.unproject(x, y)

    assert abs(lon2 - lon) * proj.scale_x < 1
    assert abs(lat2 - lat) * proj.scale_y < 1


def test_antimeridian_fix_up():
    proj = GeoProjector(2048)
    assert proj.project(-170, 65) == pytest.approx(proj.project(190, 65))
    # South of the threshold latitude nothing moves.
    assert proj.project(-170, 60)[0] == pytest.approx((-170 + 180) * proj.scale_x)


def test_project_ring_matches_point_projection():
    proj = GeoProjector(1024, 512)
    ring = [[-170, 65], [10, 20], {"x": 100, "y": -45}]
    projected = proj.project_ring(ring)

    assert projected.shape == (3, 2)
    expected = np.array([proj.project(-170, 65), proj.project(10, 20), proj.project(100, -45)])
    np.testing.assert_allclose(projected, expected)
    assert proj.project_ring([]).shape == (0, 2)


def test_label_scale_grows_toward_poles():
    proj = GeoProjector(2048)
    assert proj.label_scale(1024) == pytest.approx((0.5, 1.0))
    sx_mid, _ = proj.label_scale(512)
    assert sx_mid == pytest.approx(0.5 / np.cos(np.pi / 4))
    # At the pole the stretch is clamped instead of diverging.
    assert proj.label_scale(0) == pytest.approx((4.0, 1.0))

    big = GeoProjector(4096)
    assert big.label_scale(2048) == pytest.approx((1.0, 2.0))


def test_label_anchor_precedence():
    geo = GeoTable({"Paris": [2.35, 48.85]})
    fixed = GeoTable()
    fixed.update({"Chile": [1, -1]})
    proj = GeoProjector(2048, geo_coords=geo, text_fixed=fixed)

    assert proj.label_anchor("Paris", cp=[0, 0]) == pytest.approx(proj.project(2.35, 48.85))
    assert proj.label_anchor("Chile", cp=[10, 20]) == pytest.approx(
        ((10 + 1 + 180) * proj.scale_x, (90 - (20 - 1)) * proj.scale_y)
    )
    assert proj.label_anchor("Chile", bbox=(100, 200, 50, 20)) == pytest.approx(
        (126, 209)
    )
    assert proj.label_anchor("Nowhere") == (1024, 1024)
    assert proj.label_anchor("Nowhere", anchor=[0, 0]) == pytest.approx((1024, 1024))


def test_geo_table_overrides_do_not_touch_base():
    base = {"A": [1, 1], "B": [2, 2]}
    table = GeoTable(base)
    table.update({"A": [9, 9], "C": [3, 3]})

    assert table["A"] == [9, 9]
    assert len(table) == 3
    assert set(table) == {"A", "B", "C"}

    table.clear_overrides()
    assert table["A"] == [1, 1]
    assert base == {"A": [1, 1], "B": [2, 2]}


def test_bounding_box():
    rings = [np.array([[0.0, 0.0], [10.0, 5.0]]), np.array([[-2.0, 1.0]])]
    assert bounding_box(rings) == (-2.0, 0.0, 12.0, 5.0)
    assert bounding_box([np.empty((0, 2))]) is None
