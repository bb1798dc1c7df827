import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from l1muon_reco.surfaces import Cylinder, Plane, build_cylinder, build_plane


def test_plane_contains_its_reference_point():
    for z in (790.0, -790.0, 0.0, 12.5):
        plane = build_plane(z)
        assert isinstance(plane, Plane)
        assert plane.signed_distance((0.0, 0.0, z)) == 0.0
        assert plane.signed_distance((123.0, -45.0, z)) == 0.0
        assert np.array_equal(plane.position, [0.0, 0.0, z])


def test_plane_normal_is_longitudinal():
    plane = build_plane(790.0)
    assert np.allclose(plane.normal, [0.0, 0.0, 1.0])
    assert plane.signed_distance((0.0, 0.0, 800.0)) == pytest.approx(10.0)
    assert plane.signed_distance((0.0, 0.0, 780.0)) == pytest.approx(-10.0)


def test_cylinder_contains_points_at_its_radius_for_all_z():
    cyl = build_cylinder(500.0)
    assert isinstance(cyl, Cylinder)
    assert cyl.radius == 500.0
    assert np.allclose(cyl.axis, [0.0, 0.0, 1.0])
    for z in (-1000.0, -790.0, 0.0, 3.0, 790.0):
        for x, y in ((500.0, 0.0), (0.0, -500.0), (300.0, 400.0), (-400.0, -300.0)):
            assert cyl.signed_distance((x, y, z)) == 0.0
            assert cyl.contains((x, y, z))
        phi = 0.7
        assert cyl.signed_distance((500.0 * np.cos(phi), 500.0 * np.sin(phi), z)) == pytest.approx(0.0, abs=1e-9)
    assert cyl.signed_distance((0.0, 0.0, 0.0)) == -500.0


def test_negative_radius_is_rejected():
    with pytest.raises(ValueError):
        build_cylinder(-1.0)
    with pytest.raises(ValueError):
        build_cylinder(float("nan"))
    with pytest.raises(ValueError):
        build_cylinder(float("inf"))


def test_non_finite_plane_offset_is_rejected():
    for z in (float("inf"), float("-inf"), float("nan")):
        with pytest.raises(ValueError, match="finite"):
            build_plane(z)


def test_zero_radius_is_allowed():
    assert build_cylinder(0.0).signed_distance((0.0, 0.0, 5.0)) == 0.0


def test_local_global_round_trip_with_rotation():
    rot = Rotation.from_euler("y", 90, degrees=True)
    plane = Plane((10.0, 0.0, 0.0), rot)
    assert np.allclose(plane.normal, [1.0, 0.0, 0.0])
    p = np.array([3.0, -2.0, 7.0])
    assert np.allclose(plane.to_global(plane.to_local(p)), p)
    assert plane.signed_distance((10.0, 4.0, -8.0)) == pytest.approx(0.0, abs=1e-12)
