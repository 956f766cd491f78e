from __future__ import annotations

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pinholecam.core.rotation import (
    deg2rad,
    euler_rotation_mat,
    focal_length,
    matrix_to_rvec,
    rad2deg,
    rvec_to_matrix,
)


def test_deg_rad_conversions():
    assert deg2rad(180.0) == pytest.approx(math.pi)
    assert rad2deg(deg2rad(37.5)) == pytest.approx(37.5)


def test_focal_length_from_fov():
    assert focal_length(1280, 90.0) == pytest.approx(640.0)
    assert focal_length(1280, 130.0) == pytest.approx(640.0 / math.tan(math.radians(65.0)))


def test_zero_angles_give_identity():
    assert_allclose(euler_rotation_mat(0.0, 0.0, 0.0), np.eye(3), atol=1e-12)


def test_rotation_is_orthonormal():
    R = euler_rotation_mat(20.0, -35.0, 10.0)
    assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(R) == pytest.approx(1.0)


def test_single_axis_matches_elementary_rotation():
    c, s = math.cos(math.radians(30.0)), math.sin(math.radians(30.0))
    Rx = np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    assert_allclose(euler_rotation_mat(30.0, 0.0, 0.0), Rx, atol=1e-12)


def test_euler_triple_is_a_rotation_vector():
    Rotation = pytest.importorskip("scipy.spatial.transform").Rotation
    angles = (20.0, -35.0, 10.0)
    expected = Rotation.from_rotvec(np.radians(angles)).as_matrix()
    assert_allclose(euler_rotation_mat(*angles), expected, atol=1e-9)


def test_known_quirk_differs_from_composed_euler_for_large_angles():
    # (pitch, yaw, roll) is fed to Rodrigues as one axis-angle vector, not
    # composed as Rz Rx Ry. Kept on purpose: callers depend on it.
    Rotation = pytest.importorskip("scipy.spatial.transform").Rotation
    composed = Rotation.from_euler("ZXY", [20.0, 40.0, 30.0], degrees=True).as_matrix()
    R = euler_rotation_mat(40.0, 30.0, 20.0)
    assert np.max(np.abs(R - composed)) > 1e-2


def test_matrix_to_rvec_inverts_rvec_to_matrix():
    rvec = np.array([0.1, -0.2, 0.3])
    assert_allclose(matrix_to_rvec(rvec_to_matrix(rvec)), rvec, atol=1e-9)
