from __future__ import annotations

import math

import numpy as np


def deg2rad(deg: float) -> float:
    return float(deg) * math.pi / 180.0


def rad2deg(rad: float) -> float:
    return float(rad) * 180.0 / math.pi


def focal_length(image_size: int, fov_deg: float) -> float:
    """
    Focal length in pixels for a field of view spanning `image_size` pixels.

    (size/2) / f = tan(fov/2)
    """
    return (float(image_size) / 2.0) / math.tan(deg2rad(float(fov_deg) / 2.0))


def rvec_to_matrix(rvec: np.ndarray) -> np.ndarray:
    """Axis-angle vector (radians) -> (3,3) rotation matrix."""
    import cv2  # type: ignore

    rvec = np.asarray(rvec, dtype=np.float64).reshape(3, 1)
    R, _jac = cv2.Rodrigues(rvec)
    return np.asarray(R, dtype=np.float64)


def matrix_to_rvec(R: np.ndarray) -> np.ndarray:
    """(3,3) rotation matrix -> axis-angle vector (radians), shape (3,)."""
    import cv2  # type: ignore

    R = np.asarray(R, dtype=np.float64).reshape(3, 3)
    rvec, _jac = cv2.Rodrigues(R)
    return np.asarray(rvec, dtype=np.float64).reshape(3)


def euler_rotation_mat(pitch_deg: float, yaw_deg: float, roll_deg: float) -> np.ndarray:
    """
    Rotation from Euler angles (degrees) treated as one Rodrigues vector.

    The triple (pitch, yaw, roll) is used directly as an axis-angle vector. This
    matches R_z R_x R_y composition only for rotations about a single axis or for
    small angles.
    """
    return rvec_to_matrix(np.array([deg2rad(pitch_deg), deg2rad(yaw_deg), deg2rad(roll_deg)], dtype=np.float64))
