from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from pinholecam.core.distortion import BrownDistortion
from pinholecam.core.rotation import (
    deg2rad,
    euler_rotation_mat,
    focal_length,
    matrix_to_rvec,
    rad2deg,
    rvec_to_matrix,
)

logger = logging.getLogger(__name__)


class CameraModelError(ValueError):
    pass


def _as_points(points: np.ndarray | Sequence, dim: int, name: str) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, dim)
    if arr.ndim == 1 and arr.shape[0] == dim:
        arr = arr.reshape(1, dim)
    if arr.ndim != 2 or arr.shape[1] != dim:
        raise CameraModelError(f"{name} must be (N,{dim}), got {arr.shape}")
    return arr


class CameraModel:
    """
    Single pinhole camera with mutable pose.

      s [x, y, 1]^T = K [R | t] [Mw, 1]^T = K Mc

    - K: intrinsic matrix
    - R: camera orientation, Rodrigues of (pitch, yaw, roll)
    - t: vector from the camera center Oc to the world origin Ow, expressed in
      camera coordinates. With T the camera position in world coordinates,
      Mc = R (Mw - T) = R Mw + t, so t = -R T.

    t lives in the camera frame, so every rotation change has to re-derive it
    from the world position or the camera silently moves.

    Axes (camera and world): X+ right, Y+ down, Z+ forward.

    Setters read and write several fields without locking; share an instance
    across threads only behind an external lock.
    """

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.K = np.eye(3, dtype=np.float64)
        self.rvec = np.zeros((3,), dtype=np.float64)
        self.tvec = np.zeros((3,), dtype=np.float64)
        self.dist_coeff = np.zeros((5,), dtype=np.float64)
        self.set_intrinsic(1280, 720, 500.0)
        self.set_extrinsic((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    @classmethod
    def from_fov(cls, width: int, height: int, fov_deg: float) -> "CameraModel":
        model = cls()
        model.set_intrinsic(width, height, focal_length(width, fov_deg))
        return model

    # Accessors

    @property
    def fx(self) -> float:
        return float(self.K[0, 0])

    @fx.setter
    def fx(self, value: float) -> None:
        self.K[0, 0] = float(value)

    @property
    def fy(self) -> float:
        return float(self.K[1, 1])

    @fy.setter
    def fy(self, value: float) -> None:
        self.K[1, 1] = float(value)

    @property
    def cx(self) -> float:
        return float(self.K[0, 2])

    @cx.setter
    def cx(self, value: float) -> None:
        self.K[0, 2] = float(value)

    @property
    def cy(self) -> float:
        return float(self.K[1, 2])

    @cy.setter
    def cy(self, value: float) -> None:
        self.K[1, 2] = float(value)

    @property
    def pitch(self) -> float:
        return float(self.rvec[0])

    @pitch.setter
    def pitch(self, value: float) -> None:
        self.rvec[0] = float(value)

    @property
    def yaw(self) -> float:
        return float(self.rvec[1])

    @yaw.setter
    def yaw(self, value: float) -> None:
        self.rvec[1] = float(value)

    @property
    def roll(self) -> float:
        return float(self.rvec[2])

    @roll.setter
    def roll(self, value: float) -> None:
        self.rvec[2] = float(value)

    @property
    def tx(self) -> float:
        return float(self.tvec[0])

    @property
    def ty(self) -> float:
        return float(self.tvec[1])

    @property
    def tz(self) -> float:
        return float(self.tvec[2])

    @property
    def distortion(self) -> BrownDistortion:
        return BrownDistortion.from_coeffs(self.dist_coeff)

    def rotation_matrix(self) -> np.ndarray:
        return rvec_to_matrix(self.rvec)

    def camera_position(self) -> np.ndarray:
        """World-frame camera position T = -R^-1 t."""
        R = self.rotation_matrix()
        return -R.T @ self.tvec

    @staticmethod
    def make_rotation_mat(pitch_deg: float, yaw_deg: float, roll_deg: float) -> np.ndarray:
        return euler_rotation_mat(pitch_deg, yaw_deg, roll_deg)

    # Parameters

    def set_intrinsic(self, width: int, height: int, focal_length: float) -> None:
        self.width = int(width)
        self.height = int(height)
        f = float(focal_length)
        self.K = np.array(
            [[f, 0.0, self.width / 2.0], [0.0, f, self.height / 2.0], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )
        logger.debug("intrinsic: %dx%d f=%.3f", self.width, self.height, f)

    def set_dist(self, dist_coeff: Sequence[float] | np.ndarray) -> None:
        c = np.asarray(dist_coeff, dtype=np.float64).reshape(-1)
        if c.shape[0] > 5:
            raise CameraModelError("dist_coeff must have at most 5 values (k1, k2, p1, p2, k3)")
        self.dist_coeff = BrownDistortion.from_coeffs(c).coeffs()

    def set_extrinsic(
        self,
        rvec_deg: Sequence[float],
        tvec: Sequence[float],
        is_t_on_world: bool = True,
    ) -> None:
        """
        is_t_on_world=True: tvec is T, the camera position in world coordinates.
        is_t_on_world=False: tvec is t (Ow - Oc in camera coordinates), stored as is.
        """
        self.rvec = np.array([deg2rad(a) for a in rvec_deg], dtype=np.float64).reshape(3)
        self.tvec = np.asarray(tvec, dtype=np.float64).reshape(3).copy()
        if is_t_on_world:
            self.tvec = -self.rotation_matrix() @ self.tvec
        logger.debug("extrinsic: rvec=%s tvec=%s", self.rvec, self.tvec)

    def get_extrinsic(self) -> tuple[np.ndarray, np.ndarray]:
        """Returns (rvec_deg, tvec) with tvec in camera coordinates."""
        rvec_deg = np.array([rad2deg(a) for a in self.rvec], dtype=np.float64)
        return rvec_deg, self.tvec.copy()

    def set_camera_pos(self, tx: float, ty: float, tz: float, is_on_world: bool = True) -> None:
        """
        Place the camera (Oc - Ow) without changing its orientation.

        The position is given in world axes when is_on_world, else in camera axes.
        """
        pos = np.array([tx, ty, tz], dtype=np.float64)
        if is_on_world:
            self.tvec = -self.rotation_matrix() @ pos
        else:
            self.tvec = -pos

    def move_camera_pos(self, dtx: float, dty: float, dtz: float, is_on_world: bool = True) -> None:
        delta = np.array([dtx, dty, dtz], dtype=np.float64)
        if is_on_world:
            delta = -self.rotation_matrix() @ delta
        else:
            delta = -delta
        self.tvec = self.tvec + delta

    def set_camera_angle(self, pitch_deg: float, yaw_deg: float, roll_deg: float) -> None:
        T = self.camera_position()
        self.rvec = np.array([deg2rad(pitch_deg), deg2rad(yaw_deg), deg2rad(roll_deg)], dtype=np.float64)
        self.tvec = -self.rotation_matrix() @ T

    def rotate_camera_angle(self, dpitch_deg: float, dyaw_deg: float, droll_deg: float) -> None:
        """
        Apply a rotation delta in the world frame: R_new = R_delta R_old.

        The world position is kept; rvec is recovered from R_new, so the stored
        angles can differ from a plain sum of the deltas.
        """
        R_old = self.rotation_matrix()
        T = -R_old.T @ self.tvec
        R_new = self.make_rotation_mat(dpitch_deg, dyaw_deg, droll_deg) @ R_old
        self.tvec = -R_new @ T
        self.rvec = matrix_to_rvec(R_new)

    # Projection

    def project_world_to_camera(self, object_points_world: np.ndarray | Sequence) -> np.ndarray:
        Mw = _as_points(object_points_world, 3, "object_points_world")
        R = self.rotation_matrix()
        return Mw @ R.T + self.tvec

    def project_world_to_image(
        self,
        object_points_world: np.ndarray | Sequence,
        apply_distortion: bool = True,
    ) -> np.ndarray:
        """
        Project world points to pixels, shape (N,2).

        Points behind the camera (Zc <= 0) are not projected and come back as
        (-1, -1). Distortion is applied only when apply_distortion and the model
        has non-zero coefficients.
        """
        Mc = self.project_world_to_camera(object_points_world)
        uv = np.full((Mc.shape[0], 2), -1.0, dtype=np.float64)
        Zc = Mc[:, 2]
        visible = Zc > 0
        if not np.any(visible):
            return uv

        x = Mc[visible, 0] / Zc[visible]
        y = Mc[visible, 1] / Zc[visible]
        dist = self.distortion
        if apply_distortion and not dist.is_identity:
            x, y = dist.distort(x, y)

        K = self.K
        uv[visible, 0] = K[0, 0] * x + K[0, 1] * y + K[0, 2]
        uv[visible, 1] = K[1, 1] * y + K[1, 2]
        return uv

    def project_image_to_camera(self, z_list: np.ndarray | Sequence[float]) -> np.ndarray:
        """
        Back-project a per-pixel depth map (row-major, origin top-left) to the
        camera frame. Returns (width*height, 3).
        """
        z = np.asarray(z_list, dtype=np.float64).reshape(-1)
        expected = self.width * self.height
        if z.shape[0] != expected:
            logger.error("project_image_to_camera: got %d depth values, expected %d", z.shape[0], expected)
            raise CameraModelError(f"depth map must have width*height={expected} values, got {z.shape[0]}")

        yy, xx = np.meshgrid(
            np.arange(self.height, dtype=np.float64),
            np.arange(self.width, dtype=np.float64),
            indexing="ij",
        )
        u = xx.reshape(-1) - self.cx
        v = yy.reshape(-1) - self.cy
        Xc = z * u / self.fx
        Yc = z * v / self.fy
        return np.stack([Xc, Yc, z], axis=1)

    def project_image_to_ground_plane(
        self,
        image_points: np.ndarray | Sequence,
        plane_y: float = 0.0,
        apply_distortion: bool = True,
    ) -> np.ndarray:
        """
        Intersect pixel rays with the world plane Y = plane_y.

          Mw = R^-1 (Mc - t) = Zc R^-1 K^-1 [x, y, 1] - R^-1 t

        Zc is solved from the Y row. Rays parallel to the plane or meeting it
        behind the camera give a NaN row.
        """
        uv = _as_points(image_points, 2, "image_points")
        out = np.full((uv.shape[0], 3), np.nan, dtype=np.float64)
        if uv.shape[0] == 0:
            return out

        homog = np.concatenate([uv, np.ones((uv.shape[0], 1), dtype=np.float64)], axis=1)
        rays = homog @ np.linalg.inv(self.K).T
        dist = self.distortion
        if apply_distortion and not dist.is_identity:
            x, y = dist.undistort(rays[:, 0], rays[:, 1])
            rays = np.stack([x, y, np.ones_like(x)], axis=1)

        R = self.rotation_matrix()
        Pw = rays @ R
        Tw = R.T @ self.tvec
        denom = np.where(np.abs(Pw[:, 1]) < 1e-12, np.nan, Pw[:, 1])
        Zc = (float(plane_y) + Tw[1]) / denom
        good = np.isfinite(Zc) & (Zc > 0)
        out[good] = Zc[good, None] * Pw[good] - Tw
        return out

    def estimate_vanishing_y(self) -> float:
        """
        Image row of the vanishing point of the world Z axis (the horizon for a
        camera without roll). NaN when that axis points behind the camera.
        """
        d = self.rotation_matrix()[:, 2]
        if d[2] <= 0:
            return float("nan")
        return float(self.K[1, 1] * d[1] / d[2] + self.K[1, 2])

    def undistort_image(self, image: np.ndarray) -> np.ndarray:
        import cv2  # type: ignore

        return cv2.undistort(image, self.K, self.dist_coeff)
