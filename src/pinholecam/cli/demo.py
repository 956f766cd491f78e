from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from pinholecam.api.camera_model import CameraModel
from pinholecam.api.model_io import load_camera_model
from pinholecam.core.image_io import load_bgr_u8
from pinholecam.core.rotation import focal_length, rad2deg

logger = logging.getLogger(__name__)

WINDOW_MAIN = "pinholecam"
WINDOW_PARAM = "pinholecam params"

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
DEFAULT_FOV_DEG = 130.0
DEFAULT_DIST = (-0.1, 0.01, -0.005, -0.001, 0.0)
CAMERA_HEIGHT_M = 1.5

MOVE_STEP_M = 0.8
ROLL_STEP_DEG = rad2deg(0.1)
KEY_ESC = 27

# key -> unit move in world axes (Y+ is down)
_MOVES = {
    "w": (0.0, 0.0, 1.0),
    "s": (0.0, 0.0, -1.0),
    "a": (-1.0, 0.0, 0.0),
    "d": (1.0, 0.0, 0.0),
    "z": (0.0, -1.0, 0.0),
    "x": (0.0, 1.0, 0.0),
}


@dataclass
class DemoState:
    camera: CameraModel = field(default_factory=CameraModel)
    selected_points: list[tuple[float, float]] = field(default_factory=list)
    image: np.ndarray | None = None
    fov_deg: float = DEFAULT_FOV_DEG


def reset_camera_pose(state: DemoState) -> None:
    state.camera.set_extrinsic((0.0, 0.0, 0.0), (0.0, -CAMERA_HEIGHT_M, 0.0), is_t_on_world=True)


def reset_camera(state: DemoState, width: int, height: int, fov_deg: float | None = None) -> None:
    if fov_deg is not None:
        state.fov_deg = float(fov_deg)
    state.camera.set_intrinsic(width, height, focal_length(width, state.fov_deg))
    state.camera.set_dist(DEFAULT_DIST)
    reset_camera_pose(state)


def ground_grid(half_width_m: float = 10.0, depth_m: float = 20.0, step_m: float = 1.0) -> np.ndarray:
    """Points on the Y=0 plane, x in [-half_width, half_width], z in [0, depth]."""
    xs = np.arange(-half_width_m, half_width_m + 0.5 * step_m, step_m, dtype=np.float64)
    zs = np.arange(0.0, depth_m + 0.5 * step_m, step_m, dtype=np.float64)
    xx, zz = np.meshgrid(xs, zs, indexing="ij")
    return np.stack([xx.reshape(-1), np.zeros(xx.size), zz.reshape(-1)], axis=1)


def _inside(u: float, v: float, w: int, h: int) -> bool:
    return 0.0 <= u < w and 0.0 <= v < h


def render_main(state: DemoState) -> np.ndarray:
    """
    Draw one frame.

    With an image: selected pixels and their distance on the ground plane.
    Without: the ground grid projected to the image and re-projected back to the
    ground, both labels drawn so the round trip can be checked by eye.
    """
    import cv2  # type: ignore

    cam = state.camera
    if state.image is not None:
        image = state.image.copy()
        if state.selected_points:
            ground = cam.project_image_to_ground_plane(np.asarray(state.selected_points, dtype=np.float64))
            for (u, v), Mw in zip(state.selected_points, ground):
                pt = (int(round(u)), int(round(v)))
                cv2.circle(image, pt, 5, (255, 0, 0), -1)
                if np.all(np.isfinite(Mw)):
                    text = f"{Mw[0]:.1f}, {Mw[2]:.1f}[m]"
                else:
                    text = "above horizon"
                cv2.putText(image, text, pt, cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 0, 0), 2)
    else:
        image = np.full((cam.height, cam.width, 3), 70, dtype=np.uint8)
        world = ground_grid()
        uv = cam.project_world_to_image(world)
        shown = np.array([_inside(u, v, cam.width, cam.height) for u, v in uv], dtype=bool)
        back = cam.project_image_to_ground_plane(uv[shown])
        for Mw, (u, v), Mb in zip(world[shown], uv[shown], back):
            pt = (int(round(u)), int(round(v)))
            cv2.circle(image, pt, 2, (220, 0, 0), -1)
            cv2.putText(image, f"{Mw[0]:.0f}, {Mw[2]:.0f}", pt, cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 255, 0))
            if np.all(np.isfinite(Mb)):
                cv2.putText(
                    image, f"{Mb[0]:.0f}, {Mb[2]:.0f}", (pt[0], pt[1] + 10), cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 255, 0)
                )

    vy = cam.estimate_vanishing_y()
    if np.isfinite(vy) and 0.0 <= vy < image.shape[0]:
        cv2.line(image, (0, int(vy)), (image.shape[1], int(vy)), (0, 0, 0), 1)
    return image


def handle_key(state: DemoState, key: int) -> bool:
    """Apply one key press. Returns False when the loop should stop."""
    key &= 0xFF
    if key == KEY_ESC:
        return False

    cam = state.camera
    ch = chr(key)
    if ch.lower() in _MOVES:
        step = MOVE_STEP_M * (3.0 if ch.isupper() else 1.0)
        dx, dy, dz = _MOVES[ch.lower()]
        cam.move_camera_pos(dx * step, dy * step, dz * step, is_on_world=True)
    elif ch in ("q", "e"):
        droll = ROLL_STEP_DEG if ch == "q" else -ROLL_STEP_DEG
        cam.set_camera_angle(rad2deg(cam.pitch), rad2deg(cam.yaw), rad2deg(cam.roll) + droll)
    elif ch == "r":
        reset_camera_pose(state)
    elif ch == "c":
        state.selected_points.clear()
    return True


def on_mouse(event: int, x: int, y: int, flags: int, state: DemoState) -> None:
    import cv2  # type: ignore

    if event == cv2.EVENT_LBUTTONDOWN:
        state.selected_points.append((float(x), float(y)))


def _noop(_value: int) -> None:
    return None


class ParamPanel:
    """
    Trackbar window for focal length, camera height and angles.

    Trackbars are integers: height is in decimetres, angles are offset by 90 so
    the range [-90, 90] maps to [0, 180].
    """

    FOCAL = "Focal Length"
    HEIGHT = "Height [0.1m]"
    PITCH = "Pitch"
    YAW = "Yaw"
    ROLL = "Roll"

    def __init__(self, window: str = WINDOW_PARAM) -> None:
        import cv2  # type: ignore

        self.window = window
        cv2.namedWindow(window)
        cv2.createTrackbar(self.FOCAL, window, 500, 1000, _noop)
        cv2.createTrackbar(self.HEIGHT, window, 15, 50, _noop)
        for name in (self.PITCH, self.YAW, self.ROLL):
            cv2.createTrackbar(name, window, 90, 180, _noop)
        self._last: dict[str, int] | None = None

        help_img = np.full((150, 300, 3), 70, dtype=np.uint8)
        lines = ["w/s a/d z/x: move (caps x3)", "q/e: roll", "r: reset pose", "c: clear points", "ESC: quit"]
        for i, line in enumerate(lines):
            cv2.putText(help_img, line, (10, 25 + 25 * i), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        cv2.imshow(window, help_img)

    def _read(self) -> dict[str, int]:
        import cv2  # type: ignore

        names = (self.FOCAL, self.HEIGHT, self.PITCH, self.YAW, self.ROLL)
        return {n: int(cv2.getTrackbarPos(n, self.window)) for n in names}

    def push(self, state: DemoState) -> None:
        """Camera -> trackbars."""
        import cv2  # type: ignore

        cam = state.camera
        height_dm = int(round(-cam.camera_position()[1] * 10.0))
        values = {
            self.FOCAL: int(round(cam.fx)),
            self.HEIGHT: height_dm,
            self.PITCH: int(round(rad2deg(cam.pitch))) + 90,
            self.YAW: int(round(rad2deg(cam.yaw))) + 90,
            self.ROLL: int(round(rad2deg(cam.roll))) + 90,
        }
        for name, value in values.items():
            cv2.setTrackbarPos(name, self.window, value)
        self._last = self._read()

    def pull(self, state: DemoState) -> None:
        """Trackbars -> camera, only for values the user changed."""
        values = self._read()
        last = self._last
        self._last = values
        if last is None or values == last:
            return

        cam = state.camera
        if values[self.FOCAL] != last[self.FOCAL]:
            f = float(max(1, values[self.FOCAL]))
            cam.fx = f
            cam.fy = f
        if values[self.HEIGHT] != last[self.HEIGHT]:
            T = cam.camera_position()
            cam.set_camera_pos(T[0], -values[self.HEIGHT] / 10.0, T[2], is_on_world=True)
        angle_names = (self.PITCH, self.YAW, self.ROLL)
        if any(values[n] != last[n] for n in angle_names):
            cam.set_camera_angle(*(float(values[n] - 90) for n in angle_names))


def run_demo(
    image_path: Path | None = None,
    camera_path: Path | None = None,
    fov_deg: float = DEFAULT_FOV_DEG,
) -> int:
    import cv2  # type: ignore

    state = DemoState(fov_deg=float(fov_deg))
    if image_path is not None:
        state.image = load_bgr_u8(image_path)

    if camera_path is not None:
        state.camera = load_camera_model(camera_path)
        if state.image is not None and state.image.shape[:2] != (state.camera.height, state.camera.width):
            logger.warning(
                "image is %dx%d but camera is %dx%d",
                state.image.shape[1],
                state.image.shape[0],
                state.camera.width,
                state.camera.height,
            )
    elif state.image is not None:
        reset_camera(state, state.image.shape[1], state.image.shape[0])
    else:
        reset_camera(state, DEFAULT_WIDTH, DEFAULT_HEIGHT)

    cv2.namedWindow(WINDOW_MAIN)
    cv2.setMouseCallback(WINDOW_MAIN, on_mouse, state)
    panel = ParamPanel()
    panel.push(state)

    while True:
        panel.pull(state)
        cv2.imshow(WINDOW_MAIN, render_main(state))
        key = cv2.waitKey(1)
        if not handle_key(state, key):
            break
        if key != -1:
            panel.push(state)

    cv2.destroyAllWindows()
    return 0
