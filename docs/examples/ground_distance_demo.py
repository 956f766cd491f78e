"""
Ground distance demo (single pinhole camera).

It does:
1) build a camera from a field of view and a mounting height,
2) save it as a camera config JSON and load it back,
3) project a few ground points to pixels,
4) back-project pixels onto the ground and print the distance along the road.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from pinholecam import CameraModel, load_camera_model, save_camera_model


def build_camera(width: int, height: int, fov_deg: float, camera_height_m: float, pitch_deg: float) -> CameraModel:
    cam = CameraModel.from_fov(width, height, fov_deg)
    # Y+ is down: a camera above the ground has a negative world Y.
    cam.set_extrinsic((pitch_deg, 0.0, 0.0), (0.0, -camera_height_m, 0.0), is_t_on_world=True)
    return cam


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", type=Path, default=Path("camera.json"))
    ap.add_argument("--fov", type=float, default=90.0)
    ap.add_argument("--camera-height", type=float, default=1.5)
    ap.add_argument("--pitch", type=float, default=5.0, help="Tilt toward the ground (deg).")
    args = ap.parse_args()

    cam = build_camera(1280, 720, args.fov, args.camera_height, args.pitch)
    save_camera_model(args.out, cam)
    cam = load_camera_model(args.out)
    print(f"camera at {cam.camera_position()}, horizon row {cam.estimate_vanishing_y():.1f}")

    ground = np.array([[0.0, 0.0, z] for z in (3.0, 5.0, 10.0, 20.0)], dtype=np.float64)
    uv = cam.project_world_to_image(ground)
    for Mw, p in zip(ground, uv):
        print(f"world {Mw} -> pixel ({p[0]:.1f}, {p[1]:.1f})")

    rows = np.linspace(cam.height - 1, cam.estimate_vanishing_y() + 5.0, 6)
    pixels = np.stack([np.full_like(rows, cam.cx), rows], axis=1)
    for p, Mw in zip(pixels, cam.project_image_to_ground_plane(pixels)):
        if not np.all(np.isfinite(Mw)):
            print(f"pixel row {p[1]:.1f}: above the horizon")
            continue
        print(f"pixel row {p[1]:.1f}: {Mw[2]:.2f} m ahead")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
