from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import numpy as np

from pinholecam.api.camera_model import CameraModel
from pinholecam.api.model_io import load_camera_model, save_camera_model
from pinholecam.cli.demo import CAMERA_HEIGHT_M, DEFAULT_FOV_DEG, DEFAULT_HEIGHT, DEFAULT_WIDTH, ground_grid, run_demo
from pinholecam.core.rotation import focal_length


def _finite_or_none(v: np.ndarray) -> list[float] | None:
    if not np.all(np.isfinite(v)):
        return None
    return [float(x) for x in v]


def export_camera(
    *,
    out: Path,
    width: int,
    height: int,
    fov_deg: float,
    camera_height_m: float,
    rvec_deg: tuple[float, float, float],
    dist: list[float] | None,
) -> Path:
    model = CameraModel()
    model.set_intrinsic(width, height, focal_length(width, fov_deg))
    if dist:
        model.set_dist(dist)
    model.set_extrinsic(rvec_deg, (0.0, -float(camera_height_m), 0.0), is_t_on_world=True)
    return save_camera_model(out, model)


def project_grid(model: CameraModel) -> list[dict]:
    world = ground_grid()
    uv = model.project_world_to_image(world)
    visible = ~np.all(uv == -1.0, axis=1)
    in_u = (uv[:, 0] >= 0.0) & (uv[:, 0] < model.width)
    in_v = (uv[:, 1] >= 0.0) & (uv[:, 1] < model.height)
    in_image = visible & in_u & in_v
    ground = np.full(world.shape, np.nan)
    ground[in_image] = model.project_image_to_ground_plane(uv[in_image])
    return [
        {
            "world": [float(x) for x in Mw],
            "uv_px": [float(p[0]), float(p[1])] if vis else None,
            "in_image": bool(inside),
            "ground": _finite_or_none(g),
        }
        for Mw, p, vis, inside, g in zip(world, uv, visible, in_image, ground)
    ]


def ground_distance(model: CameraModel, uv: list[float]) -> list[dict]:
    if len(uv) % 2 != 0:
        raise ValueError("pixels must be given as U V pairs")
    pts = np.asarray(uv, dtype=np.float64).reshape(-1, 2)
    ground = model.project_image_to_ground_plane(pts)
    return [
        {"uv_px": [float(p[0]), float(p[1])], "ground": _finite_or_none(g)}
        for p, g in zip(pts, ground)
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="pinholecam")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export-camera", help="Write a camera config JSON from a field of view and a height.")
    exp.add_argument("--out", type=Path, required=True)
    exp.add_argument("--width", type=int, default=DEFAULT_WIDTH)
    exp.add_argument("--height", type=int, default=DEFAULT_HEIGHT)
    exp.add_argument("--fov", type=float, default=DEFAULT_FOV_DEG, help="Horizontal field of view (deg).")
    exp.add_argument("--camera-height", type=float, default=CAMERA_HEIGHT_M, help="Height above ground (m).")
    exp.add_argument("--pitch", type=float, default=0.0, help="deg")
    exp.add_argument("--yaw", type=float, default=0.0, help="deg")
    exp.add_argument("--roll", type=float, default=0.0, help="deg")
    exp.add_argument(
        "--dist",
        type=float,
        nargs="+",
        default=None,
        metavar="K",
        help="Distortion coefficients k1 k2 p1 p2 k3 (missing trailing values are 0).",
    )

    grid = sub.add_parser("project-grid", help="Project the ground grid and re-project it onto the ground.")
    grid.add_argument("--camera", type=Path, required=True)
    grid.add_argument("--out", type=Path, default=None, help="Write JSON here instead of stdout.")

    gd = sub.add_parser("ground-distance", help="Ground-plane world point for each pixel.")
    gd.add_argument("--camera", type=Path, required=True)
    gd.add_argument("uv", type=float, nargs="+", metavar="U V")

    demo = sub.add_parser("demo", help="Interactive camera pose tuning window.")
    demo.add_argument("--image", type=Path, default=None)
    demo.add_argument("--camera", type=Path, default=None)
    demo.add_argument("--fov", type=float, default=DEFAULT_FOV_DEG)

    args = parser.parse_args(argv)
    if args.cmd == "ground-distance" and len(args.uv) % 2 != 0:
        parser.error("ground-distance: pixels must be given as U V pairs")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "export-camera":
        path = export_camera(
            out=args.out,
            width=args.width,
            height=args.height,
            fov_deg=args.fov,
            camera_height_m=args.camera_height,
            rvec_deg=(args.pitch, args.yaw, args.roll),
            dist=args.dist,
        )
        print(f"Wrote {path}")
        return 0

    if args.cmd == "project-grid":
        rows = project_grid(load_camera_model(args.camera))
        text = json.dumps(rows, indent=2)
        if args.out is not None:
            args.out.write_text(text, encoding="utf-8")
            print(f"Wrote {args.out}")
        else:
            print(text)
        return 0

    if args.cmd == "ground-distance":
        rows = ground_distance(load_camera_model(args.camera), args.uv)
        print(json.dumps(rows, indent=2))
        return 0

    if args.cmd == "demo":
        return run_demo(image_path=args.image, camera_path=args.camera, fov_deg=args.fov)

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
