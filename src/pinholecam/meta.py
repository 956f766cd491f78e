from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pinholecam.core.distortion import BrownDistortion, brown_from_dict
from pinholecam.core.rotation import focal_length

SCHEMA_VERSION = "pinholecam.camera.v0"


class CameraMetaValidationError(ValueError):
    pass


@dataclass(frozen=True)
class ImageMeta:
    width_px: int
    height_px: int


@dataclass(frozen=True)
class IntrinsicMeta:
    fx: float
    fy: float
    cx: float
    cy: float


@dataclass(frozen=True)
class ExtrinsicMeta:
    rvec_deg: tuple[float, float, float] = (0.0, 0.0, 0.0)
    position_world: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class CameraMeta:
    schema_version: str
    image: ImageMeta
    intrinsic: IntrinsicMeta
    distortion: BrownDistortion
    extrinsic: ExtrinsicMeta


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise CameraMetaValidationError(msg)


def _vec3(raw: Any, name: str) -> tuple[float, float, float]:
    _require(isinstance(raw, (list, tuple)) and len(raw) == 3, f"{name} must be [x,y,z]")
    return float(raw[0]), float(raw[1]), float(raw[2])


def load_camera_meta(path: Path) -> CameraMeta:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if str(data.get("schema_version")) != SCHEMA_VERSION:
        raise ValueError("unsupported camera schema")
    return parse_camera_meta(data)


def parse_camera_meta(data: dict[str, Any]) -> CameraMeta:
    schema_version = data.get("schema_version")
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    image = data.get("image", {})
    intrinsic = data.get("intrinsic", {})
    distortion = data.get("distortion", {})
    extrinsic = data.get("extrinsic", {})

    w_raw = image.get("width_px")
    h_raw = image.get("height_px")
    _require(w_raw is not None and h_raw is not None, "image.width_px and image.height_px are required")
    w = int(w_raw)
    h = int(h_raw)
    _require(w > 0 and h > 0, "image.width_px and image.height_px must be > 0")

    fov_raw = intrinsic.get("fov_deg")
    fx_raw = intrinsic.get("fx")
    _require(
        (fx_raw is None) != (fov_raw is None),
        "intrinsic needs exactly one of fx or fov_deg",
    )
    if fov_raw is not None:
        fov = float(fov_raw)
        _require(0.0 < fov < 180.0, "intrinsic.fov_deg must be in (0, 180)")
        fx = focal_length(w, fov)
    else:
        fx = float(fx_raw)
    fy = float(intrinsic.get("fy", fx))
    _require(fx > 0.0 and fy > 0.0, "intrinsic focal lengths must be > 0")
    cx = float(intrinsic.get("cx", w / 2.0))
    cy = float(intrinsic.get("cy", h / 2.0))

    _require(isinstance(distortion, dict), "distortion must be an object")
    unknown = set(distortion) - {"k1", "k2", "p1", "p2", "k3"}
    _require(not unknown, f"unknown distortion keys: {sorted(unknown)}")

    _require(isinstance(extrinsic, dict), "extrinsic must be an object")
    rvec_deg = _vec3(extrinsic.get("rvec_deg", [0.0, 0.0, 0.0]), "extrinsic.rvec_deg")
    position = _vec3(extrinsic.get("position_world", [0.0, 0.0, 0.0]), "extrinsic.position_world")

    return CameraMeta(
        schema_version=schema_version,
        image=ImageMeta(width_px=w, height_px=h),
        intrinsic=IntrinsicMeta(fx=fx, fy=fy, cx=cx, cy=cy),
        distortion=brown_from_dict(distortion),
        extrinsic=ExtrinsicMeta(rvec_deg=rvec_deg, position_world=position),
    )
