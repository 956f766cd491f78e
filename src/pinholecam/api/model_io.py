from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from pinholecam.api.camera_model import CameraModel
from pinholecam.core.distortion import brown_to_dict
from pinholecam.meta import SCHEMA_VERSION, CameraMeta, load_camera_meta

logger = logging.getLogger(__name__)


def camera_model_from_meta(meta: CameraMeta) -> CameraModel:
    model = CameraModel()
    model.set_intrinsic(meta.image.width_px, meta.image.height_px, meta.intrinsic.fx)
    model.fy = meta.intrinsic.fy
    model.cx = meta.intrinsic.cx
    model.cy = meta.intrinsic.cy
    model.set_dist(meta.distortion.coeffs())
    model.set_extrinsic(meta.extrinsic.rvec_deg, meta.extrinsic.position_world, is_t_on_world=True)
    return model


def camera_model_to_dict(model: CameraModel) -> dict[str, Any]:
    rvec_deg, _tvec = model.get_extrinsic()
    return {
        "schema_version": SCHEMA_VERSION,
        "image": {"width_px": int(model.width), "height_px": int(model.height)},
        "intrinsic": {"fx": model.fx, "fy": model.fy, "cx": model.cx, "cy": model.cy},
        "distortion": brown_to_dict(model.distortion),
        "extrinsic": {
            "rvec_deg": np.asarray(rvec_deg, dtype=np.float64).tolist(),
            "position_world": np.asarray(model.camera_position(), dtype=np.float64).tolist(),
        },
    }


def save_camera_model(path: Path, model: CameraModel) -> Path:
    """
    Write a camera as a single JSON file. The pose is stored as Euler degrees plus
    the world-frame position, which is what a user edits by hand.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(camera_model_to_dict(model), indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Saved camera to %s", path)
    return path


def load_camera_model(path: Path) -> CameraModel:
    return camera_model_from_meta(load_camera_meta(path))
