from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pinholecam.api.camera_model import CameraModel
from pinholecam.api.model_io import load_camera_model, save_camera_model


def test_save_then_load_keeps_camera(tmp_path: Path) -> None:
    cam = CameraModel.from_fov(1920, 1080, 100.0)
    cam.set_dist([-0.1, 0.01, -0.005, -0.001, 0.0])
    cam.set_extrinsic((8.0, -3.0, 1.0), (0.5, -1.2, 3.0))

    path = save_camera_model(tmp_path / "cams" / "front.json", cam)
    assert path.exists()
    loaded = load_camera_model(path)

    assert (loaded.width, loaded.height) == (1920, 1080)
    assert_allclose(loaded.K, cam.K)
    assert_allclose(loaded.dist_coeff, cam.dist_coeff)
    assert_allclose(loaded.rvec, cam.rvec, atol=1e-12)
    assert_allclose(loaded.camera_position(), [0.5, -1.2, 3.0], atol=1e-9)


def test_load_rejects_other_schema(tmp_path: Path) -> None:
    p = tmp_path / "cam.json"
    p.write_text(json.dumps({"schema_version": "stereocam.v1"}), encoding="utf-8")
    with pytest.raises(ValueError, match="unsupported camera schema"):
        load_camera_model(p)


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_camera_model(tmp_path / "nope.json")


def test_saved_document_is_hand_editable(tmp_path: Path) -> None:
    cam = CameraModel()
    cam.set_extrinsic((0.0, 0.0, 0.0), (0.0, -1.5, 0.0))
    data = json.loads(save_camera_model(tmp_path / "cam.json", cam).read_text(encoding="utf-8"))
    assert data["schema_version"] == "pinholecam.camera.v0"
    assert np.allclose(data["extrinsic"]["position_world"], [0.0, -1.5, 0.0])
    assert data["intrinsic"]["fx"] == 500.0
