import json
import math

import pytest

from pinholecam.meta import CameraMetaValidationError, load_camera_meta, parse_camera_meta


def _doc(**overrides):
    doc = {
        "schema_version": "pinholecam.camera.v0",
        "image": {"width_px": 1280, "height_px": 720},
        "intrinsic": {"fx": 500.0},
    }
    doc.update(overrides)
    return doc


def test_parse_camera_meta_ok():
    m = parse_camera_meta(
        _doc(
            distortion={"k1": -0.1, "k2": 0.01},
            extrinsic={"rvec_deg": [5, 0, 0], "position_world": [0, -1.5, 0]},
        )
    )
    assert (m.image.width_px, m.image.height_px) == (1280, 720)
    assert m.intrinsic.fy == 500.0
    assert (m.intrinsic.cx, m.intrinsic.cy) == (640.0, 360.0)
    assert m.distortion.k1 == -0.1
    assert m.extrinsic.position_world == (0.0, -1.5, 0.0)


def test_parse_camera_meta_from_fov():
    m = parse_camera_meta(_doc(intrinsic={"fov_deg": 90.0}))
    assert m.intrinsic.fx == pytest.approx(640.0)
    assert m.extrinsic.rvec_deg == (0.0, 0.0, 0.0)
    assert math.isclose(m.intrinsic.fy, m.intrinsic.fx)


def test_parse_camera_meta_rejects_missing_size():
    with pytest.raises(CameraMetaValidationError):
        parse_camera_meta(_doc(image={"width_px": 1280}))


def test_parse_camera_meta_rejects_fx_and_fov_together():
    with pytest.raises(CameraMetaValidationError):
        parse_camera_meta(_doc(intrinsic={"fx": 500.0, "fov_deg": 90.0}))


def test_parse_camera_meta_rejects_bad_fields():
    with pytest.raises(CameraMetaValidationError):
        parse_camera_meta(_doc(schema_version="pinholecam.camera.v9"))
    with pytest.raises(CameraMetaValidationError):
        parse_camera_meta(_doc(distortion={"k4": 0.1}))
    with pytest.raises(CameraMetaValidationError):
        parse_camera_meta(_doc(extrinsic={"rvec_deg": [1, 2]}))


def test_load_camera_meta_from_file(tmp_path):
    p = tmp_path / "cam.json"
    p.write_text(json.dumps(_doc(intrinsic={"fov_deg": 90.0}, distortion={"k1": -0.2})), encoding="utf-8")
    m = load_camera_meta(p)
    assert m.intrinsic.fx == pytest.approx(640.0)
    assert m.distortion.k1 == -0.2

    p.write_text(json.dumps(_doc(schema_version="pinholecam.camera.v9")), encoding="utf-8")
    with pytest.raises(ValueError, match="unsupported camera schema"):
        load_camera_meta(p)
    with pytest.raises(FileNotFoundError):
        load_camera_meta(tmp_path / "missing.json")
