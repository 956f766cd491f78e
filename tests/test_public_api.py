from __future__ import annotations


def test_public_api_exports() -> None:
    import pinholecam as pc

    assert hasattr(pc, "CameraModel")
    assert hasattr(pc, "CameraModelError")
    assert hasattr(pc, "load_camera_model")
    assert hasattr(pc, "save_camera_model")
    assert hasattr(pc.meta, "parse_camera_meta")
