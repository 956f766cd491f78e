from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pinholecam.cli.demo import (
    CAMERA_HEIGHT_M,
    KEY_ESC,
    MOVE_STEP_M,
    DemoState,
    ground_grid,
    handle_key,
    on_mouse,
    render_main,
    reset_camera,
)


@pytest.fixture()
def state() -> DemoState:
    s = DemoState()
    reset_camera(s, 320, 180, fov_deg=100.0)
    return s


def test_reset_camera(state: DemoState) -> None:
    cam = state.camera
    assert (cam.width, cam.height) == (320, 180)
    assert cam.dist_coeff[0] == pytest.approx(-0.1)
    assert_allclose(cam.camera_position(), [0.0, -CAMERA_HEIGHT_M, 0.0])


def test_ground_grid_covers_area() -> None:
    pts = ground_grid()
    assert pts.shape == (21 * 21, 3)
    assert np.all(pts[:, 1] == 0.0)
    assert pts[:, 0].min() == -10.0 and pts[:, 2].max() == 20.0


def test_move_keys(state: DemoState) -> None:
    assert handle_key(state, ord("w"))
    assert_allclose(state.camera.camera_position(), [0.0, -CAMERA_HEIGHT_M, MOVE_STEP_M], atol=1e-12)

    handle_key(state, ord("D"))
    assert_allclose(state.camera.camera_position()[0], 3.0 * MOVE_STEP_M, atol=1e-12)

    handle_key(state, ord("z"))
    assert_allclose(state.camera.camera_position()[1], -CAMERA_HEIGHT_M - MOVE_STEP_M, atol=1e-12)


def test_roll_keeps_position(state: DemoState) -> None:
    before = state.camera.camera_position()
    handle_key(state, ord("q"))
    assert state.camera.roll > 0.0
    assert_allclose(state.camera.camera_position(), before, atol=1e-9)


def test_reset_clear_and_quit(state: DemoState) -> None:
    state.selected_points.append((10.0, 20.0))
    handle_key(state, ord("s"))
    handle_key(state, ord("r"))
    assert_allclose(state.camera.camera_position(), [0.0, -CAMERA_HEIGHT_M, 0.0], atol=1e-12)

    handle_key(state, ord("c"))
    assert state.selected_points == []

    assert handle_key(state, -1)
    assert not handle_key(state, KEY_ESC)


def test_mouse_click_selects_point(state: DemoState) -> None:
    cv2 = pytest.importorskip("cv2")
    on_mouse(cv2.EVENT_LBUTTONDOWN, 12, 150, 0, state)
    on_mouse(cv2.EVENT_MOUSEMOVE, 40, 40, 0, state)
    assert state.selected_points == [(12.0, 150.0)]


def test_render_grid_without_image(state: DemoState) -> None:
    img = render_main(state)
    assert img.shape == (180, 320, 3)
    assert img.dtype == np.uint8
    assert np.any(img != 70)


def test_render_selected_points_on_image(state: DemoState) -> None:
    state.image = np.zeros((180, 320, 3), dtype=np.uint8)
    state.selected_points.extend([(160.0, 150.0), (160.0, 10.0)])
    img = render_main(state)
    assert img.shape == (180, 320, 3)
    assert np.any(img[150] != 0)
    # the caller's frame stays untouched
    assert np.all(state.image == 0)


def test_roll_key_steps_a_tenth_of_a_radian(state: DemoState) -> None:
    handle_key(state, ord("q"))
    assert state.camera.roll == pytest.approx(0.1)
    handle_key(state, ord("e"))
    handle_key(state, ord("e"))
    assert state.camera.roll == pytest.approx(-0.1)
