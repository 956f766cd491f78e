from pinholecam.api.camera_model import CameraModel, CameraModelError
from pinholecam.api.model_io import load_camera_model, save_camera_model

__all__ = [
    "CameraModel",
    "CameraModelError",
    "load_camera_model",
    "save_camera_model",
]
