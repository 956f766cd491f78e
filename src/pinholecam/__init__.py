from pinholecam import meta
from pinholecam.api import CameraModel, CameraModelError, load_camera_model, save_camera_model

__all__ = [
    "meta",
    "CameraModel",
    "CameraModelError",
    "load_camera_model",
    "save_camera_model",
]
