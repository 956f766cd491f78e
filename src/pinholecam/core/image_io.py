from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def load_bgr_u8(path: str | Path) -> np.ndarray:
    """
    Load an image as a (H,W,3) BGR uint8 array, the layout OpenCV windows expect.

    OpenCV decodes first; Pillow takes over for files the local OpenCV build
    cannot decode (cv2.imread returns None instead of raising).
    """
    import cv2  # type: ignore

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing {p}")

    img = cv2.imread(str(p), cv2.IMREAD_COLOR)
    if img is not None:
        return img

    logger.debug("cv2.imread could not decode %s, using Pillow", p)
    with Image.open(p) as im:
        rgb = np.asarray(im.convert("RGB"), dtype=np.uint8)
    return np.ascontiguousarray(rgb[:, :, ::-1])
