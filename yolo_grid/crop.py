from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class CropRegion:
    """
    Where the model's square input sits inside the resized image.

    x, y: top-left corner of the crop in resized-image pixels
    size: crop side length (the model input size)
    scale: resized / original image size
    """

    x: int
    y: int
    size: int
    scale: float


def scale_and_center_crop(image: np.ndarray, size: int = 416) -> Tuple[np.ndarray, CropRegion]:
    """
    Resize so the shorter side equals `size` (aspect ratio kept), then cut the
    centered `size x size` square the detector runs on.

    Returns:
        crop: (size, size, C) image
        region: crop placement in the resized image
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for scale_and_center_crop(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape") or image.ndim != 3:
        raise ValueError(f"Expected image shape (H, W, C), got {getattr(image, 'shape', None)}")
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    h, w = image.shape[:2]
    r = size / min(w, h)
    resized_w, resized_h = max(size, int(round(w * r))), max(size, int(round(h * r)))

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    x = (resized_w - size) // 2
    y = (resized_h - size) // 2
    crop = image[y : y + size, x : x + size]
    return crop, CropRegion(x=x, y=y, size=size, scale=r)
