from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import Detection


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    color: Tuple[int, int, int] = (255, 255, 255),
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw detection rects with a "class probability" label; returns a copy.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        r = det.rect
        x1 = int(np.clip(round(r.x), 0, w - 1))
        y1 = int(np.clip(round(r.y), 0, h - 1))
        x2 = int(np.clip(round(r.x + r.width), 0, w - 1))
        y2 = int(np.clip(round(r.y + r.height), 0, h - 1))
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        label = det.class_name
        if show_score:
            label = f"{label} {det.probability:.2f}"

        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Label sits above the box unless that leaves the image.
        y_text_top = y1 - th - baseline
        if y_text_top < 0:
            y_text_top = y1

        cv2.rectangle(
            out,
            (x1, y_text_top),
            (min(x1 + tw, w - 1), min(y_text_top + th + baseline, h - 1)),
            color,
            thickness=-1,
        )
        cv2.putText(
            out,
            label,
            (x1, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (0, 0, 0),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
