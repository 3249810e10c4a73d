from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import CornerBox, ScoredBox


# Unions below this are treated as empty (IoU 0).
_EPS = 1e-12


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.3
    # None keeps every box that survives suppression.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError(f"max_detections must be >= 1, got {self.max_detections}")


def iou(a: CornerBox, b: CornerBox) -> float:
    inter_h = max(0.0, min(a.bottom, b.bottom) - max(a.top, b.top))
    inter_w = max(0.0, min(a.right, b.right) - max(a.left, b.left))
    inter = inter_h * inter_w
    union = a.area + b.area - inter
    if union <= _EPS:
        return 0.0
    return inter / union


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy class-agnostic NumPy NMS. Expects boxes shape (N,4) as
    [top, left, bottom, right] and scores shape (N,).

    Returns indices of kept boxes in selection order: descending score, equal
    scores in input order. A box is dropped when its IoU with an already kept box
    is strictly greater than `cfg.iou_threshold`.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"Got {boxes.shape[0]} boxes but {scores.shape[0]} scores.")
    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    top = boxes[:, 0]
    left = boxes[:, 1]
    bottom = boxes[:, 2]
    right = boxes[:, 3]
    areas = np.maximum(0.0, bottom - top) * np.maximum(0.0, right - left)

    # Stable sort on the negated scores keeps equal scores in input order.
    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(int(i))
        rest = order[1:]

        tt = np.maximum(top[i], top[rest])
        ll = np.maximum(left[i], left[rest])
        bb = np.minimum(bottom[i], bottom[rest])
        rr = np.minimum(right[i], right[rest])

        inter = np.maximum(0.0, bb - tt) * np.maximum(0.0, rr - ll)
        union = areas[i] + areas[rest] - inter
        overlap = np.zeros_like(inter)
        np.divide(inter, union, out=overlap, where=union > _EPS)

        order = rest[overlap <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(
    boxes: Sequence[ScoredBox],
    iou_threshold: float,
    max_detections: Optional[int] = None,
) -> List[ScoredBox]:
    """
    Run `nms` over scored boxes regardless of class. The result is a
    subsequence of `boxes` ordered by descending score.
    """

    cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections)
    if not boxes:
        return []
    coords = np.array([b.box.as_tlbr() for b in boxes], dtype=np.float64)
    scores = np.array([b.score for b in boxes], dtype=np.float64)
    return [boxes[i] for i in nms(coords, scores, cfg)]
