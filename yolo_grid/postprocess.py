from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .boxes import clamp_to_image, scale_to_image, to_corners, to_rect
from .decode import AnchorLike, decode
from .filtering import filter_boxes
from .nms import NMSConfig, suppress
from .types import Anchor, Detection


logger = logging.getLogger(__name__)


def run(
    raw: np.ndarray,
    anchors: Sequence[AnchorLike],
    num_classes: int,
    min_score: float,
    iou_threshold: float,
    image_width: float,
    image_height: float,
    class_names: Sequence[str],
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Turn one raw grid output into labelled detections in image pixels.

    decode -> corners -> scale to (image_width, image_height) -> score filter
    (`min_score`) -> class-agnostic NMS (`iou_threshold`) -> label lookup.

    Raises:
        ShapeError: raw output does not match anchors / num_classes.
        IndexError: a kept box has a class index with no entry in `class_names`.

    An empty list is the normal "nothing detected" result.
    """

    # Validated up front so a bad setting fails whether or not any box survives.
    nms_cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections)

    decoded = decode(raw, anchors, num_classes)
    pairs = ((d, scale_to_image(to_corners(d), image_width, image_height)) for d in decoded)
    scored = filter_boxes(pairs, min_score)
    logger.debug("decoded %d boxes, %d passed min_score=%.3f", len(decoded), len(scored), min_score)
    if not scored:
        return []

    kept = suppress(scored, nms_cfg.iou_threshold, max_detections=nms_cfg.max_detections)
    logger.debug("%d boxes kept after NMS (iou_threshold=%.3f)", len(kept), iou_threshold)

    detections: List[Detection] = []
    for sb in kept:
        if not 0 <= sb.class_index < len(class_names):
            logger.error(
                "class index %d has no label (label table has %d entries, model has %d classes)",
                sb.class_index,
                len(class_names),
                num_classes,
            )
            raise IndexError(
                f"Class index {sb.class_index} out of range for {len(class_names)} class names."
            )
        box = clamp_to_image(sb.box, image_width, image_height)
        detections.append(
            Detection(class_name=class_names[sb.class_index], probability=sb.score, rect=to_rect(box))
        )
    return detections


@dataclass(frozen=True)
class GridPostConfig:
    """
    Post-processing settings for one grid detector model.
    """

    anchors: Tuple[Anchor, ...]
    class_names: Tuple[str, ...]
    # Coarse pre-filter before NMS; keep it low.
    min_score: float = 0.01
    iou_threshold: float = 0.3
    # Applied to final detections only.
    display_threshold: float = 0.3
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.anchors:
            raise ValueError("anchors must not be empty")
        for a in self.anchors:
            if a.width <= 0 or a.height <= 0:
                raise ValueError(f"anchor sizes must be > 0, got {a}")
        if not self.class_names:
            raise ValueError("class_names must not be empty")
        if self.min_score < 0 or self.min_score > 1:
            raise ValueError("min_score must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if not 0.0 <= self.display_threshold <= 1.0:
            raise ValueError("display_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")

    @property
    def num_classes(self) -> int:
        return len(self.class_names)


class GridPostprocessor:
    """
    Post-process for anchor-grid YOLO outputs (YOLOv2 / tiny-YOLO style).

    Layout (per image): (grid_h, grid_w, anchors, 5 + C) with
    [tx, ty, tw, th, objectness, class_logits...]; a batch axis of one and the
    channel-flattened (grid_h, grid_w, anchors * (5 + C)) form are accepted too.
    """

    def __init__(self, cfg: GridPostConfig):
        self.cfg = cfg

    def process(self, raw: np.ndarray, image_size: Tuple[int, int]) -> List[Detection]:
        """
        Args:
            raw: model output for a single image
            image_size: (width, height) of the image the model saw
        """

        width, height = image_size
        detections = run(
            raw,
            self.cfg.anchors,
            self.cfg.num_classes,
            min_score=self.cfg.min_score,
            iou_threshold=self.cfg.iou_threshold,
            image_width=width,
            image_height=height,
            class_names=self.cfg.class_names,
            max_detections=self.cfg.max_detections,
        )
        return [d for d in detections if d.probability >= self.cfg.display_threshold]
