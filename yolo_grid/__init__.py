"""
Post-processing for anchor-grid YOLO detectors (YOLOv2 / tiny-YOLO family).

Turns one raw (grid_h, grid_w, anchors, 5 + C) output into labelled, thresholded,
non-overlapping boxes. The core (decode, boxes, filtering, nms, postprocess)
only needs NumPy; OpenCV and ONNX Runtime are imported lazily by the
crop/visualize helpers and the inference backend.
"""

from .types import Anchor, CornerBox, DecodedBox, Detection, Rect, ScoredBox
from .errors import ShapeError
from .decode import decode, sigmoid
from .boxes import clamp_to_image, offset_rect, scale_to_image, to_corners, to_rect
from .filtering import filter_boxes
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import GridPostConfig, GridPostprocessor, run
from .metadata import load_class_names
from .config import ModelConfig, load_model_config
from .crop import CropRegion, scale_and_center_crop
from .runtime import GridDetector, load_detector
from .visualize import draw_detections

__all__ = [
    "Anchor",
    "CornerBox",
    "DecodedBox",
    "Detection",
    "Rect",
    "ScoredBox",
    "ShapeError",
    "decode",
    "sigmoid",
    "clamp_to_image",
    "offset_rect",
    "scale_to_image",
    "to_corners",
    "to_rect",
    "filter_boxes",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "GridPostConfig",
    "GridPostprocessor",
    "run",
    "load_class_names",
    "ModelConfig",
    "load_model_config",
    "CropRegion",
    "scale_and_center_crop",
    "GridDetector",
    "load_detector",
    "draw_detections",
]
