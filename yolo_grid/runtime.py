from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from .boxes import offset_rect
from .config import ModelConfig, load_model_config
from .crop import CropRegion, scale_and_center_crop
from .postprocess import GridPostConfig, GridPostprocessor
from .types import Detection, Rect


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    region: CropRegion


def _to_source(rect: Rect, region: CropRegion) -> Rect:
    moved = offset_rect(rect, region.x, region.y)
    s = region.scale
    return Rect(x=moved.x / s, y=moved.y / s, width=moved.width / s, height=moved.height / s)


class GridDetector:
    """
    Plug-and-play detector: center crop -> inference -> grid post-process.

    Expects BGR images (OpenCV-style) as `np.ndarray`. The model sees an RGB,
    [0, 1]-normalized NHWC blob of shape (1, size, size, 3). Detections come back
    in the input image's pixel coordinates; only the centered square is searched.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        post_cfg: GridPostConfig,
        *,
        input_size: int = 416,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
    ):
        self._infer_fn = infer_fn
        self.input_size = int(input_size)
        self.backend = backend
        self.backend_name = backend_name
        self.post = GridPostprocessor(post_cfg)

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        crop, region = scale_and_center_crop(image_bgr, self.input_size)
        blob = crop[:, :, ::-1].astype(np.float32) / 255.0
        return PreprocessResult(blob=blob[None, ...], region=region)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_bgr)
        raw = self._infer_fn(prep.blob)
        detections = self.post.process(raw, image_size=(self.input_size, self.input_size))
        logger.debug("%d detections above display threshold", len(detections))
        return [replace(d, rect=_to_source(d.rect, prep.region)) for d in detections]


def load_detector(
    config_path: PathLike,
    *,
    onnx_providers: Optional[Sequence[str]] = None,
    display_threshold: Optional[float] = None,
    iou_threshold: Optional[float] = None,
) -> GridDetector:
    """
    Create a detector from a model config JSON, running the model with ONNX Runtime.

    Threshold arguments override the config file values when given.
    """

    cfg: ModelConfig = load_model_config(Path(config_path))

    overrides = {}
    if display_threshold is not None:
        overrides["display_threshold"] = float(display_threshold)
    if iou_threshold is not None:
        overrides["iou_threshold"] = float(iou_threshold)
    post_cfg = cfg.post_config(**overrides)

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    backend = OnnxRuntimeBackend(cfg.model_path, OnnxRuntimeBackendConfig(providers=onnx_providers))
    logger.info("model %s running on %s", cfg.model_path, ", ".join(backend.providers_in_use))
    return GridDetector(
        backend.infer,
        post_cfg,
        input_size=cfg.input_size,
        backend=backend,
        backend_name="onnxruntime",
    )
