from __future__ import annotations

from typing import List, Sequence, Tuple, Union

import numpy as np

from .errors import ShapeError
from .types import Anchor, DecodedBox


AnchorLike = Union[Anchor, Tuple[float, float]]


def sigmoid(x: np.ndarray) -> np.ndarray:
    # exp(-log(1 + exp(-x))) stays finite for large |x|.
    return np.exp(-np.logaddexp(0.0, -np.asarray(x, dtype=np.float64)))


def _anchor_array(anchors: Sequence[AnchorLike]) -> np.ndarray:
    if len(anchors) == 0:
        raise ValueError("At least one anchor is required.")
    pairs = [(a.width, a.height) if isinstance(a, Anchor) else tuple(a) for a in anchors]
    arr = np.asarray(pairs, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Anchors must be (width, height) pairs, got {arr.shape}.")
    return arr


def coerce_raw_output(raw: np.ndarray, num_anchors: int, num_classes: int) -> np.ndarray:
    """
    Bring a model output into the (grid_h, grid_w, num_anchors, 5 + num_classes) layout.

    Accepted inputs:
    - (grid_h, grid_w, A, 5 + C)
    - (1, grid_h, grid_w, A, 5 + C): batch of one
    - (grid_h, grid_w, A * (5 + C)): channels flattened anchor-major
    - (1, grid_h, grid_w, A * (5 + C)): what the inference engine emits

    A 4-D input whose trailing axes are (A, 5 + C) is always read in the first
    form. With one anchor that makes (1, grid_h, 1, 5 + C) a 1 x grid_h grid;
    pass `raw[0]` to get the grid_h x 1 reading.
    """

    if num_classes < 1:
        raise ValueError(f"num_classes must be >= 1, got {num_classes}.")

    p = np.asarray(raw, dtype=np.float64)
    box_len = 5 + num_classes

    if p.ndim == 5:
        if p.shape[0] != 1:
            raise ShapeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]
    elif p.ndim == 4 and p.shape[2:] != (num_anchors, box_len):
        if p.shape[0] == 1 and p.shape[-1] == num_anchors * box_len:
            # Batched, channel-flattened output straight from the model.
            p = p[0]

    if p.ndim == 3:
        grid_h, grid_w, channels = p.shape
        if channels != num_anchors * box_len:
            raise ShapeError(
                f"Expected {num_anchors} x (5 + {num_classes}) = {num_anchors * box_len} channels, got shape {p.shape}."
            )
        p = p.reshape(grid_h, grid_w, num_anchors, box_len)

    if p.ndim != 4:
        raise ShapeError(f"Unsupported raw output shape: {p.shape}")
    if p.shape[-1] != box_len:
        raise ShapeError(f"Last axis must be 5 + {num_classes} = {box_len}, got shape {p.shape}.")
    if p.shape[2] != num_anchors:
        raise ShapeError(f"Raw output has {p.shape[2]} anchors per cell, but {num_anchors} anchors are configured.")
    return p


def decode(raw: np.ndarray, anchors: Sequence[AnchorLike], num_classes: int) -> List[DecodedBox]:
    """
    Decode grid predictions into center-form boxes with squashed confidence and class probabilities.

    Boxes come out in row, column, anchor order; length is grid_h * grid_w * num_anchors.
    Class logits are squashed independently (sigmoid), never softmaxed across classes.
    """

    anchor_wh = _anchor_array(anchors)
    p = coerce_raw_output(raw, num_anchors=anchor_wh.shape[0], num_classes=num_classes)
    grid_h, grid_w = p.shape[:2]

    rows = np.arange(grid_h, dtype=np.float64)[:, None, None]
    cols = np.arange(grid_w, dtype=np.float64)[None, :, None]

    cx = (sigmoid(p[..., 0]) + cols) / grid_w
    cy = (sigmoid(p[..., 1]) + rows) / grid_h
    w = anchor_wh[:, 0] * np.exp(p[..., 2]) / grid_w
    h = anchor_wh[:, 1] * np.exp(p[..., 3]) / grid_h
    conf = sigmoid(p[..., 4])
    probs = sigmoid(p[..., 5:])

    n = grid_h * grid_w * anchor_wh.shape[0]
    cx, cy, w, h, conf = (a.reshape(n) for a in (cx, cy, w, h, conf))
    probs = probs.reshape(n, num_classes)

    return [
        DecodedBox(
            center_x=float(cx[i]),
            center_y=float(cy[i]),
            width=float(w[i]),
            height=float(h[i]),
            confidence=float(conf[i]),
            class_probs=tuple(float(v) for v in probs[i]),
        )
        for i in range(n)
    ]
