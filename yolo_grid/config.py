from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .metadata import load_class_names
from .postprocess import GridPostConfig
from .types import Anchor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    schema_version: int
    model_path: Path
    input_size: int
    anchors: Tuple[Anchor, ...]
    class_names: Tuple[str, ...]
    iou_threshold: float = 0.3
    min_score: float = 0.01
    display_threshold: float = 0.3
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("model config schema_version must be 1")
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")
        # Threshold/anchor validation lives in GridPostConfig.
        self.post_config()

    def post_config(self, **overrides: Any) -> GridPostConfig:
        values: Dict[str, Any] = dict(
            anchors=self.anchors,
            class_names=self.class_names,
            min_score=self.min_score,
            iou_threshold=self.iou_threshold,
            display_threshold=self.display_threshold,
        )
        values.update(overrides)
        return GridPostConfig(**values)


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    return _as_number(payload[key], key)


def _as_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _parse_anchors(value: Any) -> Tuple[Anchor, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError("anchors must be a non-empty list of [width, height] pairs")
    anchors: List[Anchor] = []
    for i, pair in enumerate(value):
        if not isinstance(pair, list) or len(pair) != 2:
            raise ValueError(f"anchors[{i}] must be a [width, height] pair")
        w = _as_number(pair[0], f"anchors[{i}][0]")
        h = _as_number(pair[1], f"anchors[{i}][1]")
        if w <= 0 or h <= 0:
            raise ValueError(f"anchors[{i}] sizes must be > 0")
        anchors.append(Anchor(width=w, height=h))
    return tuple(anchors)


def _parse_class_names(payload: Dict[str, Any], base_dir: Path) -> Tuple[str, ...]:
    has_list = "class_names" in payload
    has_path = "class_names_path" in payload
    if has_list == has_path:
        raise ValueError("Exactly one of class_names / class_names_path is required")
    if has_path:
        names_path = base_dir / _require_str(payload, "class_names_path")
        if not names_path.exists():
            raise FileNotFoundError(f"Class names file not found: {names_path}")
        return tuple(load_class_names(names_path))

    value = payload["class_names"]
    if not isinstance(value, list) or not value or not all(isinstance(n, str) for n in value):
        raise ValueError("class_names must be a non-empty list of strings")
    return tuple(value)


def load_model_config(path: Path) -> ModelConfig:
    """
    Load a model config JSON. Relative paths inside it resolve against the
    config file's directory.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid model config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Model config must be a JSON object")

    allowed = {
        "schema_version",
        "model_path",
        "input_size",
        "anchors",
        "class_names",
        "class_names_path",
        "iou_threshold",
        "min_score",
        "display_threshold",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown model config keys: {unknown}")

    base_dir = path.resolve().parent
    schema_version = _require_int(payload, "schema_version")
    model_path = base_dir / _require_str(payload, "model_path")
    input_size = _require_int(payload, "input_size")
    if "anchors" not in payload:
        raise ValueError("Missing required key: anchors")
    anchors = _parse_anchors(payload["anchors"])
    class_names = _parse_class_names(payload, base_dir)
    iou_threshold = _require_number(payload, "iou_threshold")
    min_score = _as_number(payload.get("min_score", 0.01), "min_score")
    display_threshold = _require_number(payload, "display_threshold")
    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("notes must be a string if provided")

    cfg = ModelConfig(
        schema_version=schema_version,
        model_path=model_path,
        input_size=input_size,
        anchors=anchors,
        class_names=class_names,
        iou_threshold=iou_threshold,
        min_score=min_score,
        display_threshold=display_threshold,
        notes=notes,
    )
    logger.info(
        "loaded model config %s: %d anchors, %d classes, input %dpx",
        path,
        len(cfg.anchors),
        len(cfg.class_names),
        cfg.input_size,
    )
    return cfg
