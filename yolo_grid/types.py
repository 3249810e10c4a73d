from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Anchor:
    """
    Anchor prior (width, height) in grid-cell units.
    """

    width: float
    height: float


@dataclass(frozen=True)
class DecodedBox:
    """
    One grid-cell/anchor prediction after squashing.

    Geometry is center-form in normalized units (fraction of the grid).
    `class_probs` are independent per-class sigmoids and need not sum to 1.
    """

    center_x: float
    center_y: float
    width: float
    height: float
    confidence: float
    class_probs: Tuple[float, ...]


@dataclass(frozen=True)
class CornerBox:
    top: float
    left: float
    bottom: float
    right: float

    @property
    def area(self) -> float:
        # Malformed boxes (top > bottom or left > right) count as empty.
        return max(0.0, self.bottom - self.top) * max(0.0, self.right - self.left)

    def as_tlbr(self) -> Tuple[float, float, float, float]:
        return self.top, self.left, self.bottom, self.right


@dataclass(frozen=True)
class ScoredBox:
    box: CornerBox
    class_index: int
    score: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """
    Final output unit handed to the rendering side.
    """

    class_name: str
    probability: float
    rect: Rect
