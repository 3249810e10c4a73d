from __future__ import annotations

from typing import Iterable, List, Tuple

from .types import CornerBox, DecodedBox, ScoredBox


def filter_boxes(boxes: Iterable[Tuple[DecodedBox, CornerBox]], min_score: float) -> List[ScoredBox]:
    """
    Score each box by its best class and drop boxes scoring below `min_score`.

    score = confidence * class_probs[class_index], where class_index is the argmax
    over class_probs (first index wins ties). This is a coarse pre-filter meant to
    shrink the candidate set before NMS; an empty list means nothing passed.
    """

    if min_score < 0:
        raise ValueError(f"min_score must be >= 0, got {min_score}")

    kept: List[ScoredBox] = []
    for decoded, corners in boxes:
        probs = decoded.class_probs
        class_index = 0
        for i in range(1, len(probs)):
            if probs[i] > probs[class_index]:
                class_index = i
        score = decoded.confidence * probs[class_index]
        if score >= min_score:
            kept.append(ScoredBox(box=corners, class_index=class_index, score=score))
    return kept
