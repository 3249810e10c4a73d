import unittest

import numpy as np

from yolo_grid.nms import NMSConfig, iou, nms, suppress
from yolo_grid.types import CornerBox, ScoredBox


def _unit_at(x: float, score: float, class_index: int = 0) -> ScoredBox:
    return ScoredBox(box=CornerBox(top=0.0, left=x, bottom=1.0, right=x + 1.0), class_index=class_index, score=score)


class TestIoU(unittest.TestCase):
    def test_identical_boxes(self) -> None:
        a = CornerBox(top=0, left=0, bottom=1, right=1)
        self.assertAlmostEqual(iou(a, a), 1.0)

    def test_disjoint_boxes(self) -> None:
        a = CornerBox(top=0, left=0, bottom=1, right=1)
        b = CornerBox(top=2, left=2, bottom=3, right=3)
        self.assertEqual(iou(a, b), 0.0)

    def test_touching_edges(self) -> None:
        a = CornerBox(top=0, left=0, bottom=1, right=1)
        b = CornerBox(top=0, left=1, bottom=1, right=2)
        self.assertEqual(iou(a, b), 0.0)

    def test_contained_half_area(self) -> None:
        outer = CornerBox(top=0, left=0, bottom=2, right=2)
        half = CornerBox(top=0, left=0, bottom=1, right=2)
        self.assertAlmostEqual(iou(outer, half), 0.5)
        self.assertAlmostEqual(iou(half, outer), 0.5)

    def test_zero_area_and_malformed(self) -> None:
        point = CornerBox(top=1, left=1, bottom=1, right=1)
        self.assertEqual(iou(point, point), 0.0)
        flipped = CornerBox(top=5, left=0, bottom=0, right=5)
        self.assertEqual(flipped.area, 0.0)
        self.assertEqual(iou(flipped, CornerBox(top=0, left=0, bottom=5, right=5)), 0.0)


class TestNMS(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(nms(np.zeros((0, 4)), np.zeros((0,)), NMSConfig()).shape, (0,))
        self.assertEqual(suppress([], 0.5), [])

    def test_order_descending_with_stable_ties(self) -> None:
        boxes = [_unit_at(0, 0.5), _unit_at(10, 0.9), _unit_at(20, 0.5), _unit_at(30, 0.7)]
        kept = suppress(boxes, 0.5)
        self.assertEqual(kept, [boxes[1], boxes[3], boxes[0], boxes[2]])

    def test_equal_scores_first_input_wins(self) -> None:
        a = _unit_at(0.0, 0.8)
        b = _unit_at(0.1, 0.8)
        self.assertEqual(suppress([a, b], 0.3), [a])
        self.assertEqual(suppress([b, a], 0.3), [b])

    def test_suppression_is_class_agnostic(self) -> None:
        strong = _unit_at(0.0, 0.9, class_index=0)
        other_class = _unit_at(0.1, 0.8, class_index=1)
        self.assertEqual(suppress([other_class, strong], 0.5), [strong])

    def test_threshold_is_strict(self) -> None:
        outer = ScoredBox(box=CornerBox(top=0, left=0, bottom=2, right=2), class_index=0, score=0.9)
        half = ScoredBox(box=CornerBox(top=0, left=0, bottom=1, right=2), class_index=0, score=0.8)
        # IoU is exactly 0.5: only suppressed when strictly greater.
        self.assertEqual(len(suppress([outer, half], 0.5)), 2)
        self.assertEqual(len(suppress([outer, half], 0.49)), 1)

    def test_kept_set_grows_with_iou_threshold(self) -> None:
        # Unit boxes sliding along x; IoU of offset d is (1 - d) / (1 + d).
        boxes = [_unit_at(x, s) for x, s in zip((0.0, 0.2, 0.5, 0.9, 1.4), (0.9, 0.8, 0.7, 0.6, 0.5))]
        sizes = [len(suppress(boxes, t)) for t in (0.0, 0.25, 0.5, 0.75, 1.0)]
        self.assertEqual(sizes, [2, 2, 4, 5, 5])

    def test_output_is_subsequence_sorted_by_score(self) -> None:
        rng = np.random.default_rng(0)
        tl = rng.uniform(0, 50, size=(40, 2))
        wh = rng.uniform(5, 30, size=(40, 2))
        scores = np.round(rng.uniform(0, 1, size=40), 1)
        boxes = [
            ScoredBox(box=CornerBox(top=t, left=l, bottom=t + h, right=l + w), class_index=0, score=float(s))
            for (t, l), (h, w), s in zip(tl, wh, scores)
        ]
        kept = suppress(boxes, 0.4)
        positions = [boxes.index(k) for k in kept]
        for a, b in zip(positions, positions[1:]):
            sa, sb = boxes[a].score, boxes[b].score
            self.assertTrue(sa > sb or (sa == sb and a < b))
        for i, k in enumerate(kept):
            for other in kept[i + 1 :]:
                self.assertLessEqual(iou(k.box, other.box), 0.4)

    def test_max_detections(self) -> None:
        boxes = [_unit_at(10.0 * i, 0.9 - 0.1 * i) for i in range(5)]
        self.assertEqual(suppress(boxes, 0.5, max_detections=2), boxes[:2])

    def test_config_validation(self) -> None:
        with self.assertRaises(ValueError):
            NMSConfig(iou_threshold=1.5)
        with self.assertRaises(ValueError):
            NMSConfig(max_detections=0)


if __name__ == "__main__":
    unittest.main()
