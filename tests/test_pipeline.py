import math
import unittest

import numpy as np

from yolo_grid.errors import ShapeError
from yolo_grid.postprocess import GridPostConfig, GridPostprocessor, run
from yolo_grid.types import Anchor


def _raw_2x2(classes=(0, 0)) -> np.ndarray:
    """
    2x2 grid, 1 anchor, 2 classes.

    cell (0, 0): strong box, cell (0, 1): slightly weaker box overlapping it
    (IoU 1/3), cell (1, 1): low objectness, cell (1, 0): nothing.
    Both strong boxes are 1.0 wide (anchor 1.0 * exp(log 2) / 2).
    """

    raw = np.full((2, 2, 1, 7), -10.0)
    raw[..., 0:2] = 0.0
    raw[..., 5:] = -5.0

    raw[0, 0, 0, 2:4] = math.log(2.0)
    raw[0, 0, 0, 4] = 5.0
    raw[0, 0, 0, 5 + classes[0]] = 5.0

    raw[0, 1, 0, 2:4] = math.log(2.0)
    raw[0, 1, 0, 4] = 4.0
    raw[0, 1, 0, 5 + classes[1]] = 5.0

    raw[1, 1, 0, 4] = -3.0
    raw[1, 1, 0, 5] = 5.0
    return raw


def _sig(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


ANCHORS = [Anchor(1.0, 1.0)]
NAMES = ["cat", "dog"]


def _run(raw, class_names=NAMES, min_score=0.1, iou_threshold=0.3):
    return run(
        raw,
        ANCHORS,
        num_classes=2,
        min_score=min_score,
        iou_threshold=iou_threshold,
        image_width=100,
        image_height=100,
        class_names=class_names,
    )


class TestDetectionPipeline(unittest.TestCase):
    def test_overlapping_pair_and_low_confidence_box(self) -> None:
        dets = _run(_raw_2x2())
        self.assertEqual(len(dets), 1)
        det = dets[0]
        self.assertEqual(det.class_name, "cat")
        self.assertAlmostEqual(det.probability, _sig(5.0) * _sig(5.0))
        # Box spans [-25, 75] on both axes before clamping to the image.
        self.assertAlmostEqual(det.rect.x, 0.0)
        self.assertAlmostEqual(det.rect.y, 0.0)
        self.assertAlmostEqual(det.rect.width, 75.0)
        self.assertAlmostEqual(det.rect.height, 75.0)

    def test_looser_iou_keeps_both_overlapping_boxes(self) -> None:
        dets = _run(_raw_2x2(), iou_threshold=0.5)
        self.assertEqual([d.class_name for d in dets], ["cat", "cat"])
        self.assertGreater(dets[0].probability, dets[1].probability)

    def test_different_classes_still_suppress_each_other(self) -> None:
        dets = _run(_raw_2x2(classes=(0, 1)))
        self.assertEqual([d.class_name for d in dets], ["cat"])

    def test_deterministic(self) -> None:
        raw = np.random.default_rng(0).normal(size=(4, 4, 1, 7))
        first = _run(raw, min_score=0.05, iou_threshold=0.4)
        second = _run(raw.copy(), min_score=0.05, iou_threshold=0.4)
        self.assertEqual(first, second)
        self.assertGreater(len(first), 0)

    def test_no_objects_is_empty_not_error(self) -> None:
        raw = np.zeros((2, 2, 1, 7))
        raw[..., 4] = -50.0
        self.assertEqual(_run(raw, min_score=0.01), [])

    def test_everything_suppressed_but_one(self) -> None:
        raw = np.zeros((2, 2, 1, 7))
        raw[..., 2:4] = math.log(4.0)  # every box covers the whole image
        raw[..., 4] = 3.0
        raw[0, 0, 0, 4] = 4.0
        dets = _run(raw)
        self.assertEqual(len(dets), 1)
        self.assertAlmostEqual(dets[0].probability, _sig(4.0) * 0.5)

    def test_bad_iou_threshold_rejected_even_when_nothing_detected(self) -> None:
        raw = np.zeros((2, 2, 1, 7))
        raw[..., 4] = -50.0
        with self.assertRaises(ValueError):
            _run(raw, iou_threshold=7.0)
        raw[..., 4] = 50.0
        with self.assertRaises(ValueError):
            _run(raw, iou_threshold=7.0)

    def test_label_table_too_short(self) -> None:
        raw = _raw_2x2(classes=(1, 1))
        with self.assertRaises(IndexError):
            _run(raw, class_names=["cat"])

    def test_shape_mismatch(self) -> None:
        with self.assertRaises(ShapeError):
            run(np.zeros((2, 2, 1, 7)), ANCHORS, 3, 0.1, 0.3, 100, 100, ["a", "b", "c"])


class TestGridPostprocessor(unittest.TestCase):
    def _cfg(self, **kwargs) -> GridPostConfig:
        values = dict(anchors=tuple(ANCHORS), class_names=tuple(NAMES), min_score=0.01, iou_threshold=0.5)
        values.update(kwargs)
        return GridPostConfig(**values)

    def test_display_threshold_applied_after_nms(self) -> None:
        raw = _raw_2x2()
        raw[0, 1, 0, 4] = -0.5  # second box now scores ~0.37
        post = GridPostprocessor(self._cfg(display_threshold=0.5))
        dets = post.process(raw, image_size=(100, 100))
        self.assertEqual(len(dets), 1)
        self.assertGreater(dets[0].probability, 0.5)

        post_low = GridPostprocessor(self._cfg(display_threshold=0.1))
        self.assertEqual(len(post_low.process(raw, image_size=(100, 100))), 2)

    def test_accepts_batched_flat_output(self) -> None:
        raw = _raw_2x2().reshape(1, 2, 2, 7)
        post = GridPostprocessor(self._cfg(iou_threshold=0.3))
        self.assertEqual(len(post.process(raw, image_size=(100, 100))), 1)

    def test_config_validation(self) -> None:
        with self.assertRaises(ValueError):
            self._cfg(anchors=())
        with self.assertRaises(ValueError):
            self._cfg(anchors=(Anchor(0.0, 1.0),))
        with self.assertRaises(ValueError):
            self._cfg(iou_threshold=1.2)
        with self.assertRaises(ValueError):
            self._cfg(min_score=-0.1)
        with self.assertRaises(ValueError):
            self._cfg(display_threshold=2.0)
        self.assertEqual(self._cfg().num_classes, 2)


if __name__ == "__main__":
    unittest.main()
