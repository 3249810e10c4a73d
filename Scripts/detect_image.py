import argparse
import logging

import cv2

from yolo_grid import ShapeError, draw_detections, load_detector


logger = logging.getLogger("detect_image")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a grid YOLO detector on one image and draw the boxes.")
    parser.add_argument("--config", default="configs/yolov2_tiny_coco.json", help="Model config JSON.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--conf", type=float, default=None, help="Display probability threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with the drawn detections.")
    parser.add_argument("--out", default=None, help="Optional output path for the drawn image.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    detector = load_detector(
        args.config,
        onnx_providers=onnx_providers,
        display_threshold=args.conf,
        iou_threshold=args.iou,
    )

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    try:
        detections = detector(img)
    except (ShapeError, IndexError) as exc:
        # Model and config disagree; nothing to retry.
        logger.error("detection failed for %s: %s", args.image, exc)
        return 1

    if not detections:
        print("no detections")
    for det in detections:
        r = det.rect
        print(f"{det.class_name} {det.probability:.3f} x={r.x:.1f} y={r.y:.1f} w={r.width:.1f} h={r.height:.1f}")

    vis = draw_detections(img, detections)
    if args.out:
        ok = cv2.imwrite(args.out, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {args.out}")

    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
