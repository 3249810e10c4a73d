"""
Center-form -> corner-form conversion and pixel-space mapping.

`to_corners` and `scale_to_image` are kept separate so the conversion does not
depend on any particular target image size. Clamping belongs to whoever consumes
the boxes and is only applied by `clamp_to_image`.
"""

from __future__ import annotations

from .types import CornerBox, DecodedBox, Rect


def to_corners(box: DecodedBox) -> CornerBox:
    half_w = box.width / 2
    half_h = box.height / 2
    return CornerBox(
        top=box.center_y - half_h,
        left=box.center_x - half_w,
        bottom=box.center_y + half_h,
        right=box.center_x + half_w,
    )


def scale_to_image(box: CornerBox, image_width: float, image_height: float) -> CornerBox:
    return CornerBox(
        top=box.top * image_height,
        left=box.left * image_width,
        bottom=box.bottom * image_height,
        right=box.right * image_width,
    )


def clamp_to_image(box: CornerBox, image_width: float, image_height: float) -> CornerBox:
    top = min(max(0.0, box.top), image_height)
    left = min(max(0.0, box.left), image_width)
    bottom = max(min(image_height, box.bottom), top)
    right = max(min(image_width, box.right), left)
    return CornerBox(top=top, left=left, bottom=bottom, right=right)


def to_rect(box: CornerBox) -> Rect:
    return Rect(x=box.left, y=box.top, width=box.right - box.left, height=box.bottom - box.top)


def offset_rect(rect: Rect, dx: float, dy: float) -> Rect:
    """
    Translate a rect, e.g. from crop coordinates into the full displayed image.
    """

    return Rect(x=rect.x + dx, y=rect.y + dy, width=rect.width, height=rect.height)
