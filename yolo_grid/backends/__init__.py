"""
Optional inference backends for yolo_grid.

Kept apart from the core so decoding and NMS can be used without an
inference runtime installed.
"""

from __future__ import annotations

__all__ = []
