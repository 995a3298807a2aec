#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Geometry utilities shared by the detector and the tracker.
Letterbox math and the mapping between model input space and the source frame.
"""

from typing import Tuple

from video_ai.models.detection import FrameGeometry


def compute_letterbox(src_w: int, src_h: int, target_size: int) -> Tuple[FrameGeometry, int, int]:
    """
    Compute the aspect-preserving fit of a source frame into a square input.

    Args:
        src_w: Source frame width in pixels
        src_h: Source frame height in pixels
        target_size: Side of the square model input

    Returns:
        Tuple of (geometry, new_w, new_h). The geometry's padding is the integer
        offset at which the resized frame is placed.
    """
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size: {src_w}x{src_h}")

    scale = min(target_size / src_w, target_size / src_h)
    new_w = min(target_size, int(round(src_w * scale)))
    new_h = min(target_size, int(round(src_h * scale)))
    pad_x = (target_size - new_w) // 2
    pad_y = (target_size - new_h) // 2

    geometry = FrameGeometry(
        scale=scale,
        pad_x=float(pad_x),
        pad_y=float(pad_y),
        src_w=int(src_w),
        src_h=int(src_h),
    )
    return geometry, new_w, new_h


def model_box_to_normalized(x1: float, y1: float, x2: float, y2: float,
                            geometry: FrameGeometry) -> Tuple[float, float, float, float]:
    """
    Map an ``x1, y1, x2, y2`` box in model input space back to the source frame.

    Returns:
        ``(x, y, width, height)`` normalized to the source frame
    """
    sx1 = (x1 - geometry.pad_x) / geometry.scale
    sy1 = (y1 - geometry.pad_y) / geometry.scale
    sx2 = (x2 - geometry.pad_x) / geometry.scale
    sy2 = (y2 - geometry.pad_y) / geometry.scale

    return (
        sx1 / geometry.src_w,
        sy1 / geometry.src_h,
        (sx2 - sx1) / geometry.src_w,
        (sy2 - sy1) / geometry.src_h,
    )


def normalized_to_model_box(x: float, y: float, width: float, height: float,
                            geometry: FrameGeometry) -> Tuple[float, float, float, float]:
    """Inverse of model_box_to_normalized."""
    sx1 = x * geometry.src_w
    sy1 = y * geometry.src_h
    sx2 = (x + width) * geometry.src_w
    sy2 = (y + height) * geometry.src_h
    return (
        sx1 * geometry.scale + geometry.pad_x,
        sy1 * geometry.scale + geometry.pad_y,
        sx2 * geometry.scale + geometry.pad_x,
        sy2 * geometry.scale + geometry.pad_y,
    )
