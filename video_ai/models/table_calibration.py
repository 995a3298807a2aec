#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Table calibration model.
This module contains the TableCalibration class that maps normalized camera
coordinates to the physical table tennis table.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from video_ai.utils.constants import TABLE

logger = logging.getLogger(__name__)


def _corner_to_tuple(corner: Any) -> Tuple[float, float]:
    if isinstance(corner, dict):
        return float(corner['x']), float(corner['y'])
    x, y = corner
    return float(x), float(y)


class TableCalibration:
    """
    Table calibration in normalized camera coordinates.

    Corners are ordered top-left, top-right, bottom-right, bottom-left; the first
    two span the table's long side and define the pixel-to-meter scale.
    """

    def __init__(self, corners: Sequence[Any],
                 real_width: float = TABLE.REAL_WIDTH_M,
                 real_height: float = TABLE.REAL_HEIGHT_M):
        self.corners: List[Tuple[float, float]] = [_corner_to_tuple(c) for c in corners]
        self.real_width = real_width
        self.real_height = real_height
        self._homography: Optional[np.ndarray] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['TableCalibration']:
        """
        Create a calibration from its dictionary form.

        Accepts ``{corners: [{x, y}, ...], realWidth, realHeight}`` as written by
        the calibration UI, or the snake_case keys of ``to_dict``.

        Returns:
            TableCalibration, or None when no corners are present
        """
        if not data or not data.get('corners'):
            return None
        return cls(
            corners=data['corners'],
            real_width=float(data.get('real_width', data.get('realWidth', TABLE.REAL_WIDTH_M))),
            real_height=float(data.get('real_height', data.get('realHeight', TABLE.REAL_HEIGHT_M))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'corners': [{'x': x, 'y': y} for x, y in self.corners],
            'real_width': self.real_width,
            'real_height': self.real_height,
        }

    def width_px(self) -> float:
        """
        Distance between the first two corners in normalized units.

        Returns:
            Width of the table's long side, 0.0 with fewer than two corners
        """
        if len(self.corners) < 2:
            return 0.0
        (x0, y0), (x1, y1) = self.corners[0], self.corners[1]
        return math.hypot(x1 - x0, y1 - y0)

    def meters_per_unit(self) -> float:
        """Meters per normalized unit, 0.0 for a degenerate calibration."""
        width = self.width_px()
        if width < TABLE.MIN_WIDTH_PX:
            return 0.0
        return self.real_width / width

    def homography(self) -> Optional[np.ndarray]:
        """
        Perspective transform from normalized camera coordinates to table centimetres.

        Returns:
            3x3 matrix, or None without exactly four usable corners
        """
        if self._homography is not None:
            return self._homography
        if len(self.corners) != 4:
            return None

        width_cm = self.real_width * 100.0
        height_cm = self.real_height * 100.0
        src = np.array(self.corners, dtype=np.float32)
        dst = np.array([
            [0.0, 0.0],
            [width_cm, 0.0],
            [width_cm, height_cm],
            [0.0, height_cm],
        ], dtype=np.float32)

        try:
            matrix = cv2.getPerspectiveTransform(src, dst)
        except cv2.error as e:
            logger.warning(f"Could not compute table homography: {e}")
            return None

        if not np.all(np.isfinite(matrix)):
            logger.warning("Table homography is not finite, corners are degenerate")
            return None

        self._homography = matrix
        return matrix

    def camera_to_table(self, x: float, y: float) -> Optional[Tuple[float, float]]:
        """
        Map a normalized camera point to table coordinates in centimetres.

        Args:
            x: Normalized x (0-1)
            y: Normalized y (0-1)

        Returns:
            (x_cm, y_cm) or None without a homography or at the horizon line
        """
        h = self.homography()
        if h is None:
            return None

        w = h[2, 0] * x + h[2, 1] * y + h[2, 2]
        if abs(w) < TABLE.HOMOGRAPHY_EPS:
            return None

        tx = (h[0, 0] * x + h[0, 1] * y + h[0, 2]) / w
        ty = (h[1, 0] * x + h[1, 1] * y + h[1, 2]) / w
        return float(tx), float(ty)

    def is_on_table(self, x: float, y: float, margin_cm: float = TABLE.ON_TABLE_MARGIN_CM) -> bool:
        """Whether a normalized camera point lands on the table (with margin)."""
        table_pos = self.camera_to_table(x, y)
        if table_pos is None:
            return False
        tx, ty = table_pos
        return (-margin_cm <= tx <= self.real_width * 100.0 + margin_cm and
                -margin_cm <= ty <= self.real_height * 100.0 + margin_cm)

    def __repr__(self) -> str:
        return f"TableCalibration(corners={self.corners}, real_width={self.real_width})"
