#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Detection models.
This module contains the per-frame detection types produced by the detector
and consumed by the tracker.
"""

import dataclasses
from typing import Any, Dict, List, Optional, Tuple


@dataclasses.dataclass
class Detection:
    """
    Single-frame object detection.

    Coordinates are a top-left origin box normalized to [0, 1] of the
    original (not letterboxed) frame.
    """

    x: float
    y: float
    width: float
    height: float
    score: float
    class_name: str = "ball"

    @property
    def center(self) -> Tuple[float, float]:
        """Box center (cx, cy)."""
        return self.x + self.width / 2, self.y + self.height / 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'score': self.score,
            'class_name': self.class_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Detection':
        """
        Create a detection from a dictionary.

        Accepts both ``class_name`` and the browser build's ``className`` key.
        """
        return cls(
            x=float(data['x']),
            y=float(data['y']),
            width=float(data['width']),
            height=float(data['height']),
            score=float(data.get('score', 1.0)),
            class_name=data.get('class_name', data.get('className', 'ball')),
        )


@dataclasses.dataclass
class DetectionResult:
    """Detections of one frame, bucketed by class."""

    balls: List[Detection] = dataclasses.field(default_factory=list)
    rackets: List[Detection] = dataclasses.field(default_factory=list)
    table: Optional[Detection] = None  # best-scoring table only

    def add(self, detection: Detection) -> None:
        """
        Put a detection into its bucket.

        Only the highest scoring table survives; other classes are dropped.
        """
        if detection.class_name == 'ball':
            self.balls.append(detection)
        elif detection.class_name == 'racket':
            self.rackets.append(detection)
        elif detection.class_name == 'table':
            if self.table is None or detection.score > self.table.score:
                self.table = detection

    def is_empty(self) -> bool:
        return not self.balls and not self.rackets and self.table is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'balls': [d.to_dict() for d in self.balls],
            'rackets': [d.to_dict() for d in self.rackets],
            'table': self.table.to_dict() if self.table is not None else None,
        }


@dataclasses.dataclass(frozen=True)
class FrameGeometry:
    """Letterbox parameters needed to map model boxes back to the source frame."""

    scale: float
    pad_x: float
    pad_y: float
    src_w: int
    src_h: int
