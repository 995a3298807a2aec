#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Data models for the video AI core.
"""

from video_ai.models.detection import Detection, DetectionResult, FrameGeometry
from video_ai.models.track import Track, TrackedDetection, TrajectoryPoint
from video_ai.models.bounce_event import BounceEvent
from video_ai.models.table_calibration import TableCalibration

__all__ = [
    "Detection", "DetectionResult", "FrameGeometry",
    "Track", "TrackedDetection", "TrajectoryPoint",
    "BounceEvent",
    "TableCalibration",
]
