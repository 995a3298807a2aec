#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Services package: detector, output parsers and ball tracker.
"""

from video_ai.services.ball_tracker import BallTracker, TrackerUpdate
from video_ai.services.detector import BallDetector

__all__ = ["BallDetector", "BallTracker", "TrackerUpdate"]
