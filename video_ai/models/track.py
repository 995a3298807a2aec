#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Ball track model.
This module contains the Track class and the trajectory point type used by the ball tracker.
"""

import dataclasses
from collections import deque
from typing import Any, Deque, Dict

from video_ai.utils.constants import TRACKER


@dataclasses.dataclass
class TrackedDetection:
    """Center-form detection as stored in a track's history."""

    cx: float
    cy: float
    w: float
    h: float
    score: float
    time: float


@dataclasses.dataclass
class TrajectoryPoint:
    """
    TrajectoryPoint class.

    A confirmed, currently matched track position at one timestamp.
    """

    time: float  # Time in seconds
    x: float
    y: float
    score: float
    track_id: int
    vx: float = 0.0  # Smoothed velocity, normalized units per frame
    vy: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the trajectory point to a dictionary.

        Returns:
            Dictionary representation of the trajectory point
        """
        return {
            'time': self.time,
            'x': self.x,
            'y': self.y,
            'score': self.score,
            'track_id': self.track_id,
            'vx': self.vx,
            'vy': self.vy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrajectoryPoint':
        """
        Create a trajectory point from a dictionary.

        Args:
            data: Dictionary representation of the trajectory point

        Returns:
            TrajectoryPoint instance
        """
        return cls(
            time=data['time'],
            x=data['x'],
            y=data['y'],
            score=data.get('score', 1.0),
            track_id=data.get('track_id', data.get('trackId', 0)),
            vx=data.get('vx', 0.0),
            vy=data.get('vy', 0.0),
        )


class Track:
    """
    Single object track with velocity-based linear prediction.

    Owned exclusively by a BallTracker; ``hits`` counts matched frames and
    ``age`` counts consecutive unmatched frames.
    """

    def __init__(self, track_id: int, detection: TrackedDetection,
                 max_history: int = TRACKER.max_history,
                 alpha: float = TRACKER.velocity_alpha):
        """
        Create a track from its first detection.

        Args:
            track_id: Sequential track identifier
            detection: First detection (center form)
            max_history: Number of raw detections kept for bounce detection
            alpha: Velocity smoothing factor
        """
        self.id = track_id
        self.x = detection.cx
        self.y = detection.cy
        self.w = detection.w
        self.h = detection.h
        self.vx = 0.0
        self.vy = 0.0
        self.predicted_x = self.x
        self.predicted_y = self.y
        self.last_score = detection.score
        self.hits = 1
        self.age = 0
        self.alpha = alpha
        self.history: Deque[TrackedDetection] = deque([detection], maxlen=max_history)

    def predict(self) -> None:
        """Predict the next position from the current velocity."""
        self.predicted_x = self.x + self.vx
        self.predicted_y = self.y + self.vy

    def update(self, detection: TrackedDetection) -> None:
        """
        Update the track with a matched detection.

        Args:
            detection: Matched detection (center form)
        """
        new_vx = detection.cx - self.x
        new_vy = detection.cy - self.y
        self.vx = self.alpha * new_vx + (1 - self.alpha) * self.vx
        self.vy = self.alpha * new_vy + (1 - self.alpha) * self.vy

        self.x = detection.cx
        self.y = detection.cy
        self.w = detection.w
        self.h = detection.h
        self.last_score = detection.score
        self.hits += 1
        self.age = 0

        self.history.append(detection)

    def mark_missed(self) -> None:
        """Age the track by one unmatched frame."""
        self.age += 1

    def is_confirmed(self, min_hits: int) -> bool:
        return self.hits >= min_hits

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'w': self.w,
            'h': self.h,
            'vx': self.vx,
            'vy': self.vy,
            'predicted_x': self.predicted_x,
            'predicted_y': self.predicted_y,
            'last_score': self.last_score,
            'hits': self.hits,
            'age': self.age,
        }

    def __str__(self) -> str:
        return (f"Track(id={self.id}, pos=({self.x:.3f}, {self.y:.3f}), "
                f"hits={self.hits}, age={self.age})")
