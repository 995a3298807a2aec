#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Ball Tracker Service Module
This module contains the BallTracker class, a ByteTrack-inspired tracker that
links per-frame ball detections into tracks, records the trajectory of
confirmed tracks, detects bounces and estimates speed.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.optimize import linear_sum_assignment

from video_ai.models.bounce_event import BounceEvent
from video_ai.models.detection import Detection
from video_ai.models.table_calibration import TableCalibration
from video_ai.models.track import Track, TrackedDetection, TrajectoryPoint
from video_ai.utils.constants import TRACKER, BOUNCE
from video_ai.utils.logging_utils import log_service_init

logger = logging.getLogger(__name__)

ASSIGNMENT_MODES = ("greedy", "optimal")
UNMATCHABLE_COST = 1e6  # stands in for NaN/inf, far above any normalized distance

DetectionLike = Union[Detection, Dict[str, Any]]


@dataclass
class TrackerUpdate:
    """Result of one tracker update."""
    active_tracks: List[Track]
    trajectory: List[TrajectoryPoint]  # live, cumulative list owned by the tracker
    new_bounces: List[BounceEvent]


def greedy_assignment(costs: np.ndarray, threshold: float) -> List[Tuple[int, int]]:
    """
    Greedy nearest-neighbour assignment.

    Repeatedly takes the globally smallest cost among unmatched rows and
    columns and accepts it while it is below the threshold. NaN costs never match.

    Args:
        costs: Cost matrix (tracks x detections)
        threshold: Exclusive upper bound for an accepted match

    Returns:
        List of (row, column) matches
    """
    costs = np.asarray(costs, dtype=np.float64)
    matches: List[Tuple[int, int]] = []
    if costs.size == 0:
        return matches

    remaining = costs.copy()
    remaining[np.isnan(remaining)] = np.inf
    for _ in range(min(remaining.shape)):
        flat_index = int(np.argmin(remaining))
        row, col = np.unravel_index(flat_index, remaining.shape)
        best_cost = remaining[row, col]
        if not best_cost < threshold:
            break
        matches.append((int(row), int(col)))
        remaining[row, :] = np.inf
        remaining[:, col] = np.inf
    return matches


def optimal_assignment(costs: np.ndarray, threshold: float) -> List[Tuple[int, int]]:
    """
    Minimum total cost assignment with the same threshold rejection.

    Args:
        costs: Cost matrix (tracks x detections)
        threshold: Exclusive upper bound for an accepted match

    Returns:
        List of (row, column) matches
    """
    costs = np.asarray(costs, dtype=np.float64)
    if costs.size == 0:
        return []
    # linear_sum_assignment rejects NaN and needs a feasible matrix
    finite = np.where(np.isfinite(costs), costs, UNMATCHABLE_COST)
    rows, cols = linear_sum_assignment(finite)
    return [(int(r), int(c)) for r, c in zip(rows, cols) if costs[r, c] < threshold]


class BallTracker:
    """
    Tracks balls across frames.

    Uses linear velocity prediction and nearest-neighbour association. Not
    thread safe: ``update`` must be called from one thread with non-decreasing
    timestamps.
    """

    def __init__(self,
                 max_age: int = TRACKER.max_age,
                 min_hits: int = TRACKER.min_hits,
                 dist_threshold: float = TRACKER.dist_threshold,
                 fps: float = TRACKER.fps,
                 max_trajectory_points: Optional[int] = None,
                 max_bounces: Optional[int] = None,
                 assignment: str = TRACKER.assignment):
        """
        Initialize the ball tracker.

        Args:
            max_age: Frames a track survives without a match
            min_hits: Matches required to confirm a track
            dist_threshold: Maximum normalized center distance for a match
            fps: Frame rate used to convert per-frame velocity to per-second speed
            max_trajectory_points: Keep only this many trajectory points (None keeps all)
            max_bounces: Keep only this many bounce events (None keeps all)
            assignment: "greedy" or "optimal"
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        if assignment not in ASSIGNMENT_MODES:
            raise ValueError(f"Unknown assignment mode {assignment!r}, expected one of {ASSIGNMENT_MODES}")
        for name, value in (("max_trajectory_points", max_trajectory_points), ("max_bounces", max_bounces)):
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive or None, got {value}")

        self.max_age = max_age
        self.min_hits = min_hits
        self.dist_threshold = dist_threshold
        self.fps = fps
        self.max_trajectory_points = max_trajectory_points
        self.max_bounces = max_bounces
        self.assignment = assignment

        self.tracks: List[Track] = []
        self.next_id = 1
        self.frame_count = 0
        self.trajectory: List[TrajectoryPoint] = []
        self.bounces: List[BounceEvent] = []

        log_service_init("BallTracker", {
            "max_age": max_age,
            "min_hits": min_hits,
            "dist_threshold": dist_threshold,
            "fps": fps,
            "max_trajectory_points": max_trajectory_points,
            "assignment": assignment,
        })

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]] = None) -> 'BallTracker':
        """
        Create a tracker from a settings dictionary (see ConfigManager.get_tracker_settings).

        Unknown keys are ignored.
        """
        settings = settings or {}
        keys = ("max_age", "min_hits", "dist_threshold", "fps",
                "max_trajectory_points", "max_bounces", "assignment")
        return cls(**{k: settings[k] for k in keys if k in settings})

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------

    def update(self, detections: Iterable[DetectionLike], timestamp: float) -> TrackerUpdate:
        """
        Update the tracker with the detections of a single frame.

        Args:
            detections: Detections (or dicts with x, y, width, height, score), normalized 0-1
            timestamp: Current timestamp in seconds

        Returns:
            TrackerUpdate with active tracks, the full trajectory and this frame's bounces
        """
        self.frame_count += 1

        dets = [self._to_tracked(d, timestamp) for d in detections]

        for track in self.tracks:
            track.predict()

        matches = self._associate(dets)
        matched_tracks = set()
        matched_dets = set()
        for track_idx, det_idx in matches:
            self.tracks[track_idx].update(dets[det_idx])
            matched_tracks.add(track_idx)
            matched_dets.add(det_idx)

        for i, track in enumerate(self.tracks):
            if i not in matched_tracks:
                track.mark_missed()

        for j, det in enumerate(dets):
            if j not in matched_dets:
                self.tracks.append(Track(self.next_id, det))
                logger.debug(f"New track {self.next_id} at ({det.cx:.3f}, {det.cy:.3f})")
                self.next_id += 1

        lost = [t for t in self.tracks if t.age > self.max_age]
        if lost:
            logger.debug(f"Dropping lost tracks {[t.id for t in lost]}")
            self.tracks = [t for t in self.tracks if t.age <= self.max_age]

        new_bounces: List[BounceEvent] = []
        for track in self.tracks:
            if track.is_confirmed(self.min_hits) and track.age == 0:
                self.trajectory.append(TrajectoryPoint(
                    time=timestamp,
                    x=track.x,
                    y=track.y,
                    score=track.last_score,
                    track_id=track.id,
                    vx=track.vx,
                    vy=track.vy,
                ))

                bounce = self.detect_bounce(track, timestamp)
                if bounce is not None:
                    self.bounces.append(bounce)
                    new_bounces.append(bounce)

        self._enforce_limits()

        active = [t for t in self.tracks
                  if t.is_confirmed(self.min_hits) and t.age <= TRACKER.active_max_age]
        return TrackerUpdate(active_tracks=active, trajectory=self.trajectory, new_bounces=new_bounces)

    def _to_tracked(self, detection: DetectionLike, timestamp: float) -> TrackedDetection:
        if isinstance(detection, dict):
            detection = Detection.from_dict(detection)
        cx, cy = detection.center
        return TrackedDetection(
            cx=cx,
            cy=cy,
            w=detection.width,
            h=detection.height,
            score=detection.score,
            time=timestamp,
        )

    def _associate(self, dets: Sequence[TrackedDetection]) -> List[Tuple[int, int]]:
        """Match predicted track positions to detection centers."""
        if not self.tracks or not dets:
            return []

        predicted = np.array([[t.predicted_x, t.predicted_y] for t in self.tracks], dtype=np.float64)
        centers = np.array([[d.cx, d.cy] for d in dets], dtype=np.float64)
        costs = np.linalg.norm(predicted[:, np.newaxis, :] - centers[np.newaxis, :, :], axis=2)

        if self.assignment == "optimal":
            return optimal_assignment(costs, self.dist_threshold)
        return greedy_assignment(costs, self.dist_threshold)

    def _enforce_limits(self) -> None:
        if self.max_trajectory_points is not None and len(self.trajectory) > self.max_trajectory_points:
            del self.trajectory[:len(self.trajectory) - self.max_trajectory_points]
        if self.max_bounces is not None and len(self.bounces) > self.max_bounces:
            del self.bounces[:len(self.bounces) - self.max_bounces]

    # ------------------------------------------------------------------
    # Bounces and speed
    # ------------------------------------------------------------------

    def detect_bounce(self, track: Track, timestamp: float) -> Optional[BounceEvent]:
        """
        Detect a vertical direction reversal in the track's latest history.

        Image y grows downward, so a bounce is the ball moving down and then up.
        The thresholds are fixed; a single jittery frame can still be read as a bounce.

        Args:
            track: Confirmed track
            timestamp: Current timestamp in seconds

        Returns:
            BounceEvent or None
        """
        if len(track.history) < BOUNCE.min_history:
            return None

        recent = list(track.history)[-BOUNCE.min_history:]
        vy2 = recent[2].cy - recent[1].cy
        vy3 = recent[3].cy - recent[2].cy

        if vy2 > BOUNCE.down_threshold and vy3 < BOUNCE.up_threshold:
            speed = math.hypot(track.vx, track.vy) * self.fps
            bounce = BounceEvent(
                time=timestamp,
                x=recent[2].cx,
                y=recent[2].cy,
                speed=speed,
                track_id=track.id,
            )
            logger.info(f"Bounce detected: {bounce}")
            return bounce

        return None

    def calculate_real_speed(self, bounce: BounceEvent,
                             table_calibration: Union[TableCalibration, Dict[str, Any], None]) -> float:
        """
        Convert a bounce speed to meters per second using the table calibration.

        Args:
            bounce: Bounce event with speed in normalized units per second
            table_calibration: Calibration (or its dictionary form)

        Returns:
            Speed in m/s, 0.0 without a usable calibration
        """
        if isinstance(table_calibration, dict):
            table_calibration = TableCalibration.from_dict(table_calibration)
        if table_calibration is None:
            return 0.0

        meters_per_unit = table_calibration.meters_per_unit()
        if meters_per_unit == 0.0:
            return 0.0
        return bounce.speed * meters_per_unit

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_trajectory_window(self, window_seconds: float = 2.0,
                              current_time: Optional[float] = None) -> List[TrajectoryPoint]:
        """
        Get the recent part of the trajectory for rendering.

        Args:
            window_seconds: How many seconds of history to return
            current_time: Current video time; without it the last
                ``window_seconds * fps`` points are returned

        Returns:
            Trajectory points within the window
        """
        if current_time is None:
            count = int(math.floor(window_seconds * self.fps + 0.5))
            if count <= 0:
                return []
            return self.trajectory[-count:]

        start = current_time - window_seconds
        return [p for p in self.trajectory if start <= p.time <= current_time]

    def get_bounces(self) -> List[BounceEvent]:
        """Get all retained bounce events."""
        return self.bounces

    def get_track(self, track_id: int) -> Optional[Track]:
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def reset(self) -> None:
        """Reset the tracker state, including the id sequence."""
        self.tracks = []
        self.trajectory = []
        self.bounces = []
        self.frame_count = 0
        self.next_id = 1
        logger.debug("Ball tracker reset")
