#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Video Analysis Controller module.
This module contains the VideoAnalysisController class, which owns the per-frame
loop feeding the ball detector and the ball tracker.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np
from PySide6.QtCore import QObject, Signal

from video_ai.models.bounce_event import BounceEvent
from video_ai.models.detection import Detection
from video_ai.models.table_calibration import TableCalibration
from video_ai.models.track import TrajectoryPoint
from video_ai.services.ball_tracker import BallTracker, TrackerUpdate
from video_ai.services.detector import BallDetector
from video_ai.utils.config_manager import ConfigManager
from video_ai.utils.constants import ANALYSIS

logger = logging.getLogger(__name__)


class AnalysisState(Enum):
    """Enum representing the state of the analysis loop."""
    IDLE = 0
    RUNNING = 1
    CANCELLED = 2
    FINISHED = 3
    FAILED = 4


@dataclass
class AnalysisResult:
    """Outcome of analyzing a video (or a time range of it)."""
    video_path: str
    fps: float
    start_time: float
    end_time: float
    frames_analyzed: int = 0
    frames_skipped: int = 0
    processing_time: float = 0.0
    cancelled: bool = False
    trajectory: List[TrajectoryPoint] = field(default_factory=list)
    bounces: List[BounceEvent] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return max(0.0, self.end_time - self.start_time)

    def summary(self) -> Dict[str, Any]:
        """
        Summarize the analysis.

        Returns:
            Dictionary with frame and bounce counts, the covered time range and
            max/average real speed over calibrated bounces
        """
        real_speeds = [b.real_speed for b in self.bounces if b.real_speed]
        return {
            "frames_analyzed": self.frames_analyzed,
            "frames_skipped": self.frames_skipped,
            "trajectory_points": len(self.trajectory),
            "bounce_count": len(self.bounces),
            "max_speed_mps": max(real_speeds) if real_speeds else None,
            "avg_speed_mps": sum(real_speeds) / len(real_speeds) if real_speeds else None,
            "time_range": {
                "start": self.trajectory[0].time,
                "end": self.trajectory[-1].time,
            } if self.trajectory else None,
            "cancelled": self.cancelled,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "video_path": self.video_path,
            "fps": self.fps,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "processing_time": self.processing_time,
            "summary": self.summary(),
            "trajectory": [p.to_dict() for p in self.trajectory],
            "bounces": [b.to_dict() for b in self.bounces],
        }


class VideoAnalysisController(QObject):
    """
    Controller class for video ball analysis.
    Runs detection and tracking frame by frame and reports results via signals.
    """

    # Signals
    model_progress = Signal(int)  # 0-100
    frame_processed = Signal(int, float, object)  # frame_index, timestamp, TrackerUpdate
    bounce_detected = Signal(object)  # BounceEvent
    progress_changed = Signal(int, int)  # frames_done, frames_total
    state_changed = Signal(object)  # AnalysisState

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 detector: Optional[BallDetector] = None,
                 tracker: Optional[BallTracker] = None):
        """
        Initialize the video analysis controller.

        Args:
            config_manager: Configuration manager for accessing settings
            detector: Detector instance (built from the configuration if None)
            tracker: Tracker instance (built from the configuration if None)
        """
        super(VideoAnalysisController, self).__init__()

        self.config_manager = config_manager
        detector_settings = config_manager.get_detector_settings() if config_manager else {}
        tracker_settings = config_manager.get_tracker_settings() if config_manager else {}

        self.detector = detector if detector is not None else BallDetector(detector_settings)
        self.tracker = tracker if tracker is not None else BallTracker.from_settings(tracker_settings)
        self.tracker_fps = self.tracker.fps  # analyze_video swaps in its sample rate temporarily
        self.threshold = detector_settings.get("threshold")

        self.table_calibration: Optional[TableCalibration] = None
        if config_manager is not None:
            self.table_calibration = TableCalibration.from_dict(config_manager.get_table_calibration())

        self.last_table: Optional[Detection] = None
        self.state = AnalysisState.IDLE

    def _set_state(self, state: AnalysisState) -> None:
        if state != self.state:
            self.state = state
            self.state_changed.emit(state)

    def load_model(self, model_path: Optional[str] = None,
                   cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Load the detector model, forwarding progress to ``model_progress``.

        Returns:
            True if the model is ready
        """
        return self.detector.load_model(model_path, self.model_progress.emit, cancel_event)

    def set_table_calibration(self, calibration: Union[TableCalibration, Dict[str, Any], None],
                              persist: bool = True) -> None:
        """
        Set the table calibration used for real-world speed and table positions.

        Args:
            calibration: Calibration, its dictionary form, or None to clear it
            persist: Also store it in the configuration file
        """
        if isinstance(calibration, dict):
            calibration = TableCalibration.from_dict(calibration)
        self.table_calibration = calibration

        if persist and self.config_manager is not None and calibration is not None:
            self.config_manager.set_table_calibration(calibration.to_dict())
        logger.info(f"Table calibration set: {calibration}")

    def process_frame(self, frame: np.ndarray, timestamp: float,
                      frame_index: int = 0) -> Optional[TrackerUpdate]:
        """
        Detect and track on a single frame.

        A frame without a detection result (model not loaded, frame not ready,
        inference failure) is skipped and leaves the tracker untouched.

        Args:
            frame: BGR image
            timestamp: Frame time in seconds, non-decreasing across calls
            frame_index: Index of the frame in the video

        Returns:
            TrackerUpdate, or None if the frame was skipped
        """
        result = self.detector.detect(frame, self.threshold)
        if result is None:
            return None

        if result.table is not None:
            self.last_table = result.table

        update = self.tracker.update(result.balls, timestamp)

        for bounce in update.new_bounces:
            self._apply_calibration(bounce)
            self.bounce_detected.emit(bounce)

        self.frame_processed.emit(frame_index, timestamp, update)
        return update

    def _apply_calibration(self, bounce: BounceEvent) -> None:
        if self.table_calibration is None:
            return
        bounce.real_speed = self.tracker.calculate_real_speed(bounce, self.table_calibration)
        table_pos = self.table_calibration.camera_to_table(bounce.x, bounce.y)
        if table_pos is not None:
            bounce.table_x, bounce.table_y = table_pos

    def analyze_video(self, video_path: Union[str, Path],
                      start_time: float = 0.0,
                      end_time: Optional[float] = None,
                      sample_fps: Optional[float] = None,
                      cancel_event: Optional[threading.Event] = None) -> Optional[AnalysisResult]:
        """
        Analyze a video file frame by frame.

        Frames are read sequentially from ``start_time``; with ``sample_fps``
        only frames at that rate are analyzed. The tracker is reset first and
        its fps is set to the effective analysis rate for the duration of the
        run, so bounce speeds stay per second when frames are skipped.

        Args:
            video_path: Path of the video file
            start_time: Start time in seconds
            end_time: End time in seconds (None for the end of the video)
            sample_fps: Frames per second to analyze (None for every frame)
            cancel_event: Event that stops the loop early when set

        Returns:
            AnalysisResult, or None if the video could not be opened
        """
        capture = cv2.VideoCapture(str(video_path))
        if not capture.isOpened():
            logger.error(f"Could not open video: {video_path}")
            self._set_state(AnalysisState.FAILED)
            return None

        try:
            fps = capture.get(cv2.CAP_PROP_FPS) or ANALYSIS.FALLBACK_FPS
            frame_total = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
            video_end = frame_total / fps if frame_total > 0 else None
            if end_time is None:
                end_time = video_end if video_end is not None else float("inf")

            if sample_fps is not None and sample_fps <= 0:
                raise ValueError(f"sample_fps must be positive, got {sample_fps}")
            effective_fps = min(sample_fps, fps) if sample_fps else fps
            interval = 1.0 / effective_fps

            self.tracker.reset()
            self.tracker.fps = effective_fps

            frame_index = int(round(start_time * fps))
            if frame_index > 0:
                capture.set(cv2.CAP_PROP_POS_FRAMES, frame_index)

            expected = 0
            if end_time != float("inf"):
                expected = int((end_time - start_time) * effective_fps) + 1

            result = AnalysisResult(
                video_path=str(video_path),
                fps=effective_fps,
                start_time=start_time,
                end_time=end_time,
            )
            logger.info(f"Analyzing {video_path} from {start_time:.2f}s to {end_time:.2f}s "
                        f"at {effective_fps:.1f} fps")

            self._set_state(AnalysisState.RUNNING)
            started = time.time()
            next_sample = start_time
            processed = 0

            while True:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Video analysis cancelled")
                    result.cancelled = True
                    break

                ok, frame = capture.read()
                if not ok:
                    break

                timestamp = frame_index / fps
                frame_index += 1
                if timestamp > end_time:
                    break
                # Half a frame of tolerance against float drift
                if timestamp + 0.5 / fps < next_sample:
                    continue
                next_sample += interval

                update = self.process_frame(frame, timestamp, frame_index - 1)
                if update is None:
                    result.frames_skipped += 1
                else:
                    result.frames_analyzed += 1

                processed += 1
                self.progress_changed.emit(processed, max(expected, processed))

            result.trajectory = list(self.tracker.trajectory)
            result.bounces = list(self.tracker.get_bounces())
            result.processing_time = time.time() - started

            self._set_state(AnalysisState.CANCELLED if result.cancelled else AnalysisState.FINISHED)
            logger.info(f"Video analysis done: {result.summary()}")
            return result
        finally:
            capture.release()
            self.tracker.fps = self.tracker_fps

    def get_trajectory_window(self, window_seconds: Optional[float] = None,
                              current_time: Optional[float] = None) -> List[TrajectoryPoint]:
        """Trajectory points to draw around ``current_time``."""
        if window_seconds is None:
            settings = self.config_manager.get_analysis_settings() if self.config_manager else {}
            window_seconds = settings.get("window_seconds", ANALYSIS.DEFAULT_WINDOW_SECONDS)
        return self.tracker.get_trajectory_window(window_seconds, current_time)

    def reset(self) -> None:
        """Reset tracking state for a new video."""
        self.tracker.reset()
        self.tracker.fps = self.tracker_fps
        self.last_table = None
        self._set_state(AnalysisState.IDLE)

    def destroy(self) -> None:
        """Release the detector session."""
        self.detector.destroy()
        self.reset()
