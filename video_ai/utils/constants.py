#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Universal Constants Module for the video AI core.
This file centralizes all constants used by the detector, the tracker and the table calibration.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Tuple


# =============================================
# Detector Constants
# =============================================

@dataclass
class DETECTOR:
    """ONNX detector parameters"""
    MODEL_PATH: str = str(Path("models") / "tt-detector.onnx")
    INPUT_SIZE: int = 640
    CLASS_NAMES: Tuple[str, ...] = ("ball", "racket", "table")
    THRESHOLD: float = 0.3
    # Accelerated backends first, CPU is always the fallback
    PROVIDERS: Tuple[str, ...] = (
        "CUDAExecutionProvider",
        "CoreMLExecutionProvider",
        "CPUExecutionProvider",
    )
    PAD_VALUE: int = 0  # black letterbox bars
    HEAD_TIMEOUT: float = 10.0  # seconds, remote model existence check
    LOAD_POLL_INTERVAL: float = 0.1  # seconds


@dataclass
class OUTPUT_FORMAT:
    """Model output signatures"""
    LABELS: str = "labels"
    BOXES: str = "boxes"
    SCORES: str = "scores"
    PACKED_MIN_ATTRS: int = 6  # x1, y1, x2, y2, score, class_id


# =============================================
# Tracker Constants
# =============================================

@dataclass
class TRACKER:
    """Ball tracker parameters"""
    max_age: int = 10
    min_hits: int = 3
    dist_threshold: float = 0.15
    fps: float = 30.0
    max_history: int = 20
    velocity_alpha: float = 0.6
    active_max_age: int = 2  # coasting tracks stay active this many frames
    assignment: str = "greedy"


@dataclass
class BOUNCE:
    """Bounce detection parameters (empirically tuned, kept fixed)"""
    min_history: int = 4
    down_threshold: float = 0.002
    up_threshold: float = -0.002


# =============================================
# Table Constants
# =============================================

@dataclass
class TABLE:
    """Table tennis table dimensions"""
    REAL_WIDTH_M: float = 2.74
    REAL_HEIGHT_M: float = 1.525
    MIN_WIDTH_PX: float = 0.01  # normalized units, below this calibration is degenerate
    ON_TABLE_MARGIN_CM: float = 30.0
    HOMOGRAPHY_EPS: float = 1e-10


# =============================================
# Analysis Constants
# =============================================

@dataclass
class ANALYSIS:
    """Video analysis loop parameters"""
    DEFAULT_WINDOW_SECONDS: float = 2.0
    FALLBACK_FPS: float = 30.0  # used when the container reports no frame rate
