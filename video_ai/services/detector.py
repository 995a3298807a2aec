#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Ball Detector Service Module
This module contains the BallDetector class, which runs a custom ONNX detection
model (ball, racket, table) on video frames.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import onnxruntime as ort
import requests

from video_ai.models.detection import DetectionResult, FrameGeometry
from video_ai.services.output_parsers import IOutputParser, select_parser
from video_ai.utils.constants import DETECTOR
from video_ai.utils.error_handling import handle_errors
from video_ai.utils.geometry import compute_letterbox
from video_ai.utils.logging_utils import log_service_init, log_service_update

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def _is_remote(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


class BallDetector:
    """
    Service class for ONNX based ball, racket and table detection.

    All load state lives on the instance, so several detectors can coexist.
    At most one model load runs at a time per instance; concurrent callers wait
    for the in-flight load and share its outcome. ``detect`` itself must not be
    called concurrently.
    """

    def __init__(self, settings: dict = None):
        """
        Initialize the detector. The model is loaded lazily by ``load_model``.

        Args:
            settings: Dictionary containing detector settings
        """
        settings = settings or {}

        self.model_path = settings.get("model_path", DETECTOR.MODEL_PATH)
        self.input_size = int(settings.get("input_size", DETECTOR.INPUT_SIZE))
        self.class_names: List[str] = list(settings.get("class_names", DETECTOR.CLASS_NAMES))
        self.threshold = float(settings.get("threshold", DETECTOR.THRESHOLD))
        self.providers: List[str] = list(settings.get("providers", DETECTOR.PROVIDERS))

        self._session: Optional[ort.InferenceSession] = None
        self._input_name: Optional[str] = None
        self._output_names: List[str] = []
        self._parser: Optional[IOutputParser] = None

        self._loaded = False
        self._loading = False
        self._generation = 0  # bumped by destroy, stale loads are discarded
        self._load_cond = threading.Condition()

        log_service_init("BallDetector", {
            "model_path": self.model_path,
            "input_size": self.input_size,
            "class_names": self.class_names,
        }, logging.DEBUG)

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    def load_model(self, model_path: Optional[str] = None,
                   on_progress: Optional[ProgressCallback] = None,
                   cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Load the ONNX detection model.

        Args:
            model_path: Path or http(s) URL of the model (defaults to the configured path)
            on_progress: Callback receiving monotonically increasing progress 0-100
            cancel_event: Optional event; when set before session creation the load is abandoned

        Returns:
            True if the model is loaded, False if it is missing or failed to load
        """
        with self._load_cond:
            if self._loaded and self._session is not None:
                return True

            if self._loading:
                logger.debug("Model load already in progress, waiting for it")
                while self._loading:
                    self._load_cond.wait(DETECTOR.LOAD_POLL_INTERVAL)
                return self._loaded

            self._loading = True
            generation = self._generation

        try:
            return self._load(model_path or self.model_path, on_progress, cancel_event, generation)
        finally:
            with self._load_cond:
                if generation == self._generation:
                    self._loading = False
                self._load_cond.notify_all()

    def _load(self, path: str, on_progress: Optional[ProgressCallback],
              cancel_event: Optional[threading.Event], generation: int) -> bool:
        def report(value: int) -> None:
            if on_progress is not None:
                on_progress(value)

        try:
            report(5)
            providers = self._resolve_providers()
            report(20)

            model_source = self._fetch_model(path)
            if model_source is None:
                return False
            report(40)

            if cancel_event is not None and cancel_event.is_set():
                logger.info("Model load cancelled")
                return False

            options = ort.SessionOptions()
            options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
            session = ort.InferenceSession(model_source, sess_options=options, providers=providers)
            report(90)

            input_name = session.get_inputs()[0].name
            output_names = [output.name for output in session.get_outputs()]
            logger.info(f"Model inputs: {[i.name for i in session.get_inputs()]}")
            logger.info(f"Model outputs: {output_names}")

            with self._load_cond:
                if generation != self._generation:
                    logger.info("Detector was destroyed during the model load, discarding the session")
                    return False
                self._session = session
                self._input_name = input_name
                self._output_names = output_names
                self._parser = select_parser(output_names, self.class_names)
                self._loaded = True

            report(100)
            logger.info(f"Custom ONNX model loaded from {path} "
                        f"(providers: {providers}, parser: {self._parser.name if self._parser else None})")
            return True
        except Exception as e:
            logger.error(f"Failed to load ONNX model: {e}")
            return False

    def _resolve_providers(self) -> List[str]:
        """Configured providers that this onnxruntime build offers, CPU as fallback."""
        available = set(ort.get_available_providers())
        providers = [p for p in self.providers if p in available]
        if not providers:
            providers = ["CPUExecutionProvider"]
        return providers

    def _fetch_model(self, path: str):
        """
        Check that the model exists and return what InferenceSession accepts.

        Remote models are checked with a HEAD request before being downloaded.

        Returns:
            Local path string, model bytes, or None if the model is not available
        """
        if _is_remote(path):
            response = requests.head(path, timeout=DETECTOR.HEAD_TIMEOUT, allow_redirects=True)
            if not response.ok:
                logger.warning(f"Model not found at {path} (HTTP {response.status_code}). "
                               f"Train a model first and export it to ONNX.")
                return None
            download = requests.get(path, timeout=DETECTOR.HEAD_TIMEOUT)
            download.raise_for_status()
            return download.content

        if not Path(path).is_file():
            logger.warning(f"Model not found at {path}. Train a model first and export it to ONNX.")
            return None
        return str(path)

    def is_loaded(self) -> bool:
        """Whether a model session is ready for inference."""
        return self._loaded and self._session is not None

    def set_class_names(self, names: Sequence[str]) -> None:
        """
        Set the class names matching the model's output indices.

        Args:
            names: Class names, index = class id
        """
        self.class_names = list(names)
        if self._parser is not None:
            self._parser.class_names = list(names)
        log_service_update("BallDetector", {"class_names": self.class_names}, logging.DEBUG)

    def destroy(self) -> None:
        """
        Release the inference session. Safe to call more than once.

        A load still in flight is discarded when it finishes.
        """
        with self._load_cond:
            if self._session is not None:
                logger.info("Releasing detector session")
            self._session = None
            self._input_name = None
            self._output_names = []
            self._parser = None
            self._loaded = False
            self._loading = False
            self._generation += 1
            self._load_cond.notify_all()

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def preprocess_frame(self, frame: np.ndarray) -> Tuple[np.ndarray, FrameGeometry]:
        """
        Letterbox a BGR frame into the square model input.

        The frame is resized keeping its aspect ratio, centered on a black
        canvas, converted to RGB and laid out channel-first in [0, 1].

        Args:
            frame: BGR (or grayscale / BGRA) image

        Returns:
            Tuple of (float32 tensor [1, 3, S, S], geometry for mapping boxes back)
        """
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        elif frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)

        src_h, src_w = frame.shape[:2]
        size = self.input_size
        geometry, new_w, new_h = compute_letterbox(src_w, src_h, size)

        resized = cv2.resize(frame, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
        canvas = np.full((size, size, 3), DETECTOR.PAD_VALUE, dtype=np.uint8)
        pad_x, pad_y = int(geometry.pad_x), int(geometry.pad_y)
        canvas[pad_y:pad_y + new_h, pad_x:pad_x + new_w] = resized

        rgb = cv2.cvtColor(canvas, cv2.COLOR_BGR2RGB)
        tensor = rgb.transpose(2, 0, 1).astype(np.float32) / 255.0
        return np.ascontiguousarray(tensor[np.newaxis]), geometry

    @staticmethod
    def is_frame_ready(frame) -> bool:
        """Whether a frame holds decodable image data."""
        if frame is None or not isinstance(frame, np.ndarray):
            return False
        if frame.size == 0 or frame.ndim not in (2, 3):
            return False
        if frame.ndim == 3 and frame.shape[2] not in (1, 3, 4):
            return False
        return True

    def detect(self, frame: np.ndarray, threshold: Optional[float] = None) -> Optional[DetectionResult]:
        """
        Run detection on one video frame.

        Args:
            frame: BGR image
            threshold: Minimum confidence (defaults to the configured threshold)

        Returns:
            DetectionResult, or None if the model is not loaded, the frame is not
            ready or inference failed
        """
        if not self.is_loaded():
            return None
        if not self.is_frame_ready(frame):
            return None
        if frame.ndim == 3 and frame.shape[2] == 1:
            frame = frame[:, :, 0]

        return self._infer(frame, self.threshold if threshold is None else threshold)

    @handle_errors(default_return=None, message="Inference failed: {error}")
    def _infer(self, frame: np.ndarray, threshold: float) -> DetectionResult:
        tensor, geometry = self.preprocess_frame(frame)
        outputs = self._session.run(None, {self._input_name: tensor})
        named_outputs = dict(zip(self._output_names, outputs))

        if self._parser is None:
            return DetectionResult()
        return self._parser.parse(named_outputs, threshold, geometry)
