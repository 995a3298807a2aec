#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Detection output parsers.
This module contains the parsers that turn raw ONNX detection-head outputs into
DetectionResult objects. The parser is selected once, when the model is loaded,
from the session's output names.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence

import numpy as np

from video_ai.models.detection import Detection, DetectionResult, FrameGeometry
from video_ai.utils.constants import OUTPUT_FORMAT
from video_ai.utils.geometry import model_box_to_normalized

logger = logging.getLogger(__name__)


class IOutputParser(ABC):
    """Interface for detection-head output parsers."""

    name = "abstract"

    def __init__(self, class_names: Sequence[str]):
        self.class_names = list(class_names)

    @abstractmethod
    def parse(self, outputs: Dict[str, np.ndarray], threshold: float,
              geometry: FrameGeometry) -> DetectionResult:
        """
        Parse raw outputs of one inference run.

        Args:
            outputs: Output arrays keyed by output name
            threshold: Minimum score; lower scoring detections are dropped
            geometry: Letterbox parameters recorded during preprocessing

        Returns:
            DetectionResult in normalized source-frame coordinates
        """
        pass

    def class_name(self, class_id: int) -> str:
        if 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return f"class_{class_id}"

    def _build_result(self, boxes: np.ndarray, scores: np.ndarray, class_ids: np.ndarray,
                      threshold: float, geometry: FrameGeometry) -> DetectionResult:
        result = DetectionResult()
        for box, score, class_id in zip(boxes, scores, class_ids):
            if score < threshold:
                continue

            x, y, width, height = model_box_to_normalized(
                float(box[0]), float(box[1]), float(box[2]), float(box[3]), geometry)
            result.add(Detection(
                x=x,
                y=y,
                width=width,
                height=height,
                score=float(score),
                class_name=self.class_name(int(class_id)),
            ))
        return result


class LabelsBoxesScoresParser(IOutputParser):
    """Separate ``labels``/``boxes``/``scores`` outputs (RF-DETR / RT-DETR exports)."""

    name = "labels_boxes_scores"

    def parse(self, outputs, threshold, geometry):
        labels = np.asarray(outputs[OUTPUT_FORMAT.LABELS]).reshape(-1)
        boxes = np.asarray(outputs[OUTPUT_FORMAT.BOXES]).reshape(-1, 4)
        scores = np.asarray(outputs[OUTPUT_FORMAT.SCORES]).reshape(-1)
        return self._build_result(boxes, scores, labels.astype(np.int64), threshold, geometry)


class PackedDetectionsParser(IOutputParser):
    """Single ``[batch, N, 6]`` output of ``x1, y1, x2, y2, score, class_id``."""

    name = "packed"

    def __init__(self, class_names: Sequence[str], output_name: str):
        super().__init__(class_names)
        self.output_name = output_name

    def parse(self, outputs, threshold, geometry):
        output = np.asarray(outputs[self.output_name])
        if output.ndim != 3 or output.shape[2] < OUTPUT_FORMAT.PACKED_MIN_ATTRS:
            logger.debug(f"Unexpected packed output shape {output.shape}, no detections parsed")
            return DetectionResult()

        dets = output[0]
        class_ids = np.rint(dets[:, 5]).astype(np.int64)
        return self._build_result(dets[:, 0:4], dets[:, 4], class_ids, threshold, geometry)


def select_parser(output_names: Sequence[str], class_names: Sequence[str]) -> Optional[IOutputParser]:
    """
    Pick the parser matching a model's output signature.

    Args:
        output_names: Names of the session outputs
        class_names: Class-id to name table

    Returns:
        Parser instance, or None for an unsupported signature
    """
    names = set(output_names)
    if {OUTPUT_FORMAT.LABELS, OUTPUT_FORMAT.BOXES, OUTPUT_FORMAT.SCORES} <= names:
        return LabelsBoxesScoresParser(class_names)
    if len(output_names) == 1:
        return PackedDetectionsParser(class_names, output_names[0])

    logger.warning(f"Unsupported model outputs {list(output_names)}, detections will be empty")
    return None
