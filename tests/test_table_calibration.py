#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Test module for TableCalibration and the model data types.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_ai.models.bounce_event import BounceEvent
from video_ai.models.detection import Detection, DetectionResult
from video_ai.models.table_calibration import TableCalibration
from video_ai.models.track import TrajectoryPoint

# Slightly trapezoidal table as seen from behind one end
CORNERS = [
    {"x": 0.3, "y": 0.4},
    {"x": 0.7, "y": 0.4},
    {"x": 0.85, "y": 0.8},
    {"x": 0.15, "y": 0.8},
]


class TestTableCalibration(unittest.TestCase):
    """Homography and scale of the table calibration."""

    def setUp(self):
        self.calibration = TableCalibration(CORNERS)

    def test_corners_map_to_table_corners(self):
        expected = [(0.0, 0.0), (274.0, 0.0), (274.0, 152.5), (0.0, 152.5)]
        for corner, (ex, ey) in zip(CORNERS, expected):
            tx, ty = self.calibration.camera_to_table(corner["x"], corner["y"])
            self.assertAlmostEqual(tx, ex, places=2)
            self.assertAlmostEqual(ty, ey, places=2)

    def test_is_on_table(self):
        self.assertTrue(self.calibration.is_on_table(0.5, 0.6))
        self.assertFalse(self.calibration.is_on_table(0.02, 0.1))

    def test_margin_allows_points_just_off_the_edge(self):
        # Just left of the top-left corner
        self.assertTrue(self.calibration.is_on_table(0.29, 0.4))
        self.assertFalse(self.calibration.is_on_table(0.29, 0.4, margin_cm=0.0))

    def test_homography_needs_four_corners(self):
        calibration = TableCalibration(CORNERS[:2])
        self.assertIsNone(calibration.homography())
        self.assertIsNone(calibration.camera_to_table(0.5, 0.5))
        self.assertFalse(calibration.is_on_table(0.5, 0.5))

    def test_width_and_scale(self):
        self.assertAlmostEqual(self.calibration.width_px(), 0.4)
        self.assertAlmostEqual(self.calibration.meters_per_unit(), 2.74 / 0.4)
        self.assertEqual(TableCalibration([]).width_px(), 0.0)
        self.assertEqual(TableCalibration([]).meters_per_unit(), 0.0)

    def test_dict_round_trip(self):
        data = self.calibration.to_dict()
        restored = TableCalibration.from_dict(data)
        self.assertEqual(restored.corners, self.calibration.corners)
        self.assertEqual(restored.real_width, 2.74)

    def test_from_dict_camel_case(self):
        calibration = TableCalibration.from_dict({"corners": CORNERS, "realWidth": 2.0, "realHeight": 1.0})
        self.assertEqual(calibration.real_width, 2.0)
        self.assertEqual(calibration.real_height, 1.0)

    def test_from_dict_without_corners(self):
        self.assertIsNone(TableCalibration.from_dict(None))
        self.assertIsNone(TableCalibration.from_dict({"corners": []}))


class TestModelTypes(unittest.TestCase):
    """Serialization of the plain data types."""

    def test_detection_from_browser_dict(self):
        detection = Detection.from_dict({"x": 0.1, "y": 0.2, "width": 0.1, "height": 0.2,
                                         "score": 0.5, "className": "racket"})
        self.assertEqual(detection.class_name, "racket")
        self.assertAlmostEqual(detection.center[0], 0.15)
        self.assertAlmostEqual(detection.center[1], 0.3)

    def test_detection_result_buckets(self):
        result = DetectionResult()
        result.add(Detection(0, 0, 0.1, 0.1, 0.9, "ball"))
        result.add(Detection(0, 0, 0.1, 0.1, 0.4, "table"))
        result.add(Detection(0, 0, 0.1, 0.1, 0.7, "table"))
        result.add(Detection(0, 0, 0.1, 0.1, 0.5, "class_9"))

        self.assertEqual(len(result.balls), 1)
        self.assertEqual(result.table.score, 0.7)
        self.assertEqual(result.to_dict()["table"]["score"], 0.7)

    def test_trajectory_point_from_browser_dict(self):
        point = TrajectoryPoint.from_dict({"time": 1.5, "x": 0.2, "y": 0.3, "score": 0.8, "trackId": 4})
        self.assertEqual(point.track_id, 4)
        self.assertEqual(point.to_dict()["track_id"], 4)

    def test_bounce_event_round_trip(self):
        bounce = BounceEvent(time=2.0, x=0.4, y=0.6, speed=1.2, track_id=3, real_speed=4.1)
        restored = BounceEvent.from_dict(bounce.to_dict())
        self.assertEqual(restored, bounce)


if __name__ == "__main__":
    unittest.main()
