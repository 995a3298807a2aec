#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Test module for ConfigManager.
"""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_ai.services.ball_tracker import BallTracker
from video_ai.utils.config_manager import ConfigManager


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "config.json"


def test_defaults_without_file(config_path):
    config = ConfigManager(config_path)

    detector = config.get_detector_settings()
    assert detector["input_size"] == 640
    assert detector["class_names"] == ["ball", "racket", "table"]
    assert detector["threshold"] == 0.3

    tracker = config.get_tracker_settings()
    assert tracker["max_age"] == 10
    assert tracker["min_hits"] == 3
    assert tracker["dist_threshold"] == 0.15
    assert tracker["max_trajectory_points"] is None

    assert config.get_table_calibration()["corners"] == []
    assert config.get_analysis_settings()["window_seconds"] == 2.0


def test_defaults_are_not_shared(config_path):
    config = ConfigManager(config_path)
    config.get("tracker_settings")["max_age"] = 99
    assert config.default_config["tracker_settings"]["max_age"] == 10


def test_forced_save_round_trip(config_path):
    config = ConfigManager(config_path)
    config.set_table_calibration({"corners": [{"x": 0.1, "y": 0.2}], "real_width": 2.74})

    assert config_path.exists()
    reloaded = ConfigManager(config_path)
    assert reloaded.get_table_calibration()["corners"] == [{"x": 0.1, "y": 0.2}]


def test_save_is_throttled(config_path):
    config = ConfigManager(config_path)
    config.save_config(force=True)
    config.set_detector_settings({"threshold": 0.5})

    with open(config_path) as f:
        assert json.load(f)["detector_settings"]["threshold"] == 0.3

    config.save_config(force=True)
    with open(config_path) as f:
        assert json.load(f)["detector_settings"]["threshold"] == 0.5


def test_partial_file_is_merged(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({"tracker_settings": {"min_hits": 2}}))

    tracker = ConfigManager(config_path).get_tracker_settings()
    assert tracker["min_hits"] == 2
    assert tracker["max_age"] == 10


def test_invalid_file_keeps_defaults(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("{not json")

    assert ConfigManager(config_path).get_tracker_settings()["max_age"] == 10


def test_camel_case_tracker_options(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({
        "tracker_settings": {"maxAge": 5, "minHits": 2, "distThreshold": 0.2, "maxTrajectoryPoints": 300}
    }))

    tracker = ConfigManager(config_path).get_tracker_settings()
    assert tracker["max_age"] == 5
    assert tracker["min_hits"] == 2
    assert tracker["dist_threshold"] == 0.2
    assert tracker["max_trajectory_points"] == 300
    assert "maxAge" not in tracker

    built = BallTracker.from_settings(tracker)
    assert built.max_age == 5
    assert built.max_trajectory_points == 300


def test_set_tracker_settings_accepts_camel_case(config_path):
    config = ConfigManager(config_path)
    config.set_tracker_settings({"maxBounces": 50})
    assert config.get_tracker_settings()["max_bounces"] == 50


def test_get_value(config_path):
    config = ConfigManager(config_path)
    assert config.get_value("detector_settings", "input_size") == 640
    assert config.get_value("missing", "key", "fallback") == "fallback"
