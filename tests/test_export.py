#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Test module for the JSON and CSV export helpers.
"""

import csv
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_ai.models.bounce_event import BounceEvent
from video_ai.models.track import TrajectoryPoint
from video_ai.utils.export import BOUNCE_FIELDS, export_csv, export_json


def test_export_json_creates_directories(tmp_path):
    path = tmp_path / "results" / "run1" / "analysis.json"
    assert export_json({"bounces": [], "fps": 30.0}, path) is True

    with open(path) as f:
        assert json.load(f) == {"bounces": [], "fps": 30.0}


def test_export_json_uses_to_dict(tmp_path):
    bounce = BounceEvent(time=1.0, x=0.5, y=0.5, speed=2.0, track_id=1)
    path = tmp_path / "bounce.json"
    assert export_json(bounce, path) is True

    with open(path) as f:
        assert json.load(f)["track_id"] == 1


def test_export_json_unserializable_returns_false(tmp_path):
    assert export_json({"value": object()}, tmp_path / "bad.json") is False


def test_export_trajectory_csv(tmp_path):
    points = [TrajectoryPoint(time=i / 30, x=0.1 * i, y=0.5, score=0.9, track_id=1) for i in range(3)]
    path = tmp_path / "trajectory.csv"
    assert export_csv(points, path) is True

    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 3
    assert rows[0].keys() == {"time", "x", "y", "score", "track_id", "vx", "vy"}
    assert float(rows[2]["x"]) == 0.2


def test_export_bounce_csv(tmp_path):
    bounces = [BounceEvent(time=1.0, x=0.5, y=0.5, speed=2.0, track_id=1, real_speed=6.85)]
    path = tmp_path / "bounces.csv"
    assert export_csv(bounces, path, BOUNCE_FIELDS) is True

    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["real_speed"] == "6.85"
    assert rows[0]["table_x"] == ""
