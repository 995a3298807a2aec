#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command line entry point: analyze a table tennis video and export the ball
trajectory and bounces.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from video_ai.controllers.video_analysis_controller import VideoAnalysisController
from video_ai.utils.config_manager import ConfigManager
from video_ai.utils.export import export_csv, export_json, BOUNCE_FIELDS, TRAJECTORY_FIELDS
from video_ai.utils.logging_utils import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ball tracking and bounce detection for table tennis videos")
    parser.add_argument("video", help="Video file to analyze")
    parser.add_argument("--model", help="ONNX model path or URL (overrides the config)")
    parser.add_argument("--config", default="config.json", help="Configuration file")
    parser.add_argument("--calibration", help="JSON file with table corners {corners: [{x, y}, ...]}")
    parser.add_argument("--output", default="results/analysis.json", help="JSON output file")
    parser.add_argument("--start", type=float, default=0.0, help="Start time in seconds")
    parser.add_argument("--end", type=float, default=None, help="End time in seconds")
    parser.add_argument("--sample-fps", type=float, default=None, help="Frames per second to analyze")
    parser.add_argument("--log-dir", default=None, help="Write per-level log files to this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    setup_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO, timestamp)
    logging.info(f"Log system ready. Timestamp: {timestamp}")

    config_manager = ConfigManager(args.config)
    controller = VideoAnalysisController(config_manager)

    if args.calibration:
        with open(args.calibration, "r") as f:
            controller.set_table_calibration(json.load(f), persist=False)

    if not controller.load_model(args.model):
        logging.error("Detector model is not available, aborting")
        return 1

    sample_fps = args.sample_fps or config_manager.get_analysis_settings().get("sample_fps")
    try:
        result = controller.analyze_video(args.video, args.start, args.end, sample_fps)
    finally:
        controller.destroy()

    if result is None:
        return 1

    output = Path(args.output)
    export_json(result, output)
    export_csv(result.trajectory, output.with_name(output.stem + "_trajectory.csv"), TRAJECTORY_FIELDS)
    export_csv(result.bounces, output.with_name(output.stem + "_bounces.csv"), BOUNCE_FIELDS)

    summary = result.summary()
    logging.info(f"Frames analyzed: {summary['frames_analyzed']}, bounces: {summary['bounce_count']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
