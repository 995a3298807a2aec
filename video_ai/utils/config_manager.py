#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration Manager module.
This module contains the ConfigManager class for managing the video AI configuration.
"""

import copy
import json
import logging
import time
from pathlib import Path

from video_ai.utils.constants import DETECTOR, TRACKER, TABLE, ANALYSIS

logger = logging.getLogger(__name__)

# Option names used by the browser build of the tracker
TRACKER_KEY_MAPPING = {
    "maxAge": "max_age",
    "minHits": "min_hits",
    "distThreshold": "dist_threshold",
    "maxTrajectoryPoints": "max_trajectory_points",
    "maxBounces": "max_bounces",
}


class ConfigManager:
    """
    Configuration manager for the video AI core.
    Manages loading and saving configuration to a JSON file.
    """

    def __init__(self, config_file="config.json"):
        """
        Initialize the configuration manager.

        Args:
            config_file (str): Path to the configuration file
        """
        self.default_config = {
            "detector_settings": {
                "model_path": DETECTOR.MODEL_PATH,
                "input_size": DETECTOR.INPUT_SIZE,
                "class_names": list(DETECTOR.CLASS_NAMES),
                "threshold": DETECTOR.THRESHOLD,
                "providers": list(DETECTOR.PROVIDERS),
            },
            "tracker_settings": {
                "max_age": TRACKER.max_age,
                "min_hits": TRACKER.min_hits,
                "dist_threshold": TRACKER.dist_threshold,
                "fps": TRACKER.fps,
                "max_trajectory_points": None,  # None keeps the full trajectory
                "max_bounces": None,
                "assignment": TRACKER.assignment,
            },
            "table_calibration": {
                "corners": [],
                "real_width": TABLE.REAL_WIDTH_M,
                "real_height": TABLE.REAL_HEIGHT_M,
            },
            "analysis_settings": {
                "sample_fps": None,  # None analyzes every frame
                "window_seconds": ANALYSIS.DEFAULT_WINDOW_SECONDS,
            },
        }

        self.config = copy.deepcopy(self.default_config)
        self.config_file = Path(config_file)

        # Throttle save operations to reduce I/O
        self._last_save_time = 0
        self._save_debounce_interval = 5.0
        self._pending_save = False
        self._change_count = 0
        self._max_changes_before_save = 10

        self.load_config()

    def load_config(self):
        """
        Load configuration from the configuration file.
        If the file doesn't exist or is invalid, use default configuration.
        """
        try:
            if self.config_file.exists():
                with open(self.config_file, "r") as f:
                    loaded_config = json.load(f)

                for section, values in loaded_config.items():
                    if isinstance(values, dict) and isinstance(self.config.get(section), dict):
                        self.config[section].update(values)
                    else:
                        self.config[section] = values
                logger.info(f"Configuration loaded from {self.config_file}")
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")

    def save_config(self, force=False):
        """
        Save the current configuration to the configuration file.
        Throttles saves to avoid excessive disk I/O.

        Args:
            force (bool): If True, ignore throttling and save immediately
        """
        current_time = time.time()
        self._pending_save = True
        self._change_count += 1

        if not force and (current_time - self._last_save_time) < self._save_debounce_interval:
            if self._change_count < self._max_changes_before_save:
                logger.debug(f"Throttling config save (change {self._change_count}/{self._max_changes_before_save})")
                return

        try:
            if self._pending_save:
                if self.config_file.parent and not self.config_file.parent.exists():
                    self.config_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self.config_file, "w") as f:
                    json.dump(self.config, f, indent=4)

                self._last_save_time = current_time
                self._pending_save = False
                self._change_count = 0
                logger.info(f"Configuration saved to {self.config_file}")
        except Exception as e:
            logger.error(f"Error saving configuration: {e}")

    def get(self, key, default=None):
        """
        Get a configuration value.

        Args:
            key (str): Configuration key
            default: Default value if the key doesn't exist

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key, value):
        """
        Set a configuration value.

        Args:
            key (str): Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def get_value(self, section, key, default=None):
        """
        Get a specific value from a configuration section.

        Args:
            section (str): Section name
            key (str): Key within the section
            default: Default value if the key or section doesn't exist

        Returns:
            Configuration value or default
        """
        section_data = self.config.get(section, {})
        return section_data.get(key, default)

    def get_detector_settings(self):
        """
        Get the detector settings.

        Returns:
            dict: Detector settings
        """
        return dict(self.get("detector_settings", self.default_config["detector_settings"]))

    def set_detector_settings(self, detector_settings):
        """
        Set the detector settings.

        Args:
            detector_settings (dict): Detector settings
        """
        current_settings = self.get_detector_settings()
        current_settings.update(detector_settings)
        self.set("detector_settings", current_settings)
        self.save_config(force=False)

    def get_tracker_settings(self):
        """
        Get the tracker settings.

        Camel-case option names written by the browser build are converted to
        the snake-case keys used here.

        Returns:
            dict: Tracker settings with standardized keys
        """
        settings = dict(self.get("tracker_settings", self.default_config["tracker_settings"]))

        for old_key, new_key in TRACKER_KEY_MAPPING.items():
            if old_key in settings:
                if new_key not in settings or settings[new_key] == self.default_config["tracker_settings"].get(new_key):
                    settings[new_key] = settings[old_key]
                del settings[old_key]

        return settings

    def set_tracker_settings(self, tracker_settings):
        """
        Set the tracker settings.

        Args:
            tracker_settings (dict): Tracker settings
        """
        current_settings = self.get_tracker_settings()
        for old_key, new_key in TRACKER_KEY_MAPPING.items():
            if old_key in tracker_settings:
                tracker_settings = dict(tracker_settings)
                tracker_settings[new_key] = tracker_settings.pop(old_key)

        current_settings.update(tracker_settings)
        self.set("tracker_settings", current_settings)
        self.save_config(force=False)

    def get_table_calibration(self):
        """
        Get the stored table calibration.

        Returns:
            dict: Calibration with corners, real_width and real_height
        """
        return dict(self.get("table_calibration", self.default_config["table_calibration"]))

    def set_table_calibration(self, calibration):
        """
        Store a table calibration.

        Args:
            calibration (dict): Calibration dictionary (see TableCalibration.to_dict)
        """
        self.set("table_calibration", dict(calibration))
        self.save_config(force=True)

    def get_analysis_settings(self):
        """
        Get the video analysis settings.

        Returns:
            dict: Analysis settings
        """
        return dict(self.get("analysis_settings", self.default_config["analysis_settings"]))
