#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Export utilities.
JSON and CSV export of analysis results, trajectory points and bounce events.
"""

import csv
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from video_ai.utils.error_handling import ErrorAction, handle_errors

logger = logging.getLogger(__name__)

TRAJECTORY_FIELDS = ["time", "x", "y", "score", "track_id", "vx", "vy"]
BOUNCE_FIELDS = ["time", "x", "y", "speed", "track_id", "real_speed", "table_x", "table_y"]


def _ensure_parent(file_path: Union[str, Path]) -> str:
    file_path = str(file_path)
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return file_path


def _as_dict(item: Any) -> Dict[str, Any]:
    return item if isinstance(item, dict) else item.to_dict()


@handle_errors(action=ErrorAction.RETURN_FALSE, message="Error saving data to JSON file: {error}")
def export_json(data: Any, file_path: Union[str, Path]) -> bool:
    """
    Save data to a JSON file.

    Args:
        data: Dictionary, or an object with ``to_dict`` (e.g. AnalysisResult)
        file_path: Path to save the file

    Returns:
        bool: True if save was successful, False otherwise
    """
    file_path = _ensure_parent(file_path)
    with open(file_path, 'w') as f:
        json.dump(_as_dict(data), f, indent=4)

    logger.info(f"Data saved to JSON file: {file_path}")
    return True


@handle_errors(action=ErrorAction.RETURN_FALSE, message="Error saving data to CSV file: {error}")
def export_csv(items: Sequence[Any], file_path: Union[str, Path],
               fields: List[str] = None) -> bool:
    """
    Save trajectory points or bounce events to a CSV file.

    Args:
        items: TrajectoryPoint / BounceEvent objects or dictionaries
        file_path: Path to save the file
        fields: Column names (defaults to the trajectory columns)

    Returns:
        bool: True if save was successful, False otherwise
    """
    fields = fields or TRAJECTORY_FIELDS
    file_path = _ensure_parent(file_path)
    with open(file_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fields, extrasaction='ignore')
        writer.writeheader()
        for item in items:
            writer.writerow(_as_dict(item))

    logger.info(f"{len(items)} rows saved to CSV file: {file_path}")
    return True
