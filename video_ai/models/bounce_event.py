#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Bounce event model.
This module contains the BounceEvent class, which represents a bounce detected in a ball trajectory.
"""

import dataclasses
from typing import Any, Dict, Optional


@dataclasses.dataclass
class BounceEvent:
    """
    Bounce event class.

    Position is normalized to the source frame; speed is in normalized units
    per second. Real-world fields are filled in once a table calibration is known.
    """

    # Required fields
    time: float  # Timestamp of the bounce event in seconds
    x: float
    y: float
    speed: float
    track_id: int

    # Optional fields
    real_speed: Optional[float] = None  # m/s
    table_x: Optional[float] = None  # cm on the table plane
    table_y: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the bounce event to a dictionary.

        Returns:
            Dictionary representation of the bounce event
        """
        return {
            'time': self.time,
            'x': self.x,
            'y': self.y,
            'speed': self.speed,
            'track_id': self.track_id,
            'real_speed': self.real_speed,
            'table_x': self.table_x,
            'table_y': self.table_y,
        }

    @classmethod
    def from_dict(cls, dict_data: Dict[str, Any]) -> 'BounceEvent':
        """
        Create a bounce event from a dictionary.

        Args:
            dict_data: Dictionary representation of the bounce event

        Returns:
            BounceEvent instance
        """
        return cls(
            time=dict_data['time'],
            x=dict_data['x'],
            y=dict_data['y'],
            speed=dict_data.get('speed', 0.0),
            track_id=dict_data.get('track_id', dict_data.get('trackId', 0)),
            real_speed=dict_data.get('real_speed'),
            table_x=dict_data.get('table_x'),
            table_y=dict_data.get('table_y'),
        )

    def __str__(self) -> str:
        real = f", real_speed={self.real_speed:.2f}m/s" if self.real_speed is not None else ""
        return (f"BounceEvent(time={self.time:.3f}, pos=({self.x:.3f}, {self.y:.3f}), "
                f"speed={self.speed:.3f}{real}, track={self.track_id})")
