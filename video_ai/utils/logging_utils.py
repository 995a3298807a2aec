#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Logging Utilities Module
This module contains common logging utility functions to reduce code duplication.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union


def log_service_init(service_name: str, settings: Dict[str, Any], log_level: int = logging.INFO) -> None:
    """
    Log service initialization with standardized format.

    Args:
        service_name: Name of the service being initialized
        settings: Dictionary containing service settings
        log_level: Logging level (default: logging.INFO)
    """
    logging.log(log_level, f"{service_name} initialized with settings: {settings}")


def log_service_update(service_name: str, settings: Dict[str, Any], log_level: int = logging.INFO) -> None:
    """
    Log service settings update with standardized format.

    Args:
        service_name: Name of the service being updated
        settings: Dictionary containing updated service settings
        log_level: Logging level (default: logging.INFO)
    """
    logging.log(log_level, f"{service_name} settings updated: {settings}")


class LevelFilter(logging.Filter):
    """Pass only records of exactly one level."""

    def __init__(self, level):
        super().__init__()
        self.level = level

    def filter(self, record):
        return record.levelno == self.level


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LEVEL_CONFIGS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def setup_logging(log_dir: Optional[Union[str, Path]] = None,
                  console_level: int = logging.INFO,
                  timestamp: str = "") -> logging.Logger:
    """
    Configure the root logger with a console handler and, when a directory is
    given, one file per level under ``<log_dir>/<level>/<level>_<timestamp>.log``.

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return root_logger

    for level_name, level_value in LEVEL_CONFIGS.items():
        level_path = Path(log_dir) / level_name
        level_path.mkdir(parents=True, exist_ok=True)
        suffix = f"_{timestamp}" if timestamp else ""
        file_handler = logging.FileHandler(level_path / f"{level_name}{suffix}.log")
        file_handler.setLevel(level_value)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.addFilter(LevelFilter(level_value))
        root_logger.addHandler(file_handler)

    return root_logger
