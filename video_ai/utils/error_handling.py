#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Error handling utilities.
This module provides decorators and utilities for consistent error handling
across the detector, the tracker and the analysis controller.
"""

import functools
import logging
import enum
import traceback
from typing import Any, Callable, TypeVar, Union

logger = logging.getLogger(__name__)

# Type variable for function return type
T = TypeVar('T')


class ErrorAction(enum.Enum):
    """Enum defining actions to take when an error occurs."""
    RETURN_DEFAULT = 'return_default'
    RETURN_FALSE = 'return_false'  # Specifically for returning False


def handle_errors(action: ErrorAction = ErrorAction.RETURN_DEFAULT,
                  default_return: Any = None,
                  message: str = "An error occurred: {error}",
                  log_level: int = logging.ERROR,
                  log_traceback: bool = False) -> Callable:
    """
    Decorator that provides consistent error handling.

    Args:
        action: Action to take when an exception occurs
        default_return: Value to return if action is RETURN_DEFAULT
        message: Message template for the error log (can use {error} placeholder)
        log_level: Logging level to use
        log_traceback: Whether to log the full traceback

    Returns:
        Decorated function with error handling
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, Any]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, Any]:
            try:
                return func(*args, **kwargs)
            except Exception as error:
                error_message = message.format(error=str(error))

                if log_traceback:
                    logger.log(log_level, f"{error_message}\n{traceback.format_exc()}")
                else:
                    logger.log(log_level, error_message)

                if action == ErrorAction.RETURN_FALSE:
                    return False
                return default_return

        return wrapper
    return decorator
