#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Test suite for the error handling decorator.
"""

import logging
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_ai.utils.error_handling import ErrorAction, handle_errors


class TestHandleErrors(unittest.TestCase):
    """Test cases for handle_errors."""

    def test_passes_through_result(self):
        @handle_errors(default_return=-1)
        def divide(a, b):
            return a / b

        self.assertEqual(divide(6, 3), 2)

    def test_returns_default(self):
        @handle_errors(default_return=-1, message="Division failed: {error}")
        def divide(a, b):
            return a / b

        with self.assertLogs("video_ai.utils.error_handling", level=logging.ERROR) as logs:
            self.assertEqual(divide(1, 0), -1)
        self.assertIn("Division failed: division by zero", logs.output[0])

    def test_returns_false(self):
        @handle_errors(action=ErrorAction.RETURN_FALSE, default_return="ignored")
        def fail():
            raise OSError("disk full")

        with self.assertLogs("video_ai.utils.error_handling", level=logging.ERROR):
            self.assertIs(fail(), False)

    def test_traceback_and_level(self):
        @handle_errors(log_level=logging.WARNING, log_traceback=True)
        def fail():
            raise ValueError("bad value")

        with self.assertLogs("video_ai.utils.error_handling", level=logging.WARNING) as logs:
            self.assertIsNone(fail())
        self.assertEqual(logs.records[0].levelno, logging.WARNING)
        self.assertIn("Traceback", logs.output[0])

    def test_keeps_function_metadata(self):
        @handle_errors()
        def documented():
            """Docstring."""

        self.assertEqual(documented.__name__, "documented")
        self.assertEqual(documented.__doc__, "Docstring.")


if __name__ == "__main__":
    unittest.main()
