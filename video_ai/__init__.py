#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Video AI core for SC Champions.
ONNX based ball/racket/table detection and ball tracking with bounce detection.
"""

__version__ = "0.1.0"
