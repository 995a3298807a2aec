#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Utility package: constants, configuration, logging, error handling and export helpers.
"""
