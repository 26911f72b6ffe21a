#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ******************************************************************************
# Project: Raster Grid ToolKit (RGTK)
# Author: Eric Robeck <robeckgeo@gmail.com>
#
# Copyright (c) 2025, Eric Robeck
# Licensed under the MIT License
# ******************************************************************************

"""
Raster Grid ToolKit Test Suite.

This package contains tests for RGTK components including:
- Unit tests for individual functions and classes
- Integration tests for file I/O through the raster model
- End-to-end tests for CLI commands
"""
