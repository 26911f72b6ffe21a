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
Raster Grid ToolKit (RGTK).

In-memory masked, multi-layer raster grids with compacted storage and
per-layer statistics.
"""

__version__ = "0.1.0"
