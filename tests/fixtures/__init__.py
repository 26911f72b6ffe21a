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
Test fixtures and mock data factories for RGTK tests.

This package contains:
- MockGrid: Factory for creating small raster grids in memory or on disk
"""

from tests.fixtures.mock_grid_factory import MockGrid

__all__ = ['MockGrid']
