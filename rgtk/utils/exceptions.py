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
Custom Exceptions Module.

A centralized module for custom exceptions used throughout the Raster Grid ToolKit.
"""

class RasterError(Exception):
    """Base exception for errors raised by the raster data model."""
    pass

class MissingHeaderKeyError(RasterError, KeyError):
    """A mandatory key is absent from a raster header table."""
    pass

class EmptyMaskIntersectionError(RasterError):
    """Reconciling against a mask produced zero valid cells."""
    pass

class AllocationError(RasterError):
    """Storage was requested with a non-positive cell or layer count."""
    pass

class IndexOutOfRangeError(RasterError, IndexError):
    """A compacted position or layer number is outside the allocated storage."""
    pass

class LayerGeometryMismatchError(RasterError):
    """A grid cannot be coordinate-mapped onto an existing raster geometry."""
    pass

class UnknownMetricError(RasterError, KeyError):
    """A statistics metric name is not recognized."""
    pass

class LayerOutOfRangeError(RasterError, IndexError):
    """A layer number is outside [1, layer count]."""
    pass

class GridReadError(RasterError):
    """Error reading a grid through the codec."""
    pass

class GridWriteError(RasterError):
    """Error writing a grid through the codec."""
    pass
