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
Shared Constants and Enumerations for Masked Raster Grids.

This module centralizes the header key names, statistics metric names and
default values used throughout RGTK. It provides a single source of truth for
the keys stored in a raster header table and for the reconciliation modes a
raster can be built with.

Classes:
    ReconcileMode: Enum for the three storage/reconciliation modes.
"""
from enum import Enum

# --- Helper Accessors ---

def select_reconcile_mode(calc_positions: bool, has_mask: bool, use_mask_extent: bool) -> 'ReconcileMode':
    """Map the two construction flags (plus mask presence) onto a single mode."""
    if not calc_positions:
        return ReconcileMode.UNCOMPACTED
    if has_mask and use_mask_extent:
        return ReconcileMode.COMPACT_TO_MASK
    return ReconcileMode.COMPACT_SELF

def normalize_metric_name(name: str) -> str:
    return name.strip().upper()


# --- Enumerations ---

class ReconcileMode(Enum):
    """Enumeration of the supported storage layouts of a raster."""
    UNCOMPACTED = 'uncompacted'
    COMPACT_SELF = 'compact_self'
    COMPACT_TO_MASK = 'compact_to_mask'


# --- Header Keys ---

HEADER_NROWS = 'NROWS'
HEADER_NCOLS = 'NCOLS'
HEADER_CELLSIZE = 'CELLSIZE'
HEADER_XLL = 'XLLCORNER'
HEADER_YLL = 'YLLCORNER'
HEADER_NODATA = 'NODATA_VALUE'
HEADER_LAYERS = 'LAYERS'
HEADER_CELLSNUM = 'CELLSNUM'

# Keys which must be present and positive in every header
MANDATORY_POSITIVE_KEYS = (HEADER_NROWS, HEADER_NCOLS, HEADER_CELLSIZE, HEADER_LAYERS)

# Keys which define the geometry of a grid
GEOMETRY_KEYS = (HEADER_NROWS, HEADER_NCOLS, HEADER_CELLSIZE, HEADER_XLL, HEADER_YLL)


# --- Statistics Metrics ---

STATS_VALIDNUM = 'VALID_CELLNUMBER'
STATS_MEAN = 'MEAN'
STATS_MIN = 'MIN'
STATS_MAX = 'MAX'
STATS_STD = 'STD'
STATS_RANGE = 'RANGE'

STATISTICS_METRICS = (STATS_VALIDNUM, STATS_MEAN, STATS_MIN, STATS_MAX, STATS_STD, STATS_RANGE)


# --- Default Parameter Values ---

DEFAULT_NODATA = -9999.0

# Absolute tolerance when comparing floating values against NODATA or geometry
FLOAT_TOLERANCE = 1e-6

# Sentinel returned by coordinate lookups that fall outside the grid
OUT_OF_EXTENT = (-1, -1)

# Compacted position returned for cells outside the valid footprint
INVALID_POSITION = -1

# File extensions handled by the grid codecs
ASCII_EXTENSION = '.asc'
GTIFF_EXTENSIONS = ('.tif', '.tiff')
