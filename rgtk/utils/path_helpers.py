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
File and Directory Path Utilities for RGTK.

This module provides helper functions for raster file paths: the extensions
the CLI accepts, the core name of a raster and the names of the per-layer
outputs of multi-layer rasters.
"""
from pathlib import Path
import logging
from typing import Union
import rgtk.utils.raster_constants as rc

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = rc.GTIFF_EXTENSIONS + (rc.ASCII_EXTENSION,)

def get_core_name(file_path: Union[str, Path]) -> str:
    """Core name of a raster, e.g. 'dem' for '/data/dem.tif'."""
    return Path(file_path).stem

def layer_output_path(file_path: Union[str, Path], layer: int) -> Path:
    """
    Output path of one layer of a multi-layer raster.

    Example:
        >>> layer_output_path('/out/soil.asc', 2)
        PosixPath('/out/soil_2.asc')
    """
    file_path = Path(file_path)
    return file_path.with_name(f"{file_path.stem}_{layer}{file_path.suffix}")
