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
Extract-by-Mask Tool for RGTK.

This module powers the 'mask' command: the input raster is reconciled to the
mask's geometry and valid footprint and written to the output path. Cells of
the mask that fall outside the input raster receive the default value.
"""

import logging
from rgtk.utils.exceptions import GridWriteError
from rgtk.utils.raster_data import Raster
from rgtk.utils.script_arguments import MaskArguments

logger = logging.getLogger('extract_by_mask')


def extract_by_mask(args: MaskArguments) -> Raster:
    """
    Run the extract-by-mask tool.

    Raises:
        GridWriteError: If the output could not be written.
    """
    logger.info(f"Loading mask {args.mask_path}")
    mask = Raster.from_file(args.mask_path)

    logger.info(f"Reconciling {args.input_path} to mask")
    raster = Raster.from_file(args.input_path, mask=mask, use_mask_extent=True,
                              default_value=args.default_value)
    logger.info(f"{raster.cell_number} cells within the mask footprint ({raster.rows}x{raster.cols} grid).")

    if not raster.output_to_file(args.output_path):
        raise GridWriteError(f"Failed to write {args.output_path}")
    return raster
