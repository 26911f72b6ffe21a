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
Command-line interface for the Raster Grid ToolKit (RGTK).

This script provides the main entry point for the `rgtk` command,
parsing user arguments and dispatching them to the appropriate tool.
"""
import argparse
import logging
import sys
import numpy as np
from pathlib import Path
from rgtk.utils.config_loader import config
from rgtk.utils.log_helpers import setup_logger, shutdown_logger
from rgtk.utils.script_arguments import MaskArguments, StatsArguments

def float_value(value_str: str) -> float:
    """Convert a fill/NoData string to float or np.nan."""
    if value_str.lower() == 'nan':
        return np.nan
    try:
        return float(value_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid numeric value: '{value_str}'")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='RGTK',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='tool', help='Available tools')
    subparsers.required = True

    # --- Raster Statistics Tool ---
    stats_parser = subparsers.add_parser(
        'stats',
        help='Compute per-layer statistics of a raster, optionally within a mask.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    stats_parser.add_argument('-i', '--input', required=True, type=Path, dest='input_path', help='Input raster (GeoTIFF or ASCII grid).')
    stats_parser.add_argument('-m', '--mask', type=Path, dest='mask_path', help='Optional mask raster.')
    stats_parser.add_argument('-o', '--output', type=Path, dest='output_path', help='Optional report file.')
    stats_parser.add_argument('-f', '--report-format', type=str.lower, default='md', choices=['md', 'json'], dest='report_format', help='Format of the report file.')
    stats_parser.add_argument('--no-positions', action='store_false', dest='calc_positions', help='Keep every grid cell instead of compacting to valid cells.')
    stats_parser.add_argument('--no-mask-extent', action='store_false', dest='use_mask_extent', help="Keep the input geometry even when a mask is given.")
    stats_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    stats_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')

    # --- Extract by Mask Tool ---
    mask_parser = subparsers.add_parser(
        'mask',
        help="Reconcile a raster to a mask's geometry and footprint and write the result.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    mask_parser.add_argument('-i', '--input', required=True, type=Path, dest='input_path', help='Input raster.')
    mask_parser.add_argument('-m', '--mask', required=True, type=Path, dest='mask_path', help='Mask raster.')
    mask_parser.add_argument('-o', '--output', required=True, type=Path, dest='output_path', help='Output raster (.tif or .asc).')
    mask_parser.add_argument('-d', '--default', type=float_value, default=None, dest='default_value', help='Value for mask cells outside the input raster. Default: input NoData.')
    mask_parser.add_argument('--log-file', type=Path, dest='log_file', help='Path to a log file for debugging.')
    mask_parser.add_argument('-v', '--verbose', action='store_true', dest='verbose', help='Enable verbose logging.')

    return parser

def main(argv=None):
    """
    Main function to parse arguments and call the appropriate tool.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    tool = args.tool
    args_dict = vars(args)
    args_dict.pop('tool', None)

    # --- Logger Setup ---
    log_level = logging.DEBUG if args.verbose else config.get('logging.level', 'INFO')
    log_file = args.log_file or config.get('logging.file') or None
    logger = setup_logger(log_file=str(log_file) if log_file else None, level=log_level)

    try:
        if tool == 'stats':
            from rgtk.tools.raster_statistics import raster_statistics
            script_args = StatsArguments(**args_dict)
            raster_statistics(script_args)
        elif tool == 'mask':
            from rgtk.tools.extract_by_mask import extract_by_mask
            script_args = MaskArguments(**args_dict)
            extract_by_mask(script_args)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        sys.exit(1)
    finally:
        shutdown_logger(logger)

if __name__ == "__main__":
    main()
