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
Dataclass-based Argument Models for RGTK Tools.

This module defines strongly-typed dataclasses for parsing and validating the
command-line arguments for each tool (`stats`, `mask`). It uses
`__post_init__` for validation, ensuring that the core logic receives clean
and validated inputs.

Classes:
    BaseArguments: A base dataclass for common script arguments.
    StatsArguments: Arguments for the raster_statistics tool.
    MaskArguments: Arguments for the extract_by_mask tool.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from rgtk.utils.path_helpers import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

@dataclass
class BaseArguments:
    """A base dataclass for common script arguments."""
    input_path: Optional[Path] = None
    output_path: Optional[Path] = None
    mask_path: Optional[Path] = None
    log_file: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Coerce path-like arguments to Path objects."""
        if self.input_path and isinstance(self.input_path, str):
            self.input_path = Path(self.input_path)
        if self.output_path and isinstance(self.output_path, str):
            self.output_path = Path(self.output_path)
        if self.mask_path and isinstance(self.mask_path, str):
            self.mask_path = Path(self.mask_path)

    def handle_error(self, message: str):
        """Logs an error and raises ValueError."""
        logger.error(message)
        raise ValueError(message)

    def _validate_inputs(self):
        if not self.input_path:
            raise ValueError("An input raster is required.")
        if not self.input_path.exists():
            raise ValueError(f"Input raster not found: {self.input_path}")
        if self.mask_path and not self.mask_path.exists():
            raise ValueError(f"Mask raster not found: {self.mask_path}")

@dataclass
class StatsArguments(BaseArguments):
    """Arguments for the raster_statistics tool."""
    calc_positions: bool = True
    use_mask_extent: bool = True
    report_format: str = 'md'

    def __post_init__(self):
        """Validation for raster_statistics arguments."""
        super().__post_init__()
        try:
            self._validate_inputs()
            if self.report_format not in ('md', 'json'):
                raise ValueError(f"Unsupported report format: {self.report_format}")
        except ValueError as e:
            self.handle_error(str(e))

@dataclass
class MaskArguments(BaseArguments):
    """Arguments for the extract_by_mask tool."""
    default_value: Optional[float] = None

    def __post_init__(self):
        """Validation for extract_by_mask arguments."""
        super().__post_init__()
        try:
            self._validate_inputs()
            if not self.mask_path:
                raise ValueError("A mask raster is required.")
            if not self.output_path:
                raise ValueError("An output raster path is required.")
            if self.output_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                raise ValueError(f"Unsupported output format: {self.output_path.suffix}")
        except ValueError as e:
            self.handle_error(str(e))
