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
Pytest configuration and shared fixtures for RGTK test suite.

This module provides:
- Shared fixtures for the small hand-checkable grids used throughout
- Mask factories

Most tests use the 3x3 sample grid below (cell size 1, lower-left at (0, 0),
NODATA -9999 at the center cell):

     1      2      3
     4  -9999      6
     7      8      9

Its valid cells give count 8, mean 5, min 1, max 9, range 8 and population
standard deviation sqrt(7.5).

Example:
    >>> def test_using_fixture(sample_raster):
    ...     '''Test using the sample_raster fixture.'''
    ...     assert sample_raster.cell_number == 8
"""

import pytest
import numpy as np
from typing import Optional

# pythonpath is configured in pytest.ini to include project root
from rgtk.utils.config_loader import DEFAULT_CONFIG_PATH, config
from rgtk.utils.data_models import GridData
from rgtk.utils.header_table import HeaderTable
from rgtk.utils.raster_data import Raster
from tests.fixtures.mock_grid_factory import MockGrid

NODATA = -9999.0
SAMPLE_VALUES = [[1, 2, 3], [4, NODATA, 6], [7, 8, 9]]


# =============================================================================
# Session-scope Fixtures (Created once per test session)
# =============================================================================

@pytest.fixture(scope="session")
def temp_dir(tmp_path_factory):
    """
    Create a temporary directory for the entire test session.

    Returns:
        Path: Path to temporary directory
    """
    return tmp_path_factory.mktemp("rgtk_tests")


# =============================================================================
# Function-scope Fixtures (Created for each test)
# =============================================================================

@pytest.fixture
def sample_header():
    """Header of the 3x3 sample grid."""
    return HeaderTable.from_geometry(3, 3, 1.0, 0.0, 0.0, nodata=NODATA)


@pytest.fixture
def sample_values():
    """Values of the 3x3 sample grid as float64."""
    return np.array(SAMPLE_VALUES, dtype=np.float64)


@pytest.fixture
def sample_grid(sample_header, sample_values):
    """The 3x3 sample grid as GridData."""
    return GridData(sample_header, sample_values)


@pytest.fixture
def sample_raster(sample_header, sample_values):
    """The 3x3 sample grid compacted to its own valid cells."""
    return Raster.from_array(sample_values, sample_header)


@pytest.fixture
def multilayer_values():
    """
    Two-layer values over the sample geometry.

    Layer 1 is the sample grid; layer 2 is ten times the cell number except
    for NODATA at the top-left corner. No cell is NODATA on both layers.
    """
    layer2 = [[NODATA, 20, 30], [40, 50, 60], [70, 80, 90]]
    return np.array([SAMPLE_VALUES, layer2], dtype=np.float64)


@pytest.fixture
def mock_sample_grid():
    """The sample grid as a MockGrid, ready to be saved to disk."""
    return MockGrid(pixel_data=SAMPLE_VALUES, nodata_value=NODATA)


@pytest.fixture
def make_mask():
    """
    Factory for mask rasters.

    Example:
        >>> mask = make_mask(rows=2, cols=2, xll=1.0, yll=0.0)
    """
    def _make_mask(rows: int = 2, cols: int = 2, cell_size: float = 1.0,
                   xll: float = 0.0, yll: float = 0.0, values: Optional[list] = None,
                   calc_positions: bool = True) -> Raster:
        header = HeaderTable.from_geometry(rows, cols, cell_size, xll, yll, nodata=NODATA)
        data = np.ones((rows, cols)) if values is None else np.array(values, dtype=np.float64)
        return Raster.from_array(data, header, calc_positions=calc_positions)
    return _make_mask


@pytest.fixture
def restore_config():
    """Reload the packaged configuration after a test that modifies it."""
    yield config
    config.reload(DEFAULT_CONFIG_PATH)
