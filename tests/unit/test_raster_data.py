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
Unit tests for the Raster class.

This module tests the public raster model on in-memory grids:
- Construction in the three storage modes
- Position lookup and value access inside and outside the footprint
- Cell writes, layer appending and whole-raster value operations
- Statistics caching through the raster
- Copies, borrowed indexes and header replacement

File I/O is covered by the integration tests.
"""

import math
import pytest
import numpy as np
import rgtk.utils.raster_constants as rc
from rgtk.utils.data_models import GridData
from rgtk.utils.exceptions import (
    AllocationError,
    EmptyMaskIntersectionError,
    IndexOutOfRangeError,
    LayerGeometryMismatchError,
    LayerOutOfRangeError,
    UnknownMetricError,
)
from rgtk.utils.header_table import HeaderTable
from rgtk.utils.raster_constants import ReconcileMode
from rgtk.utils.raster_data import Raster

NODATA = -9999.0


@pytest.mark.unit
class TestConstruction:
    """Test building rasters in each storage mode."""

    def test_uninitialized(self):
        """Test that a raster without a grid is empty."""
        raster = Raster()
        assert not raster.is_initialized
        assert raster.cell_number == 0
        assert raster.get_position(0, 0) == rc.INVALID_POSITION
        assert repr(raster) == "Raster(<uninitialized>)"

    def test_uncompacted(self, sample_header, sample_values):
        """Test that UNCOMPACTED keeps NODATA cells as storage slots."""
        raster = Raster.from_array(sample_values, sample_header, calc_positions=False)
        assert raster.mode is ReconcileMode.UNCOMPACTED
        assert not raster.positions_calculated
        assert raster.cell_number == 9
        assert raster.get_position(1, 1) == 4
        assert raster.get_value(4) == NODATA

    def test_compact_self(self, sample_raster):
        """Test that COMPACT_SELF stores the eight valid cells."""
        assert sample_raster.mode is ReconcileMode.COMPACT_SELF
        assert sample_raster.positions_calculated
        assert not sample_raster.mask_extent_used
        assert sample_raster.cell_number == 8
        assert sample_raster.get_header(rc.HEADER_CELLSNUM) == 8
        assert sample_raster.rows == 3
        assert sample_raster.cols == 3
        assert sample_raster.nodata == NODATA
        assert sample_raster.default_value == NODATA
        assert sample_raster.owns_index

    def test_compact_to_mask(self, sample_header, sample_values, make_mask):
        """Test that a mask imposes its geometry and footprint."""
        mask = make_mask(xll=1.0, yll=0.0)
        raster = Raster.from_array(sample_values, sample_header, mask=mask)
        assert raster.mode is ReconcileMode.COMPACT_TO_MASK
        assert raster.mask_extent_used
        assert raster.mask is mask
        assert raster.rows == 2
        assert raster.xll == 1.0
        assert raster.cell_number == 4
        assert raster.get_valid_number() == 3
        assert raster.get_average() == pytest.approx(23.0 / 3.0)

    def test_all_nodata_compact_self_cannot_allocate(self, sample_header):
        """Test that an all-NODATA grid has nothing to store."""
        with pytest.raises(AllocationError):
            Raster.from_array(np.full((3, 3), NODATA), sample_header)

    def test_empty_mask_raises(self, sample_header, sample_values, make_mask):
        """Test that a mask without valid cells raises EmptyMaskIntersectionError."""
        mask = make_mask(values=[[NODATA, NODATA], [NODATA, NODATA]], calc_positions=False)
        with pytest.raises(EmptyMaskIntersectionError):
            Raster.from_array(sample_values, sample_header, mask=mask)

    def test_default_value_recorded(self, sample_header, sample_values, make_mask):
        """Test that an explicit default fill value is kept."""
        mask = make_mask(xll=2.0, yll=2.0)
        raster = Raster.from_array(sample_values, sample_header, mask=mask, default_value=0.0)
        assert raster.default_value == 0.0
        assert raster.layer_values(1).tolist() == [0, 0, 3, 0]
        assert raster.get_valid_number() == 1

    def test_multilayer(self, sample_header, multilayer_values):
        """Test a two-layer raster built from a 3-D array."""
        raster = Raster.from_array(multilayer_values, sample_header)
        assert raster.is_multilayer
        assert raster.layers == 2
        assert raster.cell_number == 9
        assert raster.get_values(1, 1).tolist() == [NODATA, 50.0]


@pytest.mark.unit
class TestPositionsAndValues:
    """Test lookups and reads."""

    def test_get_position(self, sample_raster):
        """Test row-major compacted positions around the missing center."""
        assert sample_raster.get_position(0, 0) == 0
        assert sample_raster.get_position(1, 0) == 3
        assert sample_raster.get_position(1, 1) == rc.INVALID_POSITION
        assert sample_raster.get_position(1, 2) == 4
        assert sample_raster.get_position(2, 2) == 7

    def test_get_position_xy(self, sample_raster):
        """Test position lookup by world coordinate."""
        assert sample_raster.get_position_xy(2.5, 0.5) == 7
        assert sample_raster.get_position_xy(10.0, 10.0) == rc.INVALID_POSITION
        assert sample_raster.get_position_xy(float('nan'), 0.5) == rc.INVALID_POSITION
        assert sample_raster.get_position_xy(0.5, float('inf')) == rc.INVALID_POSITION

    def test_coordinates(self, sample_raster):
        """Test cell-center coordinates through the raster."""
        assert sample_raster.row_col_to_xy(0, 2) == (2.5, 2.5)
        assert sample_raster.xy_to_row_col(2.5, 2.5) == (0, 2)
        assert sample_raster.xy_to_row_col(-1.0, 0.0) == rc.OUT_OF_EXTENT

    def test_get_value_at(self, sample_raster):
        """Test reads by row/col, with NODATA outside the footprint."""
        assert sample_raster.get_value_at(0, 1) == 2.0
        assert sample_raster.get_value_at(1, 1) == NODATA
        assert sample_raster.get_value_at(5, 5) == NODATA

    def test_get_value_out_of_range(self, sample_raster):
        """Test that a compacted index past the end raises."""
        with pytest.raises(IndexOutOfRangeError):
            sample_raster.get_value(8)
        with pytest.raises(IndexOutOfRangeError):
            sample_raster.get_value(0, 2)

    def test_get_values_outside_footprint(self, sample_header, multilayer_values):
        """Test that per-cell vectors outside the footprint are all NODATA."""
        raster = Raster.from_array(multilayer_values, sample_header)
        assert raster.get_values(7, 7).tolist() == [NODATA, NODATA]
        assert raster.get_values_at(0).tolist() == [1.0, NODATA]

    def test_is_nodata(self, sample_raster):
        """Test NODATA checks inside and outside the footprint."""
        assert sample_raster.is_nodata(1, 1)
        assert not sample_raster.is_nodata(0, 0)


@pytest.mark.unit
class TestMutation:
    """Test writes and value operations."""

    def test_set_value_invalidates_statistics(self, sample_raster):
        """Test that a write is reflected in the next statistics read."""
        assert sample_raster.get_average() == 5.0
        assert sample_raster.set_value(0, 0, 100.0)
        assert sample_raster.statistics_dirty(1)
        assert sample_raster.get_average() == pytest.approx(139.0 / 8.0)
        assert sample_raster.get_maximum() == 100.0

    def test_set_value_outside_footprint_is_noop(self, sample_raster):
        """Test that the footprint cannot grow through set_value."""
        sample_raster.calculate_statistics()
        before = sample_raster.layer_statistics(1)
        assert not sample_raster.set_value(1, 1, 5.0)
        assert not sample_raster.statistics_dirty(1)
        assert sample_raster.cell_number == 8
        assert sample_raster.layer_values(1).tolist() == [1, 2, 3, 4, 6, 7, 8, 9]
        assert sample_raster.get_value_at(1, 1) == NODATA
        assert sample_raster.layer_statistics(1) == before

    def test_set_value_bad_layer(self, sample_raster):
        """Test that writing to a missing layer raises."""
        with pytest.raises(IndexOutOfRangeError):
            sample_raster.set_value(0, 0, 1.0, layer=2)

    def test_add_layer_same_geometry(self, sample_raster, sample_header, sample_values):
        """Test appending an aligned layer."""
        layer = sample_raster.add_layer(sample_header, sample_values * 2)
        assert layer == 2
        assert sample_raster.layers == 2
        assert sample_raster.get_header(rc.HEADER_LAYERS) == 2
        assert sample_raster.get_average(2) == 10.0
        assert sample_raster.get_average(1) == 5.0

    def test_add_layer_different_geometry(self, sample_raster):
        """Test appending a smaller layer mapped through coordinates."""
        layer_header = HeaderTable.from_geometry(2, 2, 1.0, 0.0, 0.0)
        sample_raster.add_layer(GridData(layer_header, np.array([[10.0, 20.0], [30.0, 40.0]])))
        assert sample_raster.get_valid_number(2) == 3
        assert sample_raster.get_average(2) == pytest.approx(80.0 / 3.0)
        assert sample_raster.get_value_at(0, 0, 2) == NODATA

    def test_add_layer_translates_layer_nodata(self, sample_raster):
        """Test that a layer with its own NODATA value does not count it as data."""
        layer_header = HeaderTable.from_geometry(3, 3, 1.0, 0.0, 0.0, nodata=-1.0)
        sample_raster.add_layer(layer_header, np.array([[10.0, -1.0, 30.0], [40.0, 50.0, 60.0], [70.0, 80.0, 90.0]]))
        assert sample_raster.is_nodata(0, 1, 2)
        assert sample_raster.get_value_at(0, 1, 2) == NODATA
        assert sample_raster.get_valid_number(2) == 7
        assert sample_raster.get_minimum(2) == 10.0

    def test_add_layer_translates_nodata_through_coordinates(self, sample_raster):
        """Test NODATA translation for a layer of a different geometry."""
        layer_header = HeaderTable.from_geometry(2, 2, 1.0, 0.0, 0.0, nodata=-1.0)
        sample_raster.add_layer(layer_header, np.array([[-1.0, 20.0], [30.0, 40.0]]))
        assert sample_raster.is_nodata(1, 0, 2)
        assert sample_raster.get_valid_number(2) == 2
        assert sample_raster.get_minimum(2) == 30.0

    def test_add_layer_mismatch_leaves_raster_unchanged(self, sample_raster, sample_header):
        """Test that a malformed layer is rejected without side effects."""
        with pytest.raises(LayerGeometryMismatchError):
            sample_raster.add_layer(sample_header, np.zeros((2, 2)))
        assert sample_raster.layers == 1

    def test_add_layer_uninitialized(self, sample_header, sample_values):
        """Test that layers cannot be added before construction."""
        with pytest.raises(IndexOutOfRangeError):
            Raster().add_layer(sample_header, sample_values)

    def test_replace_nodata(self, sample_header, sample_values):
        """Test that NODATA cells take the new value, which becomes NODATA."""
        raster = Raster.from_array(sample_values, sample_header, calc_positions=False)
        raster.replace_nodata(0.0)
        assert raster.nodata == 0.0
        assert raster.get_value(4) == 0.0
        assert raster.get_valid_number() == 8

    def test_replace_nodata_integer_storage(self, sample_header):
        """Test that the truncated replacement value becomes the NODATA."""
        values = np.array([[1, 2, 3], [4, NODATA, 6], [7, 8, 9]]).astype(np.int32)
        raster = Raster.from_array(values, sample_header, calc_positions=False)
        raster.replace_nodata(0.5)
        assert raster.nodata == 0.0
        assert raster.get_value(4) == 0
        assert raster.get_valid_number() == 8
        assert raster.is_nodata(1, 1)

    def test_reclassify(self, sample_raster):
        """Test value remapping across the raster."""
        sample_raster.reclassify({1.0: 100.0, 9.0: 0.0})
        assert sample_raster.get_value_at(0, 0) == 100.0
        assert sample_raster.get_maximum() == 100.0
        assert sample_raster.get_minimum() == 0.0


@pytest.mark.unit
class TestStatistics:
    """Test statistics through the raster."""

    def test_sample_statistics(self, sample_raster):
        """Test the full metric set of the sample grid."""
        assert sample_raster.get_valid_number() == 8
        assert sample_raster.get_average() == 5.0
        assert sample_raster.get_minimum() == 1.0
        assert sample_raster.get_maximum() == 9.0
        assert sample_raster.get_range() == 8.0
        assert sample_raster.get_std() == pytest.approx(math.sqrt(7.5))

    def test_uncompacted_excludes_nodata(self, sample_header, sample_values):
        """Test that stored NODATA cells are excluded from statistics."""
        raster = Raster.from_array(sample_values, sample_header, calc_positions=False)
        assert raster.get_valid_number() == 8
        assert raster.get_average() == 5.0

    def test_get_statistics_by_name(self, sample_raster):
        """Test case-insensitive lookups and unknown names."""
        assert sample_raster.get_statistics('Mean') == 5.0
        assert sample_raster.get_statistics(rc.STATS_RANGE) == 8.0
        with pytest.raises(UnknownMetricError):
            sample_raster.get_statistics('median')
        with pytest.raises(LayerOutOfRangeError):
            sample_raster.get_statistics('mean', 2)

    def test_statistics_all_layers(self, sample_header, multilayer_values):
        """Test per-layer results of a multi-layer raster."""
        raster = Raster.from_array(multilayer_values, sample_header, max_workers=2)
        raster.update_statistics()
        assert raster.statistics_calculated
        assert raster.get_statistics_all('mean') == [5.0, 55.0]
        assert raster.get_statistics_all(rc.STATS_VALIDNUM) == [8, 8]

    def test_calculate_then_clean(self, sample_raster):
        """Test the dirty flag lifecycle."""
        assert sample_raster.statistics_dirty(1)
        sample_raster.calculate_statistics()
        assert sample_raster.statistics_calculated
        assert not sample_raster.statistics_dirty(1)

    def test_statistics_repeatable(self, sample_raster):
        """Test that recomputing, or forcing an update after a no-op write, gives the same result."""
        first = sample_raster.layer_statistics(1)
        sample_raster.calculate_statistics()
        assert sample_raster.layer_statistics(1) == first
        assert not sample_raster.set_value(1, 1, 100.0)
        sample_raster.update_statistics()
        assert sample_raster.layer_statistics(1) == first
        assert sample_raster.get_std() == pytest.approx(math.sqrt(7.5))

    def test_all_nodata_layer(self, sample_header):
        """Test that a layer without valid cells reports NODATA metrics."""
        raster = Raster.from_array(np.full((3, 3), NODATA), sample_header, calc_positions=False)
        assert raster.get_valid_number() == 0
        assert raster.get_average() == NODATA
        assert raster.get_std() == NODATA


@pytest.mark.unit
class TestCopiesAndMasks:
    """Test copies, borrowed indexes and header replacement."""

    def test_copy_is_independent(self, sample_raster):
        """Test that writes to a copy do not reach the original."""
        other = sample_raster.copy()
        other.set_value(0, 0, 50.0)
        assert sample_raster.get_value_at(0, 0) == 1.0
        assert other.get_value_at(0, 0) == 50.0
        assert other.cell_number == sample_raster.cell_number
        assert other.position_index == sample_raster.position_index
        assert other.position_index is not sample_raster.position_index

    def test_copy_keeps_borrowed_index(self, sample_header, sample_values, make_mask):
        """Test that a borrowed index stays shared with the mask."""
        mask = make_mask(xll=1.0)
        raster = Raster.from_array(sample_values, sample_header, mask=mask)
        assert not raster.owns_index
        assert raster.position_index is mask.position_index
        other = raster.copy()
        assert other.position_index is mask.position_index

    def test_grids_against_one_mask_share_index(self, sample_header, sample_values, make_mask):
        """Test that different grids reconciled to one mask share a single index object."""
        mask = make_mask(rows=3, cols=3, values=[[1, 1, 1], [1, NODATA, 1], [1, 1, 1]], calc_positions=False)
        first = Raster.from_array(sample_values, sample_header, mask=mask)
        wide_header = HeaderTable.from_geometry(4, 4, 1.0, -1.0, -1.0, nodata=NODATA)
        second = Raster.from_array(np.arange(16, dtype=np.float64).reshape(4, 4), wide_header, mask=mask)
        assert not first.owns_index
        assert not second.owns_index
        assert first.position_index is second.position_index
        assert first.position_index is mask.valid_position_index()
        assert len(first.position_index) == 8
        assert first.get_position(1, 1) == rc.INVALID_POSITION
        assert second.get_value_at(0, 0) == 1.0

    def test_mask_valid_index_rebuilt_after_write(self, make_mask):
        """Test that the cached valid index follows writes to the mask."""
        mask = make_mask(values=[[1, NODATA], [1, 1]], calc_positions=False)
        before = mask.valid_position_index()
        assert len(before) == 3
        assert mask.valid_position_index() is before
        assert mask.set_value(0, 0, NODATA)
        assert list(mask.valid_position_index()) == [(1, 0), (1, 1)]

    def test_from_mask_values(self, make_mask):
        """Test building a raster directly on a mask's footprint."""
        mask = make_mask(values=[[1, NODATA], [1, 1]])
        raster = Raster.from_mask_values(mask, [5.0, 6.0, 7.0])
        assert raster.position_index is mask.position_index
        assert not raster.owns_index
        assert raster.get_value_at(1, 1) == 7.0
        assert raster.get_value_at(0, 1) == NODATA
        assert raster.get_average() == 6.0

    def test_from_mask_values_wrong_length(self, make_mask):
        """Test that the value count must match the mask."""
        with pytest.raises(IndexOutOfRangeError):
            Raster.from_mask_values(make_mask(), [1.0, 2.0])

    def test_copy_header(self, sample_raster):
        """Test wholesale header replacement keeps storage counts."""
        header = sample_raster.header
        header[rc.HEADER_XLL] = 100.0
        header[rc.HEADER_LAYERS] = 7
        sample_raster.copy_header(header)
        assert sample_raster.xll == 100.0
        assert sample_raster.get_header(rc.HEADER_LAYERS) == 1
        assert sample_raster.get_position_xy(100.5, 2.5) == 0

    def test_copy_header_too_small(self, sample_raster):
        """Test that a header the index does not fit in is rejected."""
        header = HeaderTable.from_geometry(2, 2, 1.0, 0.0, 0.0)
        with pytest.raises(LayerGeometryMismatchError):
            sample_raster.copy_header(header)

    def test_header_is_a_copy(self, sample_raster):
        """Test that the header property cannot mutate the raster."""
        header = sample_raster.header
        header[rc.HEADER_XLL] = 55.0
        assert sample_raster.xll == 0.0


@pytest.mark.unit
class TestExport:
    """Test expansion back to full grids."""

    def test_to_grid_restores_nodata(self, sample_raster, sample_values):
        """Test that compacted storage expands to the original grid."""
        grid = sample_raster.to_grid()
        assert grid.shape == (1, 3, 3)
        np.testing.assert_array_equal(grid[0], sample_values)

    def test_to_grid_data(self, sample_header, sample_values, make_mask):
        """Test that a masked raster exports on the mask geometry."""
        mask = make_mask(xll=1.0, values=[[1, NODATA], [1, 1]])
        raster = Raster.from_array(sample_values, sample_header, mask=mask)
        grid = raster.to_grid_data()
        assert grid.header.rows == 2
        assert grid.values[0].tolist() == [[NODATA, NODATA], [8.0, 9.0]]
