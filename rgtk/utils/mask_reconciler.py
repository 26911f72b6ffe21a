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
Mask Reconciliation.

Aligns a subject grid against its own NODATA footprint or against a mask
raster's geometry and footprint, producing the final header table, the
valid-cell position index and the compacted values of the subject.

Three modes are supported (see `ReconcileMode`):

1. UNCOMPACTED: every cell of the grid is a storage slot.
2. COMPACT_SELF: only cells whose value differs from the subject NODATA.
3. COMPACT_TO_MASK: the mask geometry is authoritative. Each valid mask cell
   is mapped mask row/col -> world x/y -> subject row/col, so mask and subject
   may differ in cell size, extent or alignment. Cells falling outside the
   subject grid receive the default fill value.

Converting subject values to the storage type follows numpy casting rules. A
floating default value stored into an integer raster is truncated; this is a
known potential precision loss rather than an error.
"""
import logging
import numpy as np
from typing import TYPE_CHECKING, Optional, Tuple
from rgtk.utils.data_models import GridData, ReconcileResult
from rgtk.utils.exceptions import EmptyMaskIntersectionError, LayerGeometryMismatchError
from rgtk.utils.header_table import HeaderTable, rows_cols_to_xy, xy_to_rows_cols
from rgtk.utils.position_index import PositionIndex
import rgtk.utils.raster_constants as rc
from rgtk.utils.raster_constants import ReconcileMode

if TYPE_CHECKING:
    from rgtk.utils.raster_data import Raster

logger = logging.getLogger(__name__)


def valid_value_mask(values: np.ndarray, nodata: float, tolerance: float = rc.FLOAT_TOLERANCE) -> np.ndarray:
    """
    Boolean mask of values that are not NODATA.

    Integer arrays are compared exactly. Floating arrays are compared with an
    absolute tolerance, and NaN is never valid.
    """
    values = np.asarray(values)
    if np.issubdtype(values.dtype, np.floating):
        valid = ~np.isnan(values)
        if not np.isnan(nodata):
            valid &= ~np.isclose(values, nodata, rtol=0.0, atol=tolerance)
        return valid
    if np.isnan(nodata):
        return np.ones(values.shape, dtype=bool)
    return values != nodata

def cast_fill_value(value: float, dtype: np.dtype):
    """Convert a fill value to the storage dtype using numpy truncation rules."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer) and not float(value).is_integer():
        logger.debug(f"Fill value {value} truncated to fit integer storage ({dtype.name}).")
    return np.array([value]).astype(dtype)[0]

def _check_grid_shape(header: HeaderTable, values: np.ndarray):
    if values.shape[1:] != (header.rows, header.cols):
        raise LayerGeometryMismatchError(
            f"Grid of shape {values.shape[1:]} does not match header {header.rows}x{header.cols}.")

def _compacted(values: np.ndarray, index: PositionIndex) -> np.ndarray:
    """Gather (layers, rows, cols) values into a (cells, layers) buffer."""
    return values[:, index.rows, index.cols].T.copy()

def map_positions(source_header: HeaderTable, index: PositionIndex,
                  target_header: HeaderTable) -> Tuple[np.ndarray, np.ndarray]:
    """
    Resolve each cell of `index` (in source geometry) to a target row/col.

    Returns:
        (rows, cols) arrays in the target grid; -1 where outside the target.
    """
    xs, ys = rows_cols_to_xy(source_header, index.rows, index.cols)
    return xy_to_rows_cols(target_header, xs, ys)

def gather_through_geometry(source_header: HeaderTable, index: PositionIndex,
                            target_header: HeaderTable, target_values: np.ndarray,
                            default_value, dtype: np.dtype) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read target grid values for every cell of `index` via world coordinates.

    Args:
        source_header: Geometry the index is expressed in.
        index: Cells to resolve.
        target_header: Geometry of `target_values`.
        target_values: Array of shape (layers, rows, cols).
        default_value: Value for cells outside the target grid.
        dtype: Storage dtype of the result.

    Returns:
        Tuple (values, filled) of shape (cells, layers).
    """
    rows, cols = map_positions(source_header, index, target_header)
    inside = rows >= 0
    n_layers = target_values.shape[0]
    values = np.full((len(index), n_layers), cast_fill_value(default_value, dtype), dtype=dtype)
    if inside.any():
        values[inside, :] = target_values[:, rows[inside], cols[inside]].T.astype(dtype, copy=False)
    filled = np.repeat(~inside[:, np.newaxis], n_layers, axis=1)
    return values, filled


def reconcile(grid: GridData, mask: Optional['Raster'] = None, calc_positions: bool = True,
              use_mask_extent: bool = True, default_value: float = rc.DEFAULT_NODATA,
              tolerance: float = rc.FLOAT_TOLERANCE) -> ReconcileResult:
    """
    Build the header, position index and compacted values of a subject grid.

    Args:
        grid: Subject grid with values of shape (layers, rows, cols).
        mask: Optional mask raster.
        calc_positions: Compact storage to valid cells.
        use_mask_extent: Adopt the mask geometry and footprint.
        default_value: Fill value for mask cells outside the subject grid.
        tolerance: Absolute tolerance for floating NODATA comparison.

    Returns:
        ReconcileResult

    Raises:
        EmptyMaskIntersectionError: If COMPACT_TO_MASK yields no valid cells.
        LayerGeometryMismatchError: If the grid does not match its header or
            the geometry cannot be coordinate-mapped.
    """
    subject_header = grid.header
    values = grid.values
    _check_grid_shape(subject_header, values)
    mode = rc.select_reconcile_mode(calc_positions, mask is not None, use_mask_extent)
    logger.debug(f"Reconciling {subject_header.rows}x{subject_header.cols}x{grid.layers} grid in mode {mode.value}.")

    if mode is ReconcileMode.UNCOMPACTED:
        index = PositionIndex.full_grid(subject_header.rows, subject_header.cols)
        header = subject_header.copy()
        header[rc.HEADER_LAYERS] = grid.layers
        header[rc.HEADER_CELLSNUM] = len(index)
        compacted = _compacted(values, index)
        return ReconcileResult(mode, header, index, compacted, np.zeros(compacted.shape, dtype=bool))

    if mode is ReconcileMode.COMPACT_SELF:
        # A cell is kept when any layer holds data at it
        valid = valid_value_mask(values, subject_header.nodata, tolerance).any(axis=0)
        index = PositionIndex.from_valid_mask(valid)
        header = subject_header.copy()
        header[rc.HEADER_LAYERS] = grid.layers
        header[rc.HEADER_CELLSNUM] = len(index)
        logger.debug(f"Found {len(index)} valid cells of {valid.size}.")
        compacted = _compacted(values, index)
        return ReconcileResult(mode, header, index, compacted, np.zeros(compacted.shape, dtype=bool))

    index = mask.valid_position_index()
    if len(index) == 0:
        message = "Mask has no valid cells; cannot build a position index."
        logger.error(message)
        raise EmptyMaskIntersectionError(message)

    header = mask.header.copy()
    header[rc.HEADER_NODATA] = subject_header.nodata
    header[rc.HEADER_LAYERS] = grid.layers
    header[rc.HEADER_CELLSNUM] = len(index)

    compacted, filled = gather_through_geometry(mask.header, index, subject_header, values,
                                                default_value, values.dtype)
    logger.debug(f"Reconciled to mask: {len(index)} cells, {int(filled[:, 0].sum())} outside the subject grid.")
    return ReconcileResult(mode, header, index, compacted, filled, owns_index=False)


def reconcile_layer(header: HeaderTable, index: PositionIndex, layer_grid: GridData,
                    default_value, dtype: np.dtype,
                    tolerance: float = rc.FLOAT_TOLERANCE) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reconcile an extra single-layer grid against an established index.

    Cells outside the established footprint are dropped; footprint cells
    outside the layer grid receive `default_value`. Cells holding the layer's
    own NODATA are rewritten to the NODATA of `header`.

    Raises:
        LayerGeometryMismatchError: If the layer grid cannot be mapped.
    """
    layer_header = layer_grid.header
    _check_grid_shape(layer_header, layer_grid.values)
    if layer_grid.layers != 1:
        raise LayerGeometryMismatchError(f"Expected a single-layer grid, got {layer_grid.layers} layers.")
    if layer_header.same_geometry(header):
        raw = layer_grid.values[0, index.rows, index.cols]
        filled = np.zeros(raw.shape, dtype=bool)
    else:
        gathered, gathered_filled = gather_through_geometry(header, index, layer_header, layer_grid.values,
                                                            default_value, layer_grid.values.dtype)
        raw, filled = gathered[:, 0], gathered_filled[:, 0]
    nodata_cells = ~valid_value_mask(raw, layer_header.nodata, tolerance) & ~filled
    column = raw.astype(dtype, copy=True)
    if nodata_cells.any():
        logger.debug(f"Translated {int(nodata_cells.sum())} layer NODATA cells to {header.nodata}.")
        column[nodata_cells] = cast_fill_value(header.nodata, dtype)
    if filled.any():
        column[filled] = cast_fill_value(default_value, dtype)
    return column, filled
