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
Masked Multi-Layer Raster.

This module provides the `Raster` class, the public face of the raster data
model. A raster owns a header table, a valid-cell position index (or borrows
its mask's), a layered value storage and a statistics cache.

Construction:
    Raster(grid, mask=..., calc_positions=..., use_mask_extent=...)
    Raster.from_array(values, header)
    Raster.from_file(path) / Raster.from_files([path, ...])
    Raster.from_mask_values(mask, values)
    raster.copy()

Once built, the footprint (header + position index) only changes through
`copy_header`. Values change cell by cell through `set_value`; writing a
cell outside the footprint is a no-op and returns False.

The class is not thread-safe. Only statistics of independent layers may be
computed concurrently (see `StatisticsCache.update`).
"""
import logging
import numpy as np
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union
from rgtk.utils.config_loader import config
from rgtk.utils.data_models import GridData, ReconcileResult, StatisticsLayer
from rgtk.utils.exceptions import (
    IndexOutOfRangeError,
    LayerGeometryMismatchError,
)
from rgtk.utils.grid_io import load_grid, store_grid
from rgtk.utils.header_table import HeaderTable, row_col_to_xy, xy_to_row_col
from rgtk.utils.layered_storage import LayeredStorage
from rgtk.utils.mask_reconciler import cast_fill_value, reconcile, reconcile_layer, valid_value_mask
from rgtk.utils.path_helpers import get_core_name, layer_output_path
from rgtk.utils.position_index import PositionIndex
import rgtk.utils.raster_constants as rc
from rgtk.utils.raster_constants import ReconcileMode
from rgtk.utils.statistics_calculator import StatisticsCache

logger = logging.getLogger(__name__)


class Raster:
    """
    A raster grid of one or more layers, stored compacted to valid cells.

    Attributes:
        file_path: Source path, if loaded from a file.
        core_name: Base name used when writing per-layer outputs.

    Example:
        >>> header = HeaderTable.from_geometry(3, 3, 1.0, 0.0, 0.0, nodata=-9999)
        >>> values = [[1, 2, 3], [4, -9999, 6], [7, 8, 9]]
        >>> raster = Raster.from_array(values, header)
        >>> raster.cell_number
        8
        >>> raster.get_average()
        5.0
    """

    def __init__(self, grid: Optional[GridData] = None, mask: Optional['Raster'] = None,
                 calc_positions: bool = True, use_mask_extent: bool = True,
                 default_value: Optional[float] = None, tolerance: Optional[float] = None,
                 max_workers: Optional[int] = None, file_path: str = ''):
        """
        Build a raster from a full grid, optionally reconciled to a mask.

        Args:
            grid: Subject grid; None creates an empty, uninitialized raster.
            mask: Optional mask raster whose geometry/footprint may be imposed.
            calc_positions: Compact storage to valid cells (default True).
            use_mask_extent: Adopt the mask's geometry and footprint (default True).
            default_value: Fill value for mask cells outside the subject grid;
                defaults to the subject NODATA.
            tolerance: Absolute tolerance for floating NODATA comparison.
            max_workers: Thread pool size for multi-layer statistics.
            file_path: Source path, recorded for reference.

        Raises:
            EmptyMaskIntersectionError: If mask reconciliation finds no valid cells.
            AllocationError: If no valid cells remain to store.
            LayerGeometryMismatchError: If the grid does not match its header.
        """
        self._tolerance = float(tolerance if tolerance is not None
                                else config.get('raster.float_tolerance', rc.FLOAT_TOLERANCE))
        self._max_workers = int(max_workers if max_workers is not None
                                else config.get('statistics.max_workers', 1))
        self._header = HeaderTable()
        self._index: Optional[PositionIndex] = None
        self._owns_index = True
        self._valid_index: Optional[PositionIndex] = None
        self._mask: Optional['Raster'] = None
        self._mode = rc.select_reconcile_mode(calc_positions, mask is not None, use_mask_extent)
        self._storage = LayeredStorage()
        self._stats = StatisticsCache(self._storage, rc.DEFAULT_NODATA, self._tolerance, self._max_workers)
        self._srs = ''
        self._default_value = default_value
        self.file_path = str(file_path)
        self.core_name = get_core_name(self.file_path) if self.file_path else ''

        if grid is not None:
            if default_value is None:
                self._default_value = grid.header.nodata
            result = reconcile(grid, mask=mask, calc_positions=calc_positions,
                               use_mask_extent=use_mask_extent, default_value=self._default_value,
                               tolerance=self._tolerance)
            self._apply_result(result, mask if result.mode is ReconcileMode.COMPACT_TO_MASK else None)
            self._srs = grid.srs

    def _apply_result(self, result: ReconcileResult, mask: Optional['Raster']):
        """Install a reconciled header/index/storage; storage is allocated first."""
        storage = LayeredStorage()
        storage.load(result.values, result.filled)
        self._storage = storage
        self._header = result.header
        self._index = result.index
        self._owns_index = result.owns_index
        self._valid_index = None
        self._mask = mask
        self._mode = result.mode
        self._stats = StatisticsCache(storage, self._header.nodata, self._tolerance, self._max_workers)
        logger.debug(f"Raster built: {self.cell_number} cells x {self.layers} layer(s), mode {self._mode.value}.")

    # ========================================================================
    # Alternate constructors
    # ========================================================================

    @classmethod
    def from_array(cls, values, header: HeaderTable, srs: str = '', **kwargs) -> 'Raster':
        """Build a raster from a (rows, cols) or (layers, rows, cols) array."""
        return cls(GridData(header.copy(), np.asarray(values), srs), **kwargs)

    @classmethod
    def from_file(cls, filename: Union[str, Path], calc_positions: bool = True,
                  mask: Optional['Raster'] = None, use_mask_extent: bool = True,
                  default_value: Optional[float] = None, **kwargs) -> 'Raster':
        """Load a raster through the grid codec (GeoTIFF, ASCII grid, ...)."""
        grid = load_grid(filename)
        return cls(grid, mask=mask, calc_positions=calc_positions, use_mask_extent=use_mask_extent,
                   default_value=default_value, file_path=str(filename), **kwargs)

    @classmethod
    def from_files(cls, filenames: Sequence[Union[str, Path]], calc_positions: bool = True,
                   mask: Optional['Raster'] = None, use_mask_extent: bool = True,
                   default_value: Optional[float] = None, **kwargs) -> 'Raster':
        """
        Build a multi-layer raster, one layer per file.

        The first file establishes the header and position index; the others
        are reconciled against it with `add_layer`.
        """
        if not filenames:
            raise ValueError("At least one raster file is required.")
        raster = cls.from_file(filenames[0], calc_positions=calc_positions, mask=mask,
                               use_mask_extent=use_mask_extent, default_value=default_value, **kwargs)
        for filename in filenames[1:]:
            grid = load_grid(filename)
            for layer in range(grid.layers):
                raster.add_layer(grid.header, grid.values[layer])
        return raster

    @classmethod
    def from_mask_values(cls, mask: 'Raster', values, srs: Optional[str] = None, **kwargs) -> 'Raster':
        """
        Build a raster sharing the mask's geometry and position index.

        Args:
            mask: The mask raster; its index is borrowed, never copied.
            values: 1-D array of mask.cell_number values, or 2-D array of
                shape (mask.cell_number, layers).
            srs: Spatial reference; defaults to the mask's.

        Raises:
            IndexOutOfRangeError: If the value count does not match the mask.
        """
        values = np.asarray(values)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2 or values.shape[0] != mask.cell_number:
            raise IndexOutOfRangeError(
                f"Values of shape {values.shape} do not match mask of {mask.cell_number} cells.")
        raster = cls(**kwargs)
        header = mask.header
        header[rc.HEADER_LAYERS] = values.shape[1]
        header[rc.HEADER_CELLSNUM] = mask.cell_number
        result = ReconcileResult(ReconcileMode.COMPACT_TO_MASK, header, mask.position_index,
                                 values.copy(), np.zeros(values.shape, dtype=bool), owns_index=False)
        raster._apply_result(result, mask)
        raster._default_value = header.nodata
        raster._srs = mask.srs if srs is None else srs
        return raster

    def copy(self) -> 'Raster':
        """
        Independent copy of this raster.

        Header and storage are copied and statistics recomputed on demand. An
        owned index is copied; a
        borrowed index stays borrowed from the same mask.
        """
        other = Raster(tolerance=self._tolerance, max_workers=self._max_workers)
        other._header = self._header.copy()
        if self._index is not None:
            other._index = PositionIndex(self._index.positions) if self._owns_index else self._index
        other._owns_index = self._owns_index
        other._mask = self._mask
        other._mode = self._mode
        other._storage = self._storage.copy()
        other._stats = StatisticsCache(other._storage, other._header.nodata if rc.HEADER_NODATA in other._header
                                       else rc.DEFAULT_NODATA, self._tolerance, self._max_workers)
        other._srs = self._srs
        other._default_value = self._default_value
        other.file_path = self.file_path
        other.core_name = self.core_name
        return other

    def copy_header(self, refers: Union[HeaderTable, Mapping[str, float]]):
        """
        Replace the header wholesale.

        LAYERS and CELLSNUM always describe the current storage and are kept.

        Raises:
            LayerGeometryMismatchError: If the current index does not fit the
                new grid dimensions.
        """
        header = refers.copy() if isinstance(refers, HeaderTable) else HeaderTable(refers)
        if self.is_initialized:
            header[rc.HEADER_LAYERS] = self.layers
            header[rc.HEADER_CELLSNUM] = self.cell_number
        header.validate()
        if self._index is not None and len(self._index) > 0:
            if self._index.rows.max() >= header.rows or self._index.cols.max() >= header.cols:
                raise LayerGeometryMismatchError("Position index does not fit within the new header geometry.")
        self._header = header
        self._stats.set_nodata(header.nodata)
        self._valid_index = None

    # ========================================================================
    # Header and geometry accessors
    # ========================================================================

    @property
    def is_initialized(self) -> bool:
        return self._storage.is_allocated

    @property
    def header(self) -> HeaderTable:
        """A copy of the header table."""
        return self._header.copy()

    def get_header(self, key: str) -> float:
        return self._header.get(key)

    @property
    def rows(self) -> int:
        return self._header.rows

    @property
    def cols(self) -> int:
        return self._header.cols

    @property
    def cell_size(self) -> float:
        return self._header.cell_size

    @property
    def xll(self) -> float:
        return self._header.xll

    @property
    def yll(self) -> float:
        return self._header.yll

    @property
    def nodata(self) -> float:
        return self._header.nodata

    @property
    def layers(self) -> int:
        return self._storage.layer_count

    @property
    def cell_number(self) -> int:
        """Number of stored cells (length of the position index)."""
        return self._storage.cell_count

    @property
    def srs(self) -> str:
        return self._srs

    @property
    def default_value(self) -> Optional[float]:
        return self._default_value

    @property
    def is_multilayer(self) -> bool:
        return self.layers > 1

    @property
    def mode(self) -> ReconcileMode:
        return self._mode

    @property
    def positions_calculated(self) -> bool:
        return self._mode is not ReconcileMode.UNCOMPACTED

    @property
    def mask_extent_used(self) -> bool:
        return self._mode is ReconcileMode.COMPACT_TO_MASK

    @property
    def mask(self) -> Optional['Raster']:
        """The mask this raster was reconciled to, if any (not owned)."""
        return self._mask

    @property
    def position_index(self) -> PositionIndex:
        if self._index is None:
            raise IndexOutOfRangeError("Raster has no position index.")
        return self._index

    @property
    def owns_index(self) -> bool:
        """False when the position index is borrowed from the mask."""
        return self._owns_index

    def valid_position_index(self) -> PositionIndex:
        """
        Index of the stored cells whose layer 1 value is not NODATA.

        This is the footprint a dependent raster adopts when this raster is
        used as a mask. It is the position index itself when every stored
        cell is valid; otherwise a sub-index built once and kept until a
        layer 1 value or the NODATA changes. Dependents share the returned
        object and never own it.
        """
        index = self.position_index
        if self._valid_index is None:
            valid = valid_value_mask(self._storage.layer_values(1), self.nodata, self._tolerance)
            if valid.all():
                self._valid_index = index
            else:
                self._valid_index = PositionIndex(index.positions[valid])
                logger.debug(f"Built valid sub-index of {len(self._valid_index)} of {len(index)} cells.")
        return self._valid_index

    # ========================================================================
    # Coordinates and positions
    # ========================================================================

    def row_col_to_xy(self, row: int, col: int) -> Tuple[float, float]:
        return row_col_to_xy(self._header, row, col)

    def xy_to_row_col(self, x: float, y: float, header: Optional[HeaderTable] = None) -> Tuple[int, int]:
        """Cell containing (x, y) in this raster's (or a foreign) geometry; OUT_OF_EXTENT if none."""
        return xy_to_row_col(header if header is not None else self._header, x, y)

    def get_position(self, row: int, col: int) -> int:
        """Compacted index of (row, col), or INVALID_POSITION (-1)."""
        if self._index is None:
            return rc.INVALID_POSITION
        return self._index.lookup(row, col)

    def get_position_xy(self, x: float, y: float) -> int:
        row, col = self.xy_to_row_col(x, y)
        if (row, col) == rc.OUT_OF_EXTENT:
            return rc.INVALID_POSITION
        return self.get_position(row, col)

    # ========================================================================
    # Values
    # ========================================================================

    def get_value(self, index: int, layer: int = 1):
        """
        Value at a compacted index.

        Raises:
            IndexOutOfRangeError: If the index or layer is out of range.
        """
        return self._storage.get_value(index, layer)

    def get_value_at(self, row: int, col: int, layer: int = 1):
        """
        Value at (row, col); NODATA when the cell is outside the footprint.

        Raises:
            IndexOutOfRangeError: If the layer is out of range.
        """
        index = self.get_position(row, col)
        if index == rc.INVALID_POSITION:
            return self.nodata
        return self._storage.get_value(index, layer)

    def get_values(self, row: int, col: int) -> np.ndarray:
        """All layer values at (row, col); NODATA for every layer outside the footprint."""
        index = self.get_position(row, col)
        if index == rc.INVALID_POSITION:
            return np.full(self.layers, self.nodata)
        return self._storage.get_values(index)

    def get_values_at(self, index: int) -> np.ndarray:
        return self._storage.get_values(index)

    def layer_values(self, layer: int = 1) -> np.ndarray:
        """Read-only view of the compacted values of one layer."""
        return self._storage.layer_values(layer)

    def is_nodata(self, row: int, col: int, layer: int = 1) -> bool:
        value = self.get_value_at(row, col, layer)
        return not bool(valid_value_mask(np.array([value]), self.nodata, self._tolerance)[0])

    def set_value(self, row: int, col: int, value, layer: int = 1) -> bool:
        """
        Set the value at (row, col).

        Writing outside the footprint is a no-op: the footprint is fixed at
        construction. Returns True if a value was written.

        Raises:
            IndexOutOfRangeError: If the layer is out of range.
        """
        index = self.get_position(row, col)
        if index == rc.INVALID_POSITION:
            logger.debug(f"Ignoring write to ({row}, {col}) outside the valid footprint.")
            return False
        self._storage.set_value(index, value, layer)
        self._stats.invalidate(layer)
        if layer == 1:
            self._valid_index = None
        return True

    def add_layer(self, layer_header: Union[HeaderTable, GridData], layer_data=None) -> int:
        """
        Append a layer reconciled against the existing position index.

        Args:
            layer_header: Header of the new layer's grid, or a GridData.
            layer_data: (rows, cols) values of the new layer when a header is given.

        Returns:
            The number of the new layer.

        Raises:
            LayerGeometryMismatchError: If the layer grid cannot be mapped onto
                this raster; the raster is left unchanged.
        """
        if not self.is_initialized:
            raise IndexOutOfRangeError("Cannot add a layer to an uninitialized raster.")
        grid = layer_header if isinstance(layer_header, GridData) else GridData(layer_header, np.asarray(layer_data))
        fill = self._default_value if self._default_value is not None else self.nodata
        column, filled = reconcile_layer(self._header, self._index, grid, fill, self._storage.dtype,
                                         tolerance=self._tolerance)
        self._storage.append_layer(column, filled)
        self._header[rc.HEADER_LAYERS] = self._storage.layer_count
        logger.debug(f"Added layer {self.layers} ({int(filled.sum())} default-filled cells).")
        return self.layers

    def replace_nodata(self, replaced_value: float):
        """
        Replace NODATA in every layer and make `replaced_value` the new NODATA.

        On integer storage the value is truncated, and the truncated value
        becomes the header NODATA.
        """
        nodata = self.nodata
        tolerance = self._tolerance
        fill = cast_fill_value(replaced_value, self._storage.dtype)
        self._storage.apply(lambda data: np.where(valid_value_mask(data, nodata, tolerance), data, fill))
        self._header[rc.HEADER_NODATA] = float(fill)
        self._stats.set_nodata(float(fill))
        self._valid_index = None

    def reclassify(self, reclass_map: Mapping[float, float]):
        """Replace values found in `reclass_map` keys by the mapped values, in every layer."""
        def remap(data: np.ndarray) -> np.ndarray:
            result = data.copy()
            for old_value, new_value in reclass_map.items():
                result[data == old_value] = new_value
            return result
        self._storage.apply(remap)
        self._stats.invalidate()
        self._valid_index = None

    # ========================================================================
    # Statistics
    # ========================================================================

    @property
    def statistics_calculated(self) -> bool:
        return self._stats.is_calculated

    def statistics_dirty(self, layer: int = 1) -> bool:
        return self._stats.is_dirty(layer)

    def calculate_statistics(self):
        """Compute statistics of every dirty layer."""
        for layer in range(1, self.layers + 1):
            self._stats.layer_statistics(layer)

    def update_statistics(self):
        """Force recomputation of every layer's statistics."""
        self._stats.update()

    def layer_statistics(self, layer: int = 1) -> StatisticsLayer:
        return self._stats.layer_statistics(layer)

    def get_statistics(self, metric: str, layer: int = 1) -> float:
        """Statistics value (case-insensitive metric name) of a layer."""
        return self._stats.get(metric, layer)

    def get_statistics_all(self, metric: str) -> List[float]:
        """Statistics value of every layer."""
        return self._stats.get_all(metric)

    def get_average(self, layer: int = 1) -> float:
        return self.get_statistics(rc.STATS_MEAN, layer)

    def get_maximum(self, layer: int = 1) -> float:
        return self.get_statistics(rc.STATS_MAX, layer)

    def get_minimum(self, layer: int = 1) -> float:
        return self.get_statistics(rc.STATS_MIN, layer)

    def get_std(self, layer: int = 1) -> float:
        return self.get_statistics(rc.STATS_STD, layer)

    def get_range(self, layer: int = 1) -> float:
        return self.get_statistics(rc.STATS_RANGE, layer)

    def get_valid_number(self, layer: int = 1) -> int:
        return int(self.get_statistics(rc.STATS_VALIDNUM, layer))

    # ========================================================================
    # Export
    # ========================================================================

    def to_grid(self) -> np.ndarray:
        """Expand compacted storage to a full (layers, rows, cols) array filled with NODATA."""
        data = self._storage.to_array()
        grid = np.full((self.layers, self.rows, self.cols),
                       cast_fill_value(self.nodata, data.dtype), dtype=data.dtype)
        grid[:, self._index.rows, self._index.cols] = data.T
        return grid

    def to_grid_data(self) -> GridData:
        return GridData(self.header, self.to_grid(), self._srs)

    def output_to_file(self, filename: Union[str, Path]) -> bool:
        """
        Write the raster through the grid codec.

        GeoTIFF outputs hold every layer as a band. ASCII grids hold a single
        layer, so a multi-layer raster is written as `<name>_<layer>.asc`.

        Returns:
            True if every file was written.
        """
        filename = Path(filename)
        grid = self.to_grid_data()
        if filename.suffix.lower() == rc.ASCII_EXTENSION and self.layers > 1:
            success = True
            for layer in range(1, self.layers + 1):
                header = grid.header
                header[rc.HEADER_LAYERS] = 1
                layer_grid = GridData(header, grid.values[layer - 1], grid.srs)
                success &= store_grid(layer_output_path(filename, layer), layer_grid.header,
                                      layer_grid.values, layer_grid.srs)
            return success
        return store_grid(filename, grid.header, grid.values, grid.srs)

    def __repr__(self) -> str:
        if not self.is_initialized:
            return "Raster(<uninitialized>)"
        return (f"Raster(rows={self.rows}, cols={self.cols}, layers={self.layers}, "
                f"cells={self.cell_number}, mode={self._mode.value})")
