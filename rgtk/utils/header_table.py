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
Raster Header Table and Coordinate Mapping.

This module provides the `HeaderTable` class, a key/value store holding the
geometry and metadata of a raster grid (rows, columns, cell size, lower-left
corner, NODATA and layer count), together with the pure functions that convert
between grid (row, col) and world (x, y) coordinates.

Conventions:
    - The lower-left corner (XLLCORNER, YLLCORNER) is the origin of the grid.
    - Row 0 is the top row; rows are stored top-to-bottom, y increases upward.
    - Values are stored as Python floats to avoid truncating coordinates.

Classes:
    HeaderTable: Geometry and metadata of a raster grid.

Functions:
    row_col_to_xy: Cell-center world coordinate of a (row, col).
    xy_to_row_col: Cell containing a world coordinate, or OUT_OF_EXTENT.
    rows_cols_to_xy / xy_to_rows_cols: Vectorized numpy counterparts.
"""
import logging
import math
import numpy as np
from typing import Dict, Iterator, Mapping, Optional, Tuple
from rgtk.utils.exceptions import LayerGeometryMismatchError, MissingHeaderKeyError
import rgtk.utils.raster_constants as rc

logger = logging.getLogger(__name__)


class HeaderTable:
    """
    Geometry and metadata of a raster grid.

    Keys are the HEADER_* constants of `raster_constants`. Reading a key that
    is not present raises `MissingHeaderKeyError`; constructors are expected
    to populate the mandatory keys up front.

    Example:
        >>> header = HeaderTable.from_geometry(3, 3, 1.0, 0.0, 0.0, nodata=-9999)
        >>> header.rows, header.cols
        (3, 3)
        >>> header.get('CELLSIZE')
        1.0
    """

    def __init__(self, values: Optional[Mapping[str, float]] = None):
        self._values: Dict[str, float] = {}
        if values:
            for key, value in values.items():
                self[key] = value

    @classmethod
    def from_geometry(cls, rows: int, cols: int, cell_size: float, xll: float, yll: float,
                      nodata: float = rc.DEFAULT_NODATA, layers: int = 1) -> 'HeaderTable':
        """Build a validated header from explicit geometry values."""
        header = cls({
            rc.HEADER_NROWS: rows,
            rc.HEADER_NCOLS: cols,
            rc.HEADER_CELLSIZE: cell_size,
            rc.HEADER_XLL: xll,
            rc.HEADER_YLL: yll,
            rc.HEADER_NODATA: nodata,
            rc.HEADER_LAYERS: layers,
            rc.HEADER_CELLSNUM: rows * cols,
        })
        header.validate()
        return header

    @classmethod
    def from_geo_transform(cls, geo_transform: Tuple[float, ...], rows: int, cols: int,
                           nodata: Optional[float] = None, layers: int = 1) -> 'HeaderTable':
        """
        Build a header from a GDAL affine geotransform.

        Only north-up grids with square cells can be expressed as a header
        table; rotated or anisotropic transforms are rejected.

        Args:
            geo_transform: (x_origin, pixel_width, row_rot, y_origin, col_rot, pixel_height)
            rows: Number of rows (RasterYSize)
            cols: Number of columns (RasterXSize)
            nodata: NoData value, or None for the toolkit default
            layers: Number of bands

        Raises:
            LayerGeometryMismatchError: If the transform is rotated or cells are not square.
        """
        x_origin, res_x, rot_x, y_origin, rot_y, res_y = geo_transform
        if rot_x != 0 or rot_y != 0:
            raise LayerGeometryMismatchError(f"Rotated geotransforms are not supported: {geo_transform}")
        if not math.isclose(abs(res_x), abs(res_y), rel_tol=rc.FLOAT_TOLERANCE):
            raise LayerGeometryMismatchError(f"Non-square cells are not supported: {res_x} x {abs(res_y)}")
        cell_size = abs(res_x)
        # y_origin is the top edge for north-up rasters
        yll = y_origin - rows * cell_size if res_y < 0 else y_origin
        return cls.from_geometry(rows, cols, cell_size, x_origin, yll,
                                 rc.DEFAULT_NODATA if nodata is None else nodata, layers)

    def to_geo_transform(self) -> Tuple[float, ...]:
        """Return the north-up GDAL geotransform equivalent to this header."""
        return (self.xll, self.cell_size, 0.0, self.y_top, 0.0, -self.cell_size)

    # --- Mapping protocol ---

    def __getitem__(self, key: str) -> float:
        return self.get(key)

    def __setitem__(self, key: str, value: float):
        self._values[key] = float(value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderTable):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"HeaderTable({self._values!r})"

    def get(self, key: str) -> float:
        """
        Get a header value.

        Raises:
            MissingHeaderKeyError: If the key is absent.
        """
        try:
            return self._values[key]
        except KeyError:
            raise MissingHeaderKeyError(f"Header key not found: {key}") from None

    def items(self):
        return self._values.items()

    def to_dict(self) -> Dict[str, float]:
        return dict(self._values)

    def copy(self) -> 'HeaderTable':
        return HeaderTable(self._values)

    def validate(self):
        """Check that the mandatory keys are present and positive."""
        for key in rc.MANDATORY_POSITIVE_KEYS:
            value = self.get(key)
            if not value > 0:
                raise LayerGeometryMismatchError(f"Header value {key}={value} must be positive.")

    # --- Typed accessors ---

    @property
    def rows(self) -> int:
        return int(self.get(rc.HEADER_NROWS))

    @property
    def cols(self) -> int:
        return int(self.get(rc.HEADER_NCOLS))

    @property
    def cell_size(self) -> float:
        return self.get(rc.HEADER_CELLSIZE)

    @property
    def xll(self) -> float:
        return self.get(rc.HEADER_XLL)

    @property
    def yll(self) -> float:
        return self.get(rc.HEADER_YLL)

    @property
    def y_top(self) -> float:
        return self.yll + self.rows * self.cell_size

    @property
    def nodata(self) -> float:
        return self.get(rc.HEADER_NODATA)

    @property
    def layers(self) -> int:
        return int(self.get(rc.HEADER_LAYERS))

    @property
    def cells_num(self) -> int:
        return int(self.get(rc.HEADER_CELLSNUM))

    def same_geometry(self, other: 'HeaderTable', tolerance: float = rc.FLOAT_TOLERANCE) -> bool:
        """True if rows, cols, cell size and corner match within tolerance."""
        for key in rc.GEOMETRY_KEYS:
            if key not in self or key not in other:
                return False
            if not math.isclose(self.get(key), other.get(key), rel_tol=0.0, abs_tol=tolerance):
                return False
        return True


# ============================================================================
# Coordinate mapping
# ============================================================================

def _check_cell_size(header: HeaderTable) -> float:
    cell_size = header.cell_size
    if not cell_size > 0 or not math.isfinite(cell_size):
        raise LayerGeometryMismatchError(f"Degenerate cell size: {cell_size}")
    return cell_size

def row_col_to_xy(header: HeaderTable, row: int, col: int) -> Tuple[float, float]:
    """Return the world coordinate of the center of cell (row, col)."""
    cell_size = header.cell_size
    x = header.xll + (col + 0.5) * cell_size
    y = header.yll + (header.rows - row - 0.5) * cell_size
    return x, y

def xy_to_row_col(header: HeaderTable, x: float, y: float) -> Tuple[int, int]:
    """
    Return the (row, col) of the cell containing world coordinate (x, y).

    Cells are half-open on their right and bottom edges. Coordinates outside
    the grid, and NaN or infinite coordinates, yield the `OUT_OF_EXTENT`
    sentinel rather than an exception; callers are expected to check it.

    Raises:
        LayerGeometryMismatchError: If the header has a degenerate cell size.
    """
    cell_size = _check_cell_size(header)
    if not (math.isfinite(x) and math.isfinite(y)):
        return rc.OUT_OF_EXTENT
    col = math.floor((x - header.xll) / cell_size)
    row = math.floor((header.y_top - y) / cell_size)
    if 0 <= row < header.rows and 0 <= col < header.cols:
        return row, col
    return rc.OUT_OF_EXTENT

def rows_cols_to_xy(header: HeaderTable, rows: np.ndarray, cols: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorized `row_col_to_xy` over arrays of rows and columns."""
    cell_size = header.cell_size
    xs = header.xll + (np.asarray(cols, dtype=np.float64) + 0.5) * cell_size
    ys = header.yll + (header.rows - np.asarray(rows, dtype=np.float64) - 0.5) * cell_size
    return xs, ys

def xy_to_rows_cols(header: HeaderTable, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized `xy_to_row_col`.

    Returns:
        Tuple of integer arrays (rows, cols); entries outside the grid or with
        a NaN or infinite coordinate are -1 in both arrays.
    """
    cell_size = _check_cell_size(header)
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    finite = np.isfinite(xs) & np.isfinite(ys)
    cols = np.floor((np.where(finite, xs, header.xll) - header.xll) / cell_size).astype(np.int64)
    rows = np.floor((header.y_top - np.where(finite, ys, header.y_top)) / cell_size).astype(np.int64)
    outside = ~finite | (rows < 0) | (rows >= header.rows) | (cols < 0) | (cols >= header.cols)
    rows[outside] = rc.OUT_OF_EXTENT[0]
    cols[outside] = rc.OUT_OF_EXTENT[1]
    return rows, cols
