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
Layered Storage for Compacted Raster Values.

`LayeredStorage` owns a single contiguous numpy buffer of shape
(cells, layers) addressed by compacted position (0-based) and layer number
(1-based). A single-layer raster is simply the `layers == 1` case.

Alongside the values it keeps a boolean `filled` buffer of the same shape
flagging cells whose value is the reconciliation default fill rather than
real data, so that statistics can tell the two apart.
"""
import logging
import numpy as np
from typing import Optional, Union
from rgtk.utils.exceptions import AllocationError, IndexOutOfRangeError

logger = logging.getLogger(__name__)


class LayeredStorage:
    """Value buffer indexed by compacted position and 1-based layer."""

    def __init__(self):
        self._data: Optional[np.ndarray] = None
        self._filled: Optional[np.ndarray] = None

    @property
    def is_allocated(self) -> bool:
        return self._data is not None

    @property
    def cell_count(self) -> int:
        return 0 if self._data is None else self._data.shape[0]

    @property
    def layer_count(self) -> int:
        return 0 if self._data is None else self._data.shape[1]

    @property
    def dtype(self) -> Optional[np.dtype]:
        return None if self._data is None else self._data.dtype

    def allocate(self, cell_count: int, layer_count: int = 1,
                 dtype: Union[np.dtype, type] = np.float64, fill_value: float = 0):
        """
        Reserve storage for `cell_count` cells and `layer_count` layers.

        Raises:
            AllocationError: If either count is not positive.
        """
        if cell_count <= 0:
            raise AllocationError(f"Cannot allocate storage for {cell_count} valid cells.")
        if layer_count < 1:
            raise AllocationError(f"Cannot allocate storage for {layer_count} layers.")
        self._data = np.full((cell_count, layer_count), fill_value, dtype=dtype)
        self._filled = np.zeros((cell_count, layer_count), dtype=bool)
        logger.debug(f"Allocated storage: {cell_count} cells x {layer_count} layers ({np.dtype(dtype).name}).")

    def load(self, values: np.ndarray, filled: Optional[np.ndarray] = None):
        """
        Take ownership of a complete (cells, layers) buffer.

        A 1-D array is treated as a single layer.
        """
        values = np.asarray(values)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2 or values.shape[0] <= 0 or values.shape[1] < 1:
            raise AllocationError(f"Cannot allocate storage for values of shape {values.shape}.")
        if filled is None:
            filled = np.zeros(values.shape, dtype=bool)
        else:
            filled = np.asarray(filled, dtype=bool).reshape(values.shape)
        self._data = np.ascontiguousarray(values)
        self._filled = np.ascontiguousarray(filled)

    def _check(self, index: int, layer: int):
        if self._data is None:
            raise IndexOutOfRangeError("Storage has not been allocated.")
        if not 0 <= index < self.cell_count:
            raise IndexOutOfRangeError(f"Cell index {index} outside [0, {self.cell_count}).")
        if not 1 <= layer <= self.layer_count:
            raise IndexOutOfRangeError(f"Layer {layer} outside [1, {self.layer_count}].")

    def get_value(self, index: int, layer: int = 1):
        """Value of compacted cell `index` at `layer`."""
        self._check(index, layer)
        return self._data[index, layer - 1].item()

    def get_values(self, index: int) -> np.ndarray:
        """Values of compacted cell `index` across all layers (a copy)."""
        self._check(index, 1)
        return self._data[index, :].copy()

    def set_value(self, index: int, value, layer: int = 1):
        self._check(index, layer)
        self._data[index, layer - 1] = value
        self._filled[index, layer - 1] = False

    def layer_values(self, layer: int) -> np.ndarray:
        """Read-only view of one layer's values."""
        self._check(0, layer)
        view = self._data[:, layer - 1]
        view.flags.writeable = False
        return view

    def layer_filled(self, layer: int) -> np.ndarray:
        """Read-only view of one layer's default-fill flags."""
        self._check(0, layer)
        view = self._filled[:, layer - 1]
        view.flags.writeable = False
        return view

    def append_layer(self, values: np.ndarray, filled: Optional[np.ndarray] = None):
        """Append one layer; `values` must have exactly `cell_count` entries."""
        values = np.asarray(values).reshape(-1)
        if self._data is None or values.shape[0] != self.cell_count:
            raise IndexOutOfRangeError(
                f"Layer of {values.shape[0]} cells does not match storage of {self.cell_count} cells.")
        if filled is None:
            filled = np.zeros(values.shape, dtype=bool)
        self._data = np.column_stack((self._data, values.astype(self._data.dtype, copy=False)))
        self._filled = np.column_stack((self._filled, np.asarray(filled, dtype=bool).reshape(-1)))

    def apply(self, func):
        """
        Replace every value with `func(values)`; func maps the whole buffer.

        Cells flagged as default fill keep their flag only where the value is
        unchanged.
        """
        if self._data is None:
            return
        new_data = np.asarray(func(self._data)).astype(self._data.dtype, copy=False)
        self._filled &= (new_data == self._data)
        self._data = new_data

    def to_array(self) -> np.ndarray:
        """Copy of the whole (cells, layers) buffer."""
        if self._data is None:
            raise IndexOutOfRangeError("Storage has not been allocated.")
        return self._data.copy()

    def copy(self) -> 'LayeredStorage':
        other = LayeredStorage()
        if self._data is not None:
            other.load(self._data.copy(), self._filled.copy())
        return other
