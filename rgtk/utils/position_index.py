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
Valid-Cell Position Index.

The position index is the ordered list of (row, col) pairs that defines the
layout of compacted raster storage: storage slot `i` holds the value of cell
`index[i]`. It is produced once by a row-major scan and never modified
afterwards, so the underlying array is made read-only and may be shared by
reference between rasters built against the same mask.
"""
import logging
import numpy as np
from typing import Dict, Iterator, Optional, Tuple
import rgtk.utils.raster_constants as rc

logger = logging.getLogger(__name__)


class PositionIndex:
    """
    Ordered, immutable mapping of compacted storage index -> (row, col).

    The inverse mapping (row, col) -> compacted index is built lazily on the
    first lookup and reused afterwards.

    Attributes:
        positions: Read-only int array of shape (n, 2) holding (row, col) pairs.
    """

    def __init__(self, positions: np.ndarray):
        positions = np.array(positions, dtype=np.int64).reshape(-1, 2)
        positions.setflags(write=False)
        self.positions = positions
        self._lookup: Optional[Dict[Tuple[int, int], int]] = None

    @classmethod
    def from_valid_mask(cls, valid: np.ndarray) -> 'PositionIndex':
        """
        Build an index from a 2-D boolean validity grid.

        `np.nonzero` walks the grid in C order, which is exactly the required
        increasing-row then increasing-column scan.
        """
        rows, cols = np.nonzero(np.asarray(valid, dtype=bool))
        return cls(np.column_stack((rows, cols)))

    @classmethod
    def full_grid(cls, n_rows: int, n_cols: int) -> 'PositionIndex':
        """Index covering every cell of an n_rows x n_cols grid."""
        return cls.from_valid_mask(np.ones((n_rows, n_cols), dtype=bool))

    def __len__(self) -> int:
        return self.positions.shape[0]

    def __getitem__(self, index: int) -> Tuple[int, int]:
        row, col = self.positions[index]
        return int(row), int(col)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for row, col in self.positions:
            yield int(row), int(col)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PositionIndex):
            return NotImplemented
        return np.array_equal(self.positions, other.positions)

    def __repr__(self) -> str:
        return f"PositionIndex(cells={len(self)})"

    @property
    def rows(self) -> np.ndarray:
        return self.positions[:, 0]

    @property
    def cols(self) -> np.ndarray:
        return self.positions[:, 1]

    def lookup(self, row: int, col: int) -> int:
        """Return the compacted index of (row, col), or INVALID_POSITION."""
        if self._lookup is None:
            self._lookup = {(int(r), int(c)): i for i, (r, c) in enumerate(self.positions)}
            logger.debug(f"Built inverse position lookup for {len(self._lookup)} cells.")
        return self._lookup.get((row, col), rc.INVALID_POSITION)

    def to_valid_mask(self, n_rows: int, n_cols: int) -> np.ndarray:
        """Scatter the index back into a 2-D boolean footprint."""
        valid = np.zeros((n_rows, n_cols), dtype=bool)
        valid[self.rows, self.cols] = True
        return valid
