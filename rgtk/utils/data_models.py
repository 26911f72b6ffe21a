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
Data Models for Raster Grid ToolKit.

This module defines strongly-typed data classes exchanged between the grid
codecs, the mask reconciler and the reporting tools.

Domain model classes:
    GridData: A full rectangular grid as returned by the codec (header, values, SRS)
    ReconcileResult: Header, position index and compacted values produced by reconciliation
    StatisticsLayer: Statistical metrics for a single raster layer
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from rgtk.utils.header_table import HeaderTable
from rgtk.utils.position_index import PositionIndex
import rgtk.utils.raster_constants as rc
from rgtk.utils.raster_constants import ReconcileMode


@dataclass
class GridData:
    """
    A full rectangular raster grid.

    Attributes:
        header: Geometry and metadata of the grid.
        values: Array of shape (layers, rows, cols). A 2-D array is promoted
            to a single layer.
        srs: Spatial reference string, copied verbatim (usually WKT).

    Example:
        >>> header = HeaderTable.from_geometry(2, 2, 1.0, 0.0, 0.0)
        >>> grid = GridData(header, np.zeros((2, 2)))
        >>> grid.values.shape
        (1, 2, 2)
    """
    header: HeaderTable
    values: np.ndarray
    srs: str = ''

    def __post_init__(self):
        self.values = np.asarray(self.values)
        if self.values.ndim == 2:
            self.values = self.values[np.newaxis, :, :]

    @property
    def layers(self) -> int:
        return self.values.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape[1], self.values.shape[2]


@dataclass
class ReconcileResult:
    """
    Output of reconciling a subject grid (optionally against a mask).

    Attributes:
        mode: The reconciliation mode used.
        header: Final header table of the raster.
        index: Valid-cell position index.
        values: Compacted values of shape (cells, layers).
        filled: Boolean array, same shape as values, True where the value is
            the default fill because the cell fell outside the subject grid.
        owns_index: False when `index` is borrowed from the mask raster.
    """
    mode: ReconcileMode
    header: HeaderTable
    index: PositionIndex
    values: np.ndarray
    filled: np.ndarray
    owns_index: bool = True

    @property
    def cell_count(self) -> int:
        return len(self.index)


@dataclass
class StatisticsLayer:
    """
    Represents statistical metrics for a single raster layer.

    Undefined metrics (no valid cells) carry the layer's NODATA value, the
    same convention the header uses for missing data.

    Attributes:
        layer: 1-based layer number
        valid_count: Number of cells excluding NODATA and default-filled cells
        minimum: Minimum value
        maximum: Maximum value
        mean: Mean (average) value
        std_dev: Population standard deviation
        value_range: maximum - minimum
        nodata_value: The NoData value for this layer

    Example:
        >>> stats = StatisticsLayer(layer=1, valid_count=8, minimum=1.0,
        ...                         maximum=9.0, mean=5.0, std_dev=2.7386,
        ...                         value_range=8.0, nodata_value=-9999.0)
        >>> stats.as_dict()['MEAN']
        5.0
    """
    layer: int
    valid_count: int
    minimum: float
    maximum: float
    mean: float
    std_dev: float
    value_range: float
    nodata_value: Optional[float] = None

    @classmethod
    def get_display_fields(cls) -> List[Tuple[str, str]]:
        """
        Returns field metadata for table rendering.

        Returns:
            List of (display_name, field_name) tuples
        """
        return [
            ("Valid Count", "valid_count"),
            ("Minimum", "minimum"),
            ("Maximum", "maximum"),
            ("Mean", "mean"),
            ("Std Dev", "std_dev"),
            ("Range", "value_range"),
        ]

    def as_dict(self) -> Dict[str, float]:
        """Statistics keyed by the STATS_* metric names."""
        return {
            rc.STATS_VALIDNUM: self.valid_count,
            rc.STATS_MEAN: self.mean,
            rc.STATS_MIN: self.minimum,
            rc.STATS_MAX: self.maximum,
            rc.STATS_STD: self.std_dev,
            rc.STATS_RANGE: self.value_range,
        }

    def has_data(self) -> bool:
        return self.valid_count > 0


@dataclass
class StatisticsReport:
    """Per-layer statistics of one raster, ready for rendering or JSON export."""
    source: str
    header: Dict[str, float]
    layers: List[StatisticsLayer] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'header': self.header,
            'metadata': self.metadata,
            'layers': [dict(layer=s.layer, **s.as_dict()) for s in self.layers],
        }
