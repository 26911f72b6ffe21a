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
Statistics Calculator.

Computes per-layer statistics (valid count, mean, min, max, standard deviation
and range) over compacted raster storage and caches them until the storage is
mutated.

Excluded from every statistic:
    - values equal to the layer NODATA (within tolerance for floating data),
    - NaN values,
    - cells holding the reconciliation default fill.

Layers are independent, so a forced update may spread layers across a thread
pool; each worker writes only its own layer's slot.
"""

import math
import logging
import concurrent.futures
import numpy as np
from typing import Dict, List, Optional
from rgtk.utils.data_models import StatisticsLayer
from rgtk.utils.exceptions import LayerOutOfRangeError, UnknownMetricError
from rgtk.utils.layered_storage import LayeredStorage
from rgtk.utils.mask_reconciler import valid_value_mask
import rgtk.utils.raster_constants as rc

# Configure logging
logger = logging.getLogger(__name__)

def calculate_layer_statistics(values: np.ndarray, filled: Optional[np.ndarray], nodata: float,
                               layer: int = 1, tolerance: float = rc.FLOAT_TOLERANCE) -> StatisticsLayer:
    """
    Calculates statistics for one layer of compacted values.

    Accumulates count, sum, sum of squares, min and max over the valid cells in
    a single vectorized pass. The standard deviation is the population one,
    sqrt(sum_sq / n - mean^2).

    Args:
        values: 1-D array of the layer's values
        filled: Optional boolean array flagging default-filled cells
        nodata: NoData value of the layer
        layer: Layer number recorded in the result
        tolerance: Absolute tolerance for floating NODATA comparison

    Returns:
        StatisticsLayer; with no valid cells every derived metric is `nodata`.
    """
    valid = valid_value_mask(values, nodata, tolerance)
    if filled is not None:
        valid &= ~np.asarray(filled, dtype=bool)

    # Read as float64 to avoid overflow when summing integer data
    valid_data = np.asarray(values)[valid].astype(np.float64)
    if np.issubdtype(valid_data.dtype, np.floating) and valid_data.size > 0:
        valid_data = valid_data[np.isfinite(valid_data)]

    count = int(valid_data.size)
    if count == 0:
        logger.warning(f"Layer {layer} contains no valid data.")
        return StatisticsLayer(layer=layer, valid_count=0, minimum=nodata, maximum=nodata,
                               mean=nodata, std_dev=nodata, value_range=nodata, nodata_value=nodata)

    total = float(valid_data.sum())
    total_sq = float(np.square(valid_data).sum())
    minimum = float(valid_data.min())
    maximum = float(valid_data.max())
    mean = total / count
    # Rounding can push the variance slightly below zero for constant layers
    variance = max(total_sq / count - mean * mean, 0.0)

    return StatisticsLayer(
        layer=layer,
        valid_count=count,
        minimum=minimum,
        maximum=maximum,
        mean=mean,
        std_dev=math.sqrt(variance),
        value_range=maximum - minimum,
        nodata_value=nodata,
    )


class StatisticsCache:
    """
    Lazily computed, invalidatable statistics for every layer of a storage.

    Example:
        >>> cache = StatisticsCache(storage, nodata=-9999.0)
        >>> cache.get('mean', 1)
        5.0
    """

    def __init__(self, storage: LayeredStorage, nodata: float,
                 tolerance: float = rc.FLOAT_TOLERANCE, max_workers: int = 1):
        self._storage = storage
        self._nodata = nodata
        self._tolerance = tolerance
        self._max_workers = max(1, int(max_workers))
        self._results: Dict[int, StatisticsLayer] = {}
        self._dirty: Dict[int, bool] = {}

    @property
    def layer_count(self) -> int:
        return self._storage.layer_count

    @property
    def is_calculated(self) -> bool:
        """True if every layer has clean cached statistics."""
        return self.layer_count > 0 and all(not self.is_dirty(lyr) for lyr in range(1, self.layer_count + 1))

    def _check_layer(self, layer: int):
        if not 1 <= layer <= self.layer_count:
            raise LayerOutOfRangeError(f"Layer {layer} outside [1, {self.layer_count}].")

    def is_dirty(self, layer: int) -> bool:
        self._check_layer(layer)
        return self._dirty.get(layer, True)

    def invalidate(self, layer: Optional[int] = None):
        """Mark one layer (or every layer when None) as needing recomputation."""
        if layer is None:
            self._dirty.clear()
            self._results.clear()
            return
        self._check_layer(layer)
        self._dirty[layer] = True

    def set_nodata(self, nodata: float):
        self._nodata = nodata
        self.invalidate()

    def compute(self, layer: int) -> StatisticsLayer:
        """Recompute one layer regardless of its dirty state."""
        self._check_layer(layer)
        result = calculate_layer_statistics(
            self._storage.layer_values(layer),
            self._storage.layer_filled(layer),
            self._nodata,
            layer=layer,
            tolerance=self._tolerance,
        )
        self._results[layer] = result
        self._dirty[layer] = False
        return result

    def update(self):
        """Force recomputation of every layer."""
        layers = list(range(1, self.layer_count + 1))
        logger.debug(f"Updating statistics for {len(layers)} layer(s).")
        if self._max_workers == 1 or len(layers) == 1:
            for layer in layers:
                self.compute(layer)
            return

        with concurrent.futures.ThreadPoolExecutor(max_workers=min(self._max_workers, len(layers))) as executor:
            future_to_layer = {executor.submit(self.compute, layer): layer for layer in layers}
            for future in concurrent.futures.as_completed(future_to_layer):
                # Re-raise any worker exception
                future.result()

    def layer_statistics(self, layer: int = 1) -> StatisticsLayer:
        """Cached statistics of a layer, recomputing first if dirty."""
        if self.is_dirty(layer):
            return self.compute(layer)
        return self._results[layer]

    def get(self, metric: str, layer: int = 1) -> float:
        """
        Get a statistics value.

        Args:
            metric: One of the STATS_* names, case insensitive
            layer: 1-based layer number

        Raises:
            UnknownMetricError: If the metric name is not recognized.
            LayerOutOfRangeError: If the layer is invalid.
        """
        key = rc.normalize_metric_name(metric)
        if key not in rc.STATISTICS_METRICS:
            raise UnknownMetricError(f"Unknown statistics metric: {metric}")
        return self.layer_statistics(layer).as_dict()[key]

    def get_all(self, metric: str) -> List[float]:
        """Statistics value of every layer, in layer order."""
        return [self.get(metric, layer) for layer in range(1, self.layer_count + 1)]
