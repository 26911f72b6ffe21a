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
Grid Codecs backed by GDAL.

This module is the thin I/O layer between files and the raster data model:

    load_grid(source) -> GridData(header, values, srs)
    store_grid(destination, header, values, srs) -> bool

`source` and `destination` are anything GDAL can open, such as a local path
or a `/vsimem/` identifier. GeoTIFF is written with the GTiff driver; ASCII
grids (.asc) are written by copying an in-memory dataset with the AAIGrid
driver, which does not support direct creation.
"""
import logging
import numpy as np
from pathlib import Path
from osgeo import gdal
from typing import Union
from rgtk.utils.config_loader import config
from rgtk.utils.data_models import GridData
from rgtk.utils.exceptions import GridReadError, GridWriteError, LayerGeometryMismatchError
from rgtk.utils.header_table import HeaderTable
import rgtk.utils.raster_constants as rc

gdal.UseExceptions()

logger = logging.getLogger(__name__)

# numpy dtype -> GDAL data type for writing
_GDAL_TYPES = {
    np.dtype(np.uint8): gdal.GDT_Byte,
    np.dtype(np.uint16): gdal.GDT_UInt16,
    np.dtype(np.int16): gdal.GDT_Int16,
    np.dtype(np.uint32): gdal.GDT_UInt32,
    np.dtype(np.int32): gdal.GDT_Int32,
    np.dtype(np.float32): gdal.GDT_Float32,
    np.dtype(np.float64): gdal.GDT_Float64,
}


def gdal_type_for(dtype: np.dtype) -> int:
    """GDAL data type for a numpy dtype; unknown types are written as Float64."""
    return _GDAL_TYPES.get(np.dtype(dtype), gdal.GDT_Float64)


def load_grid(source: Union[str, Path]) -> GridData:
    """
    Read every band of a raster into a GridData.

    The NODATA of the first band is used for the whole grid; a raster without
    NODATA gets the toolkit default.

    Raises:
        GridReadError: If the source cannot be opened or read.
    """
    try:
        ds = gdal.Open(str(source), gdal.GA_ReadOnly)
    except RuntimeError as e:
        logger.error(f"Could not open raster {source}: {e}")
        raise GridReadError(f"Could not open raster {source}: {e}") from e
    if ds is None:
        raise GridReadError(f"Could not open raster {source}")

    try:
        if ds.RasterCount == 0:
            raise GridReadError(f"Raster {source} has no bands.")
        nodata = ds.GetRasterBand(1).GetNoDataValue()
        if nodata is None:
            nodata = config.get('raster.default_nodata', rc.DEFAULT_NODATA)
        try:
            header = HeaderTable.from_geo_transform(ds.GetGeoTransform(), ds.RasterYSize, ds.RasterXSize,
                                                    nodata=nodata, layers=ds.RasterCount)
        except LayerGeometryMismatchError as e:
            raise GridReadError(f"Unsupported geometry in {source}: {e}") from e
        values = ds.ReadAsArray()
        srs = ds.GetProjection() or ''
    except RuntimeError as e:
        logger.error(f"Could not read raster {source}: {e}")
        raise GridReadError(f"Could not read raster {source}: {e}") from e
    finally:
        ds = None

    logger.debug(f"Loaded {source}: {header.rows}x{header.cols}x{header.layers}, NODATA={header.nodata}")
    return GridData(header, values, srs)


def _build_mem_dataset(header: HeaderTable, values: np.ndarray, srs: str) -> gdal.Dataset:
    n_layers, n_rows, n_cols = values.shape
    driver = gdal.GetDriverByName('MEM')
    ds = driver.Create('', n_cols, n_rows, n_layers, gdal_type_for(values.dtype))
    if ds is None:
        raise GridWriteError("Failed to create in-memory dataset")
    ds.SetGeoTransform(header.to_geo_transform())
    if srs:
        ds.SetProjection(srs)
    for band_idx in range(n_layers):
        band = ds.GetRasterBand(band_idx + 1)
        band.WriteArray(values[band_idx])
        band.SetNoDataValue(float(header.nodata))
    return ds


def store_grid(destination: Union[str, Path], header: HeaderTable, values: np.ndarray, srs: str = '') -> bool:
    """
    Write a full grid to `destination`; the driver follows the file extension.

    Args:
        destination: Output path or GDAL identifier.
        header: Geometry and NODATA of the grid.
        values: Array of shape (rows, cols) or (layers, rows, cols).
        srs: Spatial reference string, written verbatim.

    Returns:
        True on success, False if GDAL failed to write the file.
    """
    values = np.asarray(values)
    if values.ndim == 2:
        values = values[np.newaxis, :, :]
    if values.shape[1:] != (header.rows, header.cols):
        logger.error(f"Grid of shape {values.shape[1:]} does not match header {header.rows}x{header.cols}.")
        return False

    destination = str(destination)
    suffix = Path(destination).suffix.lower()
    try:
        mem_ds = _build_mem_dataset(header, values, srs)
        if suffix == rc.ASCII_EXTENSION:
            if values.shape[0] != 1:
                raise GridWriteError("ASCII grids hold a single layer.")
            driver = gdal.GetDriverByName('AAIGrid')
        elif suffix in rc.GTIFF_EXTENSIONS:
            driver = gdal.GetDriverByName('GTiff')
        else:
            raise GridWriteError(f"Unsupported output format: {destination}")
        out_ds = driver.CreateCopy(destination, mem_ds)
        if out_ds is None:
            raise GridWriteError(f"Failed to create {destination}")
        out_ds.FlushCache()
        out_ds = None
        mem_ds = None
    except (RuntimeError, GridWriteError) as e:
        logger.error(f"Failed to write raster {destination}: {e}")
        return False

    logger.info(f"Successfully wrote raster to {destination}")
    return True
