"""Raster file I/O: GeoTIFF slices, catalog directories, and HDF4 fire-intensity tiles."""

from __future__ import annotations

import glob
import os
import re
from datetime import datetime, timedelta

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin
from pyhdf.SD import SD, SDC

from firerisk.catalog import RasterSlice, SliceCatalog
from firerisk.constants import FRP_BAND
from firerisk.raster import GridSpec, Raster

# <band>_<YYYYMMDD>[THHMM].tif, e.g. temperature_2m_above_ground_20200815T1200.tif
SLICE_NAME = re.compile(r'^(?P<band>.+)_(?P<date>\d{8})(?:T(?P<hhmm>\d{4}))?\.tiff?$')

MASK_NODATA = 255   # uint8 fill for exported boolean rasters


def read_geotiff(path: str) -> Raster:
    """Read band 1 of a north-up EPSG:4326 GeoTIFF as a float raster.

    Nodata and non-finite cells become no-data.
    """
    with rasterio.open(path) as ds:
        if ds.crs and ds.crs != CRS.from_epsg(4326):
            raise ValueError(f'{path}: expected EPSG:4326, got {ds.crs}')
        t = ds.transform
        if t.b != 0 or t.d != 0 or not np.isclose(abs(t.a), abs(t.e)):
            raise ValueError(f'{path}: only north-up square-pixel grids are supported')
        data = ds.read(1).astype(np.float32)
        if ds.nodata is not None and np.isfinite(ds.nodata):
            data[data == ds.nodata] = np.nan
        grid = GridSpec(lat_max=t.f, lon_min=t.c, res=abs(t.a),
                        nrows=ds.height, ncols=ds.width)
    return Raster.from_array(data, grid)


def write_geotiff(path: str, raster: Raster) -> str:
    """Write a raster as single-band GeoTIFF.

    Masks are stored as uint8 (1/0, 255 = no data); numeric rasters as
    float32 with NaN no-data.
    """
    g = raster.grid
    if raster.is_mask:
        data = np.where(raster.valid, raster.values.astype(np.uint8), MASK_NODATA).astype(np.uint8)
        dtype, nodata = 'uint8', MASK_NODATA
    else:
        data = np.where(raster.valid, raster.values, np.nan).astype(np.float32)
        dtype, nodata = 'float32', np.nan

    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with rasterio.open(
            path, 'w', driver='GTiff', height=g.nrows, width=g.ncols,
            count=1, dtype=dtype, crs=CRS.from_epsg(4326),
            transform=from_origin(g.lon_min, g.lat_max, g.res, g.res),
            nodata=nodata) as ds:
        ds.write(data, 1)
    return path


def parse_slice_name(filename: str) -> tuple[str, datetime] | None:
    """Split a slice filename into (band, timestamp). None if it does not match."""
    m = SLICE_NAME.match(os.path.basename(filename))
    if m is None:
        return None
    t = datetime.strptime(m['date'], '%Y%m%d')
    if m['hhmm']:
        t = t.replace(hour=int(m['hhmm'][:2]), minute=int(m['hhmm'][2:]))
    return m['band'], t


def load_catalog_dir(directory: str) -> SliceCatalog:
    """Load every <band>_<YYYYMMDD>[THHMM].tif under a directory.

    Files whose names do not follow the pattern are skipped.
    """
    slices = []
    for path in sorted(glob.glob(os.path.join(directory, '*.tif*'))):
        parsed = parse_slice_name(path)
        if parsed is None:
            continue
        band, t = parsed
        slices.append(RasterSlice(t, band, read_geotiff(path)))
    return SliceCatalog(slices)


def read_frp_hdf(filepath: str, band: str = FRP_BAND) -> list[RasterSlice]:
    """Load one MOD14A1-style HDF4 tile as daily fire-intensity slices.

    The SDS `band` holds (days, rows, cols) scaled integers. Global
    attributes give the first day and the grid:
        StartDate: 'YYYY-MM-DD'
        lat_max, lon_min, res: north-west corner and cell size [degrees]

    Returns:
        One RasterSlice per day, values in MW. Fill and negative values
        are no-data.
    """
    f = SD(filepath, SDC.READ)
    attrs = f.attributes()
    start = datetime.strptime(attrs['StartDate'], '%Y-%m-%d')
    lat_max = float(attrs['lat_max'])
    lon_min = float(attrs['lon_min'])
    res = float(attrs['res'])

    sds = f.select(band)
    sds_attrs = sds.attributes()
    scale = float(sds_attrs.get('scale_factor', 1.0))
    fill = sds_attrs.get('_FillValue')
    raw = np.asarray(sds[:]).astype(np.float32)
    sds.endaccess()
    f.end()

    if raw.ndim == 2:
        raw = raw[np.newaxis]

    # Mask fill values and negative (non-fire / cloud) codes
    if fill is not None:
        raw[raw == fill] = np.nan
    raw[raw < 0] = np.nan
    frp = raw * scale

    _, nrows, ncols = frp.shape
    grid = GridSpec(lat_max, lon_min, res, nrows, ncols)
    return [
        RasterSlice(start + timedelta(days=i), band, Raster.from_array(frp[i], grid))
        for i in range(frp.shape[0])
    ]


def load_frp_files(pattern: str, band: str = FRP_BAND) -> SliceCatalog:
    """Load all HDF4 fire tiles matching a glob pattern into one catalog."""
    slices = []
    for path in sorted(glob.glob(pattern)):
        slices.extend(read_frp_hdf(path, band=band))
    return SliceCatalog(slices)
