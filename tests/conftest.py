"""Synthetic land-cover, forecast, and fire catalogs on a 1°x1° source grid."""

from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest

from firerisk import GridSpec, Raster, RasterSlice, Region, SliceCatalog
from firerisk.constants import TEMP_BAND, LITTER_BAND, FOREST_BAND, FRP_BAND

# Source grid: 10x10 cells of 0.1° over lat 39..40, lon -120..-119
SOURCE_GRID = GridSpec(lat_max=40.0, lon_min=-120.0, res=0.1, nrows=10, ncols=10)
TEST_RES = 0.1
QUERY_DATE = datetime(2020, 8, 15)


def constant(value: float, grid: GridSpec = SOURCE_GRID) -> Raster:
    return Raster.from_array(np.full(grid.shape, value, dtype=np.float32), grid)


def catalog(band: str, items: list[tuple[datetime, Raster]]) -> SliceCatalog:
    return SliceCatalog(RasterSlice(t, band, r) for t, r in items)


def land_cover_catalog(litter: Raster, forest: Raster | None = None) -> SliceCatalog:
    slices = [RasterSlice(datetime(2016, 1, 1), LITTER_BAND, litter)]
    if forest is not None:
        slices.append(RasterSlice(datetime(2016, 1, 1), FOREST_BAND, forest))
    return SliceCatalog(slices)


def forecast_catalog(*temps: Raster, when: datetime = QUERY_DATE) -> SliceCatalog:
    return catalog(TEMP_BAND, [(when.replace(hour=6 * i), t) for i, t in enumerate(temps)])


@pytest.fixture
def region() -> Region:
    """6x6 analysis cells well inside the source grid."""
    return Region.from_bounds(39.2, 39.8, -119.8, -119.2)


@pytest.fixture
def outside_region() -> Region:
    return Region.from_bounds(10.0, 10.5, 10.0, 10.5)


@pytest.fixture
def hot_forecast() -> SliceCatalog:
    return forecast_catalog(constant(40.0))


@pytest.fixture
def cool_forecast() -> SliceCatalog:
    return forecast_catalog(constant(20.0))


@pytest.fixture
def litter_catalog() -> SliceCatalog:
    return land_cover_catalog(constant(60.0), forest=constant(35.0))


@pytest.fixture
def fire_catalog_factory():
    def make(items: list[tuple[datetime, float]], grid: GridSpec = SOURCE_GRID) -> SliceCatalog:
        return catalog(FRP_BAND, [(t, constant(v, grid)) for t, v in items])
    return make
