"""Gridded rasters: grid geometry, immutable rasters, resampling, and reductions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

import numpy as np


def as_datetime(value: date | datetime) -> datetime:
    """Promote a date to midnight of that day.

    All times are naive UTC; timezone-aware datetimes are converted.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time())


@dataclass(frozen=True)
class DateRange:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, 'start', as_datetime(self.start))
        object.__setattr__(self, 'end', as_datetime(self.end))
        if self.end < self.start:
            raise ValueError(f'DateRange end {self.end} precedes start {self.start}')

    def contains(self, t: date | datetime) -> bool:
        t = as_datetime(t)
        return self.start <= t < self.end

    @classmethod
    def window(cls, start: date | datetime, days: int) -> DateRange:
        start = as_datetime(start)
        return cls(start, start + timedelta(days=days))

    @classmethod
    def day_of(cls, t: date | datetime) -> DateRange:
        """The UTC calendar day containing t."""
        day = as_datetime(t).replace(hour=0, minute=0, second=0, microsecond=0)
        return cls(day, day + timedelta(days=1))

    @classmethod
    def trailing(cls, t: date | datetime, days: int) -> DateRange:
        """The `days` days preceding t, excluding t itself."""
        end = as_datetime(t)
        return cls(end - timedelta(days=days), end)


@dataclass(frozen=True)
class GridSpec:
    """North-up regular lat/lon grid. Row 0 is the northern edge."""

    lat_max: float
    lon_min: float
    res: float      # [degrees]
    nrows: int
    ncols: int

    @classmethod
    def from_bounds(cls, lat_min: float, lat_max: float,
                    lon_min: float, lon_max: float, res: float) -> GridSpec:
        nrows = max(int(np.ceil((lat_max - lat_min) / res - 1e-9)), 1)
        ncols = max(int(np.ceil((lon_max - lon_min) / res - 1e-9)), 1)
        return cls(lat_max, lon_min, res, nrows, ncols)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.nrows, self.ncols)

    @property
    def lat_min(self) -> float:
        return self.lat_max - self.nrows * self.res

    @property
    def lon_max(self) -> float:
        return self.lon_min + self.ncols * self.res

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(lat_min, lat_max, lon_min, lon_max) of the outer cell edges."""
        return self.lat_min, self.lat_max, self.lon_min, self.lon_max

    @property
    def lat_axis(self) -> np.ndarray:
        """Cell-centre latitudes, north to south."""
        return self.lat_max - (np.arange(self.nrows) + 0.5) * self.res

    @property
    def lon_axis(self) -> np.ndarray:
        """Cell-centre longitudes, west to east."""
        return self.lon_min + (np.arange(self.ncols) + 0.5) * self.res

    @property
    def lat_edges(self) -> np.ndarray:
        return self.lat_max - np.arange(self.nrows + 1) * self.res

    @property
    def lon_edges(self) -> np.ndarray:
        return self.lon_min + np.arange(self.ncols + 1) * self.res

    def overlaps(self, bounds: tuple[float, float, float, float]) -> bool:
        """True if the grid footprint intersects (lat_min, lat_max, lon_min, lon_max)."""
        lat_min, lat_max, lon_min, lon_max = bounds
        return (self.lat_min < lat_max and lat_min < self.lat_max and
                self.lon_min < lon_max and lon_min < self.lon_max)


def _fill_value(dtype: np.dtype):
    if np.issubdtype(dtype, np.bool_):
        return False
    if np.issubdtype(dtype, np.floating):
        return np.nan
    return 0


@dataclass(frozen=True, eq=False)
class Raster:
    """Immutable single-band raster: cell values plus a validity mask.

    Invalid cells are no-data. Their stored value is a neutral fill
    (False for masks, NaN for floats) so a no-data cell never reads as
    "at risk".
    """

    values: np.ndarray
    valid: np.ndarray
    grid: GridSpec

    def __post_init__(self) -> None:
        values = np.array(self.values)
        valid = np.array(self.valid, dtype=bool)
        if values.shape != self.grid.shape or valid.shape != self.grid.shape:
            raise ValueError(
                f'raster shape {values.shape}/{valid.shape} does not match '
                f'grid {self.grid.shape}')
        values[~valid] = _fill_value(values.dtype)
        values.setflags(write=False)
        valid.setflags(write=False)
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'valid', valid)

    @classmethod
    def from_array(cls, values: np.ndarray, grid: GridSpec) -> Raster:
        """Numeric raster; non-finite cells become no-data."""
        values = np.asarray(values, dtype=np.float32)
        return cls(values, np.isfinite(values), grid)

    @classmethod
    def empty(cls, grid: GridSpec, dtype: type = bool) -> Raster:
        values = np.full(grid.shape, _fill_value(np.dtype(dtype)), dtype=dtype)
        return cls(values, np.zeros(grid.shape, dtype=bool), grid)

    @property
    def is_empty(self) -> bool:
        return not bool(self.valid.any())

    @property
    def is_mask(self) -> bool:
        return self.values.dtype == np.bool_

    def true_cells(self) -> np.ndarray:
        """Boolean array, True where the cell is valid and its value is truthy."""
        return self.valid & (self.values != 0)

    def equals(self, other: Raster) -> bool:
        if self.grid != other.grid or not np.array_equal(self.valid, other.valid):
            return False
        # Compare valid cells only; fills of no-data cells are not data.
        return bool(np.all(self.values[self.valid] == other.values[other.valid]))

    def where(self, keep: np.ndarray) -> Raster:
        """Copy with cells outside `keep` turned into no-data."""
        return Raster(self.values, self.valid & keep, self.grid)

    def threshold(self, cutoff: float) -> Raster:
        """Boolean raster: value > cutoff. No-data stays no-data."""
        with np.errstate(invalid='ignore'):
            above = self.values > cutoff
        return Raster(above & self.valid, self.valid, self.grid)


def resample_nearest(raster: Raster, grid: GridSpec) -> Raster:
    """Nearest-neighbour resample onto `grid`.

    Each target cell takes the source cell containing its centre. Target
    cells outside the source footprint are no-data.
    """
    src = raster.grid
    if src == grid:
        return raster

    rows = np.floor((src.lat_max - grid.lat_axis) / src.res).astype(np.int64)
    cols = np.floor((grid.lon_axis - src.lon_min) / src.res).astype(np.int64)
    row_ok = (rows >= 0) & (rows < src.nrows)
    col_ok = (cols >= 0) & (cols < src.ncols)

    r = np.clip(rows, 0, src.nrows - 1)
    c = np.clip(cols, 0, src.ncols - 1)
    values = raster.values[np.ix_(r, c)]
    valid = raster.valid[np.ix_(r, c)] & row_ok[:, None] & col_ok[None, :]
    return Raster(values, valid, grid)


def max_reduce(rasters: Iterable[Raster], grid: GridSpec) -> Raster:
    """Per-cell maximum over valid observations, on `grid`.

    A cell is valid if at least one input is valid there. Zero inputs
    give an empty raster.
    """
    out = np.full(grid.shape, -np.inf, dtype=np.float64)
    seen = np.zeros(grid.shape, dtype=bool)
    for raster in rasters:
        r = resample_nearest(raster, grid)
        vals = np.where(r.valid, r.values.astype(np.float64), -np.inf)
        out = np.maximum(out, vals)
        seen |= r.valid
    return Raster(np.where(seen, out, np.nan).astype(np.float32), seen, grid)
