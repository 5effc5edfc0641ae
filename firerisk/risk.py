"""High fire-risk classification: litter and temperature thresholds, intersected."""

from __future__ import annotations

from datetime import date, datetime

from firerisk.catalog import MissingSliceError, NoDataForDateError, SliceCatalog
from firerisk.constants import (
    HIGH_TEMP, HIGH_LITTER, TEMP_BAND, LITTER_BAND, FOREST_BAND,
    LITTER_EPOCH, LITTER_WINDOW_DAYS, GRID_RES,
)
from firerisk.raster import DateRange, GridSpec, Raster, max_reduce, resample_nearest
from firerisk.region import Region, clip


def _reference_land_cover(land_cover: SliceCatalog, band: str,
                          epoch: datetime) -> Raster:
    """First slice of `band` in the year starting at `epoch`."""
    window = DateRange.window(epoch, LITTER_WINDOW_DAYS)
    first = land_cover.first(band, window)
    if first is None:
        raise MissingSliceError(
            f'no {band} slice in [{window.start:%Y-%m-%d}, {window.end:%Y-%m-%d})')
    return first.raster


def threshold_litter(land_cover: SliceCatalog, region: Region,
                     grid: GridSpec | None = None,
                     threshold: float = HIGH_LITTER,
                     band: str = LITTER_BAND,
                     epoch: datetime = LITTER_EPOCH,
                     grid_res: float = GRID_RES) -> Raster:
    """Boolean raster: shrubland litter cover above threshold.

    Land cover is treated as static, so the first slice in the year
    following `epoch` is used regardless of the query date.

    Args:
        land_cover: catalog holding the litter band.
        region: area of interest; sets the analysis grid when grid is None.
        grid: target grid. Defaults to region.analysis_grid(grid_res).
        threshold: litter cover cutoff [%]; strictly greater is "high".

    Returns:
        Mask on `grid`. Cells the source does not cover are no-data.

    Raises:
        MissingSliceError: no land-cover slice in the reference year.
    """
    grid = grid or region.analysis_grid(grid_res)
    litter = _reference_land_cover(land_cover, band, epoch)
    return resample_nearest(litter, grid).threshold(threshold)


def threshold_temperature(forecast: SliceCatalog, when: date | datetime,
                          region: Region, grid: GridSpec | None = None,
                          threshold: float = HIGH_TEMP,
                          band: str = TEMP_BAND,
                          grid_res: float = GRID_RES) -> Raster:
    """Boolean raster: forecast temperature above threshold on the day of `when`.

    All forecast slices stamped on that UTC day are collapsed with a
    per-cell maximum before thresholding.

    Raises:
        NoDataForDateError: the forecast catalog has no slice for the day.
    """
    grid = grid or region.analysis_grid(grid_res)
    slices = forecast.filter(band, DateRange.day_of(when))
    if not slices:
        raise NoDataForDateError(when, band)
    temperature = max_reduce((s.raster for s in slices), grid)
    return temperature.threshold(threshold)


def classify_high_risk(when: date | datetime, region: Region,
                       land_cover: SliceCatalog, forecast: SliceCatalog,
                       high_temp: float = HIGH_TEMP,
                       high_litter: float = HIGH_LITTER,
                       grid_res: float = GRID_RES,
                       epoch: datetime = LITTER_EPOCH,
                       temp_band: str = TEMP_BAND,
                       litter_band: str = LITTER_BAND) -> Raster:
    """Classify cells that are both hot and covered by shrubland litter.

    Risk is only evaluated where litter is high: cells with low or
    missing litter are no-data in the result, not False, and so are cells
    the forecast does not cover. Inside that footprint a cell is True
    when the temperature test passes. The result is clipped to the
    region polygon.

    Args:
        when: query date; the forecast day is its UTC calendar day.
        region: area of interest (polygon).
        land_cover: catalog with the litter band.
        forecast: catalog with the 2 m temperature band.
        high_temp: temperature cutoff [°C].
        high_litter: litter cover cutoff [%].
        grid_res: analysis grid resolution [degrees].

    Returns:
        Boolean raster on region.analysis_grid(grid_res).

    Raises:
        NoDataForDateError: no forecast for the day of `when`.
        MissingSliceError: no land-cover slice in the reference year.
    """
    grid = region.analysis_grid(grid_res)
    hot = threshold_temperature(forecast, when, region, grid,
                                threshold=high_temp, band=temp_band)
    litter = threshold_litter(land_cover, region, grid,
                              threshold=high_litter, band=litter_band,
                              epoch=epoch)

    litter_present = litter.true_cells()
    combined = Raster(hot.true_cells() & litter_present,
                      litter_present & hot.valid, grid)
    return clip(combined, region)


def forest_cover(land_cover: SliceCatalog, region: Region,
                 band: str = FOREST_BAND,
                 epoch: datetime = LITTER_EPOCH,
                 grid_res: float = GRID_RES) -> Raster:
    """Percent tree cover from the reference land-cover year, clipped to the region."""
    grid = region.analysis_grid(grid_res)
    forest = _reference_land_cover(land_cover, band, epoch)
    return clip(resample_nearest(forest, grid), region)
