"""Fire history: peak fire radiative power over the trailing year."""

from __future__ import annotations

from datetime import date, datetime

from firerisk.catalog import SliceCatalog
from firerisk.constants import FRP_BAND, FIRE_WINDOW_DAYS, GRID_RES
from firerisk.raster import DateRange, Raster, max_reduce
from firerisk.region import Region, clip


def burned_area_mask(fire: SliceCatalog, when: date | datetime, region: Region,
                     days: int = FIRE_WINDOW_DAYS,
                     band: str = FRP_BAND,
                     grid_res: float = GRID_RES) -> Raster:
    """Per-cell maximum fire radiative power over [when - days, when).

    Only slices whose footprint touches the region bounds contribute. No
    cutoff is applied; a cell is valid where any slice in the window
    observed it.

    Args:
        fire: catalog holding the FRP band [MW].
        when: end of the window (exclusive).
        region: area of interest.
        days: window length [days].

    Returns:
        Float raster on region.analysis_grid(grid_res), clipped to the
        region. Empty when no slice falls in the window.
    """
    grid = region.analysis_grid(grid_res)
    window = DateRange.trailing(when, days)
    slices = fire.filter(band, window, bounds=region.bounds)
    peak = max_reduce((s.raster for s in slices), grid)
    return clip(peak, region)
