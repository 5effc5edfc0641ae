"""Area computation and summaries: cell areas, area reduction, risk timelines, zones."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

import numpy as np
from scipy.ndimage import label as ndimage_label

from firerisk.catalog import NoDataForDateError, SliceCatalog
from firerisk.constants import (
    EARTH_RADIUS, AREA_SCALE, AREA_MAX_PIXELS, AREA_SENTINEL, AT_RISK, GRID_RES,
)
from firerisk.raster import GridSpec, Raster
from firerisk.region import Region
from firerisk.risk import classify_high_risk


class PixelBudgetError(ValueError):
    """Area reduction would touch more pixels than allowed."""


def _band_area_m2(lat_top: np.ndarray, lat_bottom: np.ndarray,
                  dlon_deg: np.ndarray | float) -> np.ndarray:
    """Area of lat/lon boxes on the sphere [m²]."""
    return (EARTH_RADIUS ** 2 * np.radians(dlon_deg) *
            (np.sin(np.radians(lat_top)) - np.sin(np.radians(lat_bottom))))


def cell_areas_m2(grid: GridSpec) -> np.ndarray:
    """True ground area of every grid cell [m²], shape (nrows, ncols).

    Exact on the sphere; cells shrink with cos(latitude).
    """
    edges = grid.lat_edges
    per_row = _band_area_m2(edges[:-1], edges[1:], grid.res)
    return np.broadcast_to(per_row[:, None], grid.shape)


def native_cell_size_m(grid: GridSpec) -> float:
    """North-south size of one cell [m]."""
    return float(np.radians(grid.res) * EARTH_RADIUS)


def _blocks(n: int, factor: int) -> tuple[np.ndarray, np.ndarray]:
    """Start index and length of each factor-sized block along one axis."""
    starts = np.arange(0, n, factor)
    lengths = np.minimum(starts + factor, n) - starts
    return starts, lengths


def _edge_blocks(region: Region, grid: GridSpec, factor: int,
                 shape: tuple[int, int]) -> np.ndarray:
    """Blocks crossed by the region outline, as a boolean block array.

    Blocks left False lie wholly inside or wholly outside the region.
    """
    n_rows, n_cols = shape
    step = factor * grid.res
    edge = np.zeros(shape, dtype=bool)
    verts = region.vertices
    for (lon0, lat0), (lon1, lat1) in zip(verts, verts[1:] + verts[:1]):
        # Block coordinates: y grows south from lat_max, x east from lon_min
        y0, y1 = (grid.lat_max - lat0) / step, (grid.lat_max - lat1) / step
        x0, x1 = (lon0 - grid.lon_min) / step, (lon1 - grid.lon_min) / step
        r_lo = max(int(np.floor(min(y0, y1))), 0)
        r_hi = min(int(np.floor(max(y0, y1))), n_rows - 1)
        for r in range(r_lo, r_hi + 1):
            if y1 == y0:
                t_lo, t_hi = 0.0, 1.0
            else:
                ta, tb = (r - y0) / (y1 - y0), (r + 1 - y0) / (y1 - y0)
                t_lo, t_hi = max(min(ta, tb), 0.0), min(max(ta, tb), 1.0)
            xa, xb = x0 + t_lo * (x1 - x0), x0 + t_hi * (x1 - x0)
            c_lo = max(int(np.floor(min(xa, xb))), 0)
            c_hi = min(int(np.floor(max(xa, xb))), n_cols - 1)
            if c_lo <= c_hi:
                edge[r, c_lo:c_hi + 1] = True
    return edge


def area_of(raster: Raster, region: Region,
            match: Any = AREA_SENTINEL,
            scale: float = AREA_SCALE,
            max_pixels: float = AREA_MAX_PIXELS,
            best_effort: bool = True) -> float:
    """Ground area of cells whose value equals `match`, inside the region [m²].

    The comparison is an explicit equality test, not truthiness. With the
    default sentinel (0) a risk mask yields the area of evaluated cells
    that are NOT at risk; pass match=AT_RISK for the at-risk area.

    When `scale` is coarser than the native cell size, the raster is
    sampled at the centre cell of each factor x factor block and the
    sample stands for the whole block. Blocks wholly inside the region
    count in full; blocks cut by the region outline count only the part
    that overlaps the polygon. If the sampled blocks exceed `max_pixels`,
    the block factor is doubled until they fit (best_effort=True) or
    PixelBudgetError is raised.

    Args:
        raster: any raster; no-data cells never count.
        region: polygon to sum over.
        match: cell value to count.
        scale: nominal reduction scale [m].
        max_pixels: pixel budget.
        best_effort: coarsen instead of failing when over budget.

    Returns:
        Area in m², between 0 and region.area_m2(). Exact at native
        scale; approximate when coarsened.
    """
    if max_pixels < 1:
        raise ValueError(f'max_pixels must be >= 1, got {max_pixels}')
    grid = raster.grid
    if raster.is_empty:
        return 0.0

    factor = max(1, int(round(scale / native_cell_size_m(grid))))
    while True:
        row_start, row_len = _blocks(grid.nrows, factor)
        col_start, col_len = _blocks(grid.ncols, factor)
        rows = row_start + row_len // 2
        cols = col_start + col_len // 2

        lon2d, lat2d = np.meshgrid(grid.lon_axis[cols], grid.lat_axis[rows])
        edge = _edge_blocks(region, grid, factor, (len(rows), len(cols)))
        inside = region.contains(lon2d, lat2d) & ~edge
        n_pixels = int(inside.sum() + edge.sum())
        if n_pixels <= max_pixels:
            break
        if not best_effort:
            raise PixelBudgetError(
                f'{n_pixels:,} pixels at {factor}x native scale exceeds '
                f'max_pixels={max_pixels:,.0f}')
        factor *= 2
        print(f'  Area reduction over budget; coarsening to {factor}x native scale')

    sub = np.ix_(rows, cols)
    selected = raster.valid[sub] & (raster.values[sub] == match)

    top = grid.lat_max - row_start * grid.res
    bottom = top - row_len * grid.res
    left = grid.lon_min + col_start * grid.res
    right = left + col_len * grid.res
    block_area = _band_area_m2(top[:, None], bottom[:, None],
                               (col_len * grid.res)[None, :])
    weight = np.where(inside, block_area, 0.0)
    for r, c in zip(*np.nonzero(edge & selected)):
        weight[r, c] = region.intersection_area_m2(bottom[r], top[r], left[c], right[c])

    return min(float(np.sum(weight[selected])), region.area_m2())


def risk_area_timeline(dates: Iterable[date | datetime], region: Region,
                       land_cover: SliceCatalog, forecast: SliceCatalog,
                       grid_res: float = GRID_RES,
                       scale: float = AREA_SCALE,
                       max_pixels: float = AREA_MAX_PIXELS,
                       best_effort: bool = True,
                       **risk_kwargs: Any):
    """At-risk area for each date.

    Dates without a forecast are kept with has_data=False so gaps stay
    visible.

    Returns:
        pd.DataFrame with columns: date, has_data, risk_cells, risk_area_m2
    """
    import pandas as pd

    rows = []
    for when in dates:
        try:
            risk = classify_high_risk(when, region, land_cover, forecast,
                                      grid_res=grid_res, **risk_kwargs)
        except NoDataForDateError:
            rows.append({'date': when, 'has_data': False,
                         'risk_cells': 0, 'risk_area_m2': np.nan})
            continue
        rows.append({
            'date': when,
            'has_data': True,
            'risk_cells': int(risk.true_cells().sum()),
            'risk_area_m2': area_of(risk, region, match=AT_RISK, scale=scale,
                                    max_pixels=max_pixels, best_effort=best_effort),
        })
    return pd.DataFrame(rows, columns=['date', 'has_data', 'risk_cells', 'risk_area_m2'])


def detect_risk_zones(mask: np.ndarray) -> tuple[np.ndarray, int, list[tuple[int, int]]]:
    """Find connected risk zones using 8-connectivity.

    Returns:
        labels: 2D int array (0 = no risk, 1..N = zone ID)
        n_zones: number of zones
        zone_sizes: list of (zone_id, pixel_count) sorted largest-first
    """
    structure = np.ones((3, 3))
    labels, n_zones = ndimage_label(mask, structure=structure)
    counts = np.bincount(labels.ravel(), minlength=n_zones + 1)
    zone_sizes = [(z, int(counts[z])) for z in range(1, n_zones + 1)]
    zone_sizes.sort(key=lambda x: -x[1])
    return labels, n_zones, zone_sizes


def format_area(area_m2: float) -> str:
    """Format area as m², hectares, or km²."""
    if area_m2 >= 1_000_000:
        return f'{area_m2 / 1_000_000:,.1f} km²'
    if area_m2 >= 10_000:
        return f'{area_m2 / 10_000:.1f} ha'
    return f'{area_m2:,.0f} m²'
