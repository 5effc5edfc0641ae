"""Region of interest: polygon geometry, rasterisation, and geodesic area."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from matplotlib.path import Path
from matplotlib.transforms import Bbox

from firerisk.constants import EARTH_RADIUS, GRID_RES
from firerisk.raster import GridSpec, Raster


def ring_area_m2(lon_deg: np.ndarray, lat_deg: np.ndarray) -> float:
    """Area enclosed by a lon/lat ring on the sphere [m²].

    Edges are straight in lon/lat, the same edges matplotlib uses for
    point-in-polygon. Each edge contributes the exact integral of
    sin(lat) over its longitude span, so the area is additive: the
    pieces of a clipped polygon sum to the whole.
    """
    lon = np.radians(np.asarray(lon_deg, dtype=np.float64))
    lat = np.radians(np.asarray(lat_deg, dtype=np.float64))
    lon_next = np.roll(lon, -1)
    lat_next = np.roll(lat, -1)
    # Mean of sin(lat) along the edge: (cos a - cos b) / (b - a)
    mean_sin = np.sin((lat + lat_next) / 2) * np.sinc((lat_next - lat) / (2 * np.pi))
    return float(abs(np.sum((lon_next - lon) * mean_sin)) * EARTH_RADIUS ** 2)


@dataclass(frozen=True)
class Region:
    """Closed polygon given as (lon, lat) vertices [degrees].

    The ring is closed implicitly; a repeated first vertex is dropped.
    """

    vertices: tuple[tuple[float, float], ...]

    def __post_init__(self) -> None:
        verts = tuple((float(lon), float(lat)) for lon, lat in self.vertices)
        if len(verts) > 1 and verts[0] == verts[-1]:
            verts = verts[:-1]
        if len(verts) < 3:
            raise ValueError(f'Region needs at least 3 vertices, got {len(verts)}')
        lon = np.array([v[0] for v in verts]) - verts[0][0]
        lat = np.array([v[1] for v in verts]) - verts[0][1]
        if abs(np.sum(lon * np.roll(lat, -1) - np.roll(lon, -1) * lat)) < 1e-12:
            raise ValueError('Region has zero area (collinear vertices)')
        object.__setattr__(self, 'vertices', verts)

    @classmethod
    def from_bounds(cls, lat_min: float, lat_max: float,
                    lon_min: float, lon_max: float) -> Region:
        return cls(((lon_min, lat_min), (lon_max, lat_min),
                    (lon_max, lat_max), (lon_min, lat_max)))

    @classmethod
    def from_coords(cls, coords: Sequence[Sequence[float]]) -> Region:
        """Build from a GeoJSON-style [[lon, lat], ...] ring."""
        return cls(tuple((c[0], c[1]) for c in coords))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(lat_min, lat_max, lon_min, lon_max)."""
        lons = [v[0] for v in self.vertices]
        lats = [v[1] for v in self.vertices]
        return min(lats), max(lats), min(lons), max(lons)

    def _path(self) -> Path:
        return Path(np.array(self.vertices + (self.vertices[0],)), closed=True)

    def contains(self, lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
        """Point-in-polygon test for arrays of coordinates."""
        lon = np.asarray(lon, dtype=np.float64)
        lat = np.asarray(lat, dtype=np.float64)
        pts = np.column_stack([lon.ravel(), lat.ravel()])
        return self._path().contains_points(pts).reshape(lon.shape)

    def mask(self, grid: GridSpec) -> np.ndarray:
        """Boolean (nrows, ncols) array, True where the cell centre lies inside."""
        lon2d, lat2d = np.meshgrid(grid.lon_axis, grid.lat_axis)
        return self.contains(lon2d, lat2d)

    def area_m2(self) -> float:
        """Polygon area on the sphere [m²].

        Lat/lon rectangles agree exactly with the per-cell areas of
        stats.cell_areas_m2().
        """
        return ring_area_m2([v[0] for v in self.vertices],
                            [v[1] for v in self.vertices])

    def intersection_area_m2(self, lat_min: float, lat_max: float,
                             lon_min: float, lon_max: float) -> float:
        """Area of the part of the polygon inside a lat/lon box [m²]."""
        box = Bbox([[lon_min, lat_min], [lon_max, lat_max]])
        clipped = self._path().clip_to_bbox(box)
        if len(clipped.vertices) == 0:
            return 0.0
        starts = np.flatnonzero(clipped.codes == Path.MOVETO)
        return sum(ring_area_m2(ring[:, 0], ring[:, 1])
                   for ring in np.split(clipped.vertices, starts[1:]))

    def analysis_grid(self, res: float = GRID_RES) -> GridSpec:
        """Grid covering the region bounds, snapped to multiples of res.

        Snapping keeps grids built for the same resolution aligned with
        each other, so rasters computed per region can be overlaid.
        """
        lat_min, lat_max, lon_min, lon_max = self.bounds
        lat_min = np.floor(lat_min / res + 1e-9) * res
        lat_max = np.ceil(lat_max / res - 1e-9) * res
        lon_min = np.floor(lon_min / res + 1e-9) * res
        lon_max = np.ceil(lon_max / res - 1e-9) * res
        return GridSpec.from_bounds(float(lat_min), float(lat_max),
                                    float(lon_min), float(lon_max), res)


def clip(raster: Raster, region: Region) -> Raster:
    """Restrict a raster to the region; cells outside become no-data."""
    return raster.where(region.mask(raster.grid))
