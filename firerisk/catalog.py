"""Time-indexed raster collections and missing-data errors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from firerisk.raster import DateRange, Raster, as_datetime


class MissingSliceError(LookupError):
    """No slice of the requested band falls in the requested time range."""


class NoDataForDateError(MissingSliceError):
    """The forecast collection has nothing for the requested date."""

    def __init__(self, when: date | datetime, band: str):
        self.date = when
        self.band = band
        super().__init__(f'no {band} data for {as_datetime(when):%Y-%m-%d}')


@dataclass(frozen=True)
class RasterSlice:
    """One time-stamped single-band raster from a collection."""

    time: datetime
    band: str
    raster: Raster

    def __post_init__(self) -> None:
        object.__setattr__(self, 'time', as_datetime(self.time))


class SliceCatalog:
    """Read-only, time-indexed collection of raster slices.

    Stands in for a hosted image collection: slices are selected by band,
    half-open date range and (optionally) a spatial footprint.
    """

    def __init__(self, slices: Iterable[RasterSlice] = ()):
        self._slices = tuple(sorted(slices, key=lambda s: s.time))

    def __len__(self) -> int:
        return len(self._slices)

    def __iter__(self):
        return iter(self._slices)

    def __repr__(self) -> str:
        return f'SliceCatalog({len(self._slices)} slices, bands={sorted(self.bands())})'

    def bands(self) -> set[str]:
        return {s.band for s in self._slices}

    def filter(self, band: str, date_range: DateRange,
               bounds: tuple[float, float, float, float] | None = None) -> list[RasterSlice]:
        """Slices of `band` with time in date_range, oldest first.

        Args:
            band: band name, e.g. 'MaxFRP'.
            date_range: half-open [start, end) interval.
            bounds: optional (lat_min, lat_max, lon_min, lon_max); slices
                    whose footprint misses it are dropped.
        """
        return [
            s for s in self._slices
            if s.band == band and date_range.contains(s.time)
            and (bounds is None or s.raster.grid.overlaps(bounds))
        ]

    def first(self, band: str, date_range: DateRange) -> RasterSlice | None:
        """Oldest matching slice, or None."""
        matches = self.filter(band, date_range)
        return matches[0] if matches else None

    @classmethod
    def merge(cls, *catalogs: SliceCatalog) -> SliceCatalog:
        return cls(s for cat in catalogs for s in cat)
