"""Grid geometry, raster invariants, resampling, and max reduction."""

from datetime import date, datetime, timedelta, timezone

import numpy as np
import pytest

from firerisk import DateRange, GridSpec, Raster, resample_nearest, max_reduce


def test_grid_from_bounds():
    grid = GridSpec.from_bounds(39.0, 40.0, -120.0, -118.0, 0.25)
    assert grid.shape == (4, 8)
    assert grid.lat_min == pytest.approx(39.0)
    assert grid.lon_max == pytest.approx(-118.0)
    assert grid.lat_axis[0] == pytest.approx(39.875)
    assert grid.lon_axis[-1] == pytest.approx(-118.125)


def test_grid_overlaps():
    grid = GridSpec(40.0, -120.0, 0.1, 10, 10)
    assert grid.overlaps((39.5, 41.0, -119.5, -118.0))
    assert not grid.overlaps((41.0, 42.0, -119.5, -118.0))


def test_raster_is_read_only():
    grid = GridSpec(1.0, 0.0, 0.5, 2, 2)
    r = Raster.from_array(np.ones((2, 2)), grid)
    with pytest.raises(ValueError):
        r.values[0, 0] = 5.0


def test_raster_does_not_alias_input():
    grid = GridSpec(1.0, 0.0, 0.5, 2, 2)
    data = np.ones((2, 2), dtype=np.float32)
    r = Raster.from_array(data, grid)
    data[0, 0] = 9.0
    assert r.values[0, 0] == 1.0


def test_raster_shape_must_match_grid():
    with pytest.raises(ValueError):
        Raster.from_array(np.ones((3, 2)), GridSpec(1.0, 0.0, 0.5, 2, 2))


def test_no_data_mask_cells_read_false():
    grid = GridSpec(1.0, 0.0, 0.5, 2, 2)
    r = Raster(np.ones((2, 2), dtype=bool), np.array([[True, False], [True, True]]), grid)
    assert not r.values[0, 1]
    assert r.true_cells().sum() == 3


def test_threshold_keeps_no_data():
    grid = GridSpec(1.0, 0.0, 0.5, 2, 2)
    r = Raster.from_array(np.array([[40.0, np.nan], [10.0, 34.0]]), grid)
    hot = r.threshold(33)
    assert hot.is_mask
    assert hot.valid.tolist() == [[True, False], [True, True]]
    assert hot.values.tolist() == [[True, False], [False, True]]


def test_resample_to_finer_grid():
    src = GridSpec(2.0, 0.0, 1.0, 2, 2)
    r = Raster.from_array(np.array([[1.0, 2.0], [3.0, 4.0]]), src)
    fine = resample_nearest(r, GridSpec(2.0, 0.0, 0.5, 4, 4))
    assert fine.values[0].tolist() == [1.0, 1.0, 2.0, 2.0]
    assert fine.values[3].tolist() == [3.0, 3.0, 4.0, 4.0]


def test_resample_outside_footprint_is_no_data():
    src = GridSpec(2.0, 0.0, 1.0, 2, 2)
    r = Raster.from_array(np.ones((2, 2)), src)
    shifted = resample_nearest(r, GridSpec(3.0, 1.0, 1.0, 2, 2))
    assert shifted.valid.tolist() == [[False, False], [True, False]]


def test_max_reduce_ignores_no_data():
    grid = GridSpec(1.0, 0.0, 0.5, 2, 2)
    a = Raster.from_array(np.array([[1.0, np.nan], [5.0, np.nan]]), grid)
    b = Raster.from_array(np.array([[3.0, 2.0], [np.nan, np.nan]]), grid)
    out = max_reduce([a, b], grid)
    assert out.valid.tolist() == [[True, True], [True, False]]
    assert out.values[0].tolist() == [3.0, 2.0]
    assert out.values[1, 0] == 5.0


def test_max_reduce_of_nothing_is_empty():
    out = max_reduce([], GridSpec(1.0, 0.0, 0.5, 2, 2))
    assert out.is_empty


def test_date_range_is_half_open():
    dr = DateRange(datetime(2020, 1, 1), datetime(2020, 1, 2))
    assert dr.contains(datetime(2020, 1, 1))
    assert dr.contains(datetime(2020, 1, 1, 23, 59))
    assert not dr.contains(datetime(2020, 1, 2))


def test_date_range_helpers():
    day = DateRange.day_of(datetime(2020, 8, 15, 13, 30))
    assert day.start == datetime(2020, 8, 15)
    assert day.end == datetime(2020, 8, 16)

    trailing = DateRange.trailing(date(2020, 8, 15), 365)
    assert trailing.end == datetime(2020, 8, 15)
    assert trailing.start == datetime(2019, 8, 16)   # 2020 is a leap year

    with pytest.raises(ValueError):
        DateRange(datetime(2020, 2, 1), datetime(2020, 1, 1))


def test_aware_datetimes_are_compared_as_utc():
    pacific = timezone(timedelta(hours=-7))
    day = DateRange.day_of(datetime(2020, 8, 14, 20, 0, tzinfo=pacific))
    assert day.start == datetime(2020, 8, 15)
    assert day.contains(datetime(2020, 8, 15, 6, 0))
    assert day.contains(datetime(2020, 8, 15, 1, 0, tzinfo=timezone.utc))
    assert not day.contains(datetime(2020, 8, 15, 20, 0, tzinfo=pacific))
