"""High-risk classification: thresholds, intersection semantics, and missing data."""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from firerisk import (
    Raster, Region, MissingSliceError, NoDataForDateError, SliceCatalog,
    classify_high_risk, threshold_litter, threshold_temperature, forest_cover,
)
from conftest import (
    SOURCE_GRID, TEST_RES, QUERY_DATE,
    constant, catalog, land_cover_catalog, forecast_catalog,
)
from firerisk.constants import LITTER_BAND


def test_hot_and_littered_is_all_true(region, litter_catalog, hot_forecast):
    risk = classify_high_risk(QUERY_DATE, region, litter_catalog, hot_forecast,
                              grid_res=TEST_RES)
    assert risk.is_mask
    assert risk.grid.shape == (6, 6)
    assert risk.valid.all()
    assert risk.values.all()


def test_cool_forecast_has_no_risk(region, litter_catalog, cool_forecast):
    risk = classify_high_risk(QUERY_DATE, region, litter_catalog, cool_forecast,
                              grid_res=TEST_RES)
    assert not risk.true_cells().any()


def test_risk_is_subset_of_litter(region):
    rng = np.random.default_rng(7)
    litter = Raster.from_array(rng.uniform(0, 100, SOURCE_GRID.shape), SOURCE_GRID)
    temp = Raster.from_array(rng.uniform(20, 45, SOURCE_GRID.shape), SOURCE_GRID)
    land_cover = land_cover_catalog(litter)
    forecast = forecast_catalog(temp)

    risk = classify_high_risk(QUERY_DATE, region, land_cover, forecast, grid_res=TEST_RES)
    litter_mask = threshold_litter(land_cover, region, risk.grid)

    assert risk.true_cells().any()
    assert not (risk.true_cells() & ~litter_mask.true_cells()).any()


def test_classification_is_idempotent(region, litter_catalog, hot_forecast):
    a = classify_high_risk(QUERY_DATE, region, litter_catalog, hot_forecast, grid_res=TEST_RES)
    b = classify_high_risk(QUERY_DATE, region, litter_catalog, hot_forecast, grid_res=TEST_RES)
    assert a.equals(b)


def test_low_litter_cells_are_no_data_not_false(region, hot_forecast):
    values = np.full(SOURCE_GRID.shape, 60.0, dtype=np.float32)
    values[:, 5:] = 10.0   # east half below HIGH_LITTER
    land_cover = land_cover_catalog(Raster.from_array(values, SOURCE_GRID))

    risk = classify_high_risk(QUERY_DATE, region, land_cover, hot_forecast, grid_res=TEST_RES)

    # analysis columns 0..2 cover lon -119.8..-119.5 (source cols 2..4)
    assert risk.valid[:, :3].all() and risk.values[:, :3].all()
    assert not risk.valid[:, 3:].any()


def test_missing_forecast_raises(region, litter_catalog, hot_forecast):
    with pytest.raises(NoDataForDateError) as info:
        classify_high_risk(QUERY_DATE + timedelta(days=3), region,
                           litter_catalog, hot_forecast, grid_res=TEST_RES)
    assert info.value.date == QUERY_DATE + timedelta(days=3)
    assert isinstance(info.value, LookupError)


def test_missing_land_cover_raises(region, hot_forecast):
    with pytest.raises(MissingSliceError):
        classify_high_risk(QUERY_DATE, region, SliceCatalog(), hot_forecast, grid_res=TEST_RES)


def test_region_outside_footprint_is_empty(outside_region, litter_catalog, hot_forecast):
    risk = classify_high_risk(QUERY_DATE, outside_region, litter_catalog, hot_forecast,
                              grid_res=TEST_RES)
    assert risk.is_empty
    assert not risk.values.any()


def test_temperature_takes_daily_maximum(region):
    forecast = forecast_catalog(constant(30.0), constant(35.0))
    hot = threshold_temperature(forecast, QUERY_DATE, region, grid_res=TEST_RES)
    assert hot.values.all()


def test_temperature_ignores_other_days(region):
    forecast = SliceCatalog.merge(
        forecast_catalog(constant(30.0)),
        forecast_catalog(constant(50.0), when=QUERY_DATE + timedelta(days=1)),
    )
    hot = threshold_temperature(forecast, QUERY_DATE, region, grid_res=TEST_RES)
    assert hot.valid.all()
    assert not hot.values.any()


def test_threshold_is_strict(region):
    forecast = forecast_catalog(constant(33.0))
    hot = threshold_temperature(forecast, QUERY_DATE, region, grid_res=TEST_RES)
    assert not hot.values.any()


def test_litter_uses_reference_year(region):
    land_cover = catalog(LITTER_BAND, [
        (datetime(2015, 6, 1), constant(90.0)),
        (datetime(2016, 1, 1), constant(10.0)),
        (datetime(2019, 1, 1), constant(90.0)),
    ])
    litter = threshold_litter(land_cover, region, grid_res=TEST_RES)
    assert litter.valid.all()
    assert not litter.values.any()


def test_custom_thresholds(region, litter_catalog, cool_forecast):
    risk = classify_high_risk(QUERY_DATE, region, litter_catalog, cool_forecast,
                              high_temp=15.0, grid_res=TEST_RES)
    assert risk.values.all()


def test_forest_cover_is_clipped_to_region(litter_catalog):
    triangle = Region(((-119.8, 39.2), (-119.2, 39.2), (-119.8, 39.8)))
    forest = forest_cover(litter_catalog, triangle, grid_res=TEST_RES)
    assert forest.valid.any()
    assert not forest.valid.all()
    assert np.allclose(forest.values[forest.valid], 35.0)


def test_aware_query_date_matches_utc_forecast_day(region, litter_catalog, hot_forecast):
    evening_before = datetime(2020, 8, 14, 20, 0, tzinfo=timezone(timedelta(hours=-7)))
    risk = classify_high_risk(evening_before, region, litter_catalog, hot_forecast,
                              grid_res=TEST_RES)
    assert risk.values.all()
