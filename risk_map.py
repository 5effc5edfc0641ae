"""risk_map.py - Fire-risk maps from land cover, temperature forecasts, and fire history.

Each sub-command replaces one button of the interactive map:
  risk      High-risk shrubland: litter > 55 % and forecast max temp > 33 °C
  burned    Peak fire radiative power over the 365 days before --date
  forest    Percent tree cover from the reference land-cover year
  area      At-risk area inside the region (no map)
  timeline  At-risk area per day over a date range (CSV)

The query date is an explicit argument; nothing is carried between runs.

Usage:
    python risk_map.py risk --config configs/western_us.yaml --date 2020-08-15
    python risk_map.py burned --config configs/western_us.yaml --date 2019-01-01
    python risk_map.py area --config configs/western_us.yaml --date 2020-08-15
    python risk_map.py timeline --config configs/western_us.yaml \\
        --start 2020-08-01 --end 2020-09-01
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timedelta

import numpy as np

from firerisk import (
    AT_RISK, SliceCatalog, MissingSliceError, PixelBudgetError,
    load_config, load_catalog_dir, load_frp_files, write_geotiff,
    classify_high_risk, burned_area_mask, forest_cover,
    area_of, risk_area_timeline, detect_risk_zones, format_area,
    high_risk_layer, burned_layer, forest_layer, render_layers,
)
from firerisk.config import RiskConfig


def _parse_date(text: str) -> datetime:
    try:
        return datetime.strptime(text, '%Y-%m-%d')
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected YYYY-MM-DD, got {text!r}')


def _load_dir(path: str | None, what: str) -> SliceCatalog:
    if not path:
        raise MissingSliceError(f'no {what} directory configured (data.{what})')
    catalog = load_catalog_dir(path)
    print(f'  {what}: {len(catalog)} slices from {path}')
    return catalog


def _load_fire(pattern: str | None) -> SliceCatalog:
    if not pattern:
        raise MissingSliceError('no fire tiles configured (data.fire)')
    catalog = load_frp_files(pattern)
    print(f'  fire: {len(catalog)} daily slices from {pattern}')
    return catalog


def _outpath(cfg: RiskConfig, kind: str, when: datetime, ext: str = 'png') -> str:
    return os.path.join(cfg.output_dir, f'{kind}-{when:%Y%m%d}.{ext}')


def run_risk(cfg: RiskConfig, when: datetime, color: str, geotiff: bool) -> None:
    land_cover = _load_dir(cfg.land_cover_dir, 'land_cover')
    forecast = _load_dir(cfg.forecast_dir, 'forecast')

    risk = classify_high_risk(when, cfg.region, land_cover, forecast,
                              high_temp=cfg.high_temp,
                              high_litter=cfg.high_litter,
                              grid_res=cfg.grid_res)
    at_risk = risk.true_cells()
    n_risk = int(at_risk.sum())
    area = area_of(risk, cfg.region, match=AT_RISK, scale=cfg.area_scale,
                   max_pixels=cfg.area_max_pixels,
                   best_effort=cfg.area_best_effort)

    notes = [
        f'Date: {when:%Y-%m-%d}',
        f'Evaluated cells: {int(risk.valid.sum()):,}',
        f'At-risk cells: {n_risk:,}',
        f'At-risk area: {format_area(area)}',
    ]
    if n_risk > 0:
        _, n_zones, zone_sizes = detect_risk_zones(at_risk)
        notes.append(f'Risk zones: {n_zones}')
        for zone_id, size in zone_sizes[:3]:
            notes.append(f'  Zone {zone_id}: {size:,} px')

    print()
    for line in notes:
        print(f'  {line}')

    out = render_layers([high_risk_layer(risk, color=color)], cfg.region,
                        _outpath(cfg, 'risk', when),
                        title=f'High Risk Shrubland — {when:%Y-%m-%d}',
                        notes=notes)
    print(f'  Saved {out}')
    if geotiff:
        print(f'  Saved {write_geotiff(_outpath(cfg, "risk", when, "tif"), risk)}')


def run_burned(cfg: RiskConfig, when: datetime, days: int, geotiff: bool) -> None:
    fire = _load_fire(cfg.fire_glob)
    frp = burned_area_mask(fire, when, cfg.region, days=days, grid_res=cfg.grid_res)

    if frp.is_empty:
        print(f'  No fire observations in the {days} days before {when:%Y-%m-%d}')
    else:
        peak = float(np.nanmax(frp.values))
        burned = frp.valid & (frp.values > 0)
        print(f'  Observed cells: {int(frp.valid.sum()):,}')
        print(f'  Cells with fire: {int(burned.sum()):,}, peak FRP {peak:.1f} MW')

    out = render_layers([burned_layer(frp, days=days)], cfg.region,
                        _outpath(cfg, 'burned', when),
                        title=f'Areas burned within {days} days of {when:%Y-%m-%d}')
    print(f'  Saved {out}')
    if geotiff:
        print(f'  Saved {write_geotiff(_outpath(cfg, "burned", when, "tif"), frp)}')


def run_forest(cfg: RiskConfig, when: datetime, color: str, geotiff: bool) -> None:
    land_cover = _load_dir(cfg.land_cover_dir, 'land_cover')
    forest = forest_cover(land_cover, cfg.region, grid_res=cfg.grid_res)
    if not forest.is_empty:
        print(f'  Mean tree cover: {float(np.nanmean(forest.values)):.1f} %')

    out = render_layers([forest_layer(forest, color=color)], cfg.region,
                        _outpath(cfg, 'forest', when), title='Forest Cover')
    print(f'  Saved {out}')
    if geotiff:
        print(f'  Saved {write_geotiff(_outpath(cfg, "forest", when, "tif"), forest)}')


def run_area(cfg: RiskConfig, when: datetime) -> None:
    land_cover = _load_dir(cfg.land_cover_dir, 'land_cover')
    forecast = _load_dir(cfg.forecast_dir, 'forecast')
    risk = classify_high_risk(when, cfg.region, land_cover, forecast,
                              high_temp=cfg.high_temp,
                              high_litter=cfg.high_litter,
                              grid_res=cfg.grid_res)
    area = area_of(risk, cfg.region, match=AT_RISK, scale=cfg.area_scale,
                   max_pixels=cfg.area_max_pixels,
                   best_effort=cfg.area_best_effort)
    region_area = cfg.region.area_m2()
    print(f'\n  At-risk area: {format_area(area)} '
          f'({100.0 * area / region_area:.2f}% of {format_area(region_area)})')


def run_timeline(cfg: RiskConfig, start: datetime, end: datetime) -> None:
    land_cover = _load_dir(cfg.land_cover_dir, 'land_cover')
    forecast = _load_dir(cfg.forecast_dir, 'forecast')
    dates = [start + timedelta(days=i) for i in range((end - start).days)]

    df = risk_area_timeline(dates, cfg.region, land_cover, forecast,
                            grid_res=cfg.grid_res, scale=cfg.area_scale,
                            max_pixels=cfg.area_max_pixels,
                            best_effort=cfg.area_best_effort,
                            high_temp=cfg.high_temp,
                            high_litter=cfg.high_litter)

    print(f'\n  {"Date":<12s} {"Cells":>10s}  {"Area":>14s}')
    print('  ' + '-' * 38)
    for row in df.itertuples(index=False):
        if row.has_data:
            print(f'  {row.date:%Y-%m-%d}   {row.risk_cells:>10,}  '
                  f'{format_area(row.risk_area_m2):>14s}')
        else:
            print(f'  {row.date:%Y-%m-%d}   {"no data":>10s}')

    os.makedirs(cfg.output_dir, exist_ok=True)
    outpath = os.path.join(cfg.output_dir,
                           f'timeline-{start:%Y%m%d}-{end:%Y%m%d}.csv')
    df.to_csv(outpath, index=False)
    print(f'\n  Saved {outpath}')


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description='Fire-risk maps from land cover and temperature forecasts')
    parser.add_argument(
        'command', choices=['risk', 'burned', 'forest', 'area', 'timeline'],
        help='Map or summary to produce')
    parser.add_argument(
        '--config', type=str, required=True,
        help='Path to run config YAML (e.g. configs/western_us.yaml)')
    parser.add_argument(
        '--date', type=_parse_date, default=None,
        help='Query date YYYY-MM-DD (default: today)')
    parser.add_argument(
        '--start', type=_parse_date, default=None,
        help='timeline: first date (default: 365 days before --end)')
    parser.add_argument(
        '--end', type=_parse_date, default=None,
        help='timeline: end date, exclusive (default: today)')
    parser.add_argument(
        '--days', type=int, default=365,
        help='burned: length of the fire-history window [days]')
    parser.add_argument(
        '--color', type=str, default=None,
        help='Highlight color for risk (blue) or forest (green) layers')
    parser.add_argument(
        '--geotiff', action='store_true',
        help='Also write the raster as GeoTIFF next to the PNG')
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ValueError as e:
        print(f'ERROR: {args.config}: {e}', file=sys.stderr)
        return 1
    today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    when = args.date or today

    print('=' * 60)
    print(f'Fire Risk Map: {args.command}')
    print(f'Config: {args.config}')
    lat_min, lat_max, lon_min, lon_max = cfg.region.bounds
    print(f'Region: lat {lat_min:.2f}..{lat_max:.2f}, '
          f'lon {lon_min:.2f}..{lon_max:.2f}, grid {cfg.grid_res}°')
    print('=' * 60)

    try:
        if args.command == 'risk':
            run_risk(cfg, when, args.color or 'blue', args.geotiff)
        elif args.command == 'burned':
            run_burned(cfg, when, args.days, args.geotiff)
        elif args.command == 'forest':
            run_forest(cfg, when, args.color or 'green', args.geotiff)
        elif args.command == 'area':
            run_area(cfg, when)
        else:
            end = args.end or today
            start = args.start or end - timedelta(days=365)
            run_timeline(cfg, start, end)
    except (MissingSliceError, PixelBudgetError) as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
