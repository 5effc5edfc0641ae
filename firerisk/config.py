"""Run configuration: region, data locations, thresholds, and area settings from YAML."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml

from firerisk.constants import (
    HIGH_TEMP, HIGH_LITTER, GRID_RES, AREA_SCALE, AREA_MAX_PIXELS,
)
from firerisk.region import Region

TOP_LEVEL_KEYS = {'region', 'data', 'thresholds', 'grid_res', 'area', 'output_dir'}


@dataclass(frozen=True)
class RiskConfig:
    """Everything a risk-map run needs besides the query date."""

    region: Region
    land_cover_dir: str | None = None
    forecast_dir: str | None = None
    fire_glob: str | None = None
    high_temp: float = HIGH_TEMP
    high_litter: float = HIGH_LITTER
    grid_res: float = GRID_RES
    area_scale: float = AREA_SCALE
    area_max_pixels: float = AREA_MAX_PIXELS
    area_best_effort: bool = True
    output_dir: str = 'plots/risk'


def config_from_dict(cfg: dict[str, Any]) -> RiskConfig:
    """Build a RiskConfig from a parsed YAML mapping.

    Missing sections fall back to the defaults in firerisk.constants.
    """
    unknown = set(cfg) - TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f'unknown config keys: {", ".join(sorted(unknown))}')
    if 'region' not in cfg:
        raise ValueError('config needs a region: [[lon, lat], ...]')

    data = cfg.get('data') or {}
    thresholds = cfg.get('thresholds') or {}
    area = cfg.get('area') or {}
    return RiskConfig(
        region=Region.from_coords(cfg['region']),
        land_cover_dir=data.get('land_cover'),
        forecast_dir=data.get('forecast'),
        fire_glob=data.get('fire'),
        high_temp=float(thresholds.get('high_temp', HIGH_TEMP)),
        high_litter=float(thresholds.get('high_litter', HIGH_LITTER)),
        grid_res=float(cfg.get('grid_res', GRID_RES)),
        area_scale=float(area.get('scale', AREA_SCALE)),
        area_max_pixels=float(area.get('max_pixels', AREA_MAX_PIXELS)),
        area_best_effort=bool(area.get('best_effort', True)),
        output_dir=cfg.get('output_dir', 'plots/risk'),
    )


def load_config(path: str) -> RiskConfig:
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    return config_from_dict(cfg)
