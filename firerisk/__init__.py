"""Fire-risk library — shrubland litter and forecast temperature risk mapping."""

from firerisk.constants import (
    HIGH_TEMP, HIGH_LITTER, TEMP_BAND, LITTER_BAND, FOREST_BAND, FRP_BAND,
    GRID_RES, AREA_SENTINEL, AT_RISK,
)
from firerisk.raster import DateRange, GridSpec, Raster, resample_nearest, max_reduce
from firerisk.region import Region, clip
from firerisk.catalog import (
    RasterSlice, SliceCatalog, MissingSliceError, NoDataForDateError,
)
from firerisk.io import (
    read_geotiff, write_geotiff, load_catalog_dir, read_frp_hdf, load_frp_files,
)
from firerisk.risk import (
    threshold_litter, threshold_temperature, classify_high_risk, forest_cover,
)
from firerisk.burned import burned_area_mask
from firerisk.stats import (
    area_of, cell_areas_m2, risk_area_timeline, detect_risk_zones,
    format_area, PixelBudgetError,
)
from firerisk.display import (
    Layer, high_risk_layer, burned_layer, forest_layer, render_layers,
)
from firerisk.config import RiskConfig, load_config
