"""Risk thresholds, source band names, reference dates, and area defaults."""

from datetime import datetime

# Risk thresholds
HIGH_TEMP = 33      # forecast 2 m air temperature [°C]
HIGH_LITTER = 55    # shrubland litter cover [%]

# Band names in the source catalogs
TEMP_BAND = 'temperature_2m_above_ground'   # GFS 0.25° forecast
LITTER_BAND = 'shrubland_litter'            # NLCD shrubland component
FOREST_BAND = 'percent_tree_cover'          # NLCD tree canopy
FRP_BAND = 'MaxFRP'                         # MODIS MOD14A1 max fire radiative power [MW]

# Land cover is effectively static: use the first slice of the reference year.
LITTER_EPOCH = datetime(2016, 1, 1)
LITTER_WINDOW_DAYS = 365

# Fire history window preceding the query date [days]
FIRE_WINDOW_DAYS = 365

# Analysis grid resolution: 0.01 degrees ≈ 1.1 km N-S.
# Coarse enough for a western-US region, fine enough to resolve GFS (0.25°).
GRID_RES = 0.01  # [degrees]

# Mean Earth radius (IUGG) [m]
EARTH_RADIUS = 6_371_008.8

# Area reduction defaults
AREA_SCALE = 1000           # nominal reduction scale [m]
AREA_MAX_PIXELS = 1e9       # pixel budget per reduction
# area_of() counts cells whose value equals this sentinel unless told otherwise.
# Zero selects "not at risk" cells; pass AT_RISK for the at-risk area.
AREA_SENTINEL = 0
AT_RISK = 1
