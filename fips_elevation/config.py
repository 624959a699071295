"""
Configuration constants for FIPS geography elevation processing.
"""
from typing import Optional, Tuple

# === REQUEST DEFAULTS ===
DEFAULT_YEAR = 2022  # Vintage of the cartographic boundary files
DEFAULT_RESOLUTION = "500k"  # Cartographic boundary detail (1:500,000)
DEFAULT_ZOOM = 8  # Elevation tile zoom level

# === ACCEPTED PARAMETER VALUES ===
VALID_LEVELS: Tuple[str, ...] = ("state", "county", "tract")
BATCH_LEVELS: Tuple[str, ...] = ("county", "tract")
VALID_RESOLUTIONS: Tuple[str, ...] = ("500k", "5m", "20m")
MIN_ZOOM = 0
MAX_ZOOM = 16

# === BOUNDARY SERVICE (Census cartographic boundary files) ===
CARTOGRAPHIC_BOUNDARY_URL = "https://www2.census.gov/geo/tiger/GENZ{year}/shp"
# Tract boundaries are only published at 1:500k
TRACT_RESOLUTION = "500k"

# === ELEVATION TILE SERVICE (AWS Terrain Tiles, GeoTIFF flavor) ===
ELEVATION_TILE_URL = "https://s3.amazonaws.com/elevation-tiles-prod/geotiff/{z}/{x}/{y}.tif"
MAX_TILE_ZOOM = 14  # Deepest zoom the GeoTIFF tile pyramid is published at

# === POPULATION CENTERS (2020 Census centers of population) ===
POPCENTER_COUNTY_URL = "https://www2.census.gov/geo/docs/reference/cenpop2020/county/CenPop2020_Mean_CO.txt"
POPCENTER_TRACT_URL = "https://www2.census.gov/geo/docs/reference/cenpop2020/tract/CenPop2020_Mean_TR.txt"
POPCENTER_ENCODING = "latin-1"

# === COORDINATE REFERENCE SYSTEMS ===
TARGET_CRS = "EPSG:4269"  # NAD83 geographic - every layer is brought here before statistics
POPCENTER_CRS = "EPSG:4269"  # Census publishes centers of population on NAD83
TILE_INDEX_CRS = "EPSG:4326"  # lon/lat used to enumerate web-mercator tiles

# === NETWORK ===
# Fetches block until the remote service answers; set seconds to bound them
HTTP_TIMEOUT: Optional[float] = None

# === ZONAL STATISTICS ===
# False: a cell counts when its center is inside the polygon
# True: every cell touched by the polygon counts
ZONAL_ALL_TOUCHED = False

# === BATCH OUTPUT ===
OUTPUT_COLUMNS: Tuple[str, ...] = (
    "GEOID", "NAMELSAD", "NAMELSADCO", "STATE_NAME",
    "elevation_popcenter", "elevation_mean",
)
