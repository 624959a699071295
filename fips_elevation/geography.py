"""
Geography resolution against the Census cartographic boundary files.

Turns a level plus FIPS identifier into polygon geometry carrying GEOID and
the level's name attributes, always expressed in TARGET_CRS.
"""
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import geopandas as gpd
import requests

from fips_elevation import config
from fips_elevation.config import (
    BATCH_LEVELS, CARTOGRAPHIC_BOUNDARY_URL, TARGET_CRS, TRACT_RESOLUTION, VALID_RESOLUTIONS
)
from fips_elevation.errors import InvalidInputError, NotFoundError, RetrievalError
from fips_elevation.fips import (
    GEOID_WIDTHS, validate_county_code, validate_geoid, validate_level, validate_state_code
)


@dataclass(frozen=True)
class LevelSchema:
    """Attributes a boundary file exposes for one geography level."""
    level: str
    geoid_width: int
    name_fields: Tuple[str, ...]


LEVEL_SCHEMAS: Mapping[str, LevelSchema] = MappingProxyType({
    "state": LevelSchema("state", GEOID_WIDTHS["state"], ("NAME",)),
    "county": LevelSchema("county", GEOID_WIDTHS["county"], ("NAMELSAD", "STATE_NAME")),
    "tract": LevelSchema("tract", GEOID_WIDTHS["tract"], ("NAMELSAD", "NAMELSADCO", "STATE_NAME")),
})


@dataclass
class Geography:
    """A single resolved geography."""
    geoid: str
    level: str
    geometry: object  # shapely Polygon or MultiPolygon
    crs: str = TARGET_CRS
    names: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name fields of the level joined in order, e.g. 'Allegany County, Maryland'."""
        parts = [self.names[f] for f in LEVEL_SCHEMAS[self.level].name_fields if self.names.get(f)]
        return ", ".join(parts) if parts else self.geoid

    def to_frame(self) -> gpd.GeoDataFrame:
        row = {"GEOID": self.geoid, **self.names}
        return gpd.GeoDataFrame([row], geometry=[self.geometry], crs=self.crs)


def validate_resolution(resolution: str) -> str:
    if resolution not in VALID_RESOLUTIONS:
        raise InvalidInputError(
            f"Resolution must be one of {', '.join(VALID_RESOLUTIONS)}, got {resolution!r}",
            parameter="resolution",
        )
    return resolution


def validate_batch_request(level: str, state: str, county: Optional[str] = None) -> None:
    """Check the level/state/county combination of a batch request."""
    validate_level(level)
    if level not in BATCH_LEVELS:
        raise InvalidInputError(
            f"Batch requests need a sub-state level ({', '.join(BATCH_LEVELS)}), got {level!r}",
            parameter="level",
        )
    validate_state_code(state)
    if county is not None:
        if level != "tract":
            raise InvalidInputError("County filter only applies to tract requests", parameter="county")
        validate_county_code(county)


def build_boundary_url(level: str, year: int, resolution: str, state: Optional[str] = None) -> str:
    """
    Build the download URL of a cartographic boundary shapefile.

    States and counties come from one national file per resolution; tracts come
    from a per-state file that is only published at 1:500k.
    """
    base = CARTOGRAPHIC_BOUNDARY_URL.format(year=year)
    if level == "tract":
        if state is None:
            raise InvalidInputError("Tract boundaries require a state code", parameter="state")
        if resolution != TRACT_RESOLUTION:
            logging.warning(
                f"Tract boundaries are only published at {TRACT_RESOLUTION}, ignoring resolution {resolution}"
            )
        return f"{base}/cb_{year}_{state}_tract_{TRACT_RESOLUTION}.zip"
    return f"{base}/cb_{year}_us_{level}_{resolution}.zip"


def download_boundaries(url: str) -> gpd.GeoDataFrame:
    """
    Download a zipped shapefile and load it, reprojected to TARGET_CRS.

    Raises:
        NotFoundError: The file is not published (HTTP 404)
        RetrievalError: The download failed or the file could not be read
    """
    logging.debug(f"Downloading boundaries: {url}")
    try:
        response = requests.get(url, timeout=config.HTTP_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logging.error(f"Error downloading boundaries from {url}: {e}")
        raise RetrievalError(f"Boundary download failed: {e}", parameter="boundaries") from e

    if response.status_code == 404:
        logging.error(f"Boundary file not published: {url}")
        raise NotFoundError(f"No boundary file at {url}", parameter="year")
    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        logging.error(f"Error downloading boundaries from {url}: {e}")
        raise RetrievalError(f"Boundary download failed: {e}", parameter="boundaries") from e

    with tempfile.TemporaryDirectory() as tmp_dir:
        zip_path = Path(tmp_dir) / url.rsplit("/", 1)[-1]
        zip_path.write_bytes(response.content)
        try:
            boundaries = gpd.read_file(zip_path)
        except Exception as e:
            logging.error(f"Error reading boundary file {zip_path.name}: {e}")
            raise RetrievalError(f"Unreadable boundary file: {e}", parameter="boundaries") from e

    if boundaries.empty:
        raise RetrievalError(f"Boundary file {url} contains no features", parameter="boundaries")
    return to_target_crs(boundaries)


def to_target_crs(frame: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Bring a GeoDataFrame into TARGET_CRS."""
    if frame.crs is None:
        logging.warning(f"Boundaries carry no CRS, assuming {TARGET_CRS}")
        return frame.set_crs(TARGET_CRS)
    if frame.crs != TARGET_CRS:
        logging.debug(f"Reprojecting boundaries from {frame.crs} to {TARGET_CRS}")
        return frame.to_crs(TARGET_CRS)
    return frame


def fetch_boundaries(level: str, year: int, resolution: str, state: Optional[str] = None) -> gpd.GeoDataFrame:
    """Fetch all polygons of a level, narrowed to one state when given."""
    boundaries = download_boundaries(build_boundary_url(level, year, resolution, state))
    if state is not None and level != "state":
        boundaries = boundaries[boundaries["GEOID"].str.startswith(state)]
    return boundaries.reset_index(drop=True)


def _row_to_geography(row, level: str, crs) -> Geography:
    schema = LEVEL_SCHEMAS[level]
    names = {f: row[f] for f in schema.name_fields if f in row.index and isinstance(row[f], str)}
    return Geography(geoid=row["GEOID"], level=level, geometry=row.geometry, crs=str(crs), names=names)


def resolve_geography(level: str, geoid: str, year: int = config.DEFAULT_YEAR,
                      resolution: str = config.DEFAULT_RESOLUTION) -> Geography:
    """
    Resolve one geography from its full GEOID.

    Args:
        level: 'state', 'county' or 'tract'
        geoid: FIPS code of the geography (2, 5 or 11 digits)
        year: Boundary vintage
        resolution: Cartographic boundary resolution ('500k', '5m', '20m')

    Returns:
        The matching Geography

    Raises:
        NotFoundError: No polygon has this GEOID
    """
    validate_geoid(level, geoid)
    validate_resolution(resolution)

    state = None if level == "state" else geoid[:2]
    boundaries = fetch_boundaries(level, year, resolution, state)
    match = boundaries[boundaries["GEOID"] == geoid]
    if match.empty:
        logging.error(f"No {level} with GEOID {geoid} in {year} {resolution} boundaries")
        raise NotFoundError(f"No {level} with GEOID {geoid}", parameter="geoid")

    geography = _row_to_geography(match.iloc[0], level, boundaries.crs)
    logging.info(f"Resolved {level} {geoid}: {geography.display_name}")
    return geography


def resolve_geographies(level: str, state: str, county: Optional[str] = None,
                        year: int = config.DEFAULT_YEAR,
                        resolution: str = config.DEFAULT_RESOLUTION) -> gpd.GeoDataFrame:
    """
    Resolve every county or tract of a state.

    Args:
        level: 'county' or 'tract'
        state: 2-digit state code
        county: Optional 3-digit county code narrowing tracts to one county
        year: Boundary vintage
        resolution: Cartographic boundary resolution

    Returns:
        GeoDataFrame with GEOID, the level's name fields and geometry, in TARGET_CRS
    """
    validate_batch_request(level, state, county)
    validate_resolution(resolution)

    boundaries = fetch_boundaries(level, year, resolution, state)
    if county is not None:
        boundaries = boundaries[boundaries["GEOID"].str.startswith(state + county)].reset_index(drop=True)
    if boundaries.empty:
        logging.error(f"No {level} boundaries found for state {state} county {county}")
        raise NotFoundError(f"No {level} geographies in state {state}", parameter="county" if county else "state")

    keep = ["GEOID"] + [f for f in LEVEL_SCHEMAS[level].name_fields if f in boundaries.columns]
    logging.debug(f"Resolved {len(boundaries)} {level} geographies")
    return boundaries[keep + ["geometry"]]
