"""
Census centers of population, keyed by a GEOID derived from their component codes.

The census tables carry STATEFP, COUNTYFP and (for tracts) TRACTCE columns but
no GEOID; the key is rebuilt here by concatenating the codes in that order.
"""
import io
import logging
import re
from typing import Optional

import geopandas as gpd
import pandas as pd
import requests

from fips_elevation import config
from fips_elevation.config import (
    BATCH_LEVELS, POPCENTER_COUNTY_URL, POPCENTER_CRS, POPCENTER_ENCODING, POPCENTER_TRACT_URL
)
from fips_elevation.errors import InvalidInputError, RetrievalError
from fips_elevation.fips import compose_geoid

POPCENTER_URLS = {"county": POPCENTER_COUNTY_URL, "tract": POPCENTER_TRACT_URL}
CODE_COLUMNS = {"county": ("STATEFP", "COUNTYFP"), "tract": ("STATEFP", "COUNTYFP", "TRACTCE")}
COORDINATE_COLUMNS = ("LONGITUDE", "LATITUDE")


def _clean_column(name: str) -> str:
    # Header may start with a byte-order mark
    return re.sub(r"[^A-Z0-9_]", "", name.upper())


def parse_popcenters(text: str, level: str) -> pd.DataFrame:
    """
    Parse a centers-of-population table.

    Args:
        text: Comma-separated census table
        level: 'county' or 'tract'

    Returns:
        DataFrame with the level's code columns (as zero-padded strings),
        LONGITUDE, LATITUDE and a derived GEOID column
    """
    frame = pd.read_csv(io.StringIO(text), dtype=str)
    frame.columns = [_clean_column(c) for c in frame.columns]

    code_columns = CODE_COLUMNS[level]
    missing = [c for c in code_columns + COORDINATE_COLUMNS if c not in frame.columns]
    if missing:
        raise RetrievalError(f"Population center table lacks columns {missing}", parameter="popcenters")

    for column in code_columns:
        frame[column] = frame[column].str.strip()
    for column in COORDINATE_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce")

    frame["GEOID"] = derive_geoids(frame, level)
    return frame


def derive_geoids(frame: pd.DataFrame, level: str) -> pd.Series:
    """Concatenate state, county and (tract) codes into GEOIDs."""
    if level == "tract":
        geoids = [compose_geoid(s, c, t) for s, c, t in zip(frame["STATEFP"], frame["COUNTYFP"], frame["TRACTCE"])]
    else:
        geoids = [compose_geoid(s, c) for s, c in zip(frame["STATEFP"], frame["COUNTYFP"])]
    return pd.Series(geoids, index=frame.index, dtype=str)


def fetch_popcenters(level: str) -> pd.DataFrame:
    """
    Download and parse the centers-of-population table of a level.

    Raises:
        RetrievalError: Download failed or the table is empty/unparseable
    """
    if level not in BATCH_LEVELS:
        raise InvalidInputError(f"No population centers for level {level!r}", parameter="level")

    url = POPCENTER_URLS[level]
    logging.debug(f"Downloading population centers: {url}")
    try:
        response = requests.get(url, timeout=config.HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logging.error(f"Error downloading population centers from {url}: {e}")
        raise RetrievalError(f"Population center download failed: {e}", parameter="popcenters") from e

    text = response.content.decode(POPCENTER_ENCODING)
    try:
        frame = parse_popcenters(text, level)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logging.error(f"Error parsing population centers from {url}: {e}")
        raise RetrievalError(f"Unparseable population center table: {e}", parameter="popcenters") from e

    if frame.empty:
        raise RetrievalError("Population center table is empty", parameter="popcenters")
    return frame


def load_popcenters(level: str, state: str, county: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Population-center points of one state (optionally one county).

    Args:
        level: 'county' or 'tract'
        state: 2-digit state code
        county: Optional 3-digit county code

    Returns:
        GeoDataFrame of points in POPCENTER_CRS with a GEOID column
    """
    frame = fetch_popcenters(level)
    frame = frame[frame["STATEFP"] == state]
    if county is not None:
        frame = frame[frame["COUNTYFP"] == county]
    frame = frame.reset_index(drop=True)

    points = gpd.GeoDataFrame(
        frame,
        geometry=gpd.points_from_xy(frame["LONGITUDE"], frame["LATITUDE"]),
        crs=POPCENTER_CRS,
    )
    logging.debug(f"Loaded {len(points)} {level} population centers for state {state}")
    return points
