"""
Elevation of US geographies: single-geography and batch entry points.

Stages run in order and each failure aborts the request:
geography resolution -> raster acquisition -> statistics -> assembly.
"""
import logging
import math
from typing import Optional

import pandas as pd

from fips_elevation import config
from fips_elevation.assemble import ElevationSurface, assemble, assemble_single
from fips_elevation.elevation_raster import acquire
from fips_elevation.errors import NoCoverageError
from fips_elevation.fips import state_name, validate_geoid
from fips_elevation.geography import (
    resolve_geographies, resolve_geography, validate_batch_request, validate_resolution
)
from fips_elevation.popcenters import load_popcenters
from fips_elevation.visualize import build_map
from fips_elevation.zoom_table import lookup, validate_zoom
from fips_elevation.zonal_stats import sample_frame, zonal_means

PLURAL_LEVELS = {"county": "counties", "tract": "tracts"}


def get_elevation(level: str, geoid: str, year: int = config.DEFAULT_YEAR,
                  resolution: str = config.DEFAULT_RESOLUTION,
                  zoom: int = config.DEFAULT_ZOOM) -> ElevationSurface:
    """
    Retrieve elevation data for one US geography.

    Args:
        level: One of 'state', 'county' or 'tract'
        geoid: FIPS code of the geography; 2 digits for state, 5 for county, 11 for tract
        year: Year of the geographic boundaries
        resolution: Cartographic boundary resolution: '500k', '5m' or '20m'
        zoom: Elevation tile zoom level (0-16)

    Returns:
        ElevationSurface with elevation_samples (x, y, elevation), the unrounded
        elevation_mean in meters, the raster cropped to the polygon and the map

    Raises:
        InvalidInputError: A parameter is malformed
        NotFoundError: No geography has this GEOID
        RetrievalError: Boundary or elevation download failed
        NoCoverageError: No elevation cell falls inside the polygon

    Example:
        >>> elev = get_elevation(level="county", geoid="24021", zoom=10)
        >>> print(f"Mean elevation: {elev.elevation_mean} meters")
    """
    validate_geoid(level, geoid)
    validate_resolution(resolution)
    validate_zoom(zoom)

    geography = resolve_geography(level, geoid, year, resolution)
    raster = acquire(geography.geometry, zoom, crs=geography.crs, label=geography.display_name)

    surface = assemble_single(geography, raster)
    if surface.elevation_samples.empty or not math.isfinite(surface.elevation_mean):
        logging.error(f"No elevation cells inside {level} {geoid} at zoom {zoom}")
        raise NoCoverageError(
            f"No elevation data inside {geography.display_name} at zoom {zoom}", parameter="zoom"
        )

    surface.map = build_map(surface, zoom)
    logging.info(f"Mean elevation of {geography.display_name}: {surface.elevation_mean:.1f} m")
    return surface


def get_elevation_batch(level: str, state: str, county: Optional[str] = None,
                        year: int = config.DEFAULT_YEAR,
                        resolution: str = config.DEFAULT_RESOLUTION,
                        zoom: int = config.DEFAULT_ZOOM) -> pd.DataFrame:
    """
    Retrieve elevation data for all sub-state geographies within a state.

    One raster covering the whole state is fetched and shared by every
    sub-geography.

    Args:
        level: 'county' or 'tract'
        state: Two-digit FIPS code for a state
        county: Optional three-digit county code limiting tracts to one county
        year: Year of the geographic boundaries
        resolution: Cartographic boundary resolution: '500k', '5m' or '20m'
        zoom: Elevation tile zoom level (0-16)

    Returns:
        DataFrame with GEOID, the level's name fields, elevation_popcenter and
        elevation_mean (whole meters). Geographies without a population
        center are not included.

    Example:
        >>> get_elevation_batch(level="county", state="24")  # All counties in Maryland
        >>> get_elevation_batch(level="tract", state="24", county="001")  # Tracts in Allegany County
    """
    validate_batch_request(level, state, county)
    validate_resolution(resolution)
    validate_zoom(zoom)

    stname = state_name(state)
    statepoly = resolve_geography("state", state, year, resolution)

    if county is not None:
        logging.info(f"Getting geometries for {PLURAL_LEVELS[level]} in {stname}, in county fips: {county}, at a resolution of {resolution}")
    else:
        logging.info(f"Getting geometries for all {PLURAL_LEVELS[level]} in {stname} at a resolution of {resolution}")
    polies = resolve_geographies(level, state, county, year, resolution)

    logging.info("Getting point data for centers of population")
    popcenters = load_popcenters(level, state, county)

    logging.info(f"Getting raster data for {stname} at a resolution of {lookup(zoom)}")
    stateraster = acquire(statepoly.geometry, zoom, crs=statepoly.crs, label=stname)

    logging.info(f"Getting elevation at each {level} center of population")
    elev_popcenters = pd.DataFrame({
        "GEOID": popcenters["GEOID"].values,
        "elevation_popcenter": sample_frame(stateraster, popcenters),
    })

    logging.info(f"Getting mean elevation for each {level}")
    elevation_mean = zonal_means(stateraster, polies)

    logging.info("Preparing final data")
    outdata = assemble(polies, elevation_mean, elev_popcenters)

    logging.info("Done")
    return outdata
