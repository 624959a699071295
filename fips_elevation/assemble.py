"""
Output assembly for batch records and single-geography elevation surfaces.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import geopandas as gpd
import numpy as np
import pandas as pd

from fips_elevation.config import OUTPUT_COLUMNS
from fips_elevation.elevation_raster import ElevationRaster
from fips_elevation.geography import Geography
from fips_elevation.zonal_stats import align_to_raster, mask_to_polygon, raster_to_samples


def round_elevation(values: pd.Series) -> pd.Series:
    """Round elevations to whole meters, keeping missing values missing."""
    return values.astype("float64").round(0).astype("Int64")


def assemble(geographies: gpd.GeoDataFrame, zonal_means: pd.Series,
             population_points: pd.DataFrame) -> pd.DataFrame:
    """
    Join zonal means and population-center elevations into batch records.

    Population centers decide output membership: a geography without a
    population center is dropped, while a geography whose zonal mean is
    missing is kept with an empty elevation_mean.

    Args:
        geographies: Resolved polygons with GEOID and name fields
        zonal_means: Unrounded means indexed by GEOID
        population_points: GEOID and elevation_popcenter per population center

    Returns:
        DataFrame with the OUTPUT_COLUMNS present for the level, elevations
        rounded to whole meters
    """
    points = population_points[population_points["GEOID"].isin(geographies["GEOID"])]
    dropped = len(population_points) - len(points)
    if dropped:
        logging.debug(f"Ignoring {dropped} population centers outside the requested geographies")

    unmatched = int((~geographies["GEOID"].isin(points["GEOID"])).sum())
    if unmatched:
        logging.warning(f"{unmatched} geographies have no population center and are left out")

    attributes = pd.DataFrame(geographies.drop(columns="geometry"))
    attributes = attributes.merge(
        zonal_means.rename("elevation_mean").rename_axis("GEOID").reset_index(), on="GEOID", how="left"
    )

    records = points[["GEOID", "elevation_popcenter"]].merge(attributes, on="GEOID", how="left")
    records["elevation_popcenter"] = round_elevation(records["elevation_popcenter"])
    records["elevation_mean"] = round_elevation(records["elevation_mean"])

    columns = [c for c in OUTPUT_COLUMNS if c in records.columns]
    return records[columns].reset_index(drop=True)


@dataclass
class ElevationSurface:
    """
    Elevation of a single geography.

    Attributes:
        geography: The resolved geography
        elevation_samples: DataFrame of x, y, elevation at cell centers inside the polygon
        elevation_mean: Unrounded mean of the samples, in meters
        raster: Raster cropped and masked to the polygon
        map: Rendered matplotlib figure, filled in by the pipeline
    """
    geography: Geography
    elevation_samples: pd.DataFrame
    elevation_mean: float
    raster: ElevationRaster
    map: Optional[Any] = None


def assemble_single(geography: Geography, raster: ElevationRaster) -> ElevationSurface:
    """
    Crop a raster to one polygon and summarize it.

    The mean is NaN when no valid cell falls inside the polygon; the caller
    decides whether that is an error.
    """
    polygon = align_to_raster(geography.to_frame(), raster).geometry.iloc[0]
    cropped = mask_to_polygon(raster, polygon)
    samples = raster_to_samples(cropped)
    mean = float(samples["elevation"].mean()) if len(samples) else np.nan
    logging.debug(f"{len(samples)} elevation samples inside {geography.geoid}")
    return ElevationSurface(
        geography=geography,
        elevation_samples=samples,
        elevation_mean=mean,
        raster=cropped,
    )
