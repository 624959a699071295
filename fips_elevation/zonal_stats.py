"""
Zonal and point statistics over an ElevationRaster.

Polygons and points are reprojected into the raster's CRS before any cell is
read; no statistic is ever computed across mismatched reference systems.
Rasters that run across the 180th meridian extend west of -180, and
eastern-hemisphere geometry is shifted by -360 to meet them.
"""
import logging
from typing import Iterable, Optional, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
from rasterio.features import geometry_mask
from rasterio.transform import Affine, xy
from shapely.affinity import translate
from shapely.geometry import mapping

from fips_elevation import config
from fips_elevation.elevation_raster import ElevationRaster
from fips_elevation.errors import InvalidInputError

Window = Tuple[slice, slice]


def wrap_geometry(geometry, raster: ElevationRaster):
    """
    Move eastern-hemisphere parts of a geometry west of -180 when the raster
    runs across the 180th meridian; other geometries are returned unchanged.
    """
    if not raster.crosses_antimeridian or geometry is None or geometry.is_empty:
        return geometry
    parts = getattr(geometry, "geoms", None)
    if parts is None:
        return translate(geometry, xoff=-360.0) if geometry.bounds[0] >= 0.0 else geometry
    return type(geometry)([translate(p, xoff=-360.0) if p.bounds[0] >= 0.0 else p for p in parts])


def align_to_raster(frame: gpd.GeoDataFrame, raster: ElevationRaster) -> gpd.GeoDataFrame:
    """Reproject a GeoDataFrame into the raster's CRS and longitude range."""
    if frame.crs is None:
        raise InvalidInputError(
            "Geometries must carry a CRS before they can be aligned to a raster", parameter="geometry"
        )
    if frame.crs != raster.crs:
        logging.debug(f"Reprojecting {len(frame)} geometries from {frame.crs} to {raster.crs}")
        frame = frame.to_crs(raster.crs)
    if raster.crosses_antimeridian:
        frame = frame.copy()
        frame[frame.geometry.name] = gpd.GeoSeries(
            [wrap_geometry(g, raster) for g in frame.geometry], index=frame.index, crs=frame.crs
        )
    return frame


def window_for_bounds(raster: ElevationRaster, bounds: Tuple[float, float, float, float]) -> Optional[Window]:
    """
    Row/column slices of the raster cells overlapping a bounding box.

    Returns:
        (row_slice, col_slice), or None when the box misses the raster
    """
    west, south, east, north = bounds
    inverse = ~raster.transform
    col_a, row_a = inverse @ (west, north)
    col_b, row_b = inverse @ (east, south)
    rows, cols = raster.shape

    row_start = max(int(np.floor(min(row_a, row_b))), 0)
    row_stop = min(int(np.ceil(max(row_a, row_b))), rows)
    col_start = max(int(np.floor(min(col_a, col_b))), 0)
    col_stop = min(int(np.ceil(max(col_a, col_b))), cols)
    if row_start >= row_stop or col_start >= col_stop:
        return None
    return slice(row_start, row_stop), slice(col_start, col_stop)


def polygon_cells(raster: ElevationRaster, geometry, all_touched: bool = False) -> Tuple[np.ndarray, Optional[Window]]:
    """
    Raster values inside a polygon.

    Args:
        raster: Source raster
        geometry: shapely polygon in the raster's CRS
        all_touched: Count every touched cell instead of cell centers only

    Returns:
        Tuple of (values, window) where values is the windowed array with NaN
        outside the polygon; window is None when the polygon misses the raster
    """
    window = window_for_bounds(raster, geometry.bounds)
    if window is None:
        return np.empty((0, 0)), None

    row_slice, col_slice = window
    data = raster.data[row_slice, col_slice]
    window_transform = raster.transform @ Affine.translation(col_slice.start, row_slice.start)
    inside = geometry_mask(
        [mapping(geometry)],
        out_shape=data.shape,
        transform=window_transform,
        all_touched=all_touched,
        invert=True,
    )
    return np.where(inside, data, np.nan), window


def polygon_mean(raster: ElevationRaster, geometry, all_touched: bool = False) -> float:
    """Arithmetic mean of the valid cells inside a polygon; NaN when there are none."""
    values, _ = polygon_cells(raster, geometry, all_touched)
    valid = values[np.isfinite(values)]
    if valid.size == 0:
        return np.nan
    return float(valid.mean())


def zonal_means(raster: ElevationRaster, polygons: gpd.GeoDataFrame,
                all_touched: Optional[bool] = None) -> pd.Series:
    """
    Zonal mean elevation of each polygon.

    Args:
        raster: Elevation raster
        polygons: GeoDataFrame with a GEOID column
        all_touched: Areal-overlap rule; defaults to config.ZONAL_ALL_TOUCHED

    Returns:
        Series named 'elevation_mean', one unrounded value per polygon in input
        order, indexed by the polygons' GEOID. Polygons without valid cells are NaN.
    """
    if all_touched is None:
        all_touched = config.ZONAL_ALL_TOUCHED
    aligned = align_to_raster(polygons, raster)

    means = [polygon_mean(raster, geometry, all_touched) for geometry in aligned.geometry]
    result = pd.Series(means, index=pd.Index(polygons["GEOID"].values, name="GEOID"),
                       name="elevation_mean", dtype="float64")

    missing = int(result.isna().sum())
    if missing:
        logging.warning(f"{missing} of {len(result)} polygons have no raster coverage")
    return result


def sample_points(raster: ElevationRaster, xs: Iterable[float], ys: Iterable[float]) -> np.ndarray:
    """
    Nearest-cell raster values at point locations (no interpolation).

    Args:
        raster: Elevation raster
        xs, ys: Point coordinates in the raster's CRS

    Returns:
        Array of values; NaN for points off the raster or on no-data cells
    """
    xs = np.asarray(list(xs), dtype="float64")
    ys = np.asarray(list(ys), dtype="float64")
    values = np.full(xs.shape, np.nan)
    if xs.size == 0:
        return values

    cols, rows = ~raster.transform @ (xs, ys)
    cols = np.floor(cols)
    rows = np.floor(rows)
    n_rows, n_cols = raster.shape
    on_raster = np.isfinite(cols) & np.isfinite(rows) & (rows >= 0) & (rows < n_rows) & (cols >= 0) & (cols < n_cols)
    values[on_raster] = raster.data[rows[on_raster].astype(int), cols[on_raster].astype(int)]
    return values


def sample_frame(raster: ElevationRaster, points: gpd.GeoDataFrame) -> np.ndarray:
    """Sample the raster at each point of a GeoDataFrame, reprojecting the points first."""
    aligned = align_to_raster(points, raster)
    return sample_points(raster, aligned.geometry.x, aligned.geometry.y)


def mask_to_polygon(raster: ElevationRaster, geometry, all_touched: bool = False) -> ElevationRaster:
    """
    Crop a raster to a polygon with an exact mask.

    Cells outside the polygon become NaN and the grid is trimmed to the
    polygon's bounding window.
    """
    values, window = polygon_cells(raster, geometry, all_touched)
    if window is None:
        return ElevationRaster(np.empty((0, 0)), raster.transform, raster.crs)
    row_slice, col_slice = window
    cropped_transform = raster.transform @ Affine.translation(col_slice.start, row_slice.start)
    return ElevationRaster(values, cropped_transform, raster.crs)


def raster_to_samples(raster: ElevationRaster) -> pd.DataFrame:
    """
    Flatten a raster into (x, y, elevation) rows at cell centers, dropping no-data cells.
    """
    rows, cols = np.nonzero(np.isfinite(raster.data))
    if rows.size == 0:
        return pd.DataFrame({"x": pd.Series(dtype="float64"), "y": pd.Series(dtype="float64"),
                             "elevation": pd.Series(dtype="float64")})
    x_coords, y_coords = xy(raster.transform, rows, cols)
    return pd.DataFrame({
        "x": np.asarray(x_coords, dtype="float64"),
        "y": np.asarray(y_coords, dtype="float64"),
        "elevation": raster.data[rows, cols].astype("float64"),
    })
