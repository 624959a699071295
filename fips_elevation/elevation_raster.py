"""
Elevation raster acquisition from the AWS Terrain Tiles GeoTIFF pyramid.

Tiles covering a geometry are downloaded, merged into one mosaic and
reprojected into TARGET_CRS so the raster lines up with the boundary polygons.
Geometries across the 180th meridian get one grid that extends west of -180.
"""
import logging
import math
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import requests

try:
    import rasterio
    from rasterio.crs import CRS
    from rasterio.errors import RasterioError
    from rasterio.merge import merge
    from rasterio.transform import Affine, array_bounds, from_origin
    from rasterio.warp import Resampling, calculate_default_transform, reproject, transform_bounds
except ImportError as e:
    logging.error(f"Missing required GIS dependencies: {e}")
    raise

from fips_elevation import config
from fips_elevation.config import ELEVATION_TILE_URL, MAX_TILE_ZOOM, TARGET_CRS, TILE_INDEX_CRS
from fips_elevation.errors import InvalidInputError, RetrievalError
from fips_elevation.zoom_table import lookup, validate_zoom

# Web mercator is undefined past these latitudes
MERCATOR_MAX_LAT = 85.0511287798
# Sphere radius of EPSG:3857, in meters
MERCATOR_RADIUS = 6378137.0


@dataclass
class ElevationRaster:
    """
    Elevation grid in meters. Cells without data hold NaN.

    Attributes:
        data: 2D float array, row 0 is the northern edge
        transform: Affine mapping (col, row) to (x, y) in crs
        crs: Coordinate reference system of the grid
    """
    data: np.ndarray
    transform: Affine
    crs: CRS

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(west, south, east, north) in crs units."""
        west, south, east, north = array_bounds(self.data.shape[0], self.data.shape[1], self.transform)
        return west, south, east, north

    @property
    def resolution(self) -> Tuple[float, float]:
        return abs(self.transform.a), abs(self.transform.e)

    @property
    def valid_cell_count(self) -> int:
        return int(np.count_nonzero(np.isfinite(self.data)))

    @property
    def crosses_antimeridian(self) -> bool:
        """True for a geographic grid that extends west of -180 to run across the 180th meridian."""
        return bool(self.crs.is_geographic) and self.bounds[0] < -180.0


# === TILE INDEXING ===

def lonlat_to_tile(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """Return the (x, y) index of the web-mercator tile containing a lon/lat point."""
    lat = max(-MERCATOR_MAX_LAT, min(MERCATOR_MAX_LAT, lat))
    n = 2 ** zoom
    x = int(math.floor((lon + 180.0) / 360.0 * n))
    y = int(math.floor((1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * n))
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)


def tiles_for_bounds(bounds: Tuple[float, float, float, float], zoom: int) -> List[Tuple[int, int]]:
    """
    List the tiles covering a lon/lat bounding box.

    Args:
        bounds: (west, south, east, north) in degrees; west > east means the box
            runs east across the 180th meridian
        zoom: Tile zoom level

    Returns:
        List of (x, y) tile indices, row by row from the north-west corner
    """
    west, south, east, north = bounds
    x_min, y_min = lonlat_to_tile(west, north, zoom)
    x_max, y_max = lonlat_to_tile(east, south, zoom)
    if west > east:
        columns = list(range(x_min, 2 ** zoom)) + [x for x in range(0, x_max + 1) if x < x_min]
    else:
        columns = list(range(x_min, x_max + 1))
    return [(x, y) for y in range(y_min, y_max + 1) for x in columns]


def build_tile_url(zoom: int, x: int, y: int) -> str:
    return ELEVATION_TILE_URL.format(z=zoom, x=x, y=y)


# === DOWNLOAD AND MOSAIC ===

def download_tile(zoom: int, x: int, y: int, out_dir: Path) -> Path:
    """
    Download one elevation tile into out_dir.

    Raises:
        RetrievalError: The request failed or returned an empty body
    """
    url = build_tile_url(zoom, x, y)
    try:
        response = requests.get(url, timeout=config.HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logging.error(f"Error downloading elevation tile {zoom}/{x}/{y}: {e}")
        raise RetrievalError(f"Elevation tile download failed: {e}", parameter="zoom") from e

    if not response.content:
        raise RetrievalError(f"Elevation tile {zoom}/{x}/{y} is empty", parameter="zoom")

    tile_file = out_dir / f"{zoom}_{x}_{y}.tif"
    tile_file.write_bytes(response.content)
    logging.debug(f"  Saved elevation tile: {tile_file.name}")
    return tile_file


def merge_elevation_tiles(tile_files: List[Path]) -> Tuple[np.ndarray, Affine, CRS]:
    """
    Merge elevation tiles into a single float array with NaN for missing cells.

    Args:
        tile_files: Paths to GeoTIFF tiles sharing one CRS

    Returns:
        Tuple of (merged_data, transform, crs)
    """
    if not tile_files:
        raise RetrievalError("No elevation tiles to merge", parameter="zoom")

    sources = []
    try:
        for tile_file in tile_files:
            sources.append(rasterio.open(tile_file))
        merged_data, merged_transform = merge(sources, nodata=np.nan, dtype="float64")
        merged_crs = sources[0].crs
    except RasterioError as e:
        logging.error(f"Error merging elevation tiles: {e}")
        raise RetrievalError(f"Unreadable elevation tiles: {e}", parameter="zoom") from e
    finally:
        for src in sources:
            src.close()

    # Extract first band
    merged_data = merged_data[0]
    logging.debug(f"Merged {len(tile_files)} elevation tiles into {merged_data.shape}")
    return merged_data, merged_transform, merged_crs


def reproject_raster(raster: ElevationRaster, dst_crs: str = TARGET_CRS) -> ElevationRaster:
    """Reproject a raster into dst_crs with bilinear resampling; NaN stays no-data."""
    target = CRS.from_user_input(dst_crs)
    if raster.crs == target:
        return raster

    rows, cols = raster.shape
    dst_transform, dst_width, dst_height = calculate_default_transform(
        raster.crs, target, cols, rows, *raster.bounds
    )
    destination = np.full((dst_height, dst_width), np.nan, dtype="float64")
    reproject(
        source=raster.data,
        destination=destination,
        src_transform=raster.transform,
        src_crs=raster.crs,
        src_nodata=np.nan,
        dst_transform=dst_transform,
        dst_crs=target,
        dst_nodata=np.nan,
        resampling=Resampling.bilinear,
    )
    logging.debug(f"Reprojected raster from {raster.crs} to {target}: {destination.shape}")
    return ElevationRaster(destination, dst_transform, target)


def geometry_bounds_lonlat(geometry, crs: str) -> Tuple[float, float, float, float]:
    """
    Lon/lat bounds of a geometry, in the system used for tile indexing.

    Returns:
        (west, south, east, north). When the geometry's parts sit on both sides
        of the 180th meridian (Alaska and the western Aleutians) the box is
        returned wrapped, with west > east.
    """
    parts = [p for p in getattr(geometry, "geoms", [geometry]) if not p.is_empty]
    same_crs = CRS.from_user_input(crs) == CRS.from_user_input(TILE_INDEX_CRS)
    boxes = [p.bounds if same_crs else transform_bounds(crs, TILE_INDEX_CRS, *p.bounds) for p in parts]

    west = min(b[0] for b in boxes)
    south = min(b[1] for b in boxes)
    east = max(b[2] for b in boxes)
    north = max(b[3] for b in boxes)
    if east - west > 180.0:
        eastern = [b for b in boxes if b[0] >= 0.0]
        western = [b for b in boxes if b[2] <= 0.0]
        if eastern and western and len(eastern) + len(western) == len(boxes):
            return min(b[0] for b in eastern), south, max(b[2] for b in western), north
    return west, south, east, north


def _mercator_to_lonlat(x: float, y: float) -> Tuple[float, float]:
    return math.degrees(x / MERCATOR_RADIUS), math.degrees(math.atan(math.sinh(y / MERCATOR_RADIUS)))


def stitch_antimeridian(eastern: ElevationRaster, western: ElevationRaster,
                        dst_crs: str = TARGET_CRS) -> ElevationRaster:
    """
    Join web-mercator mosaics from both sides of the 180th meridian into one geographic grid.

    Each mosaic is warped on its own so neither warp spans the meridian. The
    eastern-hemisphere part is placed west of -180, so the grid runs without a
    gap, e.g. from about -187 to -130 for Alaska.

    Args:
        eastern: Mosaic of tiles east of Greenwich, ending at 180
        western: Mosaic of tiles west of Greenwich, starting at -180
        dst_crs: Geographic CRS of the result

    Returns:
        ElevationRaster whose west edge lies below -180
    """
    target = CRS.from_user_input(dst_crs)
    if not target.is_geographic:
        raise InvalidInputError(
            f"Rasters across the 180th meridian need a geographic CRS, got {dst_crs}", parameter="crs"
        )

    east_west, east_south = _mercator_to_lonlat(eastern.bounds[0], eastern.bounds[1])
    east_east, east_north = _mercator_to_lonlat(eastern.bounds[2], eastern.bounds[3])
    west_west, west_south = _mercator_to_lonlat(western.bounds[0], western.bounds[1])
    west_east, west_north = _mercator_to_lonlat(western.bounds[2], western.bounds[3])

    north = max(east_north, west_north)
    south = min(east_south, west_south)
    res_x = math.degrees(min(eastern.resolution[0], western.resolution[0]) / MERCATOR_RADIUS)
    res_y = res_x * math.cos(math.radians((north + south) / 2.0))
    rows = max(int(math.ceil((north - south) / res_y)), 1)

    # Eastern cell centers stay at or below 180
    east_cols = max(int(round((east_east - east_west) / res_x)), 1)
    seam = east_west + east_cols * res_x - 360.0
    west_cols = max(int(math.ceil((west_east - seam) / res_x)), 1)

    halves = []
    for source, origin, cols in ((eastern, east_west, east_cols), (western, seam, west_cols)):
        destination = np.full((rows, cols), np.nan, dtype="float64")
        reproject(
            source=source.data,
            destination=destination,
            src_transform=source.transform,
            src_crs=source.crs,
            src_nodata=np.nan,
            dst_transform=from_origin(origin, north, res_x, res_y),
            dst_crs=target,
            dst_nodata=np.nan,
            resampling=Resampling.bilinear,
        )
        halves.append(destination)

    data = np.hstack(halves)
    logging.debug(f"Joined mosaics across the 180th meridian: {east_cols} + {west_cols} columns, {rows} rows")
    return ElevationRaster(data, from_origin(east_west - 360.0, north, res_x, res_y), target)


def fetch_mosaic(tiles: List[Tuple[int, int]], zoom: int, out_dir: Path) -> ElevationRaster:
    """Download tiles into out_dir and merge them into one web-mercator raster."""
    tile_files = [download_tile(zoom, x, y, out_dir) for x, y in tiles]
    data, transform, tile_crs = merge_elevation_tiles(tile_files)
    return ElevationRaster(data, transform, tile_crs)


def acquire(covering_geometry, zoom: int = config.DEFAULT_ZOOM, crs: str = TARGET_CRS,
            label: Optional[str] = None) -> ElevationRaster:
    """
    Fetch an elevation raster covering a geometry.

    Args:
        covering_geometry: shapely geometry (target polygon, or the state polygon in batch mode)
        zoom: Tile zoom level (0-16); higher is finer and larger
        crs: CRS of covering_geometry; the returned raster is reprojected into it
        label: Optional name used in progress messages

    Returns:
        ElevationRaster in crs, covering the geometry's bounding box. For a
        geometry across the 180th meridian the raster extends west of -180.

    Raises:
        RetrievalError: Tiles could not be fetched or hold no elevation values
    """
    validate_zoom(zoom)
    tile_zoom = zoom
    if zoom > MAX_TILE_ZOOM:
        logging.warning(f"Zoom {zoom} is finer than the tile pyramid, requesting zoom {MAX_TILE_ZOOM} tiles")
        tile_zoom = MAX_TILE_ZOOM

    west, south, east, north = geometry_bounds_lonlat(covering_geometry, crs)
    tiles = tiles_for_bounds((west, south, east, north), tile_zoom)
    logging.info(f"Fetching {len(tiles)} elevation tiles at zoom {tile_zoom} ({lookup(zoom)}) for {label or 'geometry'}")

    # Tile columns from 2**(zoom-1) up lie east of Greenwich
    half = 2 ** tile_zoom // 2
    eastern_tiles = [t for t in tiles if t[0] >= half]
    western_tiles = [t for t in tiles if t[0] < half]
    wraps = west > east and bool(eastern_tiles) and bool(western_tiles)

    with tempfile.TemporaryDirectory() as tmp_dir:
        if wraps:
            eastern = fetch_mosaic(eastern_tiles, tile_zoom, Path(tmp_dir))
            western = fetch_mosaic(western_tiles, tile_zoom, Path(tmp_dir))
        else:
            mosaic = fetch_mosaic(tiles, tile_zoom, Path(tmp_dir))

    if wraps:
        logging.info(f"{label or 'Geometry'} crosses the 180th meridian, joining tiles from both sides")
        raster = stitch_antimeridian(eastern, western, crs)
    else:
        # Tiles are web mercator; statistics need the raster in the geometry's CRS
        raster = reproject_raster(mosaic, crs)

    if raster.valid_cell_count == 0:
        logging.error(f"Elevation raster for {label or 'geometry'} holds no valid cells")
        raise RetrievalError("Elevation raster contains no data", parameter="zoom")

    logging.debug(f"Raster shape {raster.shape}, cell size {raster.resolution}, {raster.valid_cell_count} valid cells")
    return raster
