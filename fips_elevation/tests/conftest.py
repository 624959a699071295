"""Shared fixtures: synthetic rasters and boundary frames in NAD83."""
import matplotlib
matplotlib.use("Agg")

import geopandas as gpd
import numpy as np
import pytest
from rasterio.crs import CRS
from rasterio.transform import from_origin
from shapely.geometry import Point, box

from fips_elevation.elevation_raster import ElevationRaster
from fips_elevation.geography import Geography

# 10 x 10 grid of 0.1 degree cells, north-west corner at (-77.0, 40.0)
ORIGIN_X, ORIGIN_Y, CELL = -77.0, 40.0, 0.1


def pytest_addoption(parser):
    parser.addoption("--run-network", action="store_true", default=False,
                     help="Run tests that download from the Census and elevation services")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-network"):
        return
    skip_network = pytest.mark.skip(reason="needs --run-network")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip_network)


@pytest.fixture
def gradient_raster():
    """Cell (row, col) holds row * 10 + col."""
    data = np.arange(100, dtype="float64").reshape(10, 10)
    return ElevationRaster(data, from_origin(ORIGIN_X, ORIGIN_Y, CELL, CELL), CRS.from_epsg(4269))


@pytest.fixture
def uniform_raster():
    data = np.full((10, 10), 250.0)
    return ElevationRaster(data, from_origin(ORIGIN_X, ORIGIN_Y, CELL, CELL), CRS.from_epsg(4269))


@pytest.fixture
def county_frame():
    """Three counties over the gradient raster; 24005 lies off the raster."""
    return gpd.GeoDataFrame(
        {
            "GEOID": ["24001", "24003", "24005"],
            "NAMELSAD": ["Allegany County", "Anne Arundel County", "Baltimore County"],
            "STATE_NAME": ["Maryland", "Maryland", "Maryland"],
        },
        geometry=[
            box(-77.0, 39.8, -76.7, 40.0),   # rows 0-1, cols 0-2
            box(-76.5, 39.5, -76.3, 39.7),   # rows 3-4, cols 5-6
            box(10.0, 10.0, 11.0, 11.0),
        ],
        crs="EPSG:4269",
    )


@pytest.fixture
def county_points():
    return gpd.GeoDataFrame(
        {"GEOID": ["24001", "24003"], "STATEFP": ["24", "24"], "COUNTYFP": ["001", "003"]},
        geometry=[Point(-76.84, 39.93), Point(-76.44, 39.63)],
        crs="EPSG:4269",
    )


@pytest.fixture
def county_geography():
    return Geography(
        geoid="24001",
        level="county",
        geometry=box(-77.0, 39.8, -76.7, 40.0),
        crs="EPSG:4269",
        names={"NAMELSAD": "Allegany County", "STATE_NAME": "Maryland"},
    )


@pytest.fixture
def state_geography():
    return Geography(
        geoid="24",
        level="state",
        geometry=box(-77.0, 39.0, -76.0, 40.0),
        crs="EPSG:4269",
        names={"NAME": "Maryland"},
    )
