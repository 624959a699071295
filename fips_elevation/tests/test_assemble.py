"""Tests for batch record assembly and single-geography surfaces."""
import logging

import numpy as np
import pandas as pd
import pytest

from fips_elevation.assemble import ElevationSurface, assemble, assemble_single, round_elevation


def means(values):
    return pd.Series(values, index=pd.Index(["24001", "24003", "24005"], name="GEOID"),
                     name="elevation_mean", dtype="float64")


class TestRounding:

    def test_nearest_whole_meter(self):
        assert round_elevation(pd.Series([182.6, 182.4])).tolist() == [183, 182]

    def test_halves_round_to_even(self):
        assert round_elevation(pd.Series([0.5, 1.5, 2.5])).tolist() == [0, 2, 2]

    def test_missing_stays_missing(self):
        rounded = round_elevation(pd.Series([np.nan, 10.2]))
        assert rounded.isna().tolist() == [True, False]
        assert str(rounded.dtype) == "Int64"


class TestAssemble:

    def test_records_follow_population_centers(self, county_frame, caplog):
        points = pd.DataFrame({"GEOID": ["24001", "24003", "99999"], "elevation_popcenter": [201.4, 15.6, 3.0]})
        with caplog.at_level(logging.WARNING):
            records = assemble(county_frame, means([182.6, 182.4, np.nan]), points)
        assert records["GEOID"].tolist() == ["24001", "24003"]
        assert records["elevation_mean"].tolist() == [183, 182]
        assert records["elevation_popcenter"].tolist() == [201, 16]
        assert "1 geographies have no population center" in caplog.text

    def test_output_columns(self, county_frame):
        points = pd.DataFrame({"GEOID": ["24001"], "elevation_popcenter": [1.0]})
        records = assemble(county_frame, means([1.0, 2.0, 3.0]), points)
        assert list(records.columns) == ["GEOID", "NAMELSAD", "STATE_NAME", "elevation_popcenter", "elevation_mean"]

    def test_missing_mean_is_kept(self, county_frame):
        points = pd.DataFrame({"GEOID": ["24001", "24005"], "elevation_popcenter": [10.0, np.nan]})
        records = assemble(county_frame, means([5.0, 6.0, np.nan]), points)
        assert records["GEOID"].tolist() == ["24001", "24005"]
        assert records["elevation_mean"].isna().tolist() == [False, True]
        assert records["elevation_popcenter"].isna().tolist() == [False, True]

    def test_geoids_are_unique(self, county_frame):
        points = pd.DataFrame({"GEOID": ["24001", "24003", "24005"], "elevation_popcenter": [1.0, 2.0, 3.0]})
        records = assemble(county_frame, means([1.0, 2.0, 3.0]), points)
        assert records["GEOID"].is_unique


class TestAssembleSingle:

    def test_surface_from_polygon(self, county_geography, gradient_raster):
        surface = assemble_single(county_geography, gradient_raster)
        assert isinstance(surface, ElevationSurface)
        assert surface.elevation_mean == pytest.approx(6.0)
        assert surface.elevation_mean == pytest.approx(surface.elevation_samples["elevation"].mean())
        assert len(surface.elevation_samples) == 6
        assert surface.raster.valid_cell_count == 6
        assert surface.map is None

    def test_polygon_off_raster(self, county_geography, gradient_raster):
        from shapely.geometry import box
        county_geography.geometry = box(10.0, 10.0, 11.0, 11.0)
        surface = assemble_single(county_geography, gradient_raster)
        assert surface.elevation_samples.empty
        assert np.isnan(surface.elevation_mean)
