"""Tests for parsing and filtering census centers of population."""
from unittest.mock import MagicMock, patch

import pytest
import requests

from fips_elevation.errors import InvalidInputError, RetrievalError
from fips_elevation.popcenters import fetch_popcenters, load_popcenters, parse_popcenters

COUNTY_TABLE = (
    "\ufeffSTATEFP,COUNTYFP,COUNTYNAME,STNAME,POPULATION,LATITUDE,LONGITUDE\n"
    "24,001,Allegany,Maryland,68106,39.620,-78.700\n"
    "24,003,Anne Arundel,Maryland,588261,39.010,-76.580\n"
    "35,013,Doña Ana,New Mexico,219561,32.320,-106.780\n"
    "01,001,Autauga,Alabama,58805,32.500,-86.500\n"
)

TRACT_TABLE = (
    "STATEFP,COUNTYFP,TRACTCE,POPULATION,LATITUDE,LONGITUDE\n"
    "24,001,000100,3000,39.700,-78.800\n"
    "24,001,000200,2800,39.650,-78.750\n"
    "24,003,701000,4100,39.100,-76.600\n"
)


class TestParse:

    def test_byte_order_mark_is_stripped(self):
        frame = parse_popcenters(COUNTY_TABLE, "county")
        assert "STATEFP" in frame.columns

    def test_codes_keep_leading_zeros(self):
        frame = parse_popcenters(COUNTY_TABLE, "county")
        assert frame["COUNTYFP"].tolist()[0] == "001"
        assert frame["GEOID"].tolist() == ["24001", "24003", "35013", "01001"]

    def test_coordinates_are_numeric(self):
        frame = parse_popcenters(COUNTY_TABLE, "county")
        assert frame["LONGITUDE"].tolist()[0] == pytest.approx(-78.7)

    def test_tract_geoids(self):
        frame = parse_popcenters(TRACT_TABLE, "tract")
        assert frame["GEOID"].tolist() == ["24001000100", "24001000200", "24003701000"]
        assert all(len(g) == 11 for g in frame["GEOID"])

    def test_missing_columns(self):
        with pytest.raises(RetrievalError):
            parse_popcenters("STATEFP,LATITUDE\n24,39.0\n", "county")


class TestFetch:

    def test_latin1_table(self):
        # UTF-8 byte-order mark ahead of a latin-1 body, as the census files ship
        body = b"\xef\xbb\xbf" + COUNTY_TABLE.lstrip("\ufeff").encode("latin-1")
        response = MagicMock(content=body)
        with patch("fips_elevation.popcenters.requests.get", return_value=response):
            frame = fetch_popcenters("county")
        assert "Doña Ana" in frame["COUNTYNAME"].tolist()

    def test_download_failure(self):
        with patch("fips_elevation.popcenters.requests.get",
                   side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(RetrievalError):
                fetch_popcenters("tract")

    def test_state_level_has_no_table(self):
        with pytest.raises(InvalidInputError):
            fetch_popcenters("state")


class TestLoad:

    def test_filters_to_state(self):
        with patch("fips_elevation.popcenters.fetch_popcenters",
                   return_value=parse_popcenters(COUNTY_TABLE, "county")):
            points = load_popcenters("county", "24")
        assert points["GEOID"].tolist() == ["24001", "24003"]
        assert points.crs == "EPSG:4269"
        assert points.geometry.iloc[0].x == pytest.approx(-78.7)
        assert points.geometry.iloc[0].y == pytest.approx(39.62)

    def test_filters_to_county(self):
        with patch("fips_elevation.popcenters.fetch_popcenters",
                   return_value=parse_popcenters(TRACT_TABLE, "tract")):
            points = load_popcenters("tract", "24", "001")
        assert points["GEOID"].tolist() == ["24001000100", "24001000200"]
