"""Tests for FIPS validation, GEOID composition and zoom labels."""
import pytest

from fips_elevation.errors import InvalidInputError, NotFoundError
from fips_elevation.fips import (
    compose_geoid, state_name, validate_county_code, validate_geoid, validate_level, validate_state_code
)
from fips_elevation.zoom_table import ZOOM_RESOLUTIONS, lookup, validate_zoom


class TestGeoids:

    def test_county_geoid_concatenates_state_and_county(self):
        assert compose_geoid("24", "001") == "24001"

    def test_tract_geoid_concatenates_all_three_codes(self):
        assert compose_geoid("24", "001", "000100") == "24001000100"

    def test_leading_zeros_survive(self):
        assert compose_geoid("01", "001") == "01001"

    @pytest.mark.parametrize("level,geoid", [("state", "24"), ("county", "24001"), ("tract", "24001000100")])
    def test_valid_geoids(self, level, geoid):
        assert validate_geoid(level, geoid) == geoid

    @pytest.mark.parametrize("level,geoid", [
        ("state", "2"), ("county", "2400"), ("tract", "2400100010"), ("county", "24a01"), ("county", 24001),
    ])
    def test_malformed_geoids(self, level, geoid):
        with pytest.raises(InvalidInputError) as excinfo:
            validate_geoid(level, geoid)
        assert excinfo.value.parameter == "geoid"

    def test_unknown_level(self):
        with pytest.raises(InvalidInputError) as excinfo:
            validate_level("block")
        assert excinfo.value.parameter == "level"

    def test_state_and_county_codes(self):
        assert validate_state_code("41") == "41"
        assert validate_county_code("005") == "005"
        with pytest.raises(InvalidInputError):
            validate_county_code("5")


class TestStateNames:

    def test_known_states(self):
        assert state_name("24") == "Maryland"
        assert state_name("41") == "Oregon"
        assert state_name("72") == "Puerto Rico"

    def test_unassigned_code(self):
        # 03 was reserved and never assigned
        with pytest.raises(NotFoundError):
            state_name("03")

    def test_not_found_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            state_name("99")


class TestZoomTable:

    def test_full_range_is_covered(self):
        assert sorted(ZOOM_RESOLUTIONS) == list(range(0, 17))

    def test_endpoints(self):
        assert lookup(0) == "1.5 arc degrees"
        assert lookup(16) == "1/9 arc seconds"

    def test_default_zoom_label(self):
        assert lookup(8) == "15 arc seconds"

    @pytest.mark.parametrize("zoom", [-1, 17, 2.5, "8", True])
    def test_rejects_out_of_range(self, zoom):
        with pytest.raises(InvalidInputError) as excinfo:
            validate_zoom(zoom)
        assert excinfo.value.parameter == "zoom"

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            lookup(20)
