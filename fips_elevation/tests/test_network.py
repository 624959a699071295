"""
Live checks against the Census boundary, population center and elevation tile services.

Skipped unless pytest is run with --run-network.
"""
import numpy as np
import pytest

from fips_elevation.pipeline import get_elevation, get_elevation_batch

pytestmark = pytest.mark.network


class TestLiveServices:

    def test_maryland_counties(self):
        records = get_elevation_batch("county", "24", zoom=6)
        # 23 counties plus Baltimore city
        assert len(records) == 24
        assert records["GEOID"].str.startswith("24").all()
        assert records["elevation_mean"].notna().all()

    def test_allegany_county_tracts(self):
        records = get_elevation_batch("tract", "24", county="001", zoom=7)
        assert len(records) > 0
        assert records["GEOID"].str.startswith("24001").all()
        assert records["GEOID"].str.len().eq(11).all()

    def test_oregon_state_surface(self):
        surface = get_elevation("state", "41", zoom=5)
        assert surface.elevation_mean > 0
        assert np.isfinite(surface.elevation_samples["elevation"]).all()
        assert surface.map is not None
