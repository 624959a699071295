"""
Nominal ground resolution of each elevation tile zoom level.

Display only: the values label maps and progress messages, nothing downstream
computes with them.
"""
import numbers
from types import MappingProxyType
from typing import Mapping

from fips_elevation.config import MIN_ZOOM, MAX_ZOOM
from fips_elevation.errors import InvalidInputError

ZOOM_RESOLUTIONS: Mapping[int, str] = MappingProxyType({
    0: "1.5 arc degrees",
    1: "40 arc minutes",
    2: "20 arc minutes",
    3: "10 arc minutes",
    4: "5 arc minutes",
    5: "2.5 arc minutes",
    6: "1 arc minutes",
    7: "30 arc seconds",
    8: "15 arc seconds",
    9: "7.5 arc seconds",
    10: "5 arc seconds",
    11: "3 arc seconds",
    12: "1 arc seconds",
    13: "2/3 arc seconds",
    14: "1/3 arc seconds",
    15: "1/5 arc seconds",
    16: "1/9 arc seconds",
})


def validate_zoom(zoom) -> int:
    """Return zoom as an int, raising InvalidInputError outside [MIN_ZOOM, MAX_ZOOM]."""
    if isinstance(zoom, bool) or not isinstance(zoom, numbers.Integral):
        raise InvalidInputError(f"Zoom must be an integer, got {zoom!r}", parameter="zoom")
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        raise InvalidInputError(
            f"Zoom must be between {MIN_ZOOM} and {MAX_ZOOM}, got {zoom}", parameter="zoom"
        )
    return int(zoom)


def lookup(zoom: int) -> str:
    """
    Look up the nominal resolution label for a zoom level.

    Args:
        zoom: Tile zoom level (0-16)

    Returns:
        Human-readable resolution, e.g. "15 arc seconds" for zoom 8
    """
    return ZOOM_RESOLUTIONS[validate_zoom(zoom)]
