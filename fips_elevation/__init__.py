"""
Elevation of US states, counties and census tracts from FIPS codes.
"""
from fips_elevation.errors import (
    ElevationError, InvalidInputError, NoCoverageError, NotFoundError, RetrievalError
)
from fips_elevation.zoom_table import lookup

__version__ = "0.1.0"

# Loaded on first access so the command line can parse arguments before
# importing the GIS stack
_PIPELINE_EXPORTS = ("get_elevation", "get_elevation_batch")


def __getattr__(name):
    if name in _PIPELINE_EXPORTS:
        from fips_elevation import pipeline
        return getattr(pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "get_elevation",
    "get_elevation_batch",
    "lookup",
    "ElevationError",
    "InvalidInputError",
    "NotFoundError",
    "RetrievalError",
    "NoCoverageError",
]
