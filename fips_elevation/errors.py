"""
Exception types raised by the elevation pipeline.

Every error carries the name of the offending parameter (when there is one)
so callers can report exactly which input or upstream source failed.
"""
from typing import Optional


class ElevationError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class InvalidInputError(ElevationError, ValueError):
    """Malformed FIPS code, zoom, level or resolution."""


class NotFoundError(ElevationError, LookupError):
    """No geography matches the requested identifier."""


class RetrievalError(ElevationError, RuntimeError):
    """An upstream fetch failed or returned unusable data."""


class NoCoverageError(ElevationError):
    """No valid raster cell falls inside the polygon."""
