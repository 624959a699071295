"""Shared helpers for the command line: log file naming, logging setup and output paths."""
from __future__ import annotations

import sys
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

__all__ = [
    "generate_log_filename",
    "setup_logging",
    "default_output_path",
]


def generate_log_filename(level: str, identifier: str, county: Optional[str] = None, prefix: str = "log") -> str:
    """Generate a log filename.

    Args:
        level: Geography level of the request
        identifier: GEOID (single mode) or state code (batch mode)
        county: Optional county filter of a batch request
        prefix: Prefix for the log filename (default 'log')
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    if county:
        return f"{prefix}_{level}_{identifier}{county}_{timestamp}.txt"
    return f"{prefix}_{level}_{identifier}_{timestamp}.txt"


def setup_logging(log_file: Optional[str] = None, quiet: bool = False, level: int = logging.INFO):
    """Configure logging to an optional file and optional stdout."""
    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    handlers = []
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    if not quiet:
        handlers.append(logging.StreamHandler(sys.stdout))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,  # Ensure reconfiguration when called more than once
    )


def default_output_path(level: str, identifier: str, suffix: str, county: Optional[str] = None) -> Path:
    """Output file in the working directory named after the request, e.g. elevation_county_24.csv"""
    name = f"elevation_{level}_{identifier}{county or ''}{suffix}"
    return Path.cwd() / name
