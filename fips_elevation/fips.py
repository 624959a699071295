"""
FIPS code validation, composite GEOID construction and the state-name table.

A GEOID is the concatenation of its parent codes: 2-digit state, 3-digit
county, 6-digit tract. County GEOIDs are 5 digits, tract GEOIDs 11.
"""
import logging
import re
from types import MappingProxyType
from typing import Mapping, Optional

from fips_elevation.config import VALID_LEVELS
from fips_elevation.errors import InvalidInputError, NotFoundError

GEOID_WIDTHS: Mapping[str, int] = MappingProxyType({"state": 2, "county": 5, "tract": 11})
COUNTY_CODE_WIDTH = 3
TRACT_CODE_WIDTH = 6

STATE_NAMES: Mapping[str, str] = MappingProxyType({
    "01": "Alabama", "02": "Alaska", "04": "Arizona", "05": "Arkansas",
    "06": "California", "08": "Colorado", "09": "Connecticut", "10": "Delaware",
    "11": "District of Columbia", "12": "Florida", "13": "Georgia", "15": "Hawaii",
    "16": "Idaho", "17": "Illinois", "18": "Indiana", "19": "Iowa",
    "20": "Kansas", "21": "Kentucky", "22": "Louisiana", "23": "Maine",
    "24": "Maryland", "25": "Massachusetts", "26": "Michigan", "27": "Minnesota",
    "28": "Mississippi", "29": "Missouri", "30": "Montana", "31": "Nebraska",
    "32": "Nevada", "33": "New Hampshire", "34": "New Jersey", "35": "New Mexico",
    "36": "New York", "37": "North Carolina", "38": "North Dakota", "39": "Ohio",
    "40": "Oklahoma", "41": "Oregon", "42": "Pennsylvania", "44": "Rhode Island",
    "45": "South Carolina", "46": "South Dakota", "47": "Tennessee", "48": "Texas",
    "49": "Utah", "50": "Vermont", "51": "Virginia", "53": "Washington",
    "54": "West Virginia", "55": "Wisconsin", "56": "Wyoming", "72": "Puerto Rico",
})


def _check_digits(value, width: int, parameter: str) -> str:
    if not isinstance(value, str) or not re.fullmatch(r"\d{%d}" % width, value):
        raise InvalidInputError(
            f"{parameter} must be a {width}-digit FIPS string, got {value!r}", parameter=parameter
        )
    return value


def validate_level(level: str) -> str:
    """Raise InvalidInputError unless level is one of state/county/tract."""
    if level not in VALID_LEVELS:
        raise InvalidInputError(
            f"Level must be one of {', '.join(VALID_LEVELS)}, got {level!r}", parameter="level"
        )
    return level


def validate_geoid(level: str, geoid: str) -> str:
    """Check that geoid has the digit width of its level."""
    validate_level(level)
    return _check_digits(geoid, GEOID_WIDTHS[level], "geoid")


def validate_state_code(state: str) -> str:
    return _check_digits(state, GEOID_WIDTHS["state"], "state")


def validate_county_code(county: str) -> str:
    return _check_digits(county, COUNTY_CODE_WIDTH, "county")


def compose_geoid(state: str, county: str, tract: Optional[str] = None) -> str:
    """
    Build a GEOID from its component codes, always in state, county, tract order.

    Args:
        state: 2-digit state code
        county: 3-digit county code
        tract: Optional 6-digit tract code

    Returns:
        5-digit county GEOID, or 11-digit tract GEOID when tract is given
    """
    geoid = f"{state}{county}"
    if tract is not None:
        geoid += tract
    return geoid


def state_name(state: str) -> str:
    """Look up a state's name from its 2-digit FIPS code."""
    validate_state_code(state)
    try:
        return STATE_NAMES[state]
    except KeyError:
        logging.error(f"State FIPS code {state} is not in the state name table")
        raise NotFoundError(f"Unknown state FIPS code: {state}", parameter="state") from None
