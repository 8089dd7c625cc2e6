"""
Location resolver: turns caller input (lat/lon query parameters, a
"lat,lon" string, or a free-text place name) into a Location.

Coordinates are validated here; out-of-range values are a caller error and
never reach a provider chain.
"""

import re
import logging
from typing import Optional, Tuple

from agridash.config import Settings
from agridash.data.schema import COORDINATE_RANGES, Location
from agridash.errors import ValidationError
from agridash.location.geocode import geocode

logger = logging.getLogger(__name__)


def _is_coordinates(location: str) -> bool:
    """Check if the location string looks like lat,lon coordinates."""
    return bool(re.match(
        r"^-?\d+\.?\d*\s*,\s*-?\d+\.?\d*$", location.strip()
    ))


def _check_range(name: str, value: float) -> float:
    lo, hi = COORDINATE_RANGES[name]
    if not (lo <= value <= hi):
        raise ValidationError(f"{name.capitalize()} {value} out of range [{lo:g}, {hi:g}]")
    return value


def parse_coordinates(lat: Optional[str], lon: Optional[str]) -> Tuple[float, float]:
    """
    Parse raw lat/lon query values into validated floats.

    Raises:
        ValidationError: If either value is missing, not a number, or out of range.
    """
    if lat is None or lon is None or str(lat).strip() == "" or str(lon).strip() == "":
        raise ValidationError("Missing lat/lon")
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        raise ValidationError("Invalid lat/lon", detail=f"lat={lat!r}, lon={lon!r}")
    if lat_f != lat_f or lon_f != lon_f:
        raise ValidationError("Invalid lat/lon", detail="NaN is not a coordinate")
    return _check_range("latitude", lat_f), _check_range("longitude", lon_f)


def location_from_params(lat: Optional[str], lon: Optional[str], label: Optional[str] = None) -> Location:
    lat_f, lon_f = parse_coordinates(lat, lon)
    return Location(lat_f, lon_f, label)


def resolve_location(
    query: Optional[str] = None,
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Location:
    """
    Resolve dashboard input to a Location.

    Accepts:
        - explicit lat/lon (preferred when both are given)
        - a 'lat,lon' string in `query`
        - a place name in `query` (resolved by the geocode chain)

    Raises:
        ValidationError: Nothing usable was supplied or coordinates are invalid.
        NotFoundError: The geocode chain found no match for the place name.
        ChainExhaustedError: Both geocoders failed.
    """
    if lat is not None or lon is not None:
        return location_from_params(lat, lon)

    query = (query or "").strip()
    if not query:
        raise ValidationError("Missing lat/lon or q")

    if _is_coordinates(query):
        logger.info("Parsing coordinates: %s", query)
        lat_s, lon_s = query.split(",")
        return location_from_params(lat_s.strip(), lon_s.strip())

    logger.info("Geocoding place name: %s", query)
    return geocode(query, settings=settings).to_location()
