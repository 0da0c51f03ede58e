"""Validation utilities for postcodes, coordinates and search radii.

Small, self-contained helpers used across the application and tests.
"""

import re
from typing import Iterable, Tuple

# Loose UK shape check; used for hints only, never to block a search
_UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]?\s*[0-9][A-Z]{2}$")


def normalize_postcode(postcode: str) -> str:
    """Trim and collapse whitespace, upper-casing the result."""
    return re.sub(r"\s+", " ", (postcode or "").strip()).upper()


def validate_postcode(postcode: str) -> Tuple[bool, str]:
    """
    Validate a free-text postcode before it is sent for geocoding.

    Args:
        postcode: Raw user input

    Returns:
        Tuple of (is_valid, error_message)
    """
    if postcode is None or not str(postcode).strip():
        return False, "Please enter a postcode"
    return True, "Valid postcode"


def looks_like_uk_postcode(postcode: str) -> bool:
    """Return True when the input has the shape of a full UK postcode."""
    return bool(_UK_POSTCODE_RE.match(normalize_postcode(postcode)))


def validate_coordinates(lat: float, lng: float) -> Tuple[bool, str]:
    """
    Validate latitude and longitude coordinates.

    Args:
        lat: Latitude value
        lng: Longitude value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False, "Coordinates must be numeric"
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False, "Coordinates must be numeric"

    if not (-90 <= lat <= 90):
        return False, "Latitude must be between -90 and 90"

    if not (-180 <= lng <= 180):
        return False, "Longitude must be between -180 and 180"

    return True, "Valid coordinates"


def validate_radius(radius_km, allowed: Iterable[float] = ()) -> Tuple[bool, str]:
    """Validate a radius cutoff in kilometres."""
    try:
        value = float(radius_km)
    except (TypeError, ValueError):
        return False, "Radius must be a number"
    if value <= 0:
        return False, "Radius must be greater than zero"
    allowed = list(allowed)
    if allowed and value not in [float(a) for a in allowed]:
        return False, f"Radius must be one of: {', '.join(str(a) for a in allowed)}"
    return True, "Valid radius"
