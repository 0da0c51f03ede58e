"""Utilities package for the Street Support Find Help app.

Re-export stable helper functions from the individual utility modules.
"""
# flake8: noqa: F401

from .distance import EARTH_RADIUS_KM, calculate_distances, distance_km
from .errors import (
    CatalogUnavailable,
    FindHelpError,
    GeocodeFailure,
    GeocoderNotConfigured,
    GeolocationDenied,
    LocationsUnavailable,
    PostcodeNotFound,
    ValidationError,
)
from .geocoding import PostcodeGeocoder, geocode_postcode_with_cache, handle_geocoding_error
from .location import LocationResolver, ResolutionOutcome
from .models import FilterState, Location, LocationSource, OpenTime, SortOrder
from .opening_times import get_opening_status, is_open_now
from .validation import normalize_postcode, validate_coordinates, validate_postcode

__all__ = [
    "EARTH_RADIUS_KM",
    "calculate_distances",
    "distance_km",
    "CatalogUnavailable",
    "FindHelpError",
    "GeocodeFailure",
    "GeocoderNotConfigured",
    "GeolocationDenied",
    "LocationsUnavailable",
    "PostcodeNotFound",
    "ValidationError",
    "PostcodeGeocoder",
    "geocode_postcode_with_cache",
    "handle_geocoding_error",
    "LocationResolver",
    "ResolutionOutcome",
    "FilterState",
    "Location",
    "LocationSource",
    "OpenTime",
    "SortOrder",
    "get_opening_status",
    "is_open_now",
    "normalize_postcode",
    "validate_coordinates",
    "validate_postcode",
]
