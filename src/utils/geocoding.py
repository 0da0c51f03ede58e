"""Postcode geocoding through geopy, with caching for the Streamlit UI."""
import logging
from typing import Any, Dict, Optional, Tuple

import streamlit as st
from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeopyError
from geopy.geocoders import GoogleV3, Nominatim

from .config import get_api_config
from .errors import GeocodeFailure, GeocoderNotConfigured, PostcodeNotFound

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class PostcodeGeocoder:
    """Resolve a postcode to ``(lat, lng)`` using the configured provider.

    ``google`` needs ``geocoding.google_maps_api_key`` (or ``GOOGLE_MAPS_API_KEY``);
    ``nominatim`` needs no credential and is intended for development.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, geolocator=None):
        self.config = config if config is not None else get_api_config("geocoding")
        self.timeout = self.config.get("request_timeout") or DEFAULT_TIMEOUT_SECONDS
        self._geolocator = geolocator

    @property
    def provider(self) -> str:
        return self.config.get("provider", "google")

    def is_configured(self) -> bool:
        if self._geolocator is not None:
            return True
        if self.provider == "google":
            return bool(self.config.get("google_maps_api_key"))
        return self.provider == "nominatim"

    def _get_geolocator(self):
        """Lazy initialization of the geopy geocoder."""
        if self._geolocator is None:
            if not self.is_configured():
                raise GeocoderNotConfigured("Missing server API key")
            if self.provider == "google":
                self._geolocator = GoogleV3(api_key=self.config["google_maps_api_key"], timeout=self.timeout)
            else:
                self._geolocator = Nominatim(
                    user_agent=self.config.get("nominatim_user_agent", "streetsupport_find_help"),
                    timeout=self.timeout,
                )
        return self._geolocator

    def _query_kwargs(self) -> Dict[str, Any]:
        region = self.config.get("region")
        if not region:
            return {}
        if self.provider == "google":
            return {"region": region}
        return {"country_codes": "gb" if region == "uk" else region}

    def geocode(self, postcode: str) -> Tuple[float, float]:
        """Return ``(lat, lng)`` for a postcode.

        Raises:
            GeocoderNotConfigured: the provider has no credential
            PostcodeNotFound: the provider returned no match
            GeocodeFailure: the provider call failed or timed out
        """
        geolocator = self._get_geolocator()
        try:
            location = geolocator.geocode(postcode, timeout=self.timeout, **self._query_kwargs())
        except GeocoderTimedOut as e:
            logger.warning(f"Geocoding timed out after {self.timeout}s")
            raise GeocodeFailure("Geocoding service timed out") from e
        except GeocoderServiceError as e:
            logger.error(f"Geocoding service error: {type(e).__name__}: {e}")
            raise GeocodeFailure("Geocoding service unavailable") from e
        except GeopyError as e:
            logger.error(f"Geocoding failed: {type(e).__name__}: {e}")
            raise GeocodeFailure("Geocoding failed") from e

        if location is None:
            logger.info("Geocoding returned no result for submitted postcode")
            raise PostcodeNotFound(f"Could not find postcode '{postcode}'")
        return float(location.latitude), float(location.longitude)


@st.cache_data(ttl=60 * 60 * 24, show_spinner=False)
def geocode_postcode_with_cache(postcode: str) -> Tuple[float, float]:
    """Cached geocode for the UI. Failures raise and are therefore not cached."""
    return PostcodeGeocoder().geocode(postcode)


def handle_geocoding_error(postcode: str, error: Exception) -> str:
    """Map a geocoding error to the message shown beside the postcode field."""
    if isinstance(error, GeocoderNotConfigured):
        return "🔌 **Service Unavailable**: Postcode search is not configured. Please try again later."
    if isinstance(error, PostcodeNotFound):
        return f"❌ **Postcode not found**: We couldn't find '{postcode}'. Please check it and try again."
    et = str(error).lower()
    if "timeout" in et or "timed out" in et:
        return "⏱️ **Geocoding Timeout**: The postcode lookup is taking too long. Please try again in a moment."
    if "unavailable" in et or "service" in et:
        return "🔌 **Service Unavailable**: The postcode lookup service is temporarily unavailable."
    return f"❌ **Could not resolve postcode**: Unable to find a location for '{postcode}'."
