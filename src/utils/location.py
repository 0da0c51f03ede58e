"""Resolve the user's location from a device position or a postcode.

The resolver is the boundary for location I/O: collaborator exceptions are
converted into ``ResolutionOutcome`` values and never propagate to callers.
One resolver is kept per user session (Streamlit ``st.session_state``).
"""

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Tuple

from .errors import GeocodeFailure, GeolocationDenied, ValidationError
from .models import Location, LocationSource
from .validation import normalize_postcode, validate_coordinates, validate_postcode, validate_radius

logger = logging.getLogger(__name__)

DEVICE_TIMEOUT_SECONDS = 10
DEFAULT_RADIUS_KM = 5

PositionProvider = Callable[[], Tuple[float, float]]
GeocodeFn = Callable[[str], Tuple[float, float]]


class LocationErrorCode(Enum):
    VALIDATION = "VALIDATION"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    GEOCODING_FAILED = "GEOCODING_FAILED"


_DENIAL_CODES = {
    "denied": LocationErrorCode.PERMISSION_DENIED,
    "unavailable": LocationErrorCode.POSITION_UNAVAILABLE,
    "timeout": LocationErrorCode.TIMEOUT,
}

# navigator.geolocation PositionError codes
_BROWSER_ERROR_REASONS = {1: "denied", 2: "unavailable", 3: "timeout"}
_REASONS_BY_CODE = {code: reason for reason, code in _DENIAL_CODES.items()}


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of a resolution attempt.

    Exactly one of ``location`` and ``error`` is set unless the outcome is
    ``stale``, in which case the result arrived after a newer submission and
    was discarded.
    """

    location: Optional[Location] = None
    error: Optional[Exception] = None
    error_code: Optional[LocationErrorCode] = None
    message: str = ""
    stale: bool = False
    fallback_to_postcode: bool = False

    @property
    def ok(self) -> bool:
        return self.location is not None and not self.stale


class LocationResolver:
    """Session-scoped location state with last-submission-wins semantics."""

    def __init__(
        self,
        geocode_fn: GeocodeFn,
        device_timeout: float = DEVICE_TIMEOUT_SECONDS,
        default_radius: float = DEFAULT_RADIUS_KM,
    ):
        self._geocode_fn = geocode_fn
        self.device_timeout = device_timeout
        self.default_radius = default_radius
        self._location: Optional[Location] = None
        self._generation = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def location(self) -> Optional[Location]:
        return self._location

    def set_location(self, location: Location) -> None:
        with self._lock:
            self._latest = next(self._generation)
            self._location = location

    def clear(self) -> None:
        with self._lock:
            self._latest = next(self._generation)
            self._location = None

    def update_radius(self, radius: float, allowed: Iterable[float] = ()) -> bool:
        """Change the current location's radius; invalid values leave it unchanged."""
        is_valid, message = validate_radius(radius, allowed)
        if not is_valid:
            logger.warning(f"Ignoring radius {radius!r}: {message}")
            return False
        if self._location is None:
            return False
        self._location = self._location.with_radius(float(radius))
        return True

    def begin_submission(self) -> int:
        """Take a generation token; any earlier token becomes stale."""
        with self._lock:
            self._latest = next(self._generation)
            return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    def complete(self, token: int, outcome: ResolutionOutcome) -> ResolutionOutcome:
        """Apply an outcome for ``token`` unless a newer submission exists."""
        with self._lock:
            if token != self._latest:
                logger.info(f"Discarding stale location result (token {token}, latest {self._latest})")
                return ResolutionOutcome(stale=True, message="Superseded by a newer search")
            if outcome.location is not None:
                self._location = outcome.location
            return outcome

    def resolve_postcode(self, postcode: str, token: Optional[int] = None) -> ResolutionOutcome:
        """Geocode a postcode; empty input never reaches the geocoder."""
        if token is None:
            token = self.begin_submission()

        is_valid, message = validate_postcode(postcode)
        if not is_valid:
            return self.complete(
                token,
                ResolutionOutcome(
                    error=ValidationError(message),
                    error_code=LocationErrorCode.VALIDATION,
                    message=message,
                ),
            )

        cleaned = normalize_postcode(postcode)
        try:
            lat, lng = self._geocode_fn(cleaned)
        except GeocodeFailure as e:
            logger.warning(f"Postcode resolution failed: {e}")
            outcome = ResolutionOutcome(
                error=e,
                error_code=LocationErrorCode.GEOCODING_FAILED,
                message="Sorry, we couldn't find that postcode. Please check it and try again.",
            )
        except Exception as e:
            logger.exception(f"Unexpected error resolving postcode: {e}")
            outcome = ResolutionOutcome(
                error=GeocodeFailure(str(e)),
                error_code=LocationErrorCode.GEOCODING_FAILED,
                message="Something went wrong when trying to find your location.",
            )
        else:
            outcome = ResolutionOutcome(
                location=Location(
                    lat=lat,
                    lng=lng,
                    postcode=cleaned,
                    source=LocationSource.POSTCODE,
                    radius=self.default_radius,
                )
            )
        return self.complete(token, outcome)

    def resolve_device(self, position_provider: PositionProvider, token: Optional[int] = None) -> ResolutionOutcome:
        """Ask the device for a position, bounded by ``device_timeout``.

        Any failure switches the UI to manual postcode entry without an
        error message.
        """
        if token is None:
            token = self.begin_submission()
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(position_provider)
        try:
            lat, lng = future.result(timeout=self.device_timeout)
        except FuturesTimeoutError:
            logger.info(f"Device position timed out after {self.device_timeout}s")
            return self.complete(token, _device_fallback(LocationErrorCode.TIMEOUT, "Location request timed out"))
        except GeolocationDenied as e:
            code = _DENIAL_CODES.get(e.reason, LocationErrorCode.PERMISSION_DENIED)
            logger.info(f"Device position failed ({code.value}): {e}")
            return self.complete(token, _device_fallback(code, str(e)))
        except Exception as e:
            logger.info(f"Device position unavailable: {type(e).__name__}: {e}")
            return self.complete(token, _device_fallback(LocationErrorCode.POSITION_UNAVAILABLE, str(e)))
        finally:
            executor.shutdown(wait=False)

        return self.complete(token, self._coordinates_outcome(lat, lng, LocationSource.GEOLOCATION))

    def resolve_coordinates(self, lat, lng, source: LocationSource = LocationSource.GEOLOCATION) -> ResolutionOutcome:
        """Accept coordinates already obtained by the browser (e.g. from the URL)."""
        token = self.begin_submission()
        return self.complete(token, self._coordinates_outcome(lat, lng, source))

    def resolve_navigation(self, slug: str, locations: Iterable[Mapping]) -> ResolutionOutcome:
        """Use a public location page's centre point as the user location."""
        token = self.begin_submission()
        for loc in locations:
            if loc.get("slug") == slug and loc.get("isPublic", True):
                outcome = self._coordinates_outcome(
                    loc.get("latitude"), loc.get("longitude"), LocationSource.NAVIGATION, label=loc.get("name")
                )
                return self.complete(token, outcome)
        return self.complete(
            token,
            ResolutionOutcome(
                error=ValidationError(f"Unknown location '{slug}'"),
                error_code=LocationErrorCode.VALIDATION,
                message=f"Unknown location '{slug}'",
            ),
        )

    def _coordinates_outcome(self, lat, lng, source: LocationSource, label: Optional[str] = None) -> ResolutionOutcome:
        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            return _device_fallback(LocationErrorCode.POSITION_UNAVAILABLE, "Coordinates must be numeric")
        is_valid, message = validate_coordinates(lat, lng)
        if not is_valid:
            return _device_fallback(LocationErrorCode.POSITION_UNAVAILABLE, message)
        return ResolutionOutcome(
            location=Location(lat=lat, lng=lng, source=source, radius=self.default_radius, label=label)
        )


def _device_fallback(code: LocationErrorCode, message: str) -> ResolutionOutcome:
    return ResolutionOutcome(
        error=GeolocationDenied(message, reason=_REASONS_BY_CODE.get(code, "unavailable")),
        error_code=code,
        message=message,
        fallback_to_postcode=True,
    )


def geolocation_js(timeout_seconds: float = DEVICE_TIMEOUT_SECONDS) -> str:
    """Browser expression resolving to ``{coords}`` or ``{error}``, never rejecting."""
    timeout_ms = int(timeout_seconds * 1000)
    return (
        "new Promise((resolve) => {"
        " if (!navigator.geolocation) {"
        " resolve({error: {code: 2, message: 'Geolocation is not supported'}}); return; }"
        " navigator.geolocation.getCurrentPosition("
        " (p) => resolve({coords: {latitude: p.coords.latitude, longitude: p.coords.longitude}}),"
        " (e) => resolve({error: {code: e.code, message: e.message}}),"
        f" {{timeout: {timeout_ms}, maximumAge: 60000}});"
        " })"
    )


def position_from_browser(payload: Optional[Mapping]) -> Tuple[float, float]:
    """Read ``(lat, lng)`` from a ``geolocation_js`` result.

    Raises:
        GeolocationDenied: the browser reported an error or sent no coordinates
    """
    if not isinstance(payload, Mapping):
        raise GeolocationDenied("No position received from the browser", reason="unavailable")
    error = payload.get("error")
    if error:
        code = error.get("code") if isinstance(error, Mapping) else None
        message = error.get("message") if isinstance(error, Mapping) else str(error)
        raise GeolocationDenied(message or "Location request failed", reason=_BROWSER_ERROR_REASONS.get(code, "unavailable"))
    coords = payload.get("coords") or {}
    lat, lng = coords.get("latitude"), coords.get("longitude")
    if lat is None or lng is None:
        raise GeolocationDenied("Browser position had no coordinates", reason="unavailable")
    return float(lat), float(lng)


def browser_position_provider(payload: Optional[Mapping]) -> PositionProvider:
    """Wrap a browser geolocation result for ``LocationResolver.resolve_device``."""
    return lambda: position_from_browser(payload)
