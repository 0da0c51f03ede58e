"""Exception types for the find-help pipeline.

These are raised by the I/O collaborators (geocoding, catalog client,
locations fetch) and converted into typed outcomes at the boundary so the
filter/sort engine only ever receives well-formed inputs.
"""


class FindHelpError(Exception):
    """Base class for find-help errors."""


class ValidationError(FindHelpError):
    """User input failed validation before any network call was made."""


class GeocodeFailure(FindHelpError):
    """The geocoding collaborator could not resolve a postcode."""


class GeocoderNotConfigured(GeocodeFailure):
    """The geocoding provider is missing its server credential."""


class PostcodeNotFound(GeocodeFailure):
    """The geocoding provider returned no result for the postcode."""


class GeolocationDenied(FindHelpError):
    """Device position was denied, unavailable, or timed out.

    ``reason`` is ``"denied"``, ``"unavailable"`` or ``"timeout"``.
    """

    def __init__(self, message: str, reason: str = "denied"):
        super().__init__(message)
        self.reason = reason


class CatalogUnavailable(FindHelpError):
    """The service catalog could not be loaded."""


class LocationsUnavailable(FindHelpError):
    """The upstream locations list could not be fetched."""

    def __init__(self, message: str, status_code: int = 500, details: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.details = details
