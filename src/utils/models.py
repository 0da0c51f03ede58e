"""Core value types shared by the find-help pipeline."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Union

# Column names of the flattened service catalog DataFrame
SERVICE_ID = "Service ID"
SERVICE_NAME = "Service Name"
CATEGORY = "Category"
SUB_CATEGORY = "Sub Category"
DESCRIPTION = "Description"
OPEN_TIMES = "Open Times"
CLIENT_GROUPS = "Client Groups"
ORGANISATION = "Organisation"
ORGANISATION_ID = "Organisation ID"
ORGANISATION_SLUG = "Organisation Slug"
LATITUDE = "Latitude"
LONGITUDE = "Longitude"
POSTCODE = "Postcode"
VERIFIED = "Verified"
LOCATION_ID = "Location ID"
DISTANCE_KM = "Distance (km)"

SERVICE_COLUMNS = [
    SERVICE_ID,
    SERVICE_NAME,
    CATEGORY,
    SUB_CATEGORY,
    DESCRIPTION,
    OPEN_TIMES,
    CLIENT_GROUPS,
    ORGANISATION,
    ORGANISATION_ID,
    ORGANISATION_SLUG,
    LATITUDE,
    LONGITUDE,
    POSTCODE,
    VERIFIED,
    LOCATION_ID,
]

OTHER_CATEGORY = "Other"


class SortOrder(Enum):
    """Result orderings offered on the results page."""

    DISTANCE = "distance"
    ALPHA = "alpha"


class LocationSource(Enum):
    """How a user location was obtained."""

    GEOLOCATION = "geolocation"
    POSTCODE = "postcode"
    NAVIGATION = "navigation"


@dataclass(frozen=True)
class Location:
    """A user-supplied or device-supplied position.

    Once resolved, either ``postcode`` or both ``lat`` and ``lng`` are set.
    """

    lat: Optional[float] = None
    lng: Optional[float] = None
    postcode: Optional[str] = None
    source: LocationSource = LocationSource.POSTCODE
    radius: Optional[float] = None
    label: Optional[str] = None

    def __post_init__(self):
        if not self.postcode and not self.has_coordinates:
            raise ValueError("Location requires a postcode or both lat and lng")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def with_radius(self, radius: Optional[float]) -> "Location":
        return replace(self, radius=radius)

    def display_label(self) -> str:
        if self.label:
            return self.label
        if self.postcode:
            return self.postcode
        return f"{self.lat:.4f}, {self.lng:.4f}"


@dataclass(frozen=True)
class OpenTime:
    """One opening window. Day 1 is Monday, 7 is Sunday."""

    day: int
    start: Union[int, str]
    end: Union[int, str]


@dataclass
class FilterState:
    """Filter and sort selections owned by the presentation layer."""

    selected_category: str = ""
    selected_sub_category: str = ""
    sort_order: SortOrder = SortOrder.DISTANCE
    selected_client_groups: List[str] = field(default_factory=list)
    open_now: bool = False
    radius_km: Optional[float] = None

    def reset(self) -> None:
        """Clear category, subcategory and client-group selections."""
        self.selected_category = ""
        self.selected_sub_category = ""
        self.selected_client_groups = []
        self.open_now = False
