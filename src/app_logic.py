import logging
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, MutableMapping, Optional, Tuple

import pandas as pd
import streamlit as st

from src.data.ingestion import CatalogApiClient, CatalogResult, DataSource, build_catalog_loader
from src.data.locations import load_locations, public_locations, sort_locations_by_name
from src.utils.config import get_api_config, get_search_config
from src.utils.distance import calculate_distances
from src.utils.geocoding import geocode_postcode_with_cache
from src.utils.location import LocationResolver
from src.utils.models import (
    CATEGORY,
    CLIENT_GROUPS,
    DESCRIPTION,
    DISTANCE_KM,
    LATITUDE,
    LONGITUDE,
    OPEN_TIMES,
    ORGANISATION,
    ORGANISATION_SLUG,
    OTHER_CATEGORY,
    SUB_CATEGORY,
    VERIFIED,
    FilterState,
    Location,
    SortOrder,
)
from src.utils.opening_times import is_open_now

__all__ = [
    "get_location_resolver",
    "get_filter_state",
    "load_navigation_locations",
    "load_service_catalog",
    "filter_services_by_category",
    "filter_services_by_client_group",
    "filter_services_open_now",
    "filter_services_by_radius",
    "add_distances",
    "sort_services",
    "apply_filters",
    "get_unique_categories",
    "get_unique_sub_categories",
    "get_unique_client_groups",
    "ServiceGroup",
    "group_services_by_organisation",
    "group_services_by_category",
    "paginate_groups",
    "sync_results_page",
]

logger = logging.getLogger(__name__)


@st.cache_resource
def get_catalog_client() -> Optional[CatalogApiClient]:
    """Open one catalog API client per server process when API mode is configured."""
    config = get_api_config("catalog")
    if config.get("mode") != DataSource.API.value or not config.get("api_base_url"):
        return None
    return CatalogApiClient(config["api_base_url"], timeout=config.get("request_timeout", 10)).open()


@st.cache_data(ttl=3600, show_spinner=False)
def _load_catalog_cached() -> CatalogResult:
    return build_catalog_loader(get_api_config("catalog"), client=get_catalog_client()).load()


def load_service_catalog() -> CatalogResult:
    """Load the service catalog for the UI.

    Unavailable results are cleared from the cache so the next rerun retries.
    """
    result = _load_catalog_cached()
    if result.unavailable:
        _load_catalog_cached.clear()
    return result


def filter_services_by_category(
    df: pd.DataFrame, selected_category: str = "", selected_sub_category: str = ""
) -> pd.DataFrame:
    """Filter services by category key and, within a category, subcategory key.

    Matching is exact and case-sensitive on keys. A subcategory on its own is
    ignored because subcategory keys are only unique within their category.
    """
    if df is None or df.empty or not selected_category:
        return df

    mask = df[CATEGORY] == selected_category
    if selected_sub_category:
        mask &= df[SUB_CATEGORY] == selected_sub_category
    return df[mask].copy()


def filter_services_by_client_group(df: pd.DataFrame, selected_client_groups: List[str]) -> pd.DataFrame:
    """Keep services that serve ANY of the selected client groups."""
    if df is None or df.empty or not selected_client_groups:
        return df

    selected = set(selected_client_groups)

    def matches_client_group(groups) -> bool:
        if not isinstance(groups, (list, tuple)):
            return False
        return any(g in selected for g in groups)

    mask = df[CLIENT_GROUPS].apply(matches_client_group).astype(bool)
    return df[mask].copy()


def filter_services_open_now(df: pd.DataFrame, now: Optional[datetime] = None) -> pd.DataFrame:
    if df is None or df.empty:
        return df
    now = now or datetime.now()
    mask = df[OPEN_TIMES].apply(lambda slots: is_open_now(slots, now)).astype(bool)
    return df[mask].copy()


def filter_services_by_radius(df: pd.DataFrame, max_radius_km: Optional[float]) -> pd.DataFrame:
    """Drop services further than ``max_radius_km``.

    Services without a distance are kept: no distance is not "too far".
    """
    if df is None or df.empty or max_radius_km is None or DISTANCE_KM not in df.columns:
        return df
    distances = df[DISTANCE_KM]
    return df[distances.isna() | (distances <= float(max_radius_km))].copy()


def add_distances(df: pd.DataFrame, location: Optional[Location]) -> pd.DataFrame:
    """Return a copy of ``df`` with a ``Distance (km)`` column (NaN when unknown)."""
    working = df.copy()
    if location is not None and location.has_coordinates:
        distances = calculate_distances(location.lat, location.lng, working, LATITUDE, LONGITUDE)
    else:
        distances = [None] * len(working)
    working[DISTANCE_KM] = pd.Series(distances, index=working.index, dtype="float64")
    return working


def _collation_key(name) -> Optional[str]:
    """Accent- and case-insensitive sort key; None for a missing name."""
    if not isinstance(name, str) or not name.strip():
        return None
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    # Tie-break on the full casefolded name so "Emile" and "Émile" order consistently
    return f"{base.casefold()}\x00{name.casefold()}"


def _group_name_key(name) -> Tuple[bool, str]:
    key = _collation_key(name)
    return key is None, key or ""


def sort_services(df: pd.DataFrame, sort_order: SortOrder, name_column: str = ORGANISATION) -> pd.DataFrame:
    """Stable sort by distance (unknown distances last) or by organisation name."""
    if df is None or df.empty:
        return df
    if sort_order == SortOrder.ALPHA:
        return df.sort_values(
            by=name_column, key=lambda col: col.map(_collation_key), kind="stable", na_position="last"
        )
    if DISTANCE_KM not in df.columns:
        return df.copy()
    return df.sort_values(by=DISTANCE_KM, kind="stable", na_position="last")


def apply_filters(
    services_df: pd.DataFrame,
    location: Optional[Location],
    filters: FilterState,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    """Run the find-help filter/sort pipeline.

    This orchestrates:
    1. Category and subcategory filter
    2. Client-group and open-now filters (if selected)
    3. Distance from the user location
    4. Distance or alphabetical ordering
    5. Radius cutoff (explicit filter value, else the location's radius)

    Args:
        services_df: Flattened service catalog; never modified
        location: User location, or None if not yet supplied
        filters: Current filter selections
        now: Reference time for the open-now filter

    Returns:
        pd.DataFrame: New frame of matching services with ``Distance (km)``
    """
    if services_df is None or services_df.empty:
        working = pd.DataFrame(columns=list(services_df.columns) if services_df is not None else [])
        working[DISTANCE_KM] = pd.Series(dtype="float64")
        return working

    working = filter_services_by_category(services_df, filters.selected_category, filters.selected_sub_category)
    working = filter_services_by_client_group(working, filters.selected_client_groups)
    if filters.open_now:
        working = filter_services_open_now(working, now)

    working = add_distances(working, location)
    working = sort_services(working, filters.sort_order)

    radius = filters.radius_km
    if radius is None and location is not None:
        radius = location.radius
    working = filter_services_by_radius(working, radius)

    logger.debug(f"Filtered {len(services_df)} services down to {len(working)}")
    return working.copy()


def _unique_values(series: pd.Series) -> List[str]:
    values = set()
    for value in series.dropna():
        if isinstance(value, (list, tuple)):
            values.update(str(v).strip() for v in value if str(v).strip())
        elif str(value).strip():
            values.add(str(value).strip())
    return sorted(values)


def get_unique_categories(services_df: pd.DataFrame) -> List[str]:
    if services_df is None or services_df.empty or CATEGORY not in services_df.columns:
        return []
    return _unique_values(services_df[CATEGORY])


def get_unique_sub_categories(services_df: pd.DataFrame, category: str) -> List[str]:
    if services_df is None or services_df.empty or not category:
        return []
    return _unique_values(services_df.loc[services_df[CATEGORY] == category, SUB_CATEGORY])


def get_unique_client_groups(services_df: pd.DataFrame) -> List[str]:
    if services_df is None or services_df.empty or CLIENT_GROUPS not in services_df.columns:
        return []
    return _unique_values(services_df[CLIENT_GROUPS])


@dataclass
class ServiceGroup:
    """All matching services of one organisation."""

    org_slug: str
    org_name: str
    is_verified: bool
    description: str
    services: pd.DataFrame
    categories: List[str] = field(default_factory=list)
    sub_categories: List[str] = field(default_factory=list)
    distance_km: Optional[float] = None


def _first_present(series: pd.Series) -> str:
    for value in series:
        if isinstance(value, str) and value:
            return value
    return ""


def _ordered_unique(series: pd.Series) -> List[str]:
    seen: List[str] = []
    for value in series:
        if isinstance(value, str) and value and value not in seen:
            seen.append(value)
    return seen


def group_services_by_organisation(ranked_df: pd.DataFrame, sort_order: SortOrder) -> List[ServiceGroup]:
    """Collapse ranked services to one group per organisation slug.

    A group's distance is the minimum known distance of its services. Groups
    are ordered the same way services are: by distance with unknown distances
    last, or alphabetically by organisation name. Both orders are stable.
    """
    if ranked_df is None or ranked_df.empty:
        return []

    groups = []
    for slug, group in ranked_df.groupby(ORGANISATION_SLUG, sort=False, dropna=False):
        distances = group[DISTANCE_KM].dropna() if DISTANCE_KM in group.columns else pd.Series(dtype="float64")
        groups.append(
            ServiceGroup(
                org_slug="" if pd.isna(slug) else str(slug),
                org_name=_first_present(group[ORGANISATION]),
                is_verified=bool(group[VERIFIED].fillna(False).astype(bool).any()),
                description=_first_present(group[DESCRIPTION]),
                services=group.reset_index(drop=True),
                categories=_ordered_unique(group[CATEGORY]),
                sub_categories=_ordered_unique(group[SUB_CATEGORY]),
                distance_km=float(distances.min()) if not distances.empty else None,
            )
        )

    if sort_order == SortOrder.ALPHA:
        return sorted(groups, key=lambda g: _group_name_key(g.org_name))
    return sorted(groups, key=lambda g: (g.distance_km is None, g.distance_km or 0.0))


def group_services_by_category(services_df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """Split services by category key; missing or blank categories go to "Other"."""
    if services_df is None or services_df.empty:
        return {}

    def bucket(value) -> str:
        if isinstance(value, str) and value.strip():
            return value
        return OTHER_CATEGORY

    keys = services_df[CATEGORY].apply(bucket)
    return {key: services_df[keys == key].copy() for key in dict.fromkeys(keys)}


def paginate_groups(groups: List[ServiceGroup], page: int, page_size: int) -> Tuple[List[ServiceGroup], int, int]:
    """Return ``(page_groups, page, total_pages)`` with ``page`` clamped to range."""
    total_pages = max(1, -(-len(groups) // page_size))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * page_size
    return groups[start : start + page_size], page, total_pages


def sync_results_page(filters: FilterState, radius: Optional[float], state: MutableMapping) -> int:
    """Reset ``results_page`` to 1 whenever a filter, the sort order or the radius changes."""
    signature = (
        filters.selected_category,
        filters.selected_sub_category,
        tuple(filters.selected_client_groups),
        filters.open_now,
        filters.sort_order,
        filters.radius_km,
        radius,
    )
    if state.get("results_filter_signature") != signature:
        state["results_filter_signature"] = signature
        state["results_page"] = 1
    return state.get("results_page", 1)


def get_location_resolver() -> LocationResolver:
    """The session's ``LocationResolver``, created on first use."""
    if "location_resolver" not in st.session_state:
        search_config = get_search_config()
        st.session_state["location_resolver"] = LocationResolver(
            geocode_postcode_with_cache,
            device_timeout=search_config["device_timeout_seconds"],
            default_radius=search_config["default_radius_km"],
        )
    return st.session_state["location_resolver"]


def get_filter_state() -> FilterState:
    if "filter_state" not in st.session_state:
        st.session_state["filter_state"] = FilterState()
    return st.session_state["filter_state"]


@st.cache_data(ttl=3600, show_spinner=False)
def load_navigation_locations() -> List[dict]:
    """Public locations for navigation, sorted by name."""
    return sort_locations_by_name(public_locations(load_locations(get_api_config("locations"))))
