"""Test suite for radius-based service filtering.

Tests verify that the filter keeps services within the distance threshold,
excludes those beyond it, and never drops services without a distance.
"""
import numpy as np
import pandas as pd
import pytest

from src.app_logic import apply_filters, filter_services_by_radius
from src.utils.models import DISTANCE_KM, FilterState, Location


@pytest.fixture
def services_at_various_distances():
    """Services at known distances (km); one has no distance."""
    return pd.DataFrame(
        {
            "Organisation": ["Near", "Mid", "Unknown", "Far"],
            DISTANCE_KM: [0.5, 4.9, np.nan, 12.0],
        }
    )


def test_filter_services_by_radius_5km(services_at_various_distances):
    result = filter_services_by_radius(services_at_various_distances, 5)

    assert list(result["Organisation"]) == ["Near", "Mid", "Unknown"]


def test_filter_keeps_boundary_distance():
    df = pd.DataFrame({"Organisation": ["Edge"], DISTANCE_KM: [5.0]})

    assert len(filter_services_by_radius(df, 5)) == 1


def test_no_radius_keeps_everything(services_at_various_distances):
    result = filter_services_by_radius(services_at_various_distances, None)

    assert len(result) == 4


def test_filter_services_empty_dataframe():
    df = pd.DataFrame(columns=["Organisation", DISTANCE_KM])

    result = filter_services_by_radius(df, 5)

    assert result.empty
    assert list(result.columns) == ["Organisation", DISTANCE_KM]


def test_filter_services_all_beyond_radius():
    df = pd.DataFrame({"Organisation": ["Far Away", "Very Far"], DISTANCE_KM: [100.0, 200.0]})

    assert filter_services_by_radius(df, 10.0).empty


def test_radius_cutoff_through_pipeline():
    """A service ~170 km away is dropped at 5 km; one at the user's point stays."""
    df = pd.DataFrame(
        {
            "Organisation": ["Far", "Here"],
            "Category": ["health", "health"],
            "Latitude": [54.5, 53.23],
            "Longitude": [-1.5, -0.54],
        }
    )
    location = Location(lat=53.23, lng=-0.54, radius=5)

    result = apply_filters(df, location, FilterState())

    assert list(result["Organisation"]) == ["Here"]
    assert result[DISTANCE_KM].iloc[0] == pytest.approx(0.0, abs=1e-6)


def test_explicit_radius_overrides_location_radius(services_df, lincoln):
    location = lincoln.with_radius(1)

    narrow = apply_filters(services_df, location, FilterState())
    wide = apply_filters(services_df, location, FilterState(radius_km=25))

    assert "Gamma Kitchen" not in list(narrow["Organisation"])
    assert "Gamma Kitchen" in list(wide["Organisation"])


def test_services_without_coordinates_survive_radius(services_df, lincoln):
    result = apply_filters(services_df, lincoln.with_radius(1), FilterState())

    assert "Delta Outreach" in list(result["Organisation"])
    assert pd.isna(result.loc[result["Organisation"] == "Delta Outreach", DISTANCE_KM]).all()
