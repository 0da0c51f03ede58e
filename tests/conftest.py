"""Pytest configuration helpers.

Ensure the project root is on sys.path so tests can import the `src` package
when pytest is invoked from the repository root or an isolated test runner.
"""

import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Insert the repository root (parent of the tests directory) at the front
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def snapshot_path():
    """Bundled service-providers snapshot shipped with the app."""
    return Path(__file__).resolve().parents[1] / "data" / "service-providers.json"


@pytest.fixture
def services_df():
    """A small flattened catalog around Lincoln.

    Rows are deliberately out of distance order, and one organisation has no
    coordinates at all.
    """
    from src.data.ingestion import services_to_dataframe

    records = [
        {
            "id": "s1",
            "name": "Evening meal",
            "category": "foodbank",
            "subCategory": "meals",
            "organisationName": "Gamma Kitchen",
            "organisationSlug": "gamma-kitchen",
            "latitude": 53.30,
            "longitude": -0.54,
            "openTimes": [{"day": 1, "start": 1700, "end": 1900}],
            "clientGroups": ["everyone"],
            "verified": True,
        },
        {
            "id": "s2",
            "name": "GP drop-in",
            "category": "health",
            "subCategory": "gp",
            "organisationName": "alpha health",
            "organisationSlug": "alpha-health",
            "latitude": 53.2307,
            "longitude": -0.5406,
            "openTimes": [{"day": 2, "start": 900, "end": 1200}],
            "clientGroups": ["young-people"],
        },
        {
            "id": "s3",
            "name": "Dentist",
            "category": "health",
            "subCategory": "dentist",
            "organisationName": "Beta Clinic",
            "organisationSlug": "beta-clinic",
            "latitude": 53.25,
            "longitude": -0.54,
            "openTimes": [],
            "clientGroups": ["everyone"],
        },
        {
            "id": "s4",
            "name": "Outreach",
            "category": "",
            "subCategory": "",
            "organisationName": "Delta Outreach",
            "organisationSlug": "delta-outreach",
            "latitude": None,
            "longitude": None,
            "openTimes": [],
            "clientGroups": ["rough-sleepers"],
        },
    ]
    return services_to_dataframe(records)


@pytest.fixture
def lincoln():
    """A resolved user location in central Lincoln with no radius cutoff."""
    from src.utils.models import Location, LocationSource

    return Location(lat=53.2307, lng=-0.5406, postcode="LN1 1AA", source=LocationSource.POSTCODE)
