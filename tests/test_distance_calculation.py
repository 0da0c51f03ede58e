"""Test suite for distance calculation using haversine formula.

Tests verify accurate distance calculations (kilometres) between geographic coordinates.
"""
import math

import pandas as pd

from src.utils.distance import EARTH_RADIUS_KM, calculate_distances, distance_km


class TestDistanceKm:
    """Tests for the scalar haversine helper."""

    def test_distance_to_same_location_is_zero(self):
        assert distance_km((53.2307, -0.5406), (53.2307, -0.5406)) == 0

    def test_known_distance_london_to_manchester(self):
        """London to Manchester is roughly 260 km as the crow flies."""
        d = distance_km((51.5074, -0.1278), (53.4808, -2.2426))

        assert d is not None
        assert 250 < d < 270, f"Expected ~262 km, got {d:.1f}"

    def test_distance_is_symmetric(self):
        a = (53.2307, -0.5406)  # Lincoln
        b = (53.8008, -1.5491)  # Leeds

        assert math.isclose(distance_km(a, b), distance_km(b, a), rel_tol=1e-12)

    def test_missing_coordinate_returns_none(self):
        assert distance_km((53.2307, None), (53.8008, -1.5491)) is None
        assert distance_km((53.2307, -0.5406), (float("nan"), -1.5491)) is None

    def test_antipodal_points_do_not_exceed_half_circumference(self):
        d = distance_km((0.0, 0.0), (0.0, 180.0))

        assert d is not None
        assert math.isclose(d, math.pi * EARTH_RADIUS_KM, rel_tol=1e-9)


class TestCalculateDistances:
    """Tests for vectorised distance calculation over a services frame."""

    def test_distance_to_same_location(self):
        """Test that distance to same location is zero."""
        df = pd.DataFrame({"Latitude": [53.2307], "Longitude": [-0.5406]})

        distances = calculate_distances(53.2307, -0.5406, df)

        assert len(distances) == 1
        assert distances[0] is not None
        assert distances[0] < 0.01, "Distance to same point should be nearly zero"

    def test_known_distance_lincoln_to_leeds(self):
        """Lincoln to Leeds is a little over 90 km."""
        df = pd.DataFrame({"Latitude": [53.8008], "Longitude": [-1.5491]})

        distances = calculate_distances(53.2307, -0.5406, df)

        assert distances[0] is not None
        assert 85 < distances[0] < 100, f"Expected ~92 km, got {distances[0]:.1f}"

    def test_matches_scalar_helper(self):
        df = pd.DataFrame({"Latitude": [53.8008, 52.4862], "Longitude": [-1.5491, -1.8904]})

        distances = calculate_distances(53.2307, -0.5406, df)

        for (lat, lng), d in zip(df[["Latitude", "Longitude"]].itertuples(index=False), distances):
            assert math.isclose(d, distance_km((53.2307, -0.5406), (lat, lng)), rel_tol=1e-9)

    def test_invalid_coordinates_return_none(self):
        """Rows with a missing coordinate get no distance."""
        df = pd.DataFrame({"Latitude": [float("nan"), 53.2307], "Longitude": [-0.5406, None]})

        distances = calculate_distances(53.2307, -0.5406, df)

        assert distances == [None, None]

    def test_missing_user_coordinate_returns_all_none(self):
        df = pd.DataFrame({"Latitude": [53.2307, 53.8008], "Longitude": [-0.5406, -1.5491]})

        assert calculate_distances(None, -0.5406, df) == [None, None]

    def test_empty_dataframe(self):
        """Test handling of empty DataFrame."""
        df = pd.DataFrame({"Latitude": [], "Longitude": []})

        assert calculate_distances(53.2307, -0.5406, df) == []

    def test_custom_column_names(self):
        df = pd.DataFrame({"lat": [53.2307], "lon": [-0.5406]})

        distances = calculate_distances(53.2307, -0.5406, df, lat_col="lat", lng_col="lon")

        assert distances[0] < 0.01

    def test_negative_coordinates(self):
        """Southern hemisphere points: Cape Town to Sydney is about 11,000 km."""
        df = pd.DataFrame({"Latitude": [-33.8688], "Longitude": [151.2093]})

        distances = calculate_distances(-33.9249, 18.4241, df)

        assert 10500 < distances[0] < 11500
