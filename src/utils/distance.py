"""Great-circle distance calculation (haversine, kilometres)."""
import math
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

EARTH_RADIUS_KM = 6371.0

Coordinate = Tuple[Optional[float], Optional[float]]


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def distance_km(a: Coordinate, b: Coordinate) -> Optional[float]:
    """Distance between two (lat, lng) pairs, or None if either is incomplete."""
    if any(_is_missing(v) for v in (*a, *b)):
        return None

    lat1, lng1 = math.radians(float(a[0])), math.radians(float(a[1]))
    lat2, lng2 = math.radians(float(b[0])), math.radians(float(b[1]))
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


def calculate_distances(
    user_lat: Optional[float],
    user_lng: Optional[float],
    services_df: pd.DataFrame,
    lat_col: str = "Latitude",
    lng_col: str = "Longitude",
) -> List[Optional[float]]:
    """Distances (km) from a user coordinate to every row of ``services_df``.

    Rows with a missing coordinate, or a missing user coordinate, yield None.
    """
    if services_df.empty:
        return []
    if _is_missing(user_lat) or _is_missing(user_lng):
        return [None] * len(services_df)

    lat_arr = np.radians(pd.to_numeric(services_df[lat_col], errors="coerce").to_numpy(dtype=float))
    lng_arr = np.radians(pd.to_numeric(services_df[lng_col], errors="coerce").to_numpy(dtype=float))
    user_lat_rad = np.radians(float(user_lat))
    user_lng_rad = np.radians(float(user_lng))

    valid = ~np.isnan(lat_arr) & ~np.isnan(lng_arr)
    dlat = lat_arr[valid] - user_lat_rad
    dlng = lng_arr[valid] - user_lng_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(user_lat_rad) * np.cos(lat_arr[valid]) * np.sin(dlng / 2) ** 2
    c = 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
    distances = np.full(len(services_df), np.nan)
    distances[valid] = EARTH_RADIUS_KM * c

    return [None if np.isnan(d) else float(d) for d in distances]
