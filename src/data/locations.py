"""Location list used for site navigation."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from src.utils.errors import LocationsUnavailable

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS_PATH = Path(__file__).resolve().parents[2] / "data" / "locations.json"


def fetch_locations(api_url: str, timeout: float = 10, session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    """Fetch locations from the upstream cities endpoint.

    Raises:
        LocationsUnavailable: carries the upstream status code when one exists
    """
    http = session or requests
    try:
        response = http.get(api_url, timeout=timeout)
    except requests.RequestException as e:
        raise LocationsUnavailable("Error fetching locations", status_code=500, details=str(e)) from e

    text = response.text
    if not response.ok or not text:
        raise LocationsUnavailable(
            "Failed to fetch locations",
            status_code=response.status_code or 500,
            details=text or "No response body",
        )

    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise LocationsUnavailable("Expected JSON but got something else", status_code=500, details=text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LocationsUnavailable("Invalid JSON from locations API", status_code=500, details=text) from e
    if not isinstance(data, list):
        raise LocationsUnavailable("Locations response was not a list", status_code=500, details=text)
    return data


def load_bundled_locations(path: Path = DEFAULT_LOCATIONS_PATH) -> List[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read bundled locations {path}: {e}")
        return []


def load_locations(config: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Upstream locations, falling back to the bundled list."""
    try:
        return fetch_locations(config["api_url"], timeout=config.get("request_timeout", 10))
    except LocationsUnavailable as e:
        logger.warning(f"Locations API unavailable ({e}), using bundled list")
    fallback = config.get("fallback_path")
    path = Path(fallback) if fallback else DEFAULT_LOCATIONS_PATH
    if not path.is_absolute() and not path.exists():
        path = DEFAULT_LOCATIONS_PATH.parents[1] / path
    return load_bundled_locations(path)


def public_locations(locations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [loc for loc in locations if loc.get("isPublic", True)]


def sort_locations_by_name(locations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Alphabetical by name, case-insensitive; input order breaks ties."""
    return sorted(locations, key=lambda loc: str(loc.get("name") or "").casefold())
