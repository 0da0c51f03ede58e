"""
Service Catalog Ingestion - loads the flattened services-with-organisation set.

Two backing modes are supported:

- ``snapshot``: the bundled ``data/service-providers.json`` exported at build time
- ``api``: a live query through an explicitly constructed ``CatalogApiClient``

Providers are nested (organisation → services); the loader flattens them so
each row carries its organisation's name, slug, postcode and coordinates. The
loader is a boundary: any failure returns an empty set flagged ``unavailable``
rather than raising.

Usage:
    with CatalogApiClient("https://api.example.org/v1") as client:
        loader = ServiceCatalogLoader(DataSource.API, client=client)
        result = loader.load()
        if result.unavailable:
            ...
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import requests

from src.utils.errors import CatalogUnavailable
from src.utils.models import (
    CATEGORY,
    CLIENT_GROUPS,
    DESCRIPTION,
    LATITUDE,
    LOCATION_ID,
    LONGITUDE,
    OPEN_TIMES,
    ORGANISATION,
    ORGANISATION_ID,
    ORGANISATION_SLUG,
    POSTCODE,
    SERVICE_COLUMNS,
    SERVICE_ID,
    SERVICE_NAME,
    SUB_CATEGORY,
    VERIFIED,
)

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SNAPSHOT_PATH = REPO_ROOT / "data" / "service-providers.json"

# Flat API field → DataFrame column
COLUMN_MAPPING = {
    "id": SERVICE_ID,
    "name": SERVICE_NAME,
    "category": CATEGORY,
    "subCategory": SUB_CATEGORY,
    "description": DESCRIPTION,
    "openTimes": OPEN_TIMES,
    "clientGroups": CLIENT_GROUPS,
    "organisationName": ORGANISATION,
    "organisationId": ORGANISATION_ID,
    "organisationSlug": ORGANISATION_SLUG,
    "latitude": LATITUDE,
    "longitude": LONGITUDE,
    "postcode": POSTCODE,
    "verified": VERIFIED,
    "locationId": LOCATION_ID,
}


class DataSource(Enum):
    """Backing modes for the service catalog."""

    SNAPSHOT = "snapshot"  # Bundled JSON exported at build time
    API = "api"  # Live query against the service-providers API


@dataclass
class CatalogResult:
    """Outcome of a catalog load.

    ``unavailable`` is the CatalogUnavailable condition: the load failed and
    ``services`` is empty for that reason rather than because nothing matched.
    """

    services: pd.DataFrame
    records: List[Dict[str, Any]] = field(default_factory=list)
    unavailable: bool = False
    error: Optional[str] = None


class CatalogApiClient:
    """HTTP client for the live service-providers API.

    The owner opens the client on startup and closes it on shutdown; the
    client is then passed to ``ServiceCatalogLoader``.
    """

    def __init__(self, base_url: str, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[requests.Session] = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    def open(self) -> "CatalogApiClient":
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
            logger.info(f"Opened catalog API client for {self.base_url}")
        return self

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.info("Closed catalog API client")

    def __enter__(self) -> "CatalogApiClient":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch_service_providers(self) -> List[Dict[str, Any]]:
        """Fetch all providers.

        Raises:
            CatalogUnavailable: the client is closed, the request failed, or the
                response was not a JSON array
        """
        if self._session is None:
            raise CatalogUnavailable("Catalog API client is not open")
        url = f"{self.base_url}/service-providers"
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise CatalogUnavailable(f"Failed to fetch service providers: {e}") from e

        if isinstance(data, dict) and isinstance(data.get("items"), list):
            data = data["items"]
        if not isinstance(data, list):
            raise CatalogUnavailable("Service providers response was not a list")
        return data


def _is_listed(provider: Dict[str, Any]) -> bool:
    return provider.get("published", True) is not False and not provider.get("disabled", False)


def flatten_service_providers(providers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten nested providers into one record per service with org fields.

    Records that already look flat (no ``services`` list) pass through.
    Unpublished or disabled records are skipped, nested or flat.
    """
    flat: List[Dict[str, Any]] = []
    for provider in providers:
        if not isinstance(provider, dict):
            continue
        if not _is_listed(provider):
            continue
        services = provider.get("services")
        if not isinstance(services, list):
            flat.append(dict(provider))
            continue
        for service in services:
            if not isinstance(service, dict):
                continue
            flat.append(
                {
                    **service,
                    "organisationId": provider.get("id"),
                    "organisationName": provider.get("name"),
                    "organisationSlug": provider.get("slug"),
                    "postcode": provider.get("postcode"),
                    "latitude": provider.get("latitude"),
                    "longitude": provider.get("longitude"),
                    "locationId": provider.get("locationId"),
                    "verified": provider.get("verified", False),
                }
            )
    return flat


def services_to_dataframe(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """Build the catalog DataFrame with a stable column set."""
    df = pd.DataFrame(records)
    df = df.rename(columns=COLUMN_MAPPING)
    for col in SERVICE_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[SERVICE_COLUMNS].copy()

    df[LATITUDE] = pd.to_numeric(df[LATITUDE], errors="coerce")
    df[LONGITUDE] = pd.to_numeric(df[LONGITUDE], errors="coerce")
    for col in (OPEN_TIMES, CLIENT_GROUPS):
        df[col] = df[col].apply(lambda v: list(v) if isinstance(v, (list, tuple)) else [])
    df[VERIFIED] = df[VERIFIED].apply(lambda v: v is True)
    return df.reset_index(drop=True)


def _read_snapshot(path: Union[str, Path]) -> List[Dict[str, Any]]:
    path = Path(path)
    if not path.is_absolute() and not path.exists():
        path = REPO_ROOT / path
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogUnavailable(f"Failed to read catalog snapshot {path}: {e}") from e
    if not isinstance(data, list):
        raise CatalogUnavailable(f"Catalog snapshot {path} is not a list")
    return data


class ServiceCatalogLoader:
    """Produce the full, unfiltered service catalog for the current context."""

    def __init__(
        self,
        source: DataSource = DataSource.SNAPSHOT,
        snapshot_path: Union[str, Path] = DEFAULT_SNAPSHOT_PATH,
        client: Optional[CatalogApiClient] = None,
    ):
        if source == DataSource.API and client is None:
            raise ValueError("API mode requires a CatalogApiClient")
        self.source = source
        self.snapshot_path = snapshot_path
        self.client = client

    def _fetch_providers(self) -> List[Dict[str, Any]]:
        if self.source == DataSource.API:
            return self.client.fetch_service_providers()
        return _read_snapshot(self.snapshot_path)

    def load(self) -> CatalogResult:
        try:
            records = flatten_service_providers(self._fetch_providers())
            services = services_to_dataframe(records)
        except CatalogUnavailable as e:
            logger.error(f"Service catalog unavailable ({self.source.value}): {e}")
            return CatalogResult(services=services_to_dataframe([]), unavailable=True, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error loading service catalog ({self.source.value}): {e}")
            return CatalogResult(services=services_to_dataframe([]), unavailable=True, error=str(e))

        logger.info(f"Loaded {len(services)} services from {self.source.value} catalog")
        return CatalogResult(services=services, records=records)


def build_catalog_loader(config: Dict[str, Any], client: Optional[CatalogApiClient] = None) -> ServiceCatalogLoader:
    """Create a loader from the ``catalog`` config section."""
    try:
        source = DataSource(config.get("mode", "snapshot"))
    except ValueError:
        logger.warning(f"Unknown catalog mode {config.get('mode')!r}, using snapshot")
        source = DataSource.SNAPSHOT
    if source == DataSource.API and client is None:
        logger.warning("Catalog API mode configured without a client, using snapshot")
        source = DataSource.SNAPSHOT
    return ServiceCatalogLoader(
        source=source,
        snapshot_path=config.get("snapshot_path") or DEFAULT_SNAPSHOT_PATH,
        client=client,
    )
