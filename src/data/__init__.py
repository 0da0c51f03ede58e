"""Data loading package for the Street Support Find Help app."""

from .ingestion import (
    CatalogApiClient,
    CatalogResult,
    DataSource,
    ServiceCatalogLoader,
    build_catalog_loader,
    flatten_service_providers,
    services_to_dataframe,
)
from .locations import fetch_locations, load_locations, public_locations, sort_locations_by_name

__all__ = [
    "CatalogApiClient",
    "CatalogResult",
    "DataSource",
    "ServiceCatalogLoader",
    "build_catalog_loader",
    "flatten_service_providers",
    "services_to_dataframe",
    "fetch_locations",
    "load_locations",
    "public_locations",
    "sort_locations_by_name",
]
