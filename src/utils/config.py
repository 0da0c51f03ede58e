"""
Configuration and secrets management for the Street Support Find Help app.

Values are read from Streamlit's secrets (``.streamlit/secrets.toml``) with an
optional environment-variable fallback, so the same settings work for the
Streamlit UI and for the Flask API process.

Usage:
    from src.utils.config import get_api_config, get_search_config

    geocoding_config = get_api_config('geocoding')
    api_key = geocoding_config.get('google_maps_api_key')

    radius = get_search_config()['default_radius_km']
"""

import logging
import os
from typing import Any, Dict, Optional

import streamlit as st

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_secret(key_path: str, default: Any = None, env_var: Optional[str] = None) -> Any:
    """
    Safely retrieve a secret from Streamlit's secrets management.

    Args:
        key_path: Dot-notation path to the secret (e.g., 'geocoding.google_maps_api_key')
        default: Default value if secret is not found
        env_var: Optional environment variable consulted when the secret is missing

    Returns:
        The secret value, the environment value, or default if neither is set

    Examples:
        >>> get_secret('catalog.mode', 'snapshot')
        >>> get_secret('geocoding.google_maps_api_key', '', env_var='GOOGLE_MAPS_API_KEY')
    """
    missing = object()
    value: Any = missing
    try:
        keys = key_path.split(".")
        node = st.secrets
        for key in keys:
            try:
                node = node[key]
            except Exception:
                node = missing
                break
        value = node
    except Exception as e:
        logger.warning(f"Failed to retrieve secret '{key_path}': {e}")

    if value is not missing:
        return value
    if env_var and os.environ.get(env_var):
        return os.environ[env_var]
    return default


def get_api_config(api_name: str) -> Dict[str, Any]:
    """
    Get configuration for a specific API or service.

    Args:
        api_name: Name of the API/service ('geocoding', 'catalog' or 'locations')

    Returns:
        Dictionary containing the API configuration (empty for unknown names)
    """
    if api_name == "geocoding":
        return {
            "provider": get_secret("geocoding.provider", "google", env_var="GEOCODING_PROVIDER"),
            "google_maps_api_key": get_secret("geocoding.google_maps_api_key", "", env_var="GOOGLE_MAPS_API_KEY"),
            "nominatim_user_agent": get_secret("geocoding.nominatim_user_agent", "streetsupport_find_help"),
            "region": get_secret("geocoding.region", "uk"),
            "request_timeout": get_secret("geocoding.request_timeout", 10),
        }
    elif api_name == "catalog":
        return {
            "mode": get_secret("catalog.mode", "snapshot", env_var="CATALOG_MODE"),
            "snapshot_path": get_secret("catalog.snapshot_path", "data/service-providers.json"),
            "api_base_url": get_secret("catalog.api_base_url", "", env_var="CATALOG_API_BASE_URL"),
            "request_timeout": get_secret("catalog.request_timeout", 10),
        }
    elif api_name == "locations":
        return {
            "api_url": get_secret("locations.api_url", "https://ssn-api-prod.azurewebsites.net/v1/cities/"),
            "fallback_path": get_secret("locations.fallback_path", "data/locations.json"),
            "request_timeout": get_secret("locations.request_timeout", 10),
        }
    else:
        return {}


def get_app_config() -> Dict[str, Any]:
    """
    Get general application configuration.

    Returns:
        Dictionary containing app configuration
    """
    return {
        "environment": get_secret("app.environment", "production", env_var="APP_ENVIRONMENT"),
        "debug_mode": get_secret("app.debug_mode", False),
        "log_level": get_secret("app.log_level", "INFO", env_var="LOG_LEVEL"),
    }


def get_search_config() -> Dict[str, Any]:
    """Get find-help search defaults."""
    return {
        "default_radius_km": get_secret("search.default_radius_km", 5),
        "radius_options_km": get_secret("search.radius_options_km", [1, 3, 5, 10, 25]),
        "page_size": get_secret("search.page_size", 10),
        "device_timeout_seconds": get_secret("search.device_timeout_seconds", 10),
    }


def is_api_enabled(api_name: str) -> bool:
    """
    Check if a specific API is enabled and properly configured.

    Args:
        api_name: Name of the API to check

    Returns:
        True if the API is enabled and has required configuration
    """
    if api_name == "google_maps":
        config = get_api_config("geocoding")
        return config["provider"] == "google" and bool(config["google_maps_api_key"])
    elif api_name == "catalog_api":
        config = get_api_config("catalog")
        return config["mode"] == "api" and bool(config["api_base_url"])
    else:
        return False


def validate_configuration() -> Dict[str, str]:
    """
    Validate the application configuration and return any warnings or errors.

    Returns:
        Dictionary with configuration validation results
    """
    issues = {}

    geocoding_config = get_api_config("geocoding")
    if geocoding_config["provider"] not in ("google", "nominatim"):
        issues["geocoding"] = f"Unknown geocoding provider: {geocoding_config['provider']}"
    elif geocoding_config["provider"] == "google" and not geocoding_config["google_maps_api_key"]:
        issues["geocoding"] = "Google geocoding is selected but no API key is provided"

    catalog_config = get_api_config("catalog")
    if catalog_config["mode"] not in ("snapshot", "api"):
        issues["catalog"] = f"Unknown catalog mode: {catalog_config['mode']}"
    elif catalog_config["mode"] == "api":
        if not str(catalog_config["api_base_url"]).startswith(("http://", "https://")):
            issues["catalog"] = "Catalog API mode requires an http(s) api_base_url"

    app_config = get_app_config()
    if app_config["environment"] not in ["development", "staging", "production"]:
        issues["app"] = f"Unknown environment: {app_config['environment']}"

    return issues


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    level_name = str(get_app_config()["log_level"]).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger().setLevel(level)


if __name__ == "__main__":
    print("Street Support Find Help - Configuration Status")
    print("=" * 50)

    issues = validate_configuration()
    if issues:
        print("⚠️  Configuration Issues Found:")
        for component, issue in issues.items():
            print(f"  - {component}: {issue}")
    else:
        print("✅ Configuration validation passed")

    print("\n📋 API Status:")
    for api in ["google_maps", "catalog_api"]:
        status = "✅ Enabled" if is_api_enabled(api) else "❌ Disabled/Not configured"
        print(f"  - {api}: {status}")

    print(f"\n🔧 Environment: {get_app_config()['environment']}")
