"""Tests for configuration lookups with environment fallbacks."""
import logging

import pytest

from src.utils import config


@pytest.fixture
def no_secrets(monkeypatch):
    """Make every secrets lookup miss so environment and defaults apply."""

    class EmptySecrets:
        def __getitem__(self, key):
            raise KeyError(key)

    monkeypatch.setattr(config.st, "secrets", EmptySecrets())
    for var in ("GOOGLE_MAPS_API_KEY", "GEOCODING_PROVIDER", "CATALOG_MODE", "CATALOG_API_BASE_URL", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults(no_secrets):
    assert config.get_api_config("geocoding")["request_timeout"] == 10
    assert config.get_api_config("catalog")["mode"] == "snapshot"
    assert config.get_search_config()["default_radius_km"] == 5
    assert config.get_api_config("unknown") == {}


def test_environment_fallback(no_secrets, monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-key")
    monkeypatch.setenv("CATALOG_MODE", "api")

    assert config.get_api_config("geocoding")["google_maps_api_key"] == "env-key"
    assert config.get_api_config("catalog")["mode"] == "api"


def test_secret_takes_precedence_over_environment(monkeypatch):
    monkeypatch.setattr(config.st, "secrets", {"geocoding": {"google_maps_api_key": "secret-key"}})
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-key")

    assert config.get_secret("geocoding.google_maps_api_key", env_var="GOOGLE_MAPS_API_KEY") == "secret-key"


def test_is_api_enabled(no_secrets, monkeypatch):
    assert not config.is_api_enabled("google_maps")
    assert not config.is_api_enabled("catalog_api")

    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "k")
    monkeypatch.setenv("CATALOG_MODE", "api")
    monkeypatch.setenv("CATALOG_API_BASE_URL", "https://api.example.org/v1")

    assert config.is_api_enabled("google_maps")
    assert config.is_api_enabled("catalog_api")


def test_validate_configuration_reports_missing_key(no_secrets):
    issues = config.validate_configuration()

    assert "geocoding" in issues
    assert "catalog" not in issues


def test_validate_configuration_rejects_bad_catalog_url(no_secrets, monkeypatch):
    monkeypatch.setenv("CATALOG_MODE", "api")
    monkeypatch.setenv("CATALOG_API_BASE_URL", "ftp://nope")

    assert "catalog" in config.validate_configuration()


def test_configure_logging_uses_level(no_secrets, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = logging.getLogger()
    monkeypatch.setattr(root, "level", root.level)

    config.configure_logging()

    assert root.level == logging.DEBUG
