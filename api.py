"""
JSON API for the find-help pipeline.

Endpoints:
    GET /api/health
    GET /api/geocode?postcode=<postcode>
    GET /api/get-service-providers
    GET /api/get-locations

Collaborators (geocoder, catalog loader, locations config) are built once in
``main()`` and injected through ``create_app`` so tests can swap them out.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from src.data.ingestion import CatalogApiClient, DataSource, ServiceCatalogLoader, build_catalog_loader
from src.data.locations import fetch_locations
from src.utils.config import configure_logging, get_api_config, get_app_config
from src.utils.errors import GeocodeFailure, GeocoderNotConfigured, LocationsUnavailable, PostcodeNotFound
from src.utils.geocoding import PostcodeGeocoder

logger = logging.getLogger(__name__)


def create_app(
    geocoder: Optional[PostcodeGeocoder] = None,
    catalog_loader: Optional[ServiceCatalogLoader] = None,
    locations_config: Optional[Dict[str, Any]] = None,
) -> Flask:
    app = Flask(__name__)
    geocoder = geocoder or PostcodeGeocoder()
    catalog_loader = catalog_loader or build_catalog_loader(get_api_config("catalog"))
    locations_config = locations_config or get_api_config("locations")

    @app.get("/api/health")
    def health():
        return jsonify({"ok": True})

    @app.get("/api/geocode")
    def geocode():
        postcode = (request.args.get("postcode") or "").strip()
        if not postcode:
            return jsonify({"error": "Postcode is required"}), 400

        if not geocoder.is_configured():
            logger.error("Geocoding requested but no server API key is configured")
            return jsonify({"error": "Missing server API key"}), 500

        try:
            lat, lng = geocoder.geocode(postcode)
        except GeocoderNotConfigured:
            return jsonify({"error": "Missing server API key"}), 500
        except PostcodeNotFound:
            return jsonify({"error": "Geocoding failed"}), 400
        except GeocodeFailure as e:
            logger.error(f"Error fetching geocode: {e}")
            return jsonify({"error": "Internal Server Error"}), 500

        return jsonify({"location": {"lat": lat, "lng": lng}})

    @app.get("/api/get-service-providers")
    def get_service_providers():
        result = catalog_loader.load()
        if result.unavailable:
            return jsonify({"error": "Service catalog unavailable"}), 503
        return jsonify(result.records)

    @app.get("/api/get-locations")
    def get_locations():
        try:
            data = fetch_locations(
                locations_config["api_url"], timeout=locations_config.get("request_timeout", 10)
            )
        except LocationsUnavailable as e:
            logger.error(f"Error in get-locations route: {e}")
            return jsonify({"error": str(e), "details": e.details}), e.status_code
        return jsonify(data)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "server error"}), 500

    return app


def main():
    configure_logging()
    catalog_config = get_api_config("catalog")
    client = None
    if catalog_config.get("mode") == DataSource.API.value and catalog_config.get("api_base_url"):
        client = CatalogApiClient(catalog_config["api_base_url"], timeout=catalog_config.get("request_timeout", 10))
        client.open()
    try:
        app = create_app(catalog_loader=build_catalog_loader(catalog_config, client=client))
        app.run(host="127.0.0.1", port=5000, debug=bool(get_app_config()["debug_mode"]))
    finally:
        if client is not None:
            client.close()


if __name__ == "__main__":
    main()
