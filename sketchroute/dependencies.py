"""FastAPI dependency injection."""

from __future__ import annotations

from sketchroute.config import settings
from sketchroute.engine.config import EngineConfig
from sketchroute.engine.search import RouteSearchService
from sketchroute.providers.geocoder import NominatimGeocoder
from sketchroute.providers.overpass import OverpassProvider


def get_settings():
    return settings


def get_engine_config() -> EngineConfig:
    return EngineConfig()


def get_search_service() -> RouteSearchService:
    return RouteSearchService(NominatimGeocoder(), OverpassProvider(), get_engine_config(), settings)
