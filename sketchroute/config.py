"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    sketchroute_env: str = "development"
    sketchroute_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Location resolver / street-network provider
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    http_user_agent: str = "sketchroute/0.1 (shape-to-route matcher)"
    geocode_timeout_s: float = 15.0
    overpass_timeout_s: float = 45.0
    degraded_timeout_s: float = 15.0

    # Used when the geocoder is unreachable and the place is not a known city
    default_center: tuple[float, float] = (37.7749, -122.4194)

    # AI route generator
    anthropic_api_key: str = ""
    model_routes: str = "claude-sonnet-4-5-20250929"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
