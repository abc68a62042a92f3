"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="NAVROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Navigation Routing API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logger level.")
    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api",
        description="Base URL of the directions/geocoding web services.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="API key sent with every directions and geocoding request.",
    )
    directions_timeout_seconds: float = Field(default=30.0, gt=0.0)
    directions_max_retries: int = Field(default=3, ge=0)
    directions_backoff_seconds: float = Field(default=1.0, ge=0.0)
    departure_time: str = Field(
        default="now",
        description="Departure time sent to the provider ('now' or a unix timestamp).",
    )
    two_opt_max_passes: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on 2-opt improvement passes per constructed tour.",
    )
    route_colors: tuple[str, ...] = Field(
        default=("#007AFF", "#34C759", "#FF9500", "#AF52DE"),
        description="Palette cycled over alternative routes.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("route_colors", "frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
