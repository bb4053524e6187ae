"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Experience catalog / itinerary backend
    catalog_base_url: str = "http://localhost:3000"

    # Timeouts (milliseconds)
    catalog_timeout_ms: int = 4000
    generation_timeout_ms: int = 60000
    persistence_timeout_ms: int = 10000

    # Gap heuristics (minutes)
    tight_gap_minutes: int = 15
    excessive_gap_minutes: int = 180

    # Travel-time estimate between activities
    travel_speed_kmh: float = 30.0

    # Pricing units charged once per traveler
    per_traveler_units: list[str] = Field(default_factory=lambda: ["entry", "person"])

    # What happens to items left outside the trip when its dates shrink
    orphan_policy: Literal["flag", "prune", "preserve"] = "flag"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
