"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WANDERMIND_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Provider credentials (fallback when the request carries none)
    groq_api_key: SecretStr | None = None
    gemini_api_key: SecretStr | None = None

    # Groq (OpenAI-compatible endpoint)
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_model: str = "llama-3.1-8b-instant"

    # Gemini
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash"

    # Generation parameters
    itinerary_temperature: float = 0.3
    itinerary_max_tokens: int = 4000
    edit_temperature: float = 0.4
    edit_retry_temperature: float = 0.5
    edit_max_tokens: int = 1000
    edit_max_retries: int = 1

    # Provider timeout (seconds)
    llm_timeout_seconds: float = 60.0

    # Trip validation
    max_trip_days: int = 14
    min_budget_per_person_per_day: float = 50.0

    # Fact checking
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    wikipedia_api_url: str = "https://en.wikipedia.org/w/api.php"
    fact_check_user_agent: str = "wandermind-trip-planner/0.1"
    fact_check_min_interval_seconds: float = 1.0
    fact_check_timeout_seconds: float = 10.0
    fact_check_cache_ttl_seconds: int = 24 * 3600
    fact_check_cache_max_entries: int = 1024
    max_distance_km: float = 50.0

    # Local credential store
    credential_store_path: Path = Path.home() / ".wandermind" / "credentials.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
