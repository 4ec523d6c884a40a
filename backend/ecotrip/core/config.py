from functools import lru_cache
from typing import Dict, List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL_FALLBACKS: Dict[str, List[str]] = {
    "gemini-2.0-flash": ["gemini-2.0-flash-lite", "gemini-2.5-flash"],
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    app_name: str = "Eco Itinerary Planner"
    environment: str = "local"
    log_level: str = "INFO"
    llm_provider: str = "gemini"
    gemini_api_key: str | None = None
    # Comma- or newline-separated list of additional keys.
    gemini_api_keys: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_model_fallbacks: Dict[str, List[str]] = Field(
        default_factory=lambda: dict(DEFAULT_MODEL_FALLBACKS)
    )
    gemini_attempt_timeout_seconds: float = 60.0
    gemini_dispatch_timeout_seconds: float = 120.0
    fallback_to_mock: bool = True


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()


settings = get_settings()
