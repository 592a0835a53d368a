"""Supplier search configuration via Pydantic Settings."""

from typing import List
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Supplier search settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Market
    DEFAULT_CURRENCY: str = "GBP"

    # B&Q affiliate catalog (Impact)
    BNQ_API_KEY: str = ""
    BNQ_ACCOUNT_SID: str = ""
    BNQ_CAMPAIGN_ID: str = ""

    # SerpAPI Google Shopping
    SERPAPI_KEY: str = ""

    # Gemini (primary estimator)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # OpenAI-compatible endpoint (secondary estimator)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o"

    # Cache
    SEARCH_CACHE_TTL_SECONDS: int = 15 * 60  # 15 minutes

    # Timeouts
    HTTP_TIMEOUT_SECONDS: float = 30.0
    LLM_TIMEOUT_SECONDS: float = 60.0
    ADAPTER_TIMEOUT_SECONDS: float = 90.0

    # Browser
    BROWSER_HEADLESS: bool = True
    BROWSER_NAVIGATION_TIMEOUT_MS: int = 30000
    BROWSER_SETTLE_SECONDS: float = 2.0

    # Comma-separated adapter slugs; empty enables every registered adapter
    ENABLED_ADAPTERS: str = ""

    @model_validator(mode="after")
    def strip_base_urls(self) -> "Settings":
        """Endpoints are joined with paths, so drop any trailing slash."""
        self.GEMINI_BASE_URL = self.GEMINI_BASE_URL.rstrip("/")
        self.OPENAI_BASE_URL = self.OPENAI_BASE_URL.rstrip("/")
        return self

    def get_enabled_adapters(self) -> List[str]:
        """Parse ENABLED_ADAPTERS into a list of adapter slugs.

        Returns:
            List of slugs, empty if ENABLED_ADAPTERS is not set
        """
        if not self.ENABLED_ADAPTERS:
            return []
        return [s.strip() for s in self.ENABLED_ADAPTERS.split(",") if s.strip()]


settings = Settings()
