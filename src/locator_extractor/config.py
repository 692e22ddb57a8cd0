"""Application configuration with environment variable support."""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Priority: ENV > .env.local > .env > defaults
    .env.local is gitignored for local overrides
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Service configuration
    PROJECT_NAME: str = "Locator Extractor"
    DEBUG: bool = False
    HOST: str = "localhost"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    MAX_CONNECTIONS: int = 20

    # Output
    OUTPUT_DIR: str = "output"
    JSON_PREFIX: str = "locators"
    PROMPT_PREFIX: str = "copilot_prompts"

    # Browser session defaults
    HEADLESS: bool = False
    USE_CDP: bool = False  # Attach a DevTools session per page for enrichment
    NAVIGATION_TIMEOUT_MS: int = 60000
    SETTLE_DELAY_MS: int = 3000  # Wait after load before the page is considered stable

    # Prompt generation
    AUTOMATION_FRAMEWORK: str = "playwright"
    PROMPT_KIND: Literal["locator", "action", "assertion"] = "locator"


# Global settings instance
settings = Settings()
