"""Application configuration with validation."""
from typing import Optional, Literal
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the survey scoring service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Survey Scoring Platform"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"
    ENABLE_DEV_TOOLS: bool = Field(
        default=False,
        description="Expose the read-only scoring trace endpoint in production",
    )

    # Scoring
    SCORING_ENGINE_ID: str = "engagement_v1"
    SCORING_POINT_CEILING: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Per-question point ceiling used to size category band scales",
    )

    # Semantic scorer (external chat-completions service for free-text answers)
    SEMANTIC_SCORER_ENABLED: bool = False
    SEMANTIC_SCORER_BASE_URL: Optional[str] = None
    SEMANTIC_SCORER_API_KEY: Optional[SecretStr] = None
    SEMANTIC_SCORER_MODEL: str = "mistral-medium-latest"
    SEMANTIC_SCORER_TIMEOUT_SECONDS: float = Field(default=20.0, ge=1.0, le=120.0)
    SEMANTIC_SCORER_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_semantic_scorer(self):
        """An enabled semantic scorer needs somewhere to send requests."""
        if self.SEMANTIC_SCORER_ENABLED and not self.SEMANTIC_SCORER_BASE_URL:
            raise ValueError("SEMANTIC_SCORER_BASE_URL is required when the semantic scorer is enabled")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production does not run in debug mode."""
        if self.APP_ENV == "production" and self.DEBUG:
            raise ValueError("DEBUG must be False in production")
        return self

    @property
    def dev_tools_enabled(self) -> bool:
        """Inspection endpoints are open outside production, or when explicitly enabled."""
        return self.APP_ENV != "production" or self.ENABLE_DEV_TOOLS


@lru_cache
def get_settings() -> Settings:
    return Settings()
