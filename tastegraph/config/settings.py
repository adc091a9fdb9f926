"""Environment configuration management for the Tastegraph server."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server configuration
    APP_NAME: str = "Tastegraph Server"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Category table overrides (YAML), defaults live in code
    CATEGORY_OVERRIDES_FILE: Optional[str] = None

    # Connection discovery
    CONNECTION_SAMPLE_SIZE: int = 3
    MIN_CONNECTION_STRENGTH: float = 0.3
    MAX_CONNECTIONS: int = 20
    MAX_THEMES: int = 8

    # Collaborator timeouts
    FETCH_TIMEOUT_SECONDS: float = 10.0
    NARRATIVE_TIMEOUT_SECONDS: float = 30.0

    # Recommendation provider
    RECOMMENDATION_API_URL: str = "https://hackathon.api.qloo.com"
    RECOMMENDATION_API_KEY: Optional[str] = None

    # Narrative provider (OpenAI-compatible chat completions)
    NARRATIVE_API_URL: str = "https://api.openai.com/v1"
    NARRATIVE_API_KEY: Optional[str] = None
    NARRATIVE_MODEL: str = "gpt-4o-mini"
    NARRATIVE_MAX_TOKENS: int = 1500

    # CORS settings
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list[str] = ["*"]
    CORS_HEADERS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Global settings instance
settings = Settings()


def get_cors_config() -> dict:
    """Get CORS configuration."""
    return {
        "allow_origins": settings.CORS_ORIGINS,
        "allow_credentials": settings.CORS_CREDENTIALS,
        "allow_methods": settings.CORS_METHODS,
        "allow_headers": settings.CORS_HEADERS,
    }
