from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Document store configuration
    DOCUMENT_STORE_BACKEND: Literal["memory", "firestore"] = "memory"
    FIRESTORE_PROJECT_ID: str | None = None
    FIRESTORE_DATABASE: str | None = None  # None selects the "(default)" database
    FIRESTORE_EMULATOR_HOST: str | None = None  # e.g. "localhost:8080"

    # Auth configuration
    JWT_SECRET: str | None = None  # HS256 tokens, development mode
    JWT_JWKS_URL: str | None = None  # RS256 tokens, production mode

    # Application
    APP_BASE_URL: str = "http://localhost:8001"  # Default for development
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
