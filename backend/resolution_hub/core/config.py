"""
Configuration management for the Resolution Hub backend.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Resolution Hub"
    BASE_DIR: Path = Path(__file__).parent.parent

    # Persistence
    DATABASE_URL: str = Field(default="sqlite:///./resolution_hub.db")
    DB_ECHO: bool = Field(default=False)

    # Admin auth
    JWT_SECRET: str = Field(default="default-secret")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRATION_HOURS: int = Field(default=24)

    # Order system (Shopify Admin GraphQL)
    SHOPIFY_STORE_URL: Optional[str] = Field(default=None)
    SHOPIFY_ACCESS_TOKEN: Optional[str] = Field(default=None)
    SHOPIFY_API_VERSION: str = Field(default="2024-01")

    # Shipment tracking (ParcelPanel)
    PARCELPANEL_API_KEY: Optional[str] = Field(default=None)
    PARCELPANEL_URL: str = Field(default="https://api.parcelpanel.com/api/v1/parcels")

    # Finished sessions (case emitted) are dropped from memory after this many seconds
    FINISHED_SESSION_TTL_SECONDS: int = Field(default=3600)

    # Outbound HTTP timeout in seconds
    HTTP_TIMEOUT: float = Field(default=30.0)

    # API settings
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    LOG_LEVEL: str = Field(default="INFO")


# Global settings instance
settings = Settings()
