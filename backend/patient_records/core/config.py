"""Application configuration management using Pydantic Settings.

This module provides centralized configuration for the Patient Records backend,
supporting environment variables and .env files for different deployment environments.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the backend directory (parent of patient_records/ directory)
BACKEND_DIR = Path(__file__).parent.parent.parent
ENV_FILE = BACKEND_DIR / ".env"

# Load environment variables from .env file
load_dotenv(ENV_FILE)


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    driver: str = Field(default="postgresql+asyncpg", description="Database driver")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="records", description="Database user")
    password: str = Field(default="", description="Database password")
    name: str = Field(default="patient_records", description="Database name")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max pool overflow")
    dsn: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL; takes precedence over the individual parts",
    )

    @property
    def url(self) -> str:
        """Get database connection URL."""
        if self.dsn:
            return self.dsn
        return f"{self.driver}://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class PersistenceSettings(BaseSettings):
    """Timeouts and retry policy for storage calls."""

    model_config = SettingsConfigDict(env_prefix="PERSISTENCE_")

    timeout_seconds: float = Field(
        default=10.0, gt=0, description="Upper bound for a single storage round trip"
    )
    max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries for transient transport failures"
    )
    retry_backoff_seconds: float = Field(
        default=0.2, ge=0, description="Initial backoff, doubled after every retry"
    )


class RegistrationSettings(BaseSettings):
    """Patient registration and numbering rules."""

    model_config = SettingsConfigDict(env_prefix="REGISTRATION_")

    number_prefix: str = Field(default="PT", min_length=1, max_length=8)
    sequence_digits: int = Field(default=4, ge=1, le=9)
    min_age: int = Field(default=0, ge=0)
    max_age: int = Field(default=150, ge=1)


class StorageSettings(BaseSettings):
    """Configuration for history image storage."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    image_dir: Path = Field(
        default=Path("./storage/images"), description="Root directory for uploaded images"
    )
    max_image_bytes: int = Field(
        default=10 * 1024 * 1024, ge=1, description="Largest accepted upload"
    )
    allowed_content_types: list[str] = Field(
        default=["image/png", "image/jpeg", "image/gif", "image/webp"],
        description="Accepted upload MIME types",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="Patient Records", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    workers: int = Field(default=4, ge=1, le=32, description="Number of workers")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow CORS credentials")

    # Startup behaviour
    auto_create_tables: bool = Field(
        default=True, description="Create missing tables on startup"
    )
    enable_demo_data: bool = Field(default=False, description="Seed demo patients on startup")

    # Client hints
    notice_dismiss_seconds: int = Field(
        default=3, ge=1, description="How long clients keep a success notice visible"
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    registration: RegistrationSettings = Field(default_factory=RegistrationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings after initialization."""
        if self.environment == "production":
            if self.debug:
                raise ValueError("Debug mode must be disabled in production (DEBUG=false)")
            if self.enable_demo_data:
                raise ValueError("Demo data cannot be enabled in production")

        if self.registration.min_age > self.registration.max_age:
            raise ValueError("REGISTRATION_MIN_AGE must not exceed REGISTRATION_MAX_AGE")

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
