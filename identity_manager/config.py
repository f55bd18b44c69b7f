"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# config.py is in identity_manager/, so the project root is one level up
_CONFIG_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _CONFIG_DIR.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Identity Manager", description="Application name")
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Root logging level", alias="LOG_LEVEL")

    # Security
    secret_key: str = Field(
        default="dev-secret-change-me",
        description="Secret key for JWT tokens and session cookies",
        alias="SECRET_KEY",
    )
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60, description="Access token expiration in minutes")
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor used when hashing passwords",
        alias="BCRYPT_ROUNDS",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./identity_manager.db",
        description="SQLAlchemy database connection URL",
        alias="DATABASE_URL",
    )
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables at startup. Disable when schema is managed by Alembic",
        alias="AUTO_CREATE_SCHEMA",
    )
    seed_demo_data: bool = Field(
        default=False,
        description="Insert the sample admin/user accounts and tickets on an empty database",
        alias="SEED_DEMO_DATA",
    )

    # Avatar storage
    upload_dir: str = Field(
        default=str(_PROJECT_ROOT / "uploads" / "avatars"),
        description="Directory where avatar images are stored",
        alias="UPLOAD_DIR",
    )
    max_avatar_size: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum avatar upload size in bytes",
        alias="MAX_AVATAR_SIZE",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str:
        """Validate and normalize database URL."""
        if v is None or v == "":
            raise ValueError("DATABASE_URL is required")
        return v.strip()

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_app_env(cls, v: str) -> str:
        """Normalize app environment to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("app_name", mode="before")
    @classmethod
    def normalize_app_name(cls, v: str) -> str:
        """Normalize app name by stripping whitespace."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.upper().strip()
        return v


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings: Application settings instance

    Example:
        ```python
        from identity_manager.config import get_settings

        settings = get_settings()
        print(settings.database_url)
        ```
    """
    return Settings()


# Global settings instance
settings = get_settings()
