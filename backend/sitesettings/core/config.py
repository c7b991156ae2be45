"""Configuration settings for the site settings service."""

from __future__ import annotations

from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    postgres_db: str = Field(default="site_settings_db")
    postgres_user: str = Field(default="site_settings_user")
    postgres_password: str = Field(default="dev_password")
    postgres_host: str = Field(default="postgres")
    postgres_port: int = Field(default=5432)

    @property
    def database_url(self) -> str:
        """Construct async database URL from components."""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        ]

    # Content Configuration
    content_path: str = Field(
        default="content",
        description="Root directory holding content subfolders (settings, themes, ...)",
    )
    routes_filename: str = Field(
        default="routes.yaml",
        description="Name of the routes configuration file inside content/settings",
    )
    routes_backup_format: str = Field(
        default="routes-%Y-%m-%d-%H-%M-%S.yaml",
        description="strftime pattern used to name routes.yaml backups",
    )
    serialize_routes_uploads: bool = Field(
        default=True,
        description="Hold a single-writer lock around backup/replace/reload of routes.yaml",
    )

    @field_validator("routes_backup_format")
    @classmethod
    def validate_backup_format(cls, v: str) -> str:
        """Backups are told apart by timestamp, so the pattern must contain the seconds."""
        if "%S" not in v:
            raise ValueError(
                "routes_backup_format must include seconds (%S) to keep backup names unique"
            )
        return v

    def get_content_path(self, kind: str) -> Path:
        """Get the directory for one kind of content (e.g. "settings")."""
        return Path(self.content_path) / kind

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix for environment variables
        extra="forbid",  # Forbid extra fields for better type safety
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
