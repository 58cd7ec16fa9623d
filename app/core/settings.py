"""Typed application settings.

Loaded once from the environment (and ``.env``) through pydantic-settings.
Only DATABASE_URL and the admin panel credentials are required.
"""

from functools import lru_cache

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env_name: str = Field(default="development", alias="ENV_NAME")

    # Database
    database_url: str = Field(alias="DATABASE_URL")

    # SQLAdmin panel login
    session_secret_key: str = Field(alias="SESSION_SECRET_KEY")
    admin_username: str = Field(alias="ADMIN_USERNAME")
    admin_password: str = Field(alias="ADMIN_PASSWORD")

    # Comma separated list of allowed origins
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # User search pagination; out-of-range requests are clamped to these
    default_page_limit: int = Field(
        default=20, alias="DEFAULT_PAGE_LIMIT", ge=1, le=100
    )
    max_page_limit: int = Field(default=100, alias="MAX_PAGE_LIMIT", ge=1, le=500)

    @model_validator(mode="after")
    def check_page_limits(self) -> "Settings":
        if self.default_page_limit > self.max_page_limit:
            raise ValueError("DEFAULT_PAGE_LIMIT must not exceed MAX_PAGE_LIMIT")
        return self

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """CORS_ORIGINS split on commas, blanks dropped."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
