"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")

    # Sessions - tokens are signed JWTs carried in a cookie or a Bearer header
    session_secret: str = Field(default="change-me", validation_alias="SESSION_SECRET")
    session_cookie_name: str = Field(default="session", validation_alias="SESSION_COOKIE_NAME")
    session_max_age_seconds: int = Field(
        default=60 * 60 * 24 * 30, validation_alias="SESSION_MAX_AGE",
    )

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Shared secret for the reminder sweep trigger. Empty disables the check.
    cron_secret: str = Field(default="", validation_alias="CRON_SECRET")

    # Email delivery (Resend). Without an API key emails are only logged.
    resend_api_key: str = Field(default="", validation_alias="RESEND_API_KEY")
    email_from: str = Field(
        default="Memory <reminders@resend.dev>", validation_alias="EMAIL_FROM",
    )

    metadata_fetch_timeout: float = Field(default=5.0, validation_alias="METADATA_FETCH_TIMEOUT")
    reminder_retention_days: int = Field(default=7, validation_alias="REMINDER_RETENTION_DAYS")

    # Field length limits
    max_title_length: int = Field(default=500, validation_alias="MAX_TITLE_LENGTH")
    max_note_length: int = Field(default=10_000, validation_alias="MAX_NOTE_LENGTH")
    max_content_length: int = Field(default=100_000, validation_alias="MAX_CONTENT_LENGTH")

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled with a production database.

        DEV_MODE completely bypasses authentication, so we must ensure it's only
        used with local development databases to prevent accidental production exposure.
        """
        if not self.dev_mode:
            return self

        try:
            parsed = urlparse(self.database_url)
            hostname = parsed.hostname or ""
        except ValueError:
            # If we can't parse the URL, block DEV_MODE
            hostname = ""

        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if hostname.lower() not in local_hosts:
            raise ValueError(
                f"DEV_MODE cannot be enabled with a non-local database. "
                f"Database host '{hostname}' appears to be a production database. "
                f"DEV_MODE bypasses all authentication and must only be used locally.",
            )

        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
