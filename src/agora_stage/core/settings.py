"""Application settings and configuration.

This module defines all configuration options for the Agora Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Agora Stage application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Agora Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./agora.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Wallet economy
    signup_bonus: int = Field(default=100, ge=0, alias="SIGNUP_BONUS")

    # Post listing bounds
    posts_default_limit: int = Field(default=50, ge=1, alias="POSTS_DEFAULT_LIMIT")
    posts_max_limit: int = Field(default=200, ge=1, alias="POSTS_MAX_LIMIT")

    # Poll and event defaults
    poll_default_duration_hours: int = Field(
        default=24,
        ge=1,
        alias="POLL_DEFAULT_DURATION_HOURS",
    )
    event_default_duration_hours: int = Field(
        default=2,
        ge=1,
        alias="EVENT_DEFAULT_DURATION_HOURS",
    )

    # When enabled, creating, interacting with or deleting a post that lives in a
    # community requires the acting user to be a member of that community.
    enforce_community_membership_gate: bool = Field(
        default=False,
        alias="ENFORCE_COMMUNITY_MEMBERSHIP_GATE",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
