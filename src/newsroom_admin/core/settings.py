"""Application settings and configuration.

This module defines all configuration options for the newsroom admin console
and its reference verification API. Settings are loaded from environment
variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Newsroom Admin", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./newsroom_admin.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Console client
    api_base_url: str = Field(default="http://localhost:8000/api/v1", alias="API_BASE_URL")
    # None disables the client-side timeout entirely.
    api_timeout_seconds: float | None = Field(default=None, alias="API_TIMEOUT_SECONDS")
    session_store_path: str = Field(
        default="~/.newsroom_admin/session.json",
        alias="SESSION_STORE_PATH",
    )
    privileged_role: str = Field(default="Admin", alias="PRIVILEGED_ROLE")
    login_path: str = Field(default="/login", alias="LOGIN_PATH")

    # Community verification
    otp_length: int = Field(default=6, alias="OTP_LENGTH")
    otp_ttl_minutes: int = Field(default=10, alias="OTP_TTL_MINUTES")
    otp_echo_enabled: bool = Field(default=False, alias="OTP_ECHO_ENABLED")
    # A Multi community always needs at least two approvers.
    min_authorized_persons: int = Field(default=2, ge=2, alias="MIN_AUTHORIZED_PERSONS")
    public_mail_domains: list[str] = Field(
        default=["gmail.com", "yahoo.com", "outlook.com", "hotmail.com"],
        alias="PUBLIC_MAIL_DOMAINS",
    )
    pending_community_ttl_hours: int = Field(default=72, alias="PENDING_COMMUNITY_TTL_HOURS")

    # CORS configuration for the browser console
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def otp_ttl_seconds(self) -> int:
        """Return the OTP lifetime in seconds."""
        return self.otp_ttl_minutes * 60


settings = Settings()  # type: ignore[call-arg]
