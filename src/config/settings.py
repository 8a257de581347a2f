"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and an optional .env
file) with development defaults. Using Pydantic's BaseSettings means we get:
- Type validation at startup
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without Snowflake, Cloudinary or FFmpeg.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Fallbacks used when the media cloud variables are unset
CLOUDINARY_PLACEHOLDERS = {
    "cloudinary_cloud_name": "yourCloudName",
    "cloudinary_api_key": "yourApiKey",
    "cloudinary_api_secret": "yourApiSecret",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Baho ng Lahat API"
    api_version: str = "v1"
    port: int = Field(
        default=3000,
        description="Port used when running the module directly"
    )

    # Sessions
    session_secret: str = Field(
        default="yourSecretKey",
        description="Secret used to sign the session cookie"
    )
    session_max_age_seconds: int = Field(
        default=14 * 24 * 60 * 60,
        description="Session cookie lifetime"
    )
    session_https_only: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS"
    )

    # Password hashing
    password_hash_rounds: int = Field(
        default=10,
        ge=4,
        le=31,
        description="bcrypt cost factor"
    )

    # Cloudinary Configuration
    cloudinary_cloud_name: str = Field(
        default=CLOUDINARY_PLACEHOLDERS["cloudinary_cloud_name"],
        description="Cloudinary account identifier"
    )
    cloudinary_api_key: str = Field(
        default=CLOUDINARY_PLACEHOLDERS["cloudinary_api_key"],
        description="Cloudinary API key"
    )
    cloudinary_api_secret: str = Field(
        default=CLOUDINARY_PLACEHOLDERS["cloudinary_api_secret"],
        description="Cloudinary API secret"
    )
    cloudinary_mock_mode: bool = Field(
        default=False,
        description="Keep uploaded media in memory instead of sending it to Cloudinary."
    )

    # Snowflake Configuration
    snowflake_account: str = Field(
        default="",
        description="Snowflake account identifier"
    )
    snowflake_user: str = Field(
        default="",
        description="Snowflake service account username"
    )
    snowflake_password: str = Field(
        default="",
        description="Snowflake service account password"
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_database: str = Field(
        default="LAHAT",
        description="Snowflake database name"
    )
    snowflake_schema: str = Field(
        default="APP",
        description="Snowflake schema name"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Snowflake warehouse for query execution"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Snowflake role to use (optional)"
    )
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real Snowflake connection. Enables local dev without DB."
    )

    # Video processing
    video_processor_mock_mode: bool = Field(
        default=False,
        description="Skip FFmpeg and return placeholder thumbnails."
    )
    thumbnail_width: int = Field(default=320, description="Generated thumbnail width")
    thumbnail_height: int = Field(default=240, description="Generated thumbnail height")
    thumbnail_timestamp_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Where to grab the thumbnail frame. Clamped to half the video length."
    )

    # Uploads
    max_upload_size_mb: int = Field(
        default=100,
        ge=1,
        description="Maximum size of a single uploaded file in MB."
    )

    # Rate limiting
    rate_limit_max_requests: int = Field(
        default=100,
        ge=1,
        description="Requests allowed per client IP in one window"
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        ge=1,
        description="Length of the rate limit window"
    )
    rate_limit_bypass_ips: str = Field(
        default="",
        description="Comma-separated client IPs that bypass rate limiting."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # An empty variable counts as unset, so defaults and placeholders apply
        env_ignore_empty=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def rate_limit_bypass_ips_list(self) -> list[str]:
        """Parse comma-separated bypass IPs into a list."""
        return [ip.strip() for ip in self.rate_limit_bypass_ips.split(",") if ip.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def placeholder_media_credentials(self) -> list[str]:
        """Names of Cloudinary settings still holding their placeholder value."""
        return [
            name.upper()
            for name, placeholder in CLOUDINARY_PLACEHOLDERS.items()
            if getattr(self, name) == placeholder
        ]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        # Snowflake only required if not in mock mode
        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            # Need either password or private key
            if not self.snowflake_password and not self.snowflake_private_key_path:
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
