"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chitfund.config.business_constants import BPS_DENOMINATOR


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="Display currency code; amounts are stored in minor units",
    )

    # Logging
    log_level: str = "INFO"
    log_file: str | None = Field(
        default=None,
        description="Optional file sink path (e.g. logs/chitfund.log)",
    )
    log_rotation: str = "1 day"
    log_retention: str = "7 days"

    # Commission defaults, used when neither the scheme nor the
    # referral level table defines a rate
    default_direct_commission_bps: int = Field(
        default=1000,
        ge=0,
        le=BPS_DENOMINATOR,
        description="Direct (L1) commission in basis points",
    )
    default_indirect_commission_bps: int = Field(
        default=500,
        ge=0,
        le=BPS_DENOMINATOR,
        description="Indirect (L2) commission in basis points",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "(or sqlite+aiosqlite:// for local testing)"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {
            "TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"
        }:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                logger.warning(
                    "SQLite database configured in production environment"
                )
        return self

    @property
    def async_database_url(self) -> str:
        """Database URL with the async driver prefix."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        return self.database_url


# Global settings instance
settings = Settings()
