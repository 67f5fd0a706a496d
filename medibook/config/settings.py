from decimal import Decimal
from functools import lru_cache
from typing import Any

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and `.env`.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "MediBook Scheduling API"
    PROJECT_DESCRIPTION: str = "Appointment booking, settlement and payout core"
    VERSION: str = "0.1.0"

    # Environment
    ENVIRONMENT: str = Field("development", description="Deployment environment")
    DEBUG: bool = Field(False, description="Enable debug mode")
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FORMAT: str = Field("colored", description="Log format: colored, json or plain")
    SENTRY_DSN: str | None = Field(None, description="Sentry DSN for error tracking")
    CORS_ORIGINS: list[str] = Field(default_factory=list, description="Allowed CORS origins outside development")

    # PostgreSQL Database Settings
    DATABASE_URL: str | None = Field(None, description="Full async SQLAlchemy URL, overrides DB_* fields")
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("medibook", description="Database name")
    DB_USER: str = Field("medibook", description="Database user")
    DB_PASSWORD: str | None = Field(None, description="Database password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(20, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(30, description="Connection pool max overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every N seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Timeout to obtain a pooled connection")

    # Redis Settings
    REDIS_HOST: str = Field("localhost", description="Redis host")
    REDIS_PORT: int = Field(6379, description="Redis port")
    REDIS_DB: int = Field(0, description="Redis database")
    REDIS_PASSWORD: str | None = Field(None, description="Redis password")
    CACHE_ENABLED: bool = Field(True, description="Enable the Redis read-path cache")
    CACHE_KEY_PREFIX: str = Field("medibook", description="Prefix for every cache key")

    # Scheduling rules
    TIMEZONE: str = Field("America/Argentina/Buenos_Aires", description="Timezone for appointment times")
    DEFAULT_SLOT_DURATION_MINUTES: int = Field(30, description="Slot length when a provider has no config")
    DEFAULT_BOOKING_ADVANCE_DAYS: int = Field(30, description="Max days ahead a booking may be placed")
    DEFAULT_MIN_BOOKING_HOURS: int = Field(24, description="Min hours ahead a booking may be placed")

    # Settlement rules
    DEFAULT_COMMISSION_PERCENTAGE: Decimal = Field(Decimal("5.00"), description="Platform commission fallback")
    PAYOUT_DELAY_HOURS: int = Field(2, description="Hours after the appointment before paying out")
    FULL_REFUND_HOURS: int = Field(24, description="Hours before the appointment for a full refund")
    PARTIAL_REFUND_HOURS: int = Field(1, description="Hours before the appointment for a partial refund")
    PARTIAL_REFUND_RATIO: Decimal = Field(Decimal("0.5"), description="Share refunded in the partial tier")

    # Payout sweep
    PAYOUT_SWEEP_ENABLED: bool = Field(True, description="Run the payout sweep on a schedule")
    PAYOUT_SWEEP_INTERVAL_MINUTES: int = Field(15, description="Minutes between payout sweeps")
    CRON_SECRET: str | None = Field(None, description="Bearer secret for the manual sweep endpoint")

    # Payment gateway
    PAYMENT_API_BASE_URL: str = Field("https://api.stripe.com/v1", description="Payment provider base URL")
    PAYMENT_API_KEY: str | None = Field(None, description="Payment provider secret key")
    PAYMENT_CURRENCY: str = Field("usd", description="Currency used for transfers and refunds")
    PAYMENT_API_TIMEOUT: float = Field(30.0, description="Timeout in seconds for payment provider calls")
    WEBHOOK_SECRET: str | None = Field(None, description="HMAC secret for inbound payment events")
    WEBHOOK_IDEMPOTENCY_TTL_HOURS: int = Field(24, description="How long processed event ids are kept")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        allowed = {"development", "dev", "local", "test", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {sorted(allowed)}")
        return v.lower()

    @field_validator("DEFAULT_COMMISSION_PERCENTAGE")
    @classmethod
    def validate_commission(cls, v):
        if v <= 0 or v > 100:
            raise ValueError("DEFAULT_COMMISSION_PERCENTAGE must be greater than 0 and at most 100")
        return v

    @field_validator("PARTIAL_REFUND_RATIO")
    @classmethod
    def validate_partial_ratio(cls, v):
        if v < 0 or v > 1:
            raise ValueError("PARTIAL_REFUND_RATIO must be between 0 and 1")
        return v

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v):
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        if v > 100:
            raise ValueError("DB_POOL_SIZE should not exceed 100")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_max_overflow(cls, v):
        if v < 0:
            raise ValueError("DB_MAX_OVERFLOW must be 0 or greater")
        if v > 200:
            raise ValueError("DB_MAX_OVERFLOW should not exceed 200")
        return v

    @computed_field
    @property
    def redis_url(self) -> str:
        """Build the Redis connection URL"""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @computed_field
    @property
    def is_development(self) -> bool:
        """True for local and development environments"""
        return self.DEBUG or self.ENVIRONMENT in ["development", "dev", "local"]


@lru_cache
def get_settings() -> Settings:
    """
    Return the cached settings instance.
    Avoids re-reading the environment on every call.
    """
    return Settings()
