"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    ENVIRONMENT=production
    REDIS_URL=redis://localhost:6379/0
    RETENTION_DAYS=90
    LOGIN_FAILURES_PER_IP=5
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "staging", "production")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ENVIRONMENT: str = "development"

    # Event store; "memory://" selects the in-process store
    REDIS_URL: str = "memory://"
    SECURITY_LOG_KEY: str = "security_logs"
    CRITICAL_EVENTS_KEY: str = "critical_security_events"

    # Retention
    RETENTION_DAYS: int = 90
    CRITICAL_EVENTS_MAX: int = 1_000

    # Analysis windows
    DETECTION_WINDOW_HOURS: int = 24
    INSIGHTS_WINDOW_DAYS: int = 7

    # Detector thresholds
    LOGIN_FAILURES_PER_IP: int = 5
    LOGIN_FAILURES_PER_USER: int = 3
    LOGIN_DISTINCT_IPS_PER_USER: int = 2
    PAYMENTS_PER_USER: int = 3
    SUSPICIOUS_TRANSACTIONS_MIN: int = 2
    RATE_LIMIT_VIOLATIONS_PER_IP: int = 3

    # Insights
    INSIGHTS_TOP_N: int = 10
    RISK_FLAG_SCORE: float = 50.0

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def normalise_environment(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of {', '.join(ENVIRONMENTS)}")
        return v

    @field_validator("RETENTION_DAYS", "CRITICAL_EVENTS_MAX")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def detection_window_ms(self) -> int:
        return self.DETECTION_WINDOW_HOURS * 60 * 60 * 1000

    @property
    def insights_window_ms(self) -> int:
        return self.INSIGHTS_WINDOW_DAYS * 24 * 60 * 60 * 1000


settings = Settings()
