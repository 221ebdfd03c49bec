"""Configuration management using pydantic-settings."""

import logging

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Self-Updating BIA"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./bia.db"

    # Data sources (empty URL = built-in scaffolding payload)
    SOURCE_TIMEOUT_SECONDS: float = 10.0  # Per-adapter bound, no collector-level timeout
    SOURCE_API_TOKEN: str = ""
    REGISTRY_URL: str = ""  # CMDB / service registry
    ESCALATION_URL: str = ""  # Incident escalation service
    PERSONNEL_URL: str = ""  # HR directory
    FINANCIAL_URL: str = ""  # Financial metrics API
    MONITORING_URL: str = ""  # Monitoring API

    # Predictive analytics engine (external subprocess)
    PREDICTIVE_ENGINE_PATH: str = "predictive_engine"
    PREDICTIVE_ENGINE_SCRIPT: str = "rto_rpo_predictor.py"
    PREDICTIVE_PYTHON: str = "python3"
    PREDICTIVE_TIMEOUT_SECONDS: float = 60.0
    PREDICTIVE_SNAPSHOT_WAIT_SECONDS: float = 5.0  # Max wait for registry/monitoring snapshots
    PREDICTION_HORIZON: str = "12_months"

    # Risk-management platform (Fusion)
    RISK_PLATFORM_URL: str = ""  # Empty = scaffolding client
    RISK_PLATFORM_TOKEN: str = ""
    RISK_PLATFORM_REVIEW_DAYS: int = 365  # Next review date offset after a push

    # Generate endpoint rate limit
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 30

    @property
    def source_urls(self) -> dict[str, str]:
        """Configured base URLs keyed by source name."""
        return {
            "registry": self.REGISTRY_URL,
            "escalation": self.ESCALATION_URL,
            "personnel": self.PERSONNEL_URL,
            "financial": self.FINANCIAL_URL,
            "monitoring": self.MONITORING_URL,
        }

    @model_validator(mode="after")
    def check_integration_settings(self) -> "Settings":
        """Validate integration settings."""
        if self.RISK_PLATFORM_URL and not self.RISK_PLATFORM_TOKEN:
            logging.warning(
                "RISK_PLATFORM_URL is set but RISK_PLATFORM_TOKEN is empty; "
                "pushes will be sent unauthenticated"
            )
        return self


settings = Settings()
