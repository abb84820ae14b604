from datetime import time
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Database settings
    DATABASE_URL: str = "postgresql://localhost:5432/schedulesync"

    # Calendar provider settings
    GOOGLE_CALENDAR_API_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    MICROSOFT_GRAPH_API_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    CALENDAR_REQUEST_TIMEOUT: float = 15.0

    # =================================================================
    # SCHEDULING SETTINGS
    # =================================================================
    DEFAULT_TIMEZONE: str = "UTC"
    WORKING_HOURS_START: time = time(9, 0)
    WORKING_HOURS_END: time = time(17, 0)

    PATTERN_LOOKBACK_DAYS: int = 90
    PATTERN_REFRESH_INTERVAL_MINUTES: int = 360  # 6 hours

    SMART_SUGGESTION_DAYS_AHEAD: int = 14
    SMART_SUGGESTION_MAX_SLOTS: int = 5

    # When the rule store is unreachable, block bookings instead of
    # proceeding without rules.
    RULES_FAIL_CLOSED: bool = False

    # =================================================================
    # DATABASE POOL SETTINGS - Simple and configurable
    # =================================================================
    DB_POOL_MIN_SIZE: int = 3
    DB_POOL_MAX_SIZE: int = 12
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # More conservative for local development
            config.update(
                {
                    "min_size": 2,
                    "max_size": 6,
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
