from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Coin Metrics Community API (free, no key required)
    coinmetrics_base_url: str = "https://community-api.coinmetrics.io/v4/timeseries/asset-metrics"
    coinmetrics_page_size: int = 1000  # Max records per page
    coinmetrics_page_delay_seconds: float = 0.6  # 10 requests per 6 seconds
    coinmetrics_timeout_seconds: int = 30
    history_start_date: str = "2012-01-01"

    # Series store
    # Options: memory, database
    cache_backend: str = "database"
    database_url: str = "sqlite+aiosqlite:///./mvrv_cache.db"

    # Scheduled refresh (replaces the daily cron trigger)
    refresh_enabled: bool = True
    refresh_interval_hours: int = 24
    refresh_initial_delay_seconds: int = 10

    # HTTP
    cors_origins: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    @field_validator("cache_backend")
    @classmethod
    def normalize_cache_backend(cls, v: str) -> str:
        """Accept any casing, reject unknown backends"""
        v = v.strip().lower()
        if v not in ("memory", "database"):
            raise ValueError(f"Unsupported cache backend: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    def get_cors_origins_list(self) -> List[str]:
        """CORS origins with blanks removed"""
        return [origin.strip() for origin in self.cors_origins if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
