from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Ioo Rewards"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 8000

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/ioo"

    # Time source - IANA zone name, empty means server-local time
    timezone: str = ""

    # Badges
    progress_limit: int = 5  # Near-completion badges returned by the API

    # Coloring session buckets (minutes)
    quick_coloring_max_minutes: int = 5
    marathon_coloring_min_minutes: int = 30

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Reject settings the badge rules cannot work with."""
        if self.progress_limit < 1:
            raise ValueError("PROGRESS_LIMIT must be at least 1")
        if self.quick_coloring_max_minutes >= self.marathon_coloring_min_minutes:
            raise ValueError(
                "QUICK_COLORING_MAX_MINUTES must be below MARATHON_COLORING_MIN_MINUTES"
            )
        if self.timezone:
            try:
                ZoneInfo(self.timezone)
            except ZoneInfoNotFoundError:
                raise ValueError(f"Unknown TIMEZONE: {self.timezone}")
        return self


settings = Settings()
