"""
Configuration management for MedicineTT
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "MedicineTT"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./medicinett.db"
    DATABASE_ECHO: bool = False
    STORE_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Scheduler (cron expressions, local wall-clock time)
    SCHEDULER_ENABLED: bool = True
    MISSED_SWEEP_CRON: str = "59 23 * * *"
    DAILY_REPORT_CRON: str = "0 0 * * *"

    # Report export
    REPORTS_DIR: str = "./reports"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Report layout
class ReportConfig:
    """Constants shared by the report builder and exporter"""

    TIME_SLOT_ORDER: dict[str, int] = {
        "Morning": 1,
        "Noon": 2,
        "Evening": 3,
        "Night": 4,
    }
    # Same-day wraparound applied once to negative slot gaps
    WRAPAROUND_MINUTES: int = 12 * 60
    FILE_PREFIX: str = "MedicineTT_Report_"


# Database table names
class TableNames:
    MEDICINES = "medicines"
    DAILY_LOGS = "daily_logs"


settings = get_settings()
report_config = ReportConfig()
