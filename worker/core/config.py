# core/config.py

"""
Application Configuration
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Alert Notification Worker"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8000

    # Alert Check Settings
    stale_window_hours: float = 3
    check_interval_seconds: int = 0
    max_retained_jobs: int = 20

    # Store Settings
    store_backend: str = "memory"
    sqlite_path: str = "data/alerts.sqlite"

    class Config:
        env_prefix = "ALERT_WORKER_"
        case_sensitive = False


settings = Settings()
