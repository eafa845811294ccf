"""Configuration management using Pydantic Settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings.

    Every field can be overridden with a ``DRIVER_CHECK_`` prefixed
    environment variable or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DRIVER_CHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Driver Compliance Checker")
    runs_dir: Path = Field(
        default=APP_DIR / "runs",
        description="Where uploads and generated results are kept between requests",
    )
    max_upload_mb: int = Field(default=5, description="Largest accepted CSV upload")
    run_ttl_hours: int = Field(default=6, description="Age after which run folders are removed")
    report_title: str = Field(default="Driver Compliance Report")

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)


settings = Settings()
