"""Configuration models."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are prefixed with AUDITTRAIL_ (e.g., AUDITTRAIL_DATA_DIR).
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDITTRAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    store: str = Field(default="json", description="History store backend: json or memory")
    data_dir: Path = Field(
        default=Path("./.audittrail"),
        description="Directory holding one JSON document per task",
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render log lines as JSON")
