"""Process settings loaded from environment variables (or a .env file)."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings that are not part of the risk policy."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Empty path means data/risk_config.json
    risk_config_path: str = Field(default="", alias="RISK_CONFIG_PATH")

    # Narrative service; an empty URL runs the pipeline in degraded mode
    narrative_service_url: str = Field(default="", alias="NARRATIVE_SERVICE_URL")
    narrative_service_api_key: str = Field(default="", alias="NARRATIVE_SERVICE_API_KEY")
    narrative_timeout_seconds: float = Field(default=10.0, gt=0, alias="NARRATIVE_TIMEOUT_SECONDS")

    batch_max_workers: int = Field(default=1, ge=1, alias="BATCH_MAX_WORKERS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["console", "json"] = Field(default="console", alias="LOG_FORMAT")
