"""Configuration management using Pydantic Settings."""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .analytics import AnalyticsConfig


class Settings(BaseSettings):
    """Process-level settings loaded from environment variables and .env file.

    The analytics engine itself never reads these values; they only seed the
    CLI defaults and the logging setup.  Library callers pass an explicit
    :class:`AnalyticsConfig` instead.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JBA_",
        case_sensitive=False,
        extra="ignore",
    )

    # Directories
    cache_dir: Path = Field(Path(".cache"))

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    # Analytics defaults used by the CLI
    decay_rate: float = Field(0.95, gt=0, le=1)
    minimum_raw_cases: int = Field(200, ge=0)
    minimum_peer_judges_for_baseline: int = Field(5, ge=5)
    anomaly_sigma_threshold: float = Field(2.0, gt=0)
    max_analyzer_workers: int = Field(4, ge=1, le=32)

    def analytics_config(self) -> AnalyticsConfig:
        return AnalyticsConfig(
            decay_rate=self.decay_rate,
            minimum_raw_cases=self.minimum_raw_cases,
            minimum_peer_judges_for_baseline=self.minimum_peer_judges_for_baseline,
            anomaly_sigma_threshold=self.anomaly_sigma_threshold,
            max_analyzer_workers=self.max_analyzer_workers,
        )


# Instantiate global settings
settings = Settings()
