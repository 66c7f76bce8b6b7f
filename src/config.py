# src/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# Repo-relative paths (no local machine paths)
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "reports"


class Settings(BaseSettings):
    """Report settings, overridable with HEALTH_REPORT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_REPORT_",
        env_file=".env",
        extra="ignore",
    )

    timezone: str = "Asia/Kolkata"
    timeframe_days: int = 30

    output_dir: Path = DEFAULT_OUTPUT_DIR

    # Chart raster size
    chart_width_px: int = 800
    chart_height_px: int = 400
    chart_dpi: int = 100

    organisation: str = "Restore Me"

    @property
    def charts_dir(self) -> Path:
        return self.output_dir / "charts"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
