"""Runtime configuration."""

from functools import lru_cache
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """PrintTracker settings, read from PRINTTRACKER_* variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PRINTTRACKER_",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(default=Path(".printtracker"), description="Directory holding the state snapshot")
    snapshot_name: str = Field(default="state.json", description="Snapshot file name inside data_dir")
    log_level: str = Field(default="WARNING", description="Root log level for the CLI")

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_name


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
