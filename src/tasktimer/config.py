"""Configuration management for TaskTimer."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# TaskTimer config directory
TASKTIMER_DIR = Path.home() / ".tasktimer"
TASKTIMER_ENV_FILE = TASKTIMER_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKTIMER_",
        # Later files override earlier ones
        env_file=(str(TASKTIMER_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage settings
    data_file: Path | None = Field(
        default=None,
        description="Path of the session JSON file (default: ~/.tasktimer/tasksessions.json)",
    )

    # Export settings
    exports_dir: Path | None = Field(
        default=None,
        description="Directory for CSV exports (default: ./Exports)",
    )
    open_exports: bool = Field(
        default=True,
        description="Open exported CSV files with the system viewer",
    )

    # Engine settings
    accidental_tap_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Sessions stopped or paused sooner than this are discarded",
    )
    summary_include_running: bool = Field(
        default=False,
        description="Count the running session's elapsed time in summaries",
    )

    def get_data_file(self) -> Path:
        """Get the session data file, using default if not set."""
        if self.data_file:
            return self.data_file.expanduser()
        return TASKTIMER_DIR / "tasksessions.json"

    def get_exports_dir(self) -> Path:
        """Get the export directory, using default if not set."""
        if self.exports_dir:
            return self.exports_dir.expanduser()
        return Path.cwd() / "Exports"


# Global settings instance
settings = Settings()
