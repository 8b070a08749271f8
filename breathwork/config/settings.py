from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Get the directory progress records are stored in.

    Defaults to ~/.breathwork so progress survives reinstalls of the package.
    """
    return Path.home() / ".breathwork"


class Settings(BaseSettings):
    data_dir: Path = Field(
        default_factory=get_default_data_dir,
        description="Directory holding the persisted progress, achievements and settings records",
    )
    log_level: str = Field(default="INFO")
    log_file: str | None = Field(default=None, description="Optional JSON-lines log file")
    log_rotation: str = Field(default="10 MB")
    log_retention: str = Field(default="7 days")
    default_pattern_id: str = Field(
        default="standard_5_5",
        description="Pattern used when an unknown pattern id is requested",
    )
    default_duration_minutes: int = Field(default=15, ge=1, le=120)
    inter_cycle_pause_seconds: float = Field(default=1.5, ge=0)
    quick_inter_cycle_pause_seconds: float = Field(default=0.5, ge=0)
    tick_interval_seconds: float = Field(default=1.0, gt=0)
    ambient_poll_interval_seconds: float = Field(default=2.0, gt=0)
    metrics_refresh_interval_seconds: float = Field(default=0.5, gt=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid BREATHWORK_LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("inter_cycle_pause_seconds", "quick_inter_cycle_pause_seconds")
    @classmethod
    def validate_inter_cycle_pause(cls, value: float) -> float:
        """Warn when the pause between cycles is long enough to break the rhythm."""
        if value > 10:
            logger.warning(f"Inter-cycle pause of {value}s is unusually long; sessions will feel fragmented.")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BREATHWORK_",
        extra="ignore",
    )


settings = Settings()
