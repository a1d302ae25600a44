"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StrokeDetectionSettings(BaseSettings):
    """Brush stroke detection parameters.

    The two algorithms were tuned separately and disagree on what counts
    as a sweep, so each keeps its own threshold.
    """

    model_config = SettingsConfigDict(env_prefix="STROKE_")

    algorithm: Literal["zero_crossing", "lookback"] = "zero_crossing"
    axis: Literal["x", "y", "z"] = "y"

    # Zero-crossing detector
    deadzone: float = 0.05
    sweep_threshold: float = 1.0
    min_stroke_interval_s: float = 0.08

    # Lookback detector
    lookback_threshold: float = 0.5
    lookback_window: int = Field(default=15, ge=1)
    min_samples_between_strokes: int = Field(default=5, ge=0)


class SplitSettings(BaseSettings):
    """Split time estimation parameters."""

    model_config = SettingsConfigDict(env_prefix="SPLIT_")

    default_step_s: float = 0.1
    hog_time_s: float = 99.999
    first_weight_time_s: float = 4.4
    position_prompt_delay_s: float = 10.0


class SessionSettings(BaseSettings):
    """Workout session timing and debug recording."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    status_sync_interval_s: float = 1.0
    debug_mode: bool = False


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: str | None = None


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    stroke: StrokeDetectionSettings = Field(default_factory=StrokeDetectionSettings)
    split: SplitSettings = Field(default_factory=SplitSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings instance."""
    return Settings()
