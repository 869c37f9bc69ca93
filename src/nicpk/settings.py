# src/nicpk/settings.py
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .log import configure_logging
from .types import FULL_RELEASE_OPTIONS_MIN, AbsorptionConfig, AlertRange


class CalculatorSettings(BaseSettings):
    """
    User-facing knobs for the level model.
    Loaded from:
    1. Environment variables (NICPK_*)
    2. A .env file in the working directory
    3. Keyword overrides
    """

    model_config = SettingsConfigDict(
        env_prefix="NICPK_",
        env_file=".env",
        extra="ignore",
    )

    # Absorption ramp length picked by the user
    full_release_minutes: int = 30

    # Target range (mg)
    nicotine_range_low: float = Field(default=1.0, ge=0)
    nicotine_range_high: float = Field(default=3.0, ge=0)
    nicotine_alert_threshold: float = Field(default=0.2, ge=0)

    # Chart / projection sampling
    history_hours: float = Field(default=24.0, gt=0)
    history_step_minutes: float = Field(default=15.0, gt=0)
    projection_hours: float = Field(default=10.0, gt=0)
    projection_step_minutes: float = Field(default=5.0, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("full_release_minutes")
    @classmethod
    def check_release_option(cls, v: int) -> int:
        if v not in FULL_RELEASE_OPTIONS_MIN:
            raise ValueError(f"full_release_minutes must be one of {FULL_RELEASE_OPTIONS_MIN} (got {v})")
        return v

    @model_validator(mode="after")
    def check_range(self) -> "CalculatorSettings":
        if self.nicotine_range_high < self.nicotine_range_low:
            raise ValueError(
                f"nicotine_range_high ({self.nicotine_range_high}) must be >= "
                f"nicotine_range_low ({self.nicotine_range_low})"
            )
        return self

    def absorption_config(self) -> AbsorptionConfig:
        return AbsorptionConfig.from_minutes(self.full_release_minutes)

    def alert_range(self) -> AlertRange:
        return AlertRange(
            range_low_mg=self.nicotine_range_low,
            range_high_mg=self.nicotine_range_high,
            alert_threshold_mg=self.nicotine_alert_threshold,
        )

    def apply_logging(self):
        return configure_logging(self.log_level)


def load_settings(**overrides: Any) -> CalculatorSettings:
    """
    Resolve settings once for a calculation. Keyword overrides win over
    the environment; None values are ignored.
    """
    return CalculatorSettings(**{k: v for k, v in overrides.items() if v is not None})
