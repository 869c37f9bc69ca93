# src/nicpk/simulate.py
from typing import Iterable

from .calculator import calculate_total_nicotine_level
from .settings import CalculatorSettings
from .timeline import level_history, project_levels
from .types import DoseEvent, LevelProjection, Timestamp


def run_level(events: Iterable[DoseEvent], settings: CalculatorSettings, at: Timestamp) -> float:
    """
    Level at `at` using the absorption duration currently in `settings`.
    """
    return calculate_total_nicotine_level(events, settings.absorption_config(), at)


def run_history(events: Iterable[DoseEvent], settings: CalculatorSettings, at: Timestamp):
    """
    Trailing chart series ending at `at`, sampled as configured.
    """
    return level_history(
        events,
        settings.absorption_config(),
        at,
        hours=settings.history_hours,
        step_s=settings.history_step_minutes * 60.0,
    )


def run_projection(events: Iterable[DoseEvent], settings: CalculatorSettings, start: Timestamp,
                   refine: bool = False) -> LevelProjection:
    """
    Forward projection against the configured target range.
    """
    return project_levels(
        events,
        settings.absorption_config(),
        settings.alert_range(),
        start,
        duration_s=settings.projection_hours * 3600.0,
        step_s=settings.projection_step_minutes * 60.0,
        refine=refine,
    )
