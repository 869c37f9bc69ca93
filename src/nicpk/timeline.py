# src/nicpk/timeline.py
import logging
from typing import Iterable

import numpy as np
from scipy.optimize import brentq

from .calculator import calculate_total_nicotine_level, effective_full_release
from .helpers import config_fraction, config_half_life, has_valid_start, is_finite, removal_time
from .models.linear_absorption import absorbed_amount, decayed_amount
from .types import AbsorptionConfig, AlertRange, DoseEvent, LevelProjection, Timestamp

logger = logging.getLogger(__name__)

# Scalar and vectorised paths must agree to this many mg at every sample.
PARITY_TOLERANCE_MG = 5e-4


def sample_times(start: Timestamp, end: Timestamp, step_s: float) -> np.ndarray:
    """
    Evenly spaced timestamps from start to end (both inclusive when end
    falls on the grid). Empty if end < start, if either end is not
    finite, or if step_s is not a positive number.
    """
    if not (is_finite(start) and is_finite(end)) or not (step_s > 0) or end < start:
        return np.empty(0, dtype=float)
    n = int(np.floor((end - start) / step_s + 1e-9))
    return float(start) + step_s * np.arange(n + 1, dtype=float)


def contribution_curve(event: DoseEvent, config: AbsorptionConfig, times) -> np.ndarray:
    """
    Vectorised per-pouch contribution over an array of timestamps.

    Mirrors calculator.contribution sample by sample:
      t < inserted                 -> 0
      not removed, or t <= removed -> linear ramp (capped)
      t > removed                  -> decay from the level reached at removal
    """
    t = np.asarray(times, dtype=float)
    out = np.zeros_like(t)
    if not has_valid_start(event):
        return out

    release = effective_full_release(event, config)
    inserted = float(event.inserted_at)
    removed = removal_time(event)

    started = np.isfinite(t) & (t >= inserted)
    if removed is None:
        absorbing = started
    else:
        absorbing = started & (t <= removed)
    decaying = started & ~absorbing

    out[absorbing] = absorbed_amount(event.dose_mg, t[absorbing] - inserted, release,
                                     config_fraction(config))
    if removed is not None and np.any(decaying):
        initial = absorbed_amount(event.dose_mg, removed - inserted, release, config_fraction(config))
        out[decaying] = decayed_amount(initial, t[decaying] - removed, config_half_life(config))
    return out


def level_curve(events: Iterable[DoseEvent], config: AbsorptionConfig, times) -> np.ndarray:
    """Total level (mg) at each timestamp in `times`."""
    t = np.asarray(times, dtype=float)
    total = np.zeros_like(t)
    for e in events:
        total += contribution_curve(e, config, t)
    return np.maximum(total, 0.0)


def level_history(events: Iterable[DoseEvent], config: AbsorptionConfig, at: Timestamp,
                  hours: float = 24.0, step_s: float = 15 * 60.0):
    """
    Chart series for the trailing window ending at `at`.

    Returns:
      t : array of timestamps (POSIX seconds)
      C : array of levels (mg)
    """
    t = sample_times(at - hours * 3600.0, at, step_s)
    C = level_curve(events, config, t)
    logger.debug("level history: %d samples over %.1f h", t.size, hours)
    return t, C


def _refine_crossing(events, config, boundary, a, b, fallback):
    def f(x):
        return calculate_total_nicotine_level(events, config, x) - boundary
    try:
        return float(brentq(f, a, b, xtol=1e-3))
    except ValueError:
        # No sign change under the scalar path (sample sat exactly on the boundary)
        logger.debug("crossing refinement fell back to grid time %.0f", fallback)
        return float(fallback)


def project_levels(events: Iterable[DoseEvent], config: AbsorptionConfig, alert_range: AlertRange,
                   start: Timestamp, duration_s: float = 10 * 3600.0, step_s: float = 5 * 60.0,
                   refine: bool = False) -> LevelProjection:
    """
    Sample the level forward from `start` and find the first time it
    crosses each boundary of `alert_range`.

      low crossing  : previous sample > effective_low and current <= effective_low
      high crossing : previous sample <= effective_high and current > effective_high

    With refine=True, each crossing is pinned down between its two samples
    by root finding on the scalar calculator instead of reporting the grid time.
    """
    snapshot = tuple(events)
    t = sample_times(start, start + duration_s, step_s)
    C = level_curve(snapshot, config, t)

    low, high = alert_range.effective_low, alert_range.effective_high
    low_crossing = None
    high_crossing = None
    for i in range(1, t.size):
        prev, cur = C[i - 1], C[i]
        if low_crossing is None and prev > low and cur <= low:
            low_crossing = float(t[i])
            if refine:
                low_crossing = _refine_crossing(snapshot, config, low, t[i - 1], t[i], t[i])
            logger.info("projected low boundary crossing at %.0f (%.3f mg)", low_crossing, cur)
        if high_crossing is None and prev <= high and cur > high:
            high_crossing = float(t[i])
            if refine:
                high_crossing = _refine_crossing(snapshot, config, high, t[i - 1], t[i], t[i])
            logger.info("projected high boundary crossing at %.0f (%.3f mg)", high_crossing, cur)
        if low_crossing is not None and high_crossing is not None:
            break

    current = float(C[0]) if C.size else 0.0
    return LevelProjection(current_level=current, times=t, levels=C,
                           low_crossing=low_crossing, high_crossing=high_crossing)


def parity_gap(events: Iterable[DoseEvent], config: AbsorptionConfig, times) -> float:
    """
    Largest absolute difference (mg) between the scalar calculator and the
    vectorised curve over `times`. Should stay below PARITY_TOLERANCE_MG.
    """
    snapshot = tuple(events)
    t = np.asarray(times, dtype=float)
    if t.size == 0:
        return 0.0
    vec = level_curve(snapshot, config, t)
    scalar = np.array([calculate_total_nicotine_level(snapshot, config, float(x)) for x in t])
    return float(np.max(np.abs(vec - scalar)))
