# src/nicpk/metrics.py
import numpy as np
from typing import NamedTuple

# (upper bound mg, label); anything at or above the last bound is "extreme"
_LEVEL_BANDS = (
    (1.0, "low"),
    (3.0, "moderate"),
    (6.0, "high"),
    (10.0, "very_high"),
)


class TrendSegment(NamedTuple):
    start: int   # index of first sample in the run
    end: int     # index of last sample in the run (inclusive)
    rising: bool


def peak_level(C: np.ndarray) -> float:
    """Highest level in the series (mg); 0 for an empty series."""
    C = np.asarray(C, dtype=float)
    return float(np.max(C)) if C.size else 0.0

def time_of_peak(t: np.ndarray, C: np.ndarray) -> float:
    """Timestamp of the highest level (first one on ties)."""
    C = np.asarray(C, dtype=float)
    if C.size == 0:
        return float("nan")
    return float(np.asarray(t, dtype=float)[int(np.argmax(C))])

def mean_level(C: np.ndarray) -> float:
    """Average level over the samples (mg)."""
    C = np.asarray(C, dtype=float)
    return float(np.mean(C)) if C.size else 0.0

def exposure_auc(t: np.ndarray, C: np.ndarray) -> float:
    """Area under the level curve via trapezoidal rule, in mg*h (t in seconds)."""
    t = np.asarray(t, dtype=float)
    C = np.asarray(C, dtype=float)
    if t.size < 2:
        return 0.0
    return float(np.trapezoid(C, t / 3600.0))

def level_band(level: float) -> str:
    """Coarse label for a level: low, moderate, high, very_high or extreme."""
    for upper, label in _LEVEL_BANDS:
        if level < upper:
            return label
    return "extreme"

def trend_segments(t: np.ndarray, C: np.ndarray) -> list[TrendSegment]:
    """
    Split a series into runs of rising / non-rising samples.

    A step counts as rising only if the level strictly increases. Each new
    run starts at the last sample of the previous one so the runs join up
    when drawn. Fewer than two samples gives no segments.
    """
    C = np.asarray(C, dtype=float)
    if C.size < 2 or np.asarray(t).size != C.size:
        return []

    rising = np.diff(C) > 0
    segments: list[TrendSegment] = []
    run_start = 0
    for i in range(1, rising.size):
        if rising[i] != rising[i - 1]:
            segments.append(TrendSegment(run_start, i, bool(rising[i - 1])))
            run_start = i
    segments.append(TrendSegment(run_start, C.size - 1, bool(rising[-1])))
    return segments
