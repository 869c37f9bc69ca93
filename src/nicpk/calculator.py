# src/nicpk/calculator.py
"""
Point-in-time nicotine level for a set of pouches.

Each pouch goes through two phases:
  - absorption while it is in the mouth: linear ramp from 0 up to
    dose * absorption_fraction over full_release_s, then flat until removal
  - decay once it is out: the level reached at removal halves every half_life_s

The total level is the plain sum of per-pouch contributions. Nothing here
raises for malformed events; they contribute 0 instead, so one bad row
never hides the rest of the log.
"""
import logging
import math
from typing import Iterable

from .helpers import config_fraction, config_half_life, has_valid_start, is_finite, removal_time
from .types import AbsorptionConfig, DoseEvent, Timestamp

logger = logging.getLogger(__name__)


def effective_full_release(event: DoseEvent, config: AbsorptionConfig) -> float:
    """
    Absorption ramp length for this event, floored to 1 s.

    A stored per-event duration only counts when it is finite and > 0;
    0 is the "never set" value of the event store.
    """
    override = event.full_release_s
    release = override if is_finite(override) and override > 0 else config.full_release_s
    if not is_finite(release):
        release = 1.0
    return max(release, 1.0)


def _absorbed(dose_mg: float, elapsed_s: float, release_s: float, fraction: float) -> float:
    fractional = max(elapsed_s, 0.0) / release_s
    return dose_mg * min(fraction * fractional, fraction)


def _decayed(initial_mg: float, since_removal_s: float, half_life_s: float) -> float:
    return initial_mg * math.pow(0.5, max(since_removal_s, 0.0) / half_life_s)


def contribution(event: DoseEvent, config: AbsorptionConfig, at: Timestamp) -> float:
    """
    Nicotine (mg) this single pouch puts in the bloodstream at time `at`.

    Returns 0 for events without a usable dose or start time and for
    query times before insertion.
    """
    if not has_valid_start(event) or not is_finite(at) or at < event.inserted_at:
        return 0.0

    release = effective_full_release(event, config)
    removed_at = removal_time(event)

    if removed_at is None or removed_at >= at:
        # Still in the mouth at `at`
        return _absorbed(event.dose_mg, at - event.inserted_at, release, config_fraction(config))

    initial = _absorbed(event.dose_mg, removed_at - event.inserted_at, release, config_fraction(config))
    return _decayed(initial, at - removed_at, config_half_life(config))


def calculate_total_nicotine_level(events: Iterable[DoseEvent], config: AbsorptionConfig,
                                   at: Timestamp) -> float:
    """
    Total estimated bloodstream nicotine (mg) at `at`.

    Order of `events` does not matter and the collection is never mutated.
    An empty collection gives 0.0.
    """
    total = 0.0
    count = 0
    for event in events:
        c = contribution(event, config, at)
        if c > 0.0:
            logger.debug("pouch %s (%s mg): +%.4f mg", event.id, event.dose_mg, c)
        total += c
        count += 1
    logger.debug("total nicotine at %.0f: %.3f mg from %d pouches", at, total, count)
    return max(total, 0.0)


def absorption_rate(event: DoseEvent, config: AbsorptionConfig, at: Timestamp) -> float:
    """
    Instantaneous absorption rate (mg/s): the slope of the ramp while the
    pouch is in the mouth and not yet fully released, 0 otherwise.
    """
    if not has_valid_start(event) or not is_finite(at) or at < event.inserted_at:
        return 0.0
    removed_at = removal_time(event)
    if removed_at is not None and removed_at < at:
        return 0.0
    release = effective_full_release(event, config)
    if at - event.inserted_at >= release:
        return 0.0
    return event.dose_mg * config_fraction(config) / release


def absorption_progress(event: DoseEvent, config: AbsorptionConfig, at: Timestamp) -> float:
    """
    Share of the absorption window that has elapsed, 0.0 to 1.0.

    Independent of dose. Time stops counting at removal, so a pouch pulled
    halfway through stays at 0.5.
    """
    if not is_finite(event.inserted_at) or not is_finite(at) or at < event.inserted_at:
        return 0.0
    end = at
    removed_at = removal_time(event)
    if removed_at is not None:
        end = min(end, removed_at)
    elapsed = max(end - event.inserted_at, 0.0)
    return min(elapsed / effective_full_release(event, config), 1.0)


def peak_contribution(event: DoseEvent, config: AbsorptionConfig) -> float:
    """Highest level a single pouch can reach: dose * absorption fraction."""
    if not is_finite(event.dose_mg) or event.dose_mg <= 0:
        return 0.0
    return event.dose_mg * config_fraction(config)


def total_absorbed(event: DoseEvent, config: AbsorptionConfig) -> float:
    """
    Amount absorbed over the whole time in the mouth.

    For a pouch that is still in, assume it stays for the full release time.
    """
    if not has_valid_start(event):
        return 0.0
    release = effective_full_release(event, config)
    removed_at = removal_time(event)
    in_mouth = release if removed_at is None else removed_at - event.inserted_at
    return _absorbed(event.dose_mg, in_mouth, release, config_fraction(config))
