import math
from typing import Iterable

from .types import AbsorptionConfig, DoseEvent, Timestamp


def is_finite(x) -> bool:
    return x is not None and math.isfinite(x)


def has_valid_start(event: DoseEvent) -> bool:
    """True when the event has a positive finite dose and a finite insertion time."""
    return is_finite(event.dose_mg) and event.dose_mg > 0 and is_finite(event.inserted_at)


def removal_time(event: DoseEvent) -> Timestamp | None:
    # NaN/inf removal stamps are treated as "not removed yet"
    return event.removed_at if is_finite(event.removed_at) else None


def sorted_events(events: Iterable[DoseEvent]) -> list[DoseEvent]:
    """
    Order events by insertion time, then id. Events without a usable
    insertion time go last.
    """
    def key(e: DoseEvent):
        start = e.inserted_at if is_finite(e.inserted_at) else math.inf
        return (start, e.id)
    return sorted(events, key=key)


def dedupe_events(events: Iterable[DoseEvent]) -> list[DoseEvent]:
    """
    Drop repeated ids, keeping the last occurrence (the most recent edit).
    Result is in the order each id was first seen.
    """
    by_id: dict[str, DoseEvent] = {}
    for e in events:
        by_id[e.id] = e
    return list(by_id.values())


def active_events(events: Iterable[DoseEvent], at: Timestamp) -> list[DoseEvent]:
    """Pouches that are in the mouth at `at`."""
    out: list[DoseEvent] = []
    for e in events:
        if not has_valid_start(e) or e.inserted_at > at:
            continue
        removed = removal_time(e)
        if removed is None or removed >= at:
            out.append(e)
    return out


def config_fraction(config: AbsorptionConfig) -> float:
    """Absorption fraction; a non-finite or negative value absorbs nothing."""
    fraction = config.absorption_fraction
    return max(fraction, 0.0) if is_finite(fraction) else 0.0


def config_half_life(config: AbsorptionConfig) -> float:
    """Elimination half-life, floored to 1 s. A non-finite value falls to the floor."""
    half_life = config.half_life_s
    return max(half_life, 1.0) if is_finite(half_life) else 1.0
