# src/nicpk/events.py
from __future__ import annotations

import dataclasses
import math
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from .helpers import removal_time
from .types import DoseEvent, Timestamp


def to_timestamp(dt: datetime) -> Timestamp:
    """
    Convert a datetime to POSIX seconds. Naive datetimes are taken as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def pouch(dose_mg: float, inserted_at: Timestamp, removed_at: Optional[Timestamp] = None, *,
          event_id: Optional[str] = None, full_release_s: Optional[float] = None) -> DoseEvent:
    """
    Create a validated pouch event.

    Examples:
      - 6 mg pouch put in at t0, still in:          pouch(6.0, t0)
      - 4 mg pouch in at t0, out 30 min later:       pouch(4.0, t0, t0 + 1800)
      - pin the 45 min ramp chosen when it started:  pouch(6.0, t0, full_release_s=2700)
    event_id       : identifier to reuse (e.g. from the event store); a uuid4 if omitted
    """
    _validate_positive("dose_mg", dose_mg)
    _validate_finite("inserted_at", inserted_at)
    if removed_at is not None:
        _validate_finite("removed_at", removed_at)
        _validate_not_before("removed_at", removed_at, inserted_at)
    if full_release_s is not None:
        _validate_positive("full_release_s", full_release_s)

    return DoseEvent(
        id=event_id or str(uuid.uuid4()),
        dose_mg=float(dose_mg),
        inserted_at=float(inserted_at),
        removed_at=None if removed_at is None else float(removed_at),
        full_release_s=None if full_release_s is None else float(full_release_s),
    )


def remove_pouch(event: DoseEvent, removed_at: Timestamp) -> DoseEvent:
    """
    Mark a pouch as taken out. Events are immutable, so this returns a copy.
    A pouch can only be removed once. A non-finite stored removal time
    counts as not removed, the same as in the calculator.
    """
    if removal_time(event) is not None:
        raise ValueError(f"pouch {event.id} was already removed at {event.removed_at}.")
    _validate_finite("removed_at", removed_at)
    if event.inserted_at is not None:
        _validate_not_before("removed_at", removed_at, event.inserted_at)
    return dataclasses.replace(event, removed_at=float(removed_at))


def edit_pouch(event: DoseEvent, *, dose_mg: Optional[float] = None,
               inserted_at: Optional[Timestamp] = None,
               removed_at: Optional[Timestamp] = None) -> DoseEvent:
    """
    Apply a user correction (amount or times) and re-validate the result.
    Fields left as None keep their current value.
    """
    return pouch(
        dose_mg=event.dose_mg if dose_mg is None else dose_mg,
        inserted_at=event.inserted_at if inserted_at is None else inserted_at,
        removed_at=event.removed_at if removed_at is None else removed_at,
        event_id=event.id,
        full_release_s=event.full_release_s,
    )


def from_explicit_log(entries: Sequence[Tuple[Timestamp, Optional[Timestamp], float]]) -> list[DoseEvent]:
    """
    Build events from manual (inserted_at, removed_at, dose_mg) entries.
    Example: entries=[(t0, t0 + 1800, 6.0), (t0 + 3600, None, 4.0)]
    """
    events = [pouch(dose_mg, inserted_at, removed_at) for inserted_at, removed_at, dose_mg in entries]
    events.sort(key=lambda e: e.inserted_at)
    return events


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x) -> None:
    if x is None or not (x > 0) or not math.isfinite(x):
        raise ValueError(f"{name} must be a finite number > 0 (got {x}).")

def _validate_finite(name: str, x) -> None:
    if x is None or not math.isfinite(x):
        raise ValueError(f"{name} must be a finite timestamp (got {x}).")

def _validate_not_before(name: str, x: float, floor: float) -> None:
    if x < floor:
        raise ValueError(f"{name} must not be before insertion (got {x} < {floor}).")
