# src/nicpk/types.py
from dataclasses import dataclass
from typing import Optional

import numpy as np

# We keep *all* time in SECONDS internally. Timestamps are POSIX seconds.
Timestamp = float

# Menu of absorption durations a user can pick (minutes).
FULL_RELEASE_OPTIONS_MIN = (30, 45, 60)
DEFAULT_FULL_RELEASE_MIN = 30

ABSORPTION_FRACTION = 0.30
NICOTINE_HALF_LIFE_S = 2 * 3600.0


@dataclass(frozen=True)
class DoseEvent:
    """
    One pouch, from insertion to (optional) removal.

    id             : opaque identifier, used for ordering ties and de-duplication
    dose_mg        : nicotine content of the pouch in milligrams
    inserted_at    : when the pouch went in (POSIX seconds); None means unusable
    removed_at     : when it came out, or None while it is still in the mouth
    full_release_s : absorption duration captured when the pouch was started.
                     None means "use whatever the config says at query time".
    """
    id: str
    dose_mg: Optional[float]
    inserted_at: Optional[Timestamp]
    removed_at: Optional[Timestamp] = None
    full_release_s: Optional[float] = None

    @property
    def is_removed(self) -> bool:
        return self.removed_at is not None


@dataclass(frozen=True)
class AbsorptionConfig:
    """
    Model parameters threaded into every calculation.

    full_release_s      : length of the linear absorption ramp (s)
    absorption_fraction : share of the dose that ever reaches the bloodstream
    half_life_s         : elimination half-life once a pouch is out (s)
    """
    full_release_s: float = DEFAULT_FULL_RELEASE_MIN * 60.0
    absorption_fraction: float = ABSORPTION_FRACTION
    half_life_s: float = NICOTINE_HALF_LIFE_S

    @classmethod
    def from_minutes(cls, minutes: int) -> "AbsorptionConfig":
        """Build from a menu choice; anything off the menu falls back to the default."""
        if minutes not in FULL_RELEASE_OPTIONS_MIN:
            minutes = DEFAULT_FULL_RELEASE_MIN
        return cls(full_release_s=float(minutes) * 60.0)


@dataclass(frozen=True)
class AlertRange:
    """
    Target nicotine range (mg) used when projecting the level forward.

    A low alert is due at or below (range_low_mg - alert_threshold_mg),
    a high alert strictly above range_high_mg.
    """
    range_low_mg: float
    range_high_mg: float
    alert_threshold_mg: float = 0.0

    @property
    def effective_low(self) -> float:
        return self.range_low_mg - self.alert_threshold_mg

    @property
    def effective_high(self) -> float:
        return self.range_high_mg

    def is_low(self, level: float) -> bool:
        return level <= self.effective_low

    def is_high(self, level: float) -> bool:
        return level > self.effective_high


@dataclass(frozen=True)
class LevelProjection:
    """
    Forward-looking level curve with the first boundary crossings found on it.

    times, levels : sampled curve (POSIX seconds, mg)
    low_crossing  : first time the level falls to/below the effective low boundary
    high_crossing : first time the level rises above the effective high boundary
    """
    current_level: float
    times: np.ndarray
    levels: np.ndarray
    low_crossing: Optional[Timestamp] = None
    high_crossing: Optional[Timestamp] = None
