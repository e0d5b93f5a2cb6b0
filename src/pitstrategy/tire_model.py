"""Tire compound characteristics and degradation model.

Physics reasoning: softer compounds give more grip but wear faster and need a
hotter operating window. Every compound has a fixed row in the characteristics
table so that lookups are total and side-effect free.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class TireCompound(str, Enum):
    """Tire compounds ordered from hardest to softest, then wet-weather variants."""

    C0 = "C0"
    C1 = "C1"
    C2 = "C2"
    C3 = "C3"
    C4 = "C4"
    C5 = "C5"
    INTERMEDIATE = "INTERMEDIATE"
    WET = "WET"

    @property
    def rank(self) -> int:
        """Position in the hardest-to-softest ordering (wet variants last)."""
        return _COMPOUND_ORDER.index(self)

    @property
    def is_dry(self) -> bool:
        return self not in (TireCompound.INTERMEDIATE, TireCompound.WET)

    @property
    def is_wet(self) -> bool:
        return not self.is_dry

    @property
    def label(self) -> str:
        """Human readable name used in CLI output and reports."""
        return _COMPOUND_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "TireCompound":
        """Parse a compound from CLI/JSON text (case-insensitive, 'inter' accepted)."""
        key = value.strip().upper()
        if key in ("INTER", "INTERS"):
            key = "INTERMEDIATE"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown tire compound: {value!r}") from None


_COMPOUND_ORDER = list(TireCompound)

_COMPOUND_LABELS = {
    TireCompound.C0: "C0 (Super-Hard)",
    TireCompound.C1: "C1 (Hard)",
    TireCompound.C2: "C2 (Medium-Hard)",
    TireCompound.C3: "C3 (Medium)",
    TireCompound.C4: "C4 (Medium-Soft)",
    TireCompound.C5: "C5 (Soft)",
    TireCompound.INTERMEDIATE: "Intermediate",
    TireCompound.WET: "Wet",
}


@dataclass(frozen=True)
class TireCharacteristics:
    """Grip, wear and thermal behaviour of a compound."""

    compound: TireCompound
    grip_level: float  # 0.0-1.0
    degradation_rate: float  # wear per lap at optimal conditions
    optimal_temp_range: tuple[float, float]  # degC
    heat_up_rate: float  # degC per lap
    cool_down_rate: float  # degC per lap
    typical_life: int  # laps


_CHARACTERISTICS: dict[TireCompound, TireCharacteristics] = {
    TireCompound.C0: TireCharacteristics(TireCompound.C0, 0.70, 0.005, (85.0, 105.0), 2.0, 1.5, 40),
    TireCompound.C1: TireCharacteristics(TireCompound.C1, 0.75, 0.007, (90.0, 110.0), 2.5, 1.8, 35),
    TireCompound.C2: TireCharacteristics(TireCompound.C2, 0.80, 0.010, (90.0, 110.0), 3.0, 2.0, 30),
    TireCompound.C3: TireCharacteristics(TireCompound.C3, 0.85, 0.013, (92.0, 112.0), 3.5, 2.2, 25),
    TireCompound.C4: TireCharacteristics(TireCompound.C4, 0.90, 0.017, (95.0, 115.0), 4.0, 2.5, 20),
    TireCompound.C5: TireCharacteristics(TireCompound.C5, 0.95, 0.022, (95.0, 115.0), 4.5, 2.8, 15),
    TireCompound.INTERMEDIATE: TireCharacteristics(
        TireCompound.INTERMEDIATE, 0.75, 0.015, (70.0, 90.0), 3.0, 2.0, 30
    ),
    TireCompound.WET: TireCharacteristics(TireCompound.WET, 0.65, 0.012, (60.0, 80.0), 2.5, 1.5, 35),
}


def characteristics(compound: TireCompound) -> TireCharacteristics:
    """Get the characteristics row for a compound."""
    return _CHARACTERISTICS[TireCompound(compound)]


def grip_multiplier(chars: TireCharacteristics, temp: float) -> float:
    """Calculate grip multiplier for a tire temperature.

    Physics reasoning: outside the optimal window the rubber either fails to
    bond with the surface (too cold) or overheats and blisters (too hot). The
    hot side falls off more steeply than the cold side.

    Args:
        chars: Compound characteristics
        temp: Tire temperature (degC)

    Returns:
        Multiplier in [0.3, 1.0]; 1.0 inside the optimal band
    """
    min_temp, max_temp = chars.optimal_temp_range

    if min_temp <= temp <= max_temp:
        return 1.0
    if temp < min_temp:
        return max(1.0 - (min_temp - temp) * 0.02, 0.5)
    return max(1.0 - (temp - max_temp) * 0.03, 0.3)


def remaining_life(chars: TireCharacteristics, current_wear: float, track_severity: float) -> float:
    """Predict remaining tire life in laps from the current wear level.

    Returns ``math.inf`` when the adjusted degradation rate is zero, meaning
    there is no foreseeable limit.
    """
    remaining_wear = 1.0 - current_wear
    adjusted_degradation = chars.degradation_rate * track_severity

    if adjusted_degradation > 0.0:
        return remaining_wear / adjusted_degradation
    return math.inf


@dataclass(frozen=True)
class DegradationFactors:
    """Multiplicative severity knobs scaling the tire wear rate.

    Each factor is 1.0 for an average race; the combined multiplier is the
    product of all five.
    """

    track_severity: float = 1.0  # track abrasiveness
    temperature_factor: float = 1.0
    driving_style_factor: float = 1.0
    fuel_load_factor: float = 1.0
    downforce_factor: float = 1.0

    def __post_init__(self) -> None:
        for name in (
            "track_severity",
            "temperature_factor",
            "driving_style_factor",
            "fuel_load_factor",
            "downforce_factor",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    def total_multiplier(self) -> float:
        """Combined degradation multiplier."""
        return (
            self.track_severity
            * self.temperature_factor
            * self.driving_style_factor
            * self.fuel_load_factor
            * self.downforce_factor
        )
