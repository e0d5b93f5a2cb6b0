"""Fuel consumption modeling.

Physics reasoning: a heavier car burns more fuel per lap, so consumption is
re-evaluated against the current fuel load every lap rather than once for the
whole race.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig

logger = logging.getLogger(__name__)

TYPICAL_CONSUMPTION = 1.6  # kg/lap on an average circuit


@dataclass(frozen=True)
class FuelConsumptionModel:
    """Load-dependent fuel consumption model."""

    base_rate: float = TYPICAL_CONSUMPTION  # kg/lap
    track_multiplier: float = 1.0
    fuel_load_factor: float = 0.0005  # 0.05% more consumption per kg carried
    safety_car_rate: float = 0.4  # kg/lap behind the safety car
    min_buffer: float = 1.0  # kg

    def __post_init__(self) -> None:
        for name in ("base_rate", "track_multiplier", "fuel_load_factor", "safety_car_rate", "min_buffer"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @classmethod
    def default_model(cls, rules: RaceRulesConfig = DEFAULT_CONFIG) -> "FuelConsumptionModel":
        """Model for an average circuit, keeping the rule set's minimum buffer."""
        return cls(min_buffer=rules.min_fuel_buffer)

    @classmethod
    def for_circuit(cls, circuit, rules: RaceRulesConfig = DEFAULT_CONFIG) -> "FuelConsumptionModel":
        """Default model scaled by the circuit's fuel consumption multiplier."""
        return cls(
            track_multiplier=circuit.characteristics.fuel_consumption,
            min_buffer=rules.min_fuel_buffer,
        )

    def consumption_per_lap(self, fuel_load: float) -> float:
        """Fuel burned over one lap at race pace carrying ``fuel_load`` kg."""
        fuel_load_impact = 1.0 + fuel_load * self.fuel_load_factor
        return self.base_rate * self.track_multiplier * fuel_load_impact

    def laps_remaining(self, current_fuel: float) -> float:
        """Laps that can be completed on the current fuel (midpoint approximation)."""
        if current_fuel < self.min_buffer:
            return 0.0

        usable_fuel = current_fuel - self.min_buffer
        avg_consumption = self.consumption_per_lap(current_fuel / 2.0)

        if avg_consumption > 0.0:
            return usable_fuel / avg_consumption
        return math.inf

    def fuel_needed_for_laps(self, laps: int, starting_fuel: float) -> float:
        """Cumulative fuel burned over ``laps`` laps, depleting the tank lap by lap."""
        total_fuel = 0.0
        current_fuel = starting_fuel

        for _ in range(max(0, int(laps))):
            consumption = self.consumption_per_lap(current_fuel)
            total_fuel += consumption
            current_fuel -= consumption

        return total_fuel

    def fuel_saving_needed(self, current_fuel: float, remaining_laps: int) -> Optional[float]:
        """Required saving per lap (kg), or None if the fuel on board is enough."""
        if remaining_laps <= 0:
            return None

        avg_consumption = self.consumption_per_lap(current_fuel / 2.0)
        total_needed = avg_consumption * remaining_laps
        available = current_fuel - self.min_buffer

        if total_needed > available:
            return (total_needed - available) / remaining_laps
        return None


class EngineMode(str, Enum):
    """Power unit fuel modes."""

    FULL_POWER = "full_power"
    STANDARD = "standard"
    FUEL_SAVING = "fuel_saving"
    CRITICAL_SAVING = "critical_saving"


@dataclass(frozen=True)
class FuelStrategyRecommendation:
    """Fuel management advice for the rest of the race."""

    can_finish: bool
    laps_remaining: float
    fuel_saving_required: Optional[float]  # kg/lap
    recommended_mode: EngineMode
    safety_margin: float  # laps of fuel beyond the flag


def recommend_fuel_strategy(
    model: FuelConsumptionModel,
    current_fuel: float,
    remaining_laps: int,
) -> FuelStrategyRecommendation:
    """Recommend an engine mode from the fuel margin to the end of the race.

    Strategy reasoning: with a comfortable margin the driver can run full power;
    once the margin goes negative, the required per-lap saving decides between
    lift-and-coast and critical saving.

    Args:
        model: Fuel consumption model
        current_fuel: Fuel on board (kg)
        remaining_laps: Laps left to the flag

    Returns:
        FuelStrategyRecommendation
    """
    laps_possible = model.laps_remaining(current_fuel)
    safety_margin = laps_possible - remaining_laps
    saving = model.fuel_saving_needed(current_fuel, remaining_laps)

    if saving is None:
        mode = EngineMode.FULL_POWER if safety_margin >= 3.0 else EngineMode.STANDARD
    elif saving <= 0.1:
        mode = EngineMode.FUEL_SAVING
    else:
        mode = EngineMode.CRITICAL_SAVING

    logger.debug(
        f"Fuel recommendation: fuel={current_fuel:.1f}kg, laps_left={remaining_laps}, "
        f"margin={safety_margin:.1f} laps, mode={mode.value}"
    )

    return FuelStrategyRecommendation(
        can_finish=saving is None,
        laps_remaining=laps_possible,
        fuel_saving_required=saving,
        recommended_mode=mode,
        safety_margin=safety_margin,
    )
