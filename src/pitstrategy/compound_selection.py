"""Tire compound recommendation for a stint.

Scores every candidate compound on three normalized sub-scores and returns the
highest: grip match to the track's demand, expected tire life against the
target stint length, and fit of the compound's thermal window to the track
temperature.
"""

import logging
from typing import Optional

from pitstrategy.circuit import Circuit
from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig
from pitstrategy.tire_model import DegradationFactors, TireCompound, characteristics

logger = logging.getLogger(__name__)

GRIP_WEIGHT = 0.40
DEGRADATION_WEIGHT = 0.35
THERMAL_WEIGHT = 0.25

FALLBACK_COMPOUND = TireCompound.C3  # medium compound when nothing is offered


def grip_score(compound_grip: float, track_demand: float) -> float:
    """1.0 for a near-perfect grip match, falling off with the mismatch."""
    diff = abs(compound_grip - track_demand)

    if diff < 0.05:
        return 1.0
    if diff < 0.15:
        return 0.8 - (diff - 0.05) * 2.0
    if diff < 0.25:
        return 0.6 - (diff - 0.15) * 2.0
    return 0.3


def degradation_score(
    compound: TireCompound,
    target_stint_length: int,
    degradation_factors: DegradationFactors,
    fuel_load: float,
    fuel_capacity: float = DEFAULT_CONFIG.max_fuel_capacity,
) -> float:
    """Score how comfortably the compound lasts the target stint.

    Physics reasoning: a heavier car wears tires faster, so the effective life
    shrinks by up to 15% with a full tank (``fuel_capacity`` kg) on top of the
    track's degradation multiplier.
    """
    chars = characteristics(compound)
    fuel_impact = 1.0 + (fuel_load / fuel_capacity) * 0.15
    effective_life = chars.typical_life / (degradation_factors.total_multiplier() * fuel_impact)
    target = float(target_stint_length)

    if effective_life >= target * 1.2:
        return 1.0
    if effective_life >= target:
        return 0.8
    if effective_life >= target * 0.85:
        return 0.5
    return 0.2


def thermal_score(compound: TireCompound, track_temp: float) -> float:
    """Fit of the track temperature to the middle of the compound's optimal band."""
    min_temp, max_temp = characteristics(compound).optimal_temp_range
    optimal_temp = (min_temp + max_temp) / 2.0
    optimal_range = 5.0
    good_range = 15.0

    temp_diff = abs(track_temp - optimal_temp)

    if temp_diff <= optimal_range:
        return 1.0
    if temp_diff <= good_range:
        normalized = (temp_diff - optimal_range) / (good_range - optimal_range)
        return 1.0 - normalized * 0.4
    if temp_diff <= good_range * 2.0:
        normalized = (temp_diff - good_range) / good_range
        return 0.6 - normalized * 0.4
    return 0.1


def score_compound(
    compound: TireCompound,
    circuit: Circuit,
    track_temp: float,
    fuel_load: float,
    target_stint_length: int,
    degradation_factors: DegradationFactors,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> float:
    """Weighted compound score in [0, 1]."""
    chars = characteristics(compound)
    grip_demand = min(circuit.characteristics.tire_severity, 2.0) * 0.5

    return (
        grip_score(chars.grip_level, grip_demand) * GRIP_WEIGHT
        + degradation_score(
            compound, target_stint_length, degradation_factors, fuel_load, rules.max_fuel_capacity
        )
        * DEGRADATION_WEIGHT
        + thermal_score(compound, track_temp) * THERMAL_WEIGHT
    )


def select_optimal_compound(
    circuit: Circuit,
    available_compounds: list[TireCompound],
    track_temp: float,
    fuel_load: float,
    target_stint_length: int,
    degradation_factors: Optional[DegradationFactors] = None,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> TireCompound:
    """Recommend the compound with the highest combined score.

    Args:
        circuit: Circuit being raced on
        available_compounds: Compounds allocated for the race
        track_temp: Track surface temperature (degC)
        fuel_load: Fuel on board (kg)
        target_stint_length: Desired stint length (laps)
        degradation_factors: Track degradation multipliers (neutral if None)
        rules: Rule set supplying the fuel tank capacity

    Returns:
        Best scoring compound; the first one wins ties, C3 if none are available
    """
    if not available_compounds:
        return FALLBACK_COMPOUND

    if degradation_factors is None:
        degradation_factors = DegradationFactors()

    best_compound = TireCompound(available_compounds[0])
    best_score = 0.0

    for compound in available_compounds:
        compound = TireCompound(compound)
        score = score_compound(
            compound, circuit, track_temp, fuel_load, target_stint_length, degradation_factors, rules
        )
        logger.debug(f"Compound {compound.value}: score={score:.3f}")

        if score > best_score:
            best_score = score
            best_compound = compound

    logger.debug(f"Selected {best_compound.value} (score={best_score:.3f}) for {circuit.name}")
    return best_compound
