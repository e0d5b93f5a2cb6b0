"""Shared fixtures for the pit strategy tests."""

import pytest

from pitstrategy.circuit import get_circuit
from pitstrategy.fuel_model import FuelConsumptionModel
from pitstrategy.optimizer import OptimizationConfig
from pitstrategy.strategy import FuelPlan, PitStop, PitStopReason, RaceStrategy
from pitstrategy.tire_model import DegradationFactors, TireCompound


@pytest.fixture
def monaco():
    return get_circuit("monaco")


@pytest.fixture
def silverstone():
    return get_circuit("silverstone")


@pytest.fixture
def opt_config(monaco):
    """50-lap Monaco configuration with the three softest dry compounds."""
    return OptimizationConfig(
        total_laps=50,
        circuit=monaco,
        available_compounds=(TireCompound.C3, TireCompound.C4, TireCompound.C5),
        pit_lane_time_loss=18.0,
        tire_change_time=2.5,
        current_position=5,
        degradation_factors=DegradationFactors(),
        fuel_model=FuelConsumptionModel.default_model(),
        starting_fuel=110.0,
        min_pit_stops=1,
        max_pit_stops=3,
    )


def make_strategy(starting, stops, starting_fuel=110.0, predicted_race_time=0.0):
    """Build a strategy from (lap, compound, pit_loss[, reason]) tuples."""
    pit_stops = []
    for stop in stops:
        lap, compound, pit_loss = stop[:3]
        reason = stop[3] if len(stop) > 3 else PitStopReason.OPPORTUNISTIC
        pit_stops.append(PitStop(lap=lap, compound=compound, pit_loss=pit_loss, reason=reason))

    return RaceStrategy(
        starting_compound=starting,
        pit_stops=tuple(pit_stops),
        fuel_plan=FuelPlan(starting_fuel=starting_fuel),
        predicted_race_time=predicted_race_time,
    )


@pytest.fixture
def two_stop_strategy():
    """C3 start, C4 at lap 20, C5 at lap 40."""
    return make_strategy(
        TireCompound.C3,
        [(20, TireCompound.C4, 22.0), (40, TireCompound.C5, 21.5)],
    )


@pytest.fixture
def strategy_factory():
    return make_strategy
