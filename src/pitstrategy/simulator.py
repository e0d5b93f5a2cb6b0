"""Lap-by-lap race simulation with Monte Carlo repetition.

The simulator replays a strategy as written and reports what happens. It never
rejects a strategy: running out of fuel, skipping the mandatory stop or
running tires past their life are all reported as warnings on the result.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from pitstrategy.circuit import Circuit
from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig
from pitstrategy.fuel_model import FuelConsumptionModel
from pitstrategy.strategy import RaceStrategy
from pitstrategy.tire_model import TireCharacteristics, TireCompound, characteristics
from pitstrategy.weather import WeatherTimeline, is_wrong_tire_for_weather, weather_penalty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitStopEvent:
    """A pit stop as it happened in the simulation."""

    lap: int
    old_compound: TireCompound
    new_compound: TireCompound
    duration: float  # seconds
    tire_age: int  # laps on the old set
    fuel_remaining: float  # kg

    def to_dict(self) -> dict:
        return {
            "lap": self.lap,
            "old_compound": self.old_compound.value,
            "new_compound": self.new_compound.value,
            "duration": self.duration,
            "tire_age": self.tire_age,
            "fuel_remaining": self.fuel_remaining,
        }


@dataclass
class SimulationResult:
    """Result of a single race simulation."""

    total_time: float  # seconds, including pit losses
    lap_times: list[float]
    pit_stops: list[PitStopEvent]
    tire_history: list[tuple[int, TireCompound]]  # (lap fitted, compound)
    fuel_history: list[float]  # kg at the end of each lap
    warnings: list[str] = field(default_factory=list)
    estimated_position: Optional[int] = None
    average_lap_time: float = 0.0
    fastest_lap: float = 0.0
    slowest_lap: float = 0.0

    @property
    def total_laps(self) -> int:
        return len(self.lap_times)

    def compound_on_lap(self, lap: int) -> TireCompound:
        compound = self.tire_history[0][1]
        for fitted_lap, fitted in self.tire_history[1:]:
            if fitted_lap < lap:
                compound = fitted
        return compound

    def to_dict(self) -> dict:
        return {
            "total_time": self.total_time,
            "lap_times": list(self.lap_times),
            "pit_stops": [event.to_dict() for event in self.pit_stops],
            "tire_history": [[lap, compound.value] for lap, compound in self.tire_history],
            "fuel_history": list(self.fuel_history),
            "warnings": list(self.warnings),
            "estimated_position": self.estimated_position,
            "average_lap_time": self.average_lap_time,
            "fastest_lap": self.fastest_lap,
            "slowest_lap": self.slowest_lap,
        }


def temperature_penalty(
    track_temp: float,
    chars: TireCharacteristics,
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> float:
    """Time lost running outside the compound's optimal temperature band.

    Physics reasoning: a cold tire simply lacks grip, while an overheating tire
    also degrades, so the hot side costs more per degree.
    """
    min_temp, max_temp = chars.optimal_temp_range

    if min_temp <= track_temp <= max_temp:
        return 0.0
    if track_temp < min_temp:
        return (min_temp - track_temp) * config.cold_temp_penalty
    return (track_temp - max_temp) * config.hot_temp_penalty


def simulation_lap_time(
    circuit: Circuit,
    weather: WeatherTimeline,
    lap: int,
    compound: TireCompound,
    tire_age: int,
    current_fuel: float,
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> float:
    """Lap time for the simulator.

    Same shape as the optimizer's model with a non-linear wear term, plus
    weather, track temperature and track-severity effects.

    Args:
        circuit: Circuit being raced
        weather: Weather timeline
        lap: Lap number (1-indexed)
        compound: Compound on the car
        tire_age: Laps on the current set, including this one
        current_fuel: Fuel on board at the start of the lap (kg)
        config: Model coefficients

    Returns:
        Lap time in seconds
    """
    chars = characteristics(compound)
    base_time = circuit.lap_record * config.race_pace_factor

    wear_ratio = tire_age / chars.typical_life
    degradation_penalty = wear_ratio**config.sim_wear_exponent * config.sim_wear_penalty
    fuel_penalty = current_fuel / config.max_fuel_capacity * config.sim_fuel_penalty
    temp_penalty = temperature_penalty(weather.track_temp_at_lap(lap), chars, config)
    condition_penalty = weather_penalty(weather.condition_at_lap(lap), compound)
    grip_bonus = (chars.grip_level - config.reference_grip) * config.sim_grip_bonus
    track_deg_penalty = (
        (circuit.characteristics.tire_severity - 1.0) * wear_ratio * config.sim_track_degradation
    )

    return (
        base_time
        + degradation_penalty
        + fuel_penalty
        + temp_penalty
        + condition_penalty
        + track_deg_penalty
        - grip_bonus
    )


def simulate_race(
    circuit: Circuit,
    strategy: RaceStrategy,
    fuel_model: Optional[FuelConsumptionModel] = None,
    weather: Optional[WeatherTimeline] = None,
    total_laps: Optional[int] = None,
    config: RaceRulesConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
) -> SimulationResult:
    """Simulate a complete race lap by lap.

    Deterministic unless ``rng`` is given, in which case every lap gets
    Gaussian noise with ``config.lap_time_noise_std``.

    Args:
        circuit: Circuit being raced
        strategy: Strategy to replay
        fuel_model: Fuel model (circuit-scaled default if None)
        weather: Weather timeline (dry, 30C track if None)
        total_laps: Race distance (circuit's typical race laps if None)
        config: Regulatory limits and model coefficients
        rng: Optional random generator for lap-time noise

    Returns:
        SimulationResult with traces and warnings
    """
    if fuel_model is None:
        fuel_model = FuelConsumptionModel.for_circuit(circuit, config)
    if weather is None:
        weather = WeatherTimeline()
    if total_laps is None:
        total_laps = circuit.typical_race_laps

    lap_times: list[float] = []
    pit_events: list[PitStopEvent] = []
    tire_history = [(1, strategy.starting_compound)]
    fuel_history: list[float] = []
    warnings: list[str] = []

    current_fuel = strategy.fuel_plan.starting_fuel
    current_compound = strategy.starting_compound
    tire_age = 0
    total_time = 0.0

    for lap in range(1, total_laps + 1):
        # Lap time is taken before any stop at the end of the lap
        tire_age += 1
        lap_time = simulation_lap_time(
            circuit, weather, lap, current_compound, tire_age, current_fuel, config
        )
        if rng is not None and config.lap_time_noise_std > 0:
            lap_time += float(rng.normal(0.0, config.lap_time_noise_std))

        lap_times.append(lap_time)
        total_time += lap_time

        current_fuel -= fuel_model.consumption_per_lap(current_fuel)
        fuel_history.append(current_fuel)

        if current_fuel < config.low_fuel_threshold:
            warnings.append(f"Low fuel warning at lap {lap}: {current_fuel:.2f} kg remaining")

        laps_left = total_laps - lap
        if laps_left > 0:
            fuel_needed = fuel_model.fuel_needed_for_laps(laps_left, current_fuel)
            if fuel_needed > current_fuel:
                warnings.append(
                    f"Fuel insufficient at lap {lap}: need {fuel_needed:.2f} kg, have {current_fuel:.2f} kg"
                )

        pit_stop = strategy.pit_stop_on_lap(lap)
        if pit_stop is not None:
            pit_events.append(
                PitStopEvent(
                    lap=lap,
                    old_compound=current_compound,
                    new_compound=pit_stop.compound,
                    duration=pit_stop.pit_loss,
                    tire_age=tire_age,
                    fuel_remaining=current_fuel,
                )
            )
            total_time += pit_stop.pit_loss
            current_compound = pit_stop.compound
            tire_age = 0
            tire_history.append((lap, current_compound))

        typical_life = characteristics(current_compound).typical_life
        if tire_age > typical_life:
            warnings.append(
                f"Tire age exceeded typical life at lap {lap}: {tire_age} laps on "
                f"{current_compound.value} (typical: {typical_life})"
            )

        condition = weather.condition_at_lap(lap)
        if is_wrong_tire_for_weather(current_compound, condition):
            warnings.append(
                f"Wrong tire compound at lap {lap}: {current_compound.value} tires in "
                f"{condition.value} conditions"
            )

    if current_fuel < 0.0:
        warnings.append("Strategy failed: ran out of fuel before race end")
    elif current_fuel < config.min_fuel_buffer:
        warnings.append(
            f"Fuel reserve below minimum buffer at finish: {current_fuel:.2f} kg "
            f"(minimum {config.min_fuel_buffer:.2f} kg)"
        )

    if not pit_events:
        warnings.append("Strategy invalid: no pit stops executed (FIA regulation violation)")

    result = SimulationResult(
        total_time=total_time,
        lap_times=lap_times,
        pit_stops=pit_events,
        tire_history=tire_history,
        fuel_history=fuel_history,
        warnings=warnings,
        estimated_position=None,
        average_lap_time=float(np.mean(lap_times)) if lap_times else 0.0,
        fastest_lap=float(np.min(lap_times)) if lap_times else 0.0,
        slowest_lap=float(np.max(lap_times)) if lap_times else 0.0,
    )

    logger.debug(
        f"Simulated {strategy.describe()} at {circuit.name}: {total_time:.1f}s, "
        f"{len(pit_events)} stops, {len(warnings)} warnings"
    )
    return result


def run_monte_carlo(
    circuit: Circuit,
    strategy: RaceStrategy,
    fuel_model: Optional[FuelConsumptionModel] = None,
    weather: Optional[WeatherTimeline] = None,
    total_laps: Optional[int] = None,
    config: RaceRulesConfig = DEFAULT_CONFIG,
    n_simulations: Optional[int] = None,
    show_progress: bool = True,
) -> list[SimulationResult]:
    """Run repeated noisy simulations of a strategy.

    Each repetition gets its own generator seeded ``config.random_seed + i`` so
    runs are reproducible and independent.
    """
    if n_simulations is None:
        n_simulations = config.n_simulations

    results = []

    iterator = range(n_simulations)
    if show_progress:
        iterator = tqdm(iterator, desc=f"Simulating {strategy.describe()}")

    for i in iterator:
        sim_rng = np.random.default_rng(config.random_seed + i)
        result = simulate_race(circuit, strategy, fuel_model, weather, total_laps, config, sim_rng)
        results.append(result)

    if results:
        logger.info(
            f"Completed {len(results)} simulations for {strategy.describe()}: "
            f"mean time = {np.mean([r.total_time for r in results]):.1f}s"
        )

    return results


def summarize_monte_carlo(results: list[SimulationResult]) -> dict[str, float]:
    """Distribution statistics of total race time."""
    if not results:
        raise ValueError("No simulation results to summarize")

    times = np.array([r.total_time for r in results])
    return {
        "n_simulations": len(results),
        "mean_time": float(np.mean(times)),
        "std_time": float(np.std(times)),
        "min_time": float(np.min(times)),
        "p5_time": float(np.percentile(times, 5)),
        "median_time": float(np.median(times)),
        "p95_time": float(np.percentile(times, 95)),
        "max_time": float(np.max(times)),
        "warning_rate": float(np.mean([bool(r.warnings) for r in results])),
    }


def compare_simulations(results_dict: dict[str, list[SimulationResult]]) -> pd.DataFrame:
    """Compare Monte Carlo runs of several strategies, fastest mean first."""
    comparison_data = []

    for strategy_name, results in results_dict.items():
        times = [r.total_time for r in results]

        comparison_data.append(
            {
                "Strategy": strategy_name,
                "Mean Time (s)": np.mean(times),
                "Std Time (s)": np.std(times),
                "Min Time (s)": np.min(times),
                "P25 Time (s)": np.percentile(times, 25),
                "Median Time (s)": np.median(times),
                "P75 Time (s)": np.percentile(times, 75),
                "Max Time (s)": np.max(times),
                "Pit Stops": np.mean([len(r.pit_stops) for r in results]),
                "Warning Rate": np.mean([bool(r.warnings) for r in results]),
            }
        )

    df = pd.DataFrame(comparison_data)
    if not df.empty:
        df = df.sort_values("Mean Time (s)").reset_index(drop=True)
    return df


def result_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    """Per-lap trace of a simulation."""
    pit_laps = {event.lap for event in result.pit_stops}
    laps = np.arange(1, result.total_laps + 1)

    tire_ages = []
    age = 0
    for lap in laps:
        age += 1
        tire_ages.append(age)
        if lap in pit_laps:
            age = 0

    return pd.DataFrame(
        {
            "lap": laps,
            "lap_time": result.lap_times,
            "cumulative_time": np.cumsum(result.lap_times),
            "compound": [result.compound_on_lap(int(lap)).value for lap in laps],
            "tire_age": tire_ages,
            "fuel": result.fuel_history,
            "pit": [int(lap) in pit_laps for lap in laps],
        }
    )
