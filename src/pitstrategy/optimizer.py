"""Pit strategy optimization.

Dynamic-programming search over (lap, stops taken, current compound) states.
Each state keeps the fastest accumulated race time that reaches it together
with the pit stops taken on the way, so the winning plan can be read straight
off the terminal state instead of being reconstructed by backtracking.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from pitstrategy.circuit import Circuit
from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig
from pitstrategy.exceptions import InfeasibleStrategyError, InvalidConfigError
from pitstrategy.fuel_model import FuelConsumptionModel
from pitstrategy.strategy import (
    ErsDeploymentPlan,
    ErsMode,
    FuelPlan,
    PitStop,
    PitStopReason,
    RaceStrategy,
    StrategyMetadata,
    uses_required_compounds,
)
from pitstrategy.tire_model import DegradationFactors, TireCompound, characteristics

logger = logging.getLogger(__name__)

OPTIMIZER_AGENT = "pit-strategy-optimizer"


@dataclass(frozen=True)
class CompetitorState:
    """Minimal view of a rival car, used for undercut notes and overtaking counts."""

    position: int
    gap_seconds: float
    compound: TireCompound
    tire_age: int
    estimated_pit_lap: Optional[int] = None


@dataclass(frozen=True)
class OptimizationConfig:
    """Inputs for a single optimization run."""

    total_laps: int
    circuit: Circuit
    available_compounds: tuple[TireCompound, ...]
    pit_lane_time_loss: float  # seconds
    tire_change_time: float  # seconds
    current_position: int = 1
    competitors_ahead: tuple[CompetitorState, ...] = ()
    degradation_factors: DegradationFactors = field(default_factory=DegradationFactors)
    fuel_model: FuelConsumptionModel = field(default_factory=FuelConsumptionModel)
    starting_fuel: float = 110.0  # kg
    min_pit_stops: int = 1
    max_pit_stops: int = 3
    starting_compound: Optional[TireCompound] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "available_compounds", tuple(TireCompound(c) for c in self.available_compounds)
        )
        object.__setattr__(self, "competitors_ahead", tuple(self.competitors_ahead))
        if self.starting_compound is not None:
            object.__setattr__(self, "starting_compound", TireCompound(self.starting_compound))

    @property
    def opening_compound(self) -> TireCompound:
        """Compound fitted at the start; the first available one unless set explicitly."""
        if self.starting_compound is not None:
            return self.starting_compound
        return self.available_compounds[0]


@dataclass(frozen=True)
class PitWindow:
    """Lap range in which a stop on the current tires makes sense."""

    earliest_lap: int
    optimal_start: int
    optimal_end: int
    latest_lap: int
    constraints: tuple[str, ...] = ()

    def contains(self, lap: int) -> bool:
        return self.earliest_lap <= lap <= self.latest_lap


@dataclass(frozen=True)
class _StateEntry:
    time: float
    pit_stops: tuple[PitStop, ...]

    @property
    def stint_start(self) -> int:
        return self.pit_stops[-1].lap if self.pit_stops else 0


def validate_config(config: OptimizationConfig, rules: RaceRulesConfig = DEFAULT_CONFIG) -> None:
    """Check optimizer preconditions.

    Raises:
        InvalidConfigError: naming the first violated precondition
    """
    if config.total_laps <= 0:
        raise InvalidConfigError("Total laps must be greater than 0")
    if not config.available_compounds:
        raise InvalidConfigError("Must have at least one available compound")
    if config.min_pit_stops < 0:
        raise InvalidConfigError("Min pit stops cannot be negative")
    if config.min_pit_stops > config.max_pit_stops:
        raise InvalidConfigError("Min pit stops cannot exceed max pit stops")
    if config.starting_fuel <= 0:
        raise InvalidConfigError("Starting fuel must be greater than 0")
    if config.starting_fuel > rules.max_fuel_capacity:
        raise InvalidConfigError(
            f"Starting fuel {config.starting_fuel:.1f} kg exceeds maximum fuel capacity "
            f"of {rules.max_fuel_capacity:.1f} kg"
        )
    if config.opening_compound not in config.available_compounds:
        raise InvalidConfigError(
            f"Starting compound {config.opening_compound.value} is not among the available compounds"
        )


def tire_age_at_lap(lap: int, pit_stops: tuple[PitStop, ...]) -> int:
    """Laps run on the current set by the end of ``lap``."""
    last_pit = 0
    for stop in pit_stops:
        if stop.lap < lap:
            last_pit = stop.lap
    return lap - last_pit


def _fuel_penalties(config: OptimizationConfig, rules: RaceRulesConfig) -> list[float]:
    """Fuel-weight penalty for every lap, indexed by lap number.

    ``fuel_needed_for_laps(n, start)`` burns from the full starting load, so
    one depletion pass gives the cumulative burn for every ``n``.
    """
    cumulative = [0.0]
    current_fuel = config.starting_fuel
    for _ in range(config.total_laps):
        burn = config.fuel_model.consumption_per_lap(current_fuel)
        cumulative.append(cumulative[-1] + burn)
        current_fuel -= burn

    return [
        cumulative[max(config.total_laps - lap, 0)] / config.starting_fuel * rules.optimizer_fuel_penalty
        for lap in range(config.total_laps + 1)
    ]


def _lap_time(
    compound: TireCompound,
    tire_age: int,
    config: OptimizationConfig,
    fuel_penalty: float,
    rules: RaceRulesConfig,
) -> float:
    chars = characteristics(compound)
    base_time = config.circuit.lap_record * rules.race_pace_factor
    wear_penalty = (
        tire_age / chars.typical_life * config.degradation_factors.total_multiplier() * rules.optimizer_wear_penalty
    )
    grip_bonus = (chars.grip_level - rules.reference_grip) * rules.optimizer_grip_bonus
    return base_time + wear_penalty + fuel_penalty - grip_bonus


def predict_lap_time(
    compound: TireCompound,
    tire_age: int,
    config: OptimizationConfig,
    lap: int,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> float:
    """Predict a single lap time for the optimizer.

    Physics reasoning: race pace sits a fixed fraction off the lap record. Worn
    tires cost time linearly with the fraction of typical life used, a heavier
    car costs time in proportion to the fuel still needed to the flag, and
    softer compounds earn a grip bonus over the reference compound.

    Args:
        compound: Compound on the car
        tire_age: Laps run on the current set
        config: Optimization configuration
        lap: Current lap (1-indexed)
        rules: Model coefficients

    Returns:
        Predicted lap time in seconds
    """
    remaining = max(config.total_laps - lap, 0)
    fuel_needed = config.fuel_model.fuel_needed_for_laps(remaining, config.starting_fuel)
    fuel_penalty = fuel_needed / config.starting_fuel * rules.optimizer_fuel_penalty
    return _lap_time(compound, tire_age, config, fuel_penalty, rules)


def calculate_pit_window(
    current_lap: int,
    compound: TireCompound,
    config: OptimizationConfig,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> PitWindow:
    """Calculate the pit window for tires fitted at ``current_lap``.

    Strategy reasoning: pitting before ~70% of the degradation-adjusted tire
    life wastes rubber, while running past ~95% risks a cliff. Competitors
    expected to stop inside the window are flagged as undercut chances.

    Args:
        current_lap: Lap the current set was fitted (0 for the starting set)
        compound: Compound on the car
        config: Optimization configuration
        rules: Window fractions

    Returns:
        PitWindow clamped to [1, total_laps - 1]
    """
    chars = characteristics(compound)
    adjusted_life = int(chars.typical_life / config.degradation_factors.total_multiplier())
    last_pit_lap = max(config.total_laps - 1, 1)

    def clamp(fraction: float) -> int:
        return max(1, min(current_lap + int(adjusted_life * fraction), last_pit_lap))

    earliest = clamp(rules.pit_window_earliest)
    latest = clamp(rules.pit_window_latest)

    constraints = []
    if config.degradation_factors.track_severity > 1.2:
        constraints.append("High tire degradation track")

    for competitor in config.competitors_ahead:
        pit_lap = competitor.estimated_pit_lap
        if pit_lap is not None and earliest <= pit_lap <= latest:
            constraints.append(
                f"Potential undercut opportunity on P{competitor.position} at lap {max(pit_lap - 1, 1)}"
            )

    return PitWindow(
        earliest_lap=earliest,
        optimal_start=clamp(rules.pit_window_optimal_start),
        optimal_end=clamp(rules.pit_window_optimal_end),
        latest_lap=latest,
        constraints=tuple(constraints),
    )


def estimate_time_loss(
    config: OptimizationConfig,
    lap: int,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> float:
    """Estimate total time lost by pitting at the end of ``lap``.

    A heavier car early in the race loses up to ``pit_fuel_factor`` more in the
    pit lane, and cars fighting near the front pay an extra position penalty.
    """
    fuel_factor = 1.0 + (1.0 - lap / config.total_laps) * rules.pit_fuel_factor

    if config.current_position <= 3:
        position_penalty = rules.position_penalty_podium
    elif config.current_position <= 10:
        position_penalty = rules.position_penalty_points
    else:
        position_penalty = rules.position_penalty_midfield

    return (config.pit_lane_time_loss + config.tire_change_time) * fuel_factor + position_penalty


def determine_pit_reason(lap: int, config: OptimizationConfig, stops_so_far: int) -> PitStopReason:
    """Narrative reason for a stop; not used in the cost function."""
    if stops_so_far == 0:
        return PitStopReason.MANDATORY
    if lap < config.total_laps // 3:
        return PitStopReason.UNDERCUT
    if lap > config.total_laps * 2 // 3:
        return PitStopReason.TIRE_DEGRADATION
    return PitStopReason.OPPORTUNISTIC


def is_valid_strategy(
    pit_stops: tuple[PitStop, ...],
    config: OptimizationConfig,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> bool:
    """Stop-count bounds plus the compound-diversity rule."""
    if len(pit_stops) < config.min_pit_stops:
        return False
    compounds = [config.opening_compound] + [stop.compound for stop in pit_stops]
    return uses_required_compounds(compounds, rules.min_compound_types)


def calculate_expected_lap_times(
    config: OptimizationConfig,
    pit_stops: tuple[PitStop, ...],
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> dict[int, list[float]]:
    """Predicted lap times grouped by stint index (0 = opening stint)."""
    fuel_penalties = _fuel_penalties(config, rules)
    lap_times: dict[int, list[float]] = {}

    for lap in range(1, config.total_laps + 1):
        # A stop on lap N changes tires for lap N + 1
        stint = sum(1 for stop in pit_stops if stop.lap < lap)
        compound = pit_stops[stint - 1].compound if stint else config.opening_compound
        tire_age = tire_age_at_lap(lap, pit_stops)

        lap_time = _lap_time(compound, tire_age, config, fuel_penalties[lap], rules)
        lap_times.setdefault(stint, []).append(lap_time)

    return lap_times


def _relax(table: dict, key: tuple, time: float, pit_stops: tuple[PitStop, ...]) -> None:
    # Keep the first entry on ties
    current = table.get(key)
    if current is None or time < current.time:
        table[key] = _StateEntry(time, pit_stops)


def optimize_pit_strategy(
    config: OptimizationConfig,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> RaceStrategy:
    """Find the pit strategy with the lowest predicted race time.

    Args:
        config: Optimization configuration
        rules: Regulatory limits and model coefficients

    Returns:
        Optimal RaceStrategy

    Raises:
        InvalidConfigError: If a precondition is violated (raised before search)
        InfeasibleStrategyError: If no reachable plan satisfies the stop-count
            and compound-diversity constraints
    """
    validate_config(config, rules)

    total_laps = config.total_laps
    opening = config.opening_compound
    fuel_penalties = _fuel_penalties(config, rules)
    windows: dict[tuple[int, TireCompound], PitWindow] = {}

    logger.info(
        f"Optimizing {total_laps} laps at {config.circuit.name} with compounds "
        f"{[c.value for c in config.available_compounds]} "
        f"({config.min_pit_stops}-{config.max_pit_stops} stops)"
    )

    # One layer of the table per lap: (stops, compound) -> best entry
    layer: dict[tuple[int, TireCompound], _StateEntry] = {(0, opening): _StateEntry(0.0, ())}
    states_visited = 1

    for lap in range(1, total_laps):
        next_layer: dict[tuple[int, TireCompound], _StateEntry] = {}

        for (stops, compound), entry in layer.items():
            tire_age = lap - entry.stint_start
            lap_time = _lap_time(compound, tire_age, config, fuel_penalties[lap], rules)

            _relax(next_layer, (stops, compound), entry.time + lap_time, entry.pit_stops)

            if stops >= config.max_pit_stops:
                continue

            window_key = (entry.stint_start, compound)
            if window_key not in windows:
                windows[window_key] = calculate_pit_window(entry.stint_start, compound, config, rules)
            if not windows[window_key].contains(lap):
                continue

            pit_loss = estimate_time_loss(config, lap, rules)
            reason = determine_pit_reason(lap, config, stops)

            for new_compound in config.available_compounds:
                if new_compound == compound:
                    continue
                stop = PitStop(
                    lap=lap,
                    compound=new_compound,
                    pit_loss=pit_loss,
                    reason=reason,
                    confidence=rules.default_pit_stop_confidence,
                )
                _relax(
                    next_layer,
                    (stops + 1, new_compound),
                    entry.time + lap_time + pit_loss,
                    entry.pit_stops + (stop,),
                )

        layer = next_layer
        states_visited += len(layer)

    logger.debug(f"DP visited {states_visited} states, {len(windows)} distinct pit windows")

    best: Optional[_StateEntry] = None
    best_compound = opening
    for (stops, compound), entry in layer.items():
        if not config.min_pit_stops <= stops <= config.max_pit_stops:
            continue
        if not is_valid_strategy(entry.pit_stops, config, rules):
            continue
        # The table holds laps 1..total-1; add the final lap to get the race time
        final_lap = _lap_time(
            compound, total_laps - entry.stint_start, config, fuel_penalties[total_laps], rules
        )
        candidate = _StateEntry(entry.time + final_lap, entry.pit_stops)
        if best is None or candidate.time < best.time:
            best = candidate
            best_compound = compound

    if best is None:
        raise InfeasibleStrategyError()

    # The regulatory buffer from the rule set governs the fuel plan
    fuel_model = replace(config.fuel_model, min_buffer=rules.min_fuel_buffer)
    saving = fuel_model.fuel_saving_needed(config.starting_fuel, total_laps)
    strategy = RaceStrategy(
        starting_compound=opening,
        pit_stops=best.pit_stops,
        fuel_plan=FuelPlan(
            starting_fuel=config.starting_fuel,
            fuel_saving_per_lap=saving if saving is not None else 0.0,
            minimum_buffer=fuel_model.min_buffer,
        ),
        ers_plan=ErsDeploymentPlan(default_mode=ErsMode.MEDIUM),
        expected_lap_times=calculate_expected_lap_times(config, best.pit_stops, rules),
        predicted_race_time=best.time,
        confidence=rules.default_strategy_confidence,
        metadata=StrategyMetadata(num_simulations=1, contributing_agents=(OPTIMIZER_AGENT,)),
    )

    logger.info(
        f"Best strategy: {strategy.describe()} finishing on {best_compound.value} "
        f"(predicted time: {best.time:.1f}s)"
    )
    return strategy


def build_optimization_config(
    circuit: Circuit,
    available_compounds: Optional[list[TireCompound]] = None,
    total_laps: Optional[int] = None,
    pit_lane_time_loss: float = 20.0,
    tire_change_time: float = 2.5,
    current_position: int = 1,
    competitors_ahead: Optional[list[CompetitorState]] = None,
    starting_fuel: Optional[float] = None,
    min_pit_stops: Optional[int] = None,
    max_pit_stops: int = 3,
    starting_compound: Optional[TireCompound] = None,
    rules: RaceRulesConfig = DEFAULT_CONFIG,
) -> OptimizationConfig:
    """Build an OptimizationConfig from circuit defaults.

    Degradation factors come from the track severity and downforce level, and
    the fuel model is scaled by the circuit's consumption multiplier. A full
    tank and the minimum stop count default to the rule set's limits.
    """
    if starting_fuel is None:
        starting_fuel = rules.max_fuel_capacity
    if min_pit_stops is None:
        min_pit_stops = rules.min_pit_stops
    if available_compounds is None:
        available_compounds = [TireCompound.C1, TireCompound.C2, TireCompound.C3]

    track = circuit.characteristics
    return OptimizationConfig(
        total_laps=total_laps if total_laps is not None else circuit.typical_race_laps,
        circuit=circuit,
        available_compounds=tuple(available_compounds),
        pit_lane_time_loss=pit_lane_time_loss,
        tire_change_time=tire_change_time,
        current_position=current_position,
        competitors_ahead=tuple(competitors_ahead or ()),
        degradation_factors=DegradationFactors(
            track_severity=track.tire_severity,
            downforce_factor=track.downforce_level,
        ),
        fuel_model=FuelConsumptionModel.for_circuit(circuit, rules),
        starting_fuel=starting_fuel,
        min_pit_stops=min_pit_stops,
        max_pit_stops=max_pit_stops,
        starting_compound=starting_compound,
    )
