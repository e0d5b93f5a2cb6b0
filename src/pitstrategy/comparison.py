"""Head-to-head comparison of two race strategies."""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from pitstrategy.optimizer import OptimizationConfig
from pitstrategy.strategy import PitStopReason, RaceStrategy
from pitstrategy.tire_model import characteristics

logger = logging.getLogger(__name__)

HIGH_DEGRADATION_RATE = 0.015  # wear/lap above which a compound is considered risky
EQUIVALENT_TIME_DELTA = 1.0  # seconds
EQUIVALENT_RISK_DELTA = 0.1


class ComparisonRecommendation(str, Enum):
    PREFER_A = "prefer_a"
    PREFER_B = "prefer_b"
    EQUIVALENT = "equivalent"


@dataclass(frozen=True)
class ComparisonBreakdown:
    """Differences (A - B) behind the headline time delta."""

    tire_wear_difference: float
    fuel_efficiency_difference: float  # laps per kg
    pit_loss_difference: float  # seconds
    track_position_risk: float
    overtaking_opportunities: int

    def to_dict(self) -> dict:
        return {
            "tire_wear_difference": self.tire_wear_difference,
            "fuel_efficiency_difference": self.fuel_efficiency_difference,
            "pit_loss_difference": self.pit_loss_difference,
            "track_position_risk": self.track_position_risk,
            "overtaking_opportunities": self.overtaking_opportunities,
        }


@dataclass(frozen=True)
class StrategyComparison:
    """Comparison result; negative deltas favour strategy A."""

    strategy_a: RaceStrategy
    strategy_b: RaceStrategy
    time_delta: float  # seconds, A - B
    risk_delta: float  # A - B
    breakdown: ComparisonBreakdown
    recommendation: ComparisonRecommendation

    def to_dict(self) -> dict:
        return {
            "strategy_a": self.strategy_a.to_dict(),
            "strategy_b": self.strategy_b.to_dict(),
            "time_delta": self.time_delta,
            "risk_delta": self.risk_delta,
            "breakdown": self.breakdown.to_dict(),
            "recommendation": self.recommendation.value,
        }


def calculate_strategy_risk(strategy: RaceStrategy, config: OptimizationConfig) -> float:
    """Heuristic risk score.

    Strategy reasoning: every stop is a chance for a slow change or an unsafe
    release, soft high-wear compounds can fall off a cliff, and late stops
    rejoin in traffic.
    """
    late_stop_lap = config.total_laps * 2 // 3

    risk = strategy.num_pit_stops * 0.1
    for stop in strategy.pit_stops:
        if characteristics(stop.compound).degradation_rate > HIGH_DEGRADATION_RATE:
            risk += 0.2
        if stop.lap > late_stop_lap:
            risk += 0.15
    return risk


def estimate_total_tire_wear(strategy: RaceStrategy, config: OptimizationConfig) -> float:
    """Sum of stint length x wear rate for every compound fitted at a stop."""
    multiplier = config.degradation_factors.total_multiplier()
    total_wear = 0.0
    previous_lap = 0

    for stop in strategy.pit_stops:
        stint_length = stop.lap - previous_lap
        total_wear += stint_length * characteristics(stop.compound).degradation_rate * multiplier
        previous_lap = stop.lap

    return total_wear


def estimate_fuel_efficiency(strategy: RaceStrategy, config: OptimizationConfig) -> float:
    """Race laps per kg of fuel burned, starting from the strategy's fuel load."""
    total_fuel = config.fuel_model.fuel_needed_for_laps(config.total_laps, strategy.fuel_plan.starting_fuel)
    if total_fuel <= 0.0:
        return math.inf
    return config.total_laps / total_fuel


def count_overtaking_opportunities(strategy: RaceStrategy, config: OptimizationConfig) -> int:
    """Undercut stops plus stops made shortly after a rival's expected stop."""
    opportunities = sum(1 for stop in strategy.pit_stops if stop.reason == PitStopReason.UNDERCUT)

    for competitor in config.competitors_ahead:
        rival_lap = competitor.estimated_pit_lap
        if rival_lap is None:
            continue
        opportunities += sum(1 for stop in strategy.pit_stops if 0 < stop.lap - rival_lap < 10)

    return opportunities


def _recommend(time_delta: float, risk_delta: float) -> ComparisonRecommendation:
    if abs(time_delta) < EQUIVALENT_TIME_DELTA and abs(risk_delta) < EQUIVALENT_RISK_DELTA:
        return ComparisonRecommendation.EQUIVALENT
    if time_delta < 0:
        return ComparisonRecommendation.PREFER_A
    if time_delta > 0:
        return ComparisonRecommendation.PREFER_B
    # Identical predicted times: the safer strategy wins
    if risk_delta < 0:
        return ComparisonRecommendation.PREFER_A
    if risk_delta > 0:
        return ComparisonRecommendation.PREFER_B
    return ComparisonRecommendation.EQUIVALENT


def compare_strategies(
    strategy_a: RaceStrategy,
    strategy_b: RaceStrategy,
    config: OptimizationConfig,
) -> StrategyComparison:
    """Compare two strategies under the same race configuration.

    Args:
        strategy_a: First strategy
        strategy_b: Second strategy
        config: Race configuration both strategies are evaluated against

    Returns:
        StrategyComparison with A - B deltas and a recommendation
    """
    time_delta = strategy_a.predicted_race_time - strategy_b.predicted_race_time
    risk_delta = calculate_strategy_risk(strategy_a, config) - calculate_strategy_risk(strategy_b, config)

    breakdown = ComparisonBreakdown(
        tire_wear_difference=estimate_total_tire_wear(strategy_a, config)
        - estimate_total_tire_wear(strategy_b, config),
        fuel_efficiency_difference=estimate_fuel_efficiency(strategy_a, config)
        - estimate_fuel_efficiency(strategy_b, config),
        pit_loss_difference=strategy_a.total_pit_loss() - strategy_b.total_pit_loss(),
        track_position_risk=risk_delta,
        overtaking_opportunities=count_overtaking_opportunities(strategy_a, config)
        - count_overtaking_opportunities(strategy_b, config),
    )

    recommendation = _recommend(time_delta, risk_delta)
    logger.info(
        f"Compared {strategy_a.describe()} vs {strategy_b.describe()}: "
        f"time delta {time_delta:+.2f}s, risk delta {risk_delta:+.2f} -> {recommendation.value}"
    )

    return StrategyComparison(
        strategy_a=strategy_a,
        strategy_b=strategy_b,
        time_delta=time_delta,
        risk_delta=risk_delta,
        breakdown=breakdown,
        recommendation=recommendation,
    )
