"""Configuration module for the pit strategy optimizer and race simulator.

Track-independent physical and regulatory limits, plus the coefficients of the
lap-time models, live here so that rule-set variants can be tested without
touching the models themselves.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@dataclass
class RaceRulesConfig:
    """Regulatory limits and model coefficients shared by optimizer and simulator.

    Defaults reproduce the current sporting regulations and the calibrated
    race-pace model. Every value is injectable so a future rule set (e.g. a
    different fuel allowance) can be evaluated side by side with today's.
    """

    # Regulations
    max_fuel_capacity: float = 110.0  # kg
    min_fuel_buffer: float = 1.0  # kg kept as safety margin
    low_fuel_threshold: float = 5.0  # kg, simulator warning level
    min_pit_stops: int = 1
    min_compound_types: int = 2

    # Race pace
    race_pace_factor: float = 1.03  # 3% off the outright lap record
    reference_grip: float = 0.75  # grip level with zero compound bonus

    # Optimizer lap-time model (linear terms)
    optimizer_wear_penalty: float = 0.5  # seconds at 100% of typical life
    optimizer_fuel_penalty: float = 0.3  # seconds at full starting fuel
    optimizer_grip_bonus: float = 2.0  # seconds per unit grip above reference

    # Simulator lap-time model
    sim_wear_penalty: float = 1.5  # seconds at 100% of typical life
    sim_wear_exponent: float = 1.5
    sim_fuel_penalty: float = 0.35  # seconds at max fuel capacity
    sim_grip_bonus: float = 0.8
    sim_track_degradation: float = 0.5
    cold_temp_penalty: float = 0.05  # seconds per degC below the optimal band
    hot_temp_penalty: float = 0.08  # seconds per degC above the optimal band

    # Pit window, as fractions of degradation-adjusted tire life
    pit_window_earliest: float = 0.70
    pit_window_optimal_start: float = 0.80
    pit_window_optimal_end: float = 0.90
    pit_window_latest: float = 0.95

    # Pit stop time loss
    pit_fuel_factor: float = 0.1  # up to 10% extra loss with a full tank
    position_penalty_podium: float = 1.5  # P1-P3
    position_penalty_points: float = 1.0  # P4-P10
    position_penalty_midfield: float = 0.5  # P11+
    default_pit_stop_confidence: float = 0.85
    default_strategy_confidence: float = 0.80

    # Monte Carlo settings
    n_simulations: int = 200
    random_seed: int = 42
    lap_time_noise_std: float = 0.25  # seconds, only used when an rng is supplied

    # Output settings
    output_dir: Path = field(default_factory=lambda: Path("outputs"))
    plot_width: int = 1200
    plot_height: int = 600
    plot_theme: str = "plotly_dark"

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.output_dir = Path(self.output_dir)

        if self.max_fuel_capacity <= 0:
            raise ValueError("max_fuel_capacity must be positive")
        if self.min_fuel_buffer < 0:
            raise ValueError("min_fuel_buffer cannot be negative")
        if self.min_fuel_buffer >= self.max_fuel_capacity:
            raise ValueError("min_fuel_buffer must be below max_fuel_capacity")
        if self.race_pace_factor <= 0:
            raise ValueError("race_pace_factor must be positive")
        if not (
            0.0
            <= self.pit_window_earliest
            <= self.pit_window_optimal_start
            <= self.pit_window_optimal_end
            <= self.pit_window_latest
        ):
            raise ValueError("pit window fractions must be ordered earliest <= optimal <= latest")
        if self.n_simulations < 1:
            raise ValueError("n_simulations must be at least 1")
        if self.lap_time_noise_std < 0:
            raise ValueError("lap_time_noise_std cannot be negative")

        logger.debug("Race rules configuration initialized")


DEFAULT_CONFIG = RaceRulesConfig()
