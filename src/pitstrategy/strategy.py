"""Race strategy representation: pit stops, stints, fuel and ERS plans."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pitstrategy.tire_model import TireCompound

logger = logging.getLogger(__name__)


class PitStopReason(str, Enum):
    MANDATORY = "mandatory"
    TIRE_DEGRADATION = "tire_degradation"
    TIRE_DAMAGE = "tire_damage"
    WEATHER_CHANGE = "weather_change"
    UNDERCUT = "undercut"
    OVERCUT = "overcut"
    SAFETY_CAR = "safety_car"
    VIRTUAL_SAFETY_CAR = "virtual_safety_car"
    OPPORTUNISTIC = "opportunistic"


class ErsMode(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    HOTLAP = "hotlap"
    OVERTAKE = "overtake"


@dataclass(frozen=True)
class PitStop:
    """A planned pit stop. The car pits at the end of ``lap``."""

    lap: int  # 1-indexed
    compound: TireCompound
    pit_loss: float  # seconds
    reason: PitStopReason = PitStopReason.OPPORTUNISTIC
    confidence: float = 0.85

    def __post_init__(self) -> None:
        object.__setattr__(self, "compound", TireCompound(self.compound))
        object.__setattr__(self, "reason", PitStopReason(self.reason))
        if self.lap < 1:
            raise ValueError("pit stop lap must be >= 1")
        if self.pit_loss <= 0:
            raise ValueError("pit_loss must be positive")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")

    def to_dict(self) -> dict:
        return {
            "lap": self.lap,
            "compound": self.compound.value,
            "pit_loss": self.pit_loss,
            "reason": self.reason.value,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PitStop":
        return cls(
            lap=int(data["lap"]),
            compound=TireCompound.parse(data["compound"]),
            pit_loss=float(data["pit_loss"]),
            reason=PitStopReason(data.get("reason", PitStopReason.OPPORTUNISTIC.value)),
            confidence=float(data.get("confidence", 0.85)),
        )


@dataclass(frozen=True)
class Stint:
    """Laps run on one tire set between pit stops (inclusive lap range)."""

    compound: TireCompound
    start_lap: int
    end_lap: int

    @property
    def length(self) -> int:
        return self.end_lap - self.start_lap + 1


@dataclass(frozen=True)
class FuelPlan:
    """Fuel management strategy."""

    starting_fuel: float  # kg
    fuel_saving_per_lap: float = 0.0  # kg
    fuel_saving_laps: tuple[int, ...] = ()
    minimum_buffer: float = 1.0  # kg

    def __post_init__(self) -> None:
        if self.starting_fuel < 0 or self.fuel_saving_per_lap < 0 or self.minimum_buffer < 0:
            raise ValueError("fuel plan values cannot be negative")


@dataclass(frozen=True)
class ErsDeploymentPlan:
    """ERS deployment plan; only consumed as a lap-time input, not simulated."""

    default_mode: ErsMode = ErsMode.MEDIUM
    lap_overrides: dict[int, ErsMode] = field(default_factory=dict)
    overtake_laps: tuple[int, ...] = ()


@dataclass(frozen=True)
class StrategyMetadata:
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    num_simulations: int = 1
    contributing_agents: tuple[str, ...] = ()
    version_hash: Optional[str] = None
    parent_strategy_id: Optional[str] = None


@dataclass(frozen=True)
class RaceStrategy:
    """Complete race strategy with pit stop plan.

    Pit stops must be in strictly increasing lap order. A strategy is never
    patched in place; build a new one instead.
    """

    starting_compound: TireCompound
    pit_stops: tuple[PitStop, ...] = ()
    fuel_plan: FuelPlan = field(default_factory=lambda: FuelPlan(starting_fuel=110.0))
    ers_plan: ErsDeploymentPlan = field(default_factory=ErsDeploymentPlan)
    expected_lap_times: dict[int, list[float]] = field(default_factory=dict)
    predicted_race_time: float = 0.0  # seconds
    confidence: float = 0.8
    metadata: StrategyMetadata = field(default_factory=StrategyMetadata)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        object.__setattr__(self, "starting_compound", TireCompound(self.starting_compound))
        object.__setattr__(self, "pit_stops", tuple(self.pit_stops))

        laps = [stop.lap for stop in self.pit_stops]
        if any(later <= earlier for earlier, later in zip(laps, laps[1:])):
            raise ValueError(f"pit stop laps must be strictly increasing, got {laps}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")

    @property
    def num_pit_stops(self) -> int:
        return len(self.pit_stops)

    def pit_stop_on_lap(self, lap: int) -> Optional[PitStop]:
        for stop in self.pit_stops:
            if stop.lap == lap:
                return stop
        return None

    def compounds_used(self) -> list[TireCompound]:
        """Starting compound followed by every compound fitted at a stop."""
        return [self.starting_compound] + [stop.compound for stop in self.pit_stops]

    def is_valid(self, total_race_laps: int) -> bool:
        """Check the strategy against the sporting regulations."""
        # Must have at least one pit stop
        if not self.pit_stops:
            return False

        # All pit stops must be within race duration
        if any(stop.lap > total_race_laps for stop in self.pit_stops):
            return False

        return uses_required_compounds(self.compounds_used())

    def total_pit_loss(self) -> float:
        return sum(stop.pit_loss for stop in self.pit_stops)

    def stint_for_lap(self, lap: int) -> int:
        """0-indexed stint number a lap belongs to."""
        return sum(1 for stop in self.pit_stops if stop.lap < lap)

    def compound_for_lap(self, lap: int) -> TireCompound:
        for stop in reversed(self.pit_stops):
            if stop.lap < lap:
                return stop.compound
        return self.starting_compound

    def stints(self, total_laps: int) -> list[Stint]:
        """Split the race into stints; stops beyond the race distance are ignored."""
        stints = []
        start_lap = 1
        compound = self.starting_compound

        for stop in self.pit_stops:
            if stop.lap >= total_laps:
                break
            stints.append(Stint(compound, start_lap, stop.lap))
            start_lap = stop.lap + 1
            compound = stop.compound

        stints.append(Stint(compound, start_lap, total_laps))
        return stints

    def describe(self) -> str:
        """Short description, e.g. ``"2-stop: C3 -> C4 (L20) -> C5 (L40)"``."""
        parts = [self.starting_compound.value]
        parts.extend(f"{stop.compound.value} (L{stop.lap})" for stop in self.pit_stops)
        return f"{self.num_pit_stops}-stop: " + " -> ".join(parts)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "starting_compound": self.starting_compound.value,
            "pit_stops": [stop.to_dict() for stop in self.pit_stops],
            "fuel_strategy": {
                "starting_fuel": self.fuel_plan.starting_fuel,
                "fuel_saving_per_lap": self.fuel_plan.fuel_saving_per_lap,
                "fuel_saving_laps": list(self.fuel_plan.fuel_saving_laps),
                "minimum_buffer": self.fuel_plan.minimum_buffer,
            },
            "ers_plan": {
                "default_mode": self.ers_plan.default_mode.value,
                "lap_overrides": {str(lap): mode.value for lap, mode in self.ers_plan.lap_overrides.items()},
                "overtake_laps": list(self.ers_plan.overtake_laps),
            },
            "expected_lap_times": {str(stint): times for stint, times in self.expected_lap_times.items()},
            "predicted_race_time": self.predicted_race_time,
            "confidence": self.confidence,
            "metadata": {
                "generated_at": self.metadata.generated_at.isoformat(),
                "num_simulations": self.metadata.num_simulations,
                "contributing_agents": list(self.metadata.contributing_agents),
                "version_hash": self.metadata.version_hash,
                "parent_strategy_id": self.metadata.parent_strategy_id,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RaceStrategy":
        """Build a strategy from JSON; only ``starting_compound`` is required."""
        fuel = data.get("fuel_strategy", {})
        ers = data.get("ers_plan", {})
        meta = data.get("metadata", {})

        kwargs = {}
        if "id" in data:
            kwargs["id"] = str(data["id"])
        if "generated_at" in meta:
            kwargs["metadata"] = StrategyMetadata(
                generated_at=datetime.fromisoformat(meta["generated_at"]),
                num_simulations=int(meta.get("num_simulations", 1)),
                contributing_agents=tuple(meta.get("contributing_agents", ())),
                version_hash=meta.get("version_hash"),
                parent_strategy_id=meta.get("parent_strategy_id"),
            )

        return cls(
            starting_compound=TireCompound.parse(data["starting_compound"]),
            pit_stops=tuple(PitStop.from_dict(stop) for stop in data.get("pit_stops", [])),
            fuel_plan=FuelPlan(
                starting_fuel=float(fuel.get("starting_fuel", 110.0)),
                fuel_saving_per_lap=float(fuel.get("fuel_saving_per_lap", 0.0)),
                fuel_saving_laps=tuple(int(lap) for lap in fuel.get("fuel_saving_laps", ())),
                minimum_buffer=float(fuel.get("minimum_buffer", 1.0)),
            ),
            ers_plan=ErsDeploymentPlan(
                default_mode=ErsMode(ers.get("default_mode", ErsMode.MEDIUM.value)),
                lap_overrides={int(lap): ErsMode(mode) for lap, mode in ers.get("lap_overrides", {}).items()},
                overtake_laps=tuple(int(lap) for lap in ers.get("overtake_laps", ())),
            ),
            expected_lap_times={
                int(stint): [float(t) for t in times]
                for stint, times in data.get("expected_lap_times", {}).items()
            },
            predicted_race_time=float(data.get("predicted_race_time", 0.0)),
            confidence=float(data.get("confidence", 0.8)),
            **kwargs,
        )


def uses_required_compounds(compounds: list[TireCompound], min_dry_types: int = 2) -> bool:
    """Compound-diversity rule.

    Dry races must use at least ``min_dry_types`` distinct dry compounds;
    fitting any intermediate or wet tire waives the requirement.
    """
    if any(TireCompound(c).is_wet for c in compounds):
        return True
    return len({TireCompound(c) for c in compounds}) >= min_dry_types
