"""Weather timeline and weather-versus-compound lookup tables."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from pitstrategy.tire_model import TireCompound

logger = logging.getLogger(__name__)


class WeatherCondition(str, Enum):
    DRY = "dry"
    CLOUDY = "cloudy"
    PARTLY_CLOUDY = "partly_cloudy"
    LIGHT_RAIN = "light_rain"
    HEAVY_RAIN = "heavy_rain"

    @property
    def is_rain(self) -> bool:
        return self in (WeatherCondition.LIGHT_RAIN, WeatherCondition.HEAVY_RAIN)


class RecommendedTire(str, Enum):
    DRY = "dry"
    INTERMEDIATE = "intermediate"
    WET = "wet"


@dataclass(frozen=True)
class WeatherTimeline:
    """Initial conditions plus ordered (lap, condition, track temperature) change-points."""

    initial_condition: WeatherCondition = WeatherCondition.DRY
    track_temperature: float = 30.0  # degC
    air_temperature: float = 25.0  # degC
    changes: tuple[tuple[int, WeatherCondition, float], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Keep change-points sorted so lookups can scan backwards.
        ordered = tuple(
            sorted(
                ((int(lap), WeatherCondition(cond), float(temp)) for lap, cond, temp in self.changes),
                key=lambda change: change[0],
            )
        )
        object.__setattr__(self, "changes", ordered)

    def _latest_change(self, lap: int):
        for change in reversed(self.changes):
            if change[0] <= lap:
                return change
        return None

    def condition_at_lap(self, lap: int) -> WeatherCondition:
        change = self._latest_change(lap)
        return change[1] if change is not None else self.initial_condition

    def track_temp_at_lap(self, lap: int) -> float:
        change = self._latest_change(lap)
        return change[2] if change is not None else self.track_temperature

    def to_dict(self) -> dict:
        return {
            "initial_condition": self.initial_condition.value,
            "track_temperature": self.track_temperature,
            "air_temperature": self.air_temperature,
            "changes": [[lap, cond.value, temp] for lap, cond, temp in self.changes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherTimeline":
        return cls(
            initial_condition=WeatherCondition(data.get("initial_condition", "dry")),
            track_temperature=float(data.get("track_temperature", 30.0)),
            air_temperature=float(data.get("air_temperature", 25.0)),
            changes=tuple(
                (int(lap), WeatherCondition(cond), float(temp))
                for lap, cond, temp in data.get("changes", [])
            ),
        )


_DRY_CONDITIONS = (WeatherCondition.DRY, WeatherCondition.CLOUDY, WeatherCondition.PARTLY_CLOUDY)


def _build_penalty_table() -> dict[tuple[WeatherCondition, TireCompound], float]:
    """Lap-time penalty (seconds) for every condition/compound pair; 1.0s unless listed."""
    table = {(condition, compound): 1.0 for condition in WeatherCondition for compound in TireCompound}

    for compound in TireCompound:
        if compound.is_dry:
            for condition in _DRY_CONDITIONS:
                table[(condition, compound)] = 0.0
            table[(WeatherCondition.LIGHT_RAIN, compound)] = 5.0
            table[(WeatherCondition.HEAVY_RAIN, compound)] = 15.0

    table[(WeatherCondition.LIGHT_RAIN, TireCompound.INTERMEDIATE)] = 0.0
    table[(WeatherCondition.HEAVY_RAIN, TireCompound.WET)] = 0.0
    table[(WeatherCondition.HEAVY_RAIN, TireCompound.INTERMEDIATE)] = 3.0
    table[(WeatherCondition.DRY, TireCompound.INTERMEDIATE)] = 2.5
    table[(WeatherCondition.DRY, TireCompound.WET)] = 5.0
    table[(WeatherCondition.CLOUDY, TireCompound.WET)] = 4.0
    return table


_WEATHER_PENALTIES = _build_penalty_table()


def weather_penalty(condition: WeatherCondition, compound: TireCompound) -> float:
    """Lap-time penalty for running ``compound`` in ``condition``."""
    return _WEATHER_PENALTIES[(WeatherCondition(condition), TireCompound(compound))]


def is_wrong_tire_for_weather(compound: TireCompound, condition: WeatherCondition) -> bool:
    """Slicks in the rain, or intermediates in heavy rain."""
    compound = TireCompound(compound)
    condition = WeatherCondition(condition)
    if condition.is_rain and compound.is_dry:
        return True
    return condition == WeatherCondition.HEAVY_RAIN and compound == TireCompound.INTERMEDIATE


def recommended_tire_type(condition: WeatherCondition) -> RecommendedTire:
    condition = WeatherCondition(condition)
    if condition == WeatherCondition.HEAVY_RAIN:
        return RecommendedTire.WET
    if condition == WeatherCondition.LIGHT_RAIN:
        return RecommendedTire.INTERMEDIATE
    return RecommendedTire.DRY
