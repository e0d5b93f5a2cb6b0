"""Circuit definitions and track characteristics."""

import logging
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackCharacteristics:
    """Track-specific modifiers used by the tire and fuel models."""

    tire_severity: float = 1.0  # 1.0 = average abrasiveness
    fuel_consumption: float = 1.0  # 1.0 = average consumption
    overtaking_difficulty: float = 0.5  # 0.0 = easy, 1.0 = very hard
    downforce_level: float = 0.7  # 0.0 = low, 1.0 = high
    average_speed: float = 210.0  # km/h
    maximum_speed: float = 310.0  # km/h
    elevation_change: float = 20.0  # m
    weather_variability: float = 0.5  # 0.0 = stable, 1.0 = highly variable

    def __post_init__(self) -> None:
        if self.tire_severity < 0 or self.fuel_consumption < 0:
            raise ValueError("tire_severity and fuel_consumption cannot be negative")
        for name in ("overtaking_difficulty", "downforce_level", "weather_variability"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must be in [0, 1]")


@dataclass(frozen=True)
class Circuit:
    """A race circuit. Immutable and loaded once per race."""

    id: str
    name: str
    country: str
    length: float  # meters
    num_turns: int
    lap_record: float  # seconds
    characteristics: TrackCharacteristics
    typical_race_laps: int

    def __post_init__(self) -> None:
        if self.length <= 0:
            raise ValueError("length must be positive")
        if self.lap_record <= 0:
            raise ValueError("lap_record must be positive")
        if self.typical_race_laps < 1:
            raise ValueError("typical_race_laps must be at least 1")

    @property
    def race_distance_km(self) -> float:
        return self.length * self.typical_race_laps / 1000.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Circuit":
        fields = dict(data)
        fields["characteristics"] = TrackCharacteristics(**fields.get("characteristics", {}))
        return cls(**fields)


CIRCUITS: dict[str, Circuit] = {
    "monaco": Circuit(
        id="monaco",
        name="Circuit de Monaco",
        country="Monaco",
        length=3337.0,
        num_turns=19,
        lap_record=70.246,
        characteristics=TrackCharacteristics(
            tire_severity=0.8,
            fuel_consumption=0.85,
            overtaking_difficulty=0.95,
            downforce_level=0.95,
            average_speed=160.0,
            maximum_speed=290.0,
            elevation_change=42.0,
            weather_variability=0.3,
        ),
        typical_race_laps=78,
    ),
    "spa": Circuit(
        id="spa",
        name="Circuit de Spa-Francorchamps",
        country="Belgium",
        length=7004.0,
        num_turns=19,
        lap_record=103.458,
        characteristics=TrackCharacteristics(
            tire_severity=1.2,
            fuel_consumption=1.3,
            overtaking_difficulty=0.4,
            downforce_level=0.6,
            average_speed=237.0,
            maximum_speed=340.0,
            elevation_change=105.0,
            weather_variability=0.9,
        ),
        typical_race_laps=44,
    ),
    "silverstone": Circuit(
        id="silverstone",
        name="Silverstone Circuit",
        country="United Kingdom",
        length=5891.0,
        num_turns=18,
        lap_record=86.089,
        characteristics=TrackCharacteristics(
            tire_severity=1.1,
            fuel_consumption=1.1,
            overtaking_difficulty=0.5,
            downforce_level=0.7,
            average_speed=230.0,
            maximum_speed=330.0,
            elevation_change=30.0,
            weather_variability=0.7,
        ),
        typical_race_laps=52,
    ),
    "monza": Circuit(
        id="monza",
        name="Autodromo Nazionale di Monza",
        country="Italy",
        length=5793.0,
        num_turns=11,
        lap_record=81.046,
        characteristics=TrackCharacteristics(
            tire_severity=0.9,
            fuel_consumption=1.4,
            overtaking_difficulty=0.3,
            downforce_level=0.3,
            average_speed=264.0,
            maximum_speed=360.0,
            elevation_change=28.0,
            weather_variability=0.4,
        ),
        typical_race_laps=53,
    ),
    "suzuka": Circuit(
        id="suzuka",
        name="Suzuka International Racing Course",
        country="Japan",
        length=5807.0,
        num_turns=18,
        lap_record=87.435,
        characteristics=TrackCharacteristics(
            tire_severity=1.3,
            fuel_consumption=1.2,
            overtaking_difficulty=0.7,
            downforce_level=0.8,
            average_speed=226.0,
            maximum_speed=315.0,
            elevation_change=43.0,
            weather_variability=0.6,
        ),
        typical_race_laps=53,
    ),
}


def get_circuit(circuit_id: str) -> Circuit:
    """Look up a built-in circuit by id (case-insensitive)."""
    key = circuit_id.strip().lower()
    if key not in CIRCUITS:
        raise ValueError(f"Unknown circuit {circuit_id!r}; available: {sorted(CIRCUITS)}")
    return CIRCUITS[key]


def famous_circuits() -> list[Circuit]:
    return list(CIRCUITS.values())
