"""
Pit Strategy Optimizer: Dynamic-Programming Pit Planning + Lap-by-Lap Race Simulation

A strategy engine for Formula 1 races with:
- Tire compound and fuel consumption models
- Pit stop optimization over (lap, stops, compound) states
- Deterministic race replay with Monte Carlo repetition
- Strategy comparison and compound recommendation
"""

__version__ = "0.1.0"

from pitstrategy import (
    config,
    circuit,
    comparison,
    compound_selection,
    optimizer,
    simulator,
    strategy,
    tire_model,
)

__all__ = [
    "config",
    "circuit",
    "comparison",
    "compound_selection",
    "optimizer",
    "simulator",
    "strategy",
    "tire_model",
]
