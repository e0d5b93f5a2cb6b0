"""Plotly figures for simulation traces and Monte Carlo comparisons.

All figures share the dark theme and size from RaceRulesConfig so they can be
embedded side by side in the HTML report.
"""

import logging

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig
from pitstrategy.simulator import SimulationResult, result_to_dataframe

logger = logging.getLogger(__name__)

F1_RED = "#FF1E1E"
F1_BLUE = "#1E90FF"
F1_GREEN = "#00D856"
F1_YELLOW = "#FFA800"
F1_PURPLE = "#9B4DFF"
F1_COLORS = [F1_RED, F1_BLUE, F1_GREEN, F1_YELLOW, F1_PURPLE]

# Pirelli-style sidewall colours, hard to soft
COMPOUND_COLORS = {
    "C0": "#B0B0B0",
    "C1": "#FFFFFF",
    "C2": "#E8E8E8",
    "C3": "#FFD12E",
    "C4": "#FF8C42",
    "C5": "#FF1E1E",
    "INTERMEDIATE": "#43B047",
    "WET": "#0067AD",
}

_GRID = "rgba(255,255,255,0.1)"


def _apply_layout(fig: go.Figure, title: str, x_title: str, y_title: str, config: RaceRulesConfig) -> None:
    fig.update_layout(
        title=dict(text=title, font=dict(size=20, color="white")),
        xaxis=dict(title=x_title, gridcolor=_GRID, showgrid=True),
        yaxis=dict(title=y_title, gridcolor=_GRID, showgrid=True),
        template=config.plot_theme,
        width=config.plot_width,
        height=config.plot_height,
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        font=dict(color="white"),
        legend=dict(
            bgcolor="rgba(0,0,0,0.5)",
            bordercolor="rgba(255,255,255,0.2)",
            borderwidth=1,
        ),
    )


def plot_lap_times(
    result: SimulationResult,
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Lap-time trace coloured by compound, with pit laps marked."""
    df = result_to_dataframe(result)
    fig = go.Figure()

    for compound, stint_df in df.groupby("compound", sort=False):
        fig.add_trace(
            go.Scatter(
                x=stint_df["lap"],
                y=stint_df["lap_time"],
                mode="markers+lines",
                name=compound,
                line=dict(width=2, color=COMPOUND_COLORS.get(compound, F1_BLUE)),
                marker=dict(size=5),
                hovertemplate="Lap %{x}<br>Lap Time: %{y:.3f}s<extra></extra>",
            )
        )

    for event in result.pit_stops:
        fig.add_vline(
            x=event.lap,
            line_dash="dot",
            line_color=F1_YELLOW,
            annotation=dict(
                text=f"Pit L{event.lap}: {event.old_compound.value} → {event.new_compound.value}",
                font=dict(color=F1_YELLOW, size=11),
            ),
        )

    _apply_layout(fig, "Lap Time Trace", "Lap", "Lap Time (seconds)", config)
    fig.update_layout(hovermode="x unified")
    return fig


def plot_fuel_trace(
    result: SimulationResult,
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Fuel on board at the end of each lap against the low-fuel threshold."""
    laps = np.arange(1, len(result.fuel_history) + 1)
    fig = go.Figure()

    fig.add_trace(
        go.Scatter(
            x=laps,
            y=result.fuel_history,
            mode="lines",
            name="Fuel",
            line=dict(width=3, color=F1_GREEN),
            fill="tozeroy",
            fillcolor="rgba(0, 216, 86, 0.15)",
            hovertemplate="Lap %{x}<br>Fuel: %{y:.2f} kg<extra></extra>",
        )
    )
    fig.add_hline(
        y=config.low_fuel_threshold,
        line_dash="dash",
        line_color=F1_RED,
        annotation=dict(text="Low fuel", font=dict(color=F1_RED)),
    )

    _apply_layout(fig, "Fuel Load", "Lap", "Fuel (kg)", config)
    return fig


def plot_race_time_distributions(
    results_dict: dict[str, list[SimulationResult]],
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Histogram of Monte Carlo total race times per strategy."""
    fig = go.Figure()

    for idx, (strategy_name, results) in enumerate(results_dict.items()):
        fig.add_trace(
            go.Histogram(
                x=[r.total_time for r in results],
                name=strategy_name,
                opacity=0.7,
                nbinsx=30,
                marker_color=F1_COLORS[idx % len(F1_COLORS)],
            )
        )

    _apply_layout(fig, "Race Time Distributions", "Total Race Time (seconds)", "Frequency", config)
    fig.update_layout(barmode="overlay")
    return fig


def plot_strategy_comparison(
    comparison_df: pd.DataFrame,
    config: RaceRulesConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Mean race time per strategy with one standard deviation error bars."""
    df_sorted = comparison_df.sort_values("Mean Time (s)")
    colors = [F1_GREEN if i == 0 else F1_BLUE if i == 1 else F1_RED for i in range(len(df_sorted))]

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=df_sorted["Strategy"],
            y=df_sorted["Mean Time (s)"],
            error_y=dict(
                type="data",
                array=df_sorted["Std Time (s)"],
                visible=True,
                color="rgba(255,255,255,0.3)",
            ),
            marker=dict(color=colors, line=dict(color="white", width=1)),
            hovertemplate="<b>%{x}</b><br>Mean: %{y:.2f}s<extra></extra>",
        )
    )

    _apply_layout(fig, "Strategy Performance Comparison", "Strategy", "Mean Race Time (seconds)", config)
    fig.update_layout(showlegend=False, xaxis_tickangle=-45)
    return fig
