"""Command-line interface for the pit strategy optimizer and race simulator."""

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from pitstrategy import (
    circuit as circuits,
    comparison,
    compound_selection,
    config as cfg,
    optimizer,
    report,
    simulator,
)
from pitstrategy.fuel_model import FuelConsumptionModel
from pitstrategy.strategy import FuelPlan, PitStop, PitStopReason, RaceStrategy
from pitstrategy.tire_model import TireCompound
from pitstrategy.weather import WeatherCondition, WeatherTimeline

logger = logging.getLogger(__name__)


def _parse_compounds(value: str) -> list[TireCompound]:
    return [TireCompound.parse(item) for item in value.split(",") if item.strip()]


def _parse_stops(value: Optional[str]) -> list[tuple[int, TireCompound]]:
    """Parse ``"25:C2,45:C3"`` into (lap, compound) pairs."""
    if not value:
        return []
    stops = []
    for item in value.split(","):
        lap, _, compound = item.partition(":")
        stops.append((int(lap), TireCompound.parse(compound)))
    return stops


def _load_strategy(path: Path) -> RaceStrategy:
    with open(path) as f:
        return RaceStrategy.from_dict(json.load(f))


def _build_manual_strategy(args: argparse.Namespace, config: cfg.RaceRulesConfig) -> RaceStrategy:
    """Strategy from --start/--stops; a one-stop C3 -> C2 at lap 25 by default."""
    stops = _parse_stops(args.stops) or [(25, TireCompound.C2)]
    return RaceStrategy(
        starting_compound=TireCompound.parse(args.start),
        pit_stops=tuple(
            PitStop(
                lap=lap,
                compound=compound,
                pit_loss=args.pit_loss,
                reason=PitStopReason.MANDATORY if i == 0 else PitStopReason.OPPORTUNISTIC,
            )
            for i, (lap, compound) in enumerate(stops)
        ),
        fuel_plan=FuelPlan(starting_fuel=args.fuel if args.fuel is not None else config.max_fuel_capacity),
    )


def _weather_from_args(args: argparse.Namespace) -> WeatherTimeline:
    return WeatherTimeline(
        initial_condition=WeatherCondition(args.weather),
        track_temperature=args.track_temp,
    )


def _output_dir(args: argparse.Namespace, config: cfg.RaceRulesConfig) -> Path:
    run_id = args.run_id or str(uuid.uuid4())[:8]
    output_dir = config.output_dir / run_id
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _print_strategy(strategy: RaceStrategy) -> None:
    print(f"\n{'='*80}")
    print(f"OPTIMAL STRATEGY: {strategy.describe()}")
    print(f"{'='*80}\n")
    print(f"Starting compound:   {strategy.starting_compound.label}")
    print(f"Predicted race time: {strategy.predicted_race_time:.1f}s ({strategy.predicted_race_time / 60:.2f} min)")
    print(f"Confidence:          {strategy.confidence * 100:.0f}%\n")
    for stop in strategy.pit_stops:
        print(
            f"  Lap {stop.lap:>3}: -> {stop.compound.label:<18} "
            f"loss {stop.pit_loss:5.2f}s  ({stop.reason.value})"
        )


def _print_simulation(result: simulator.SimulationResult, max_warnings: int = 10) -> None:
    print(f"\nTotal time:   {result.total_time:.1f}s")
    print(f"Average lap:  {result.average_lap_time:.3f}s")
    print(f"Fastest lap:  {result.fastest_lap:.3f}s")
    print(f"Slowest lap:  {result.slowest_lap:.3f}s")
    print(f"Final fuel:   {result.fuel_history[-1]:.2f} kg" if result.fuel_history else "Final fuel:   n/a")
    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings[:max_warnings]:
            print(f"  - {warning}")
        if len(result.warnings) > max_warnings:
            print(f"  ... and {len(result.warnings) - max_warnings} more")


def run_optimize(args: argparse.Namespace) -> int:
    """Optimize a strategy for a built-in circuit."""
    try:
        config = cfg.RaceRulesConfig(random_seed=args.seed)
        track = circuits.get_circuit(args.track)

        opt_config = optimizer.build_optimization_config(
            track,
            available_compounds=_parse_compounds(args.compounds),
            total_laps=args.laps,
            pit_lane_time_loss=args.pit_lane,
            tire_change_time=args.tire_change,
            current_position=args.position,
            starting_fuel=args.fuel,
            min_pit_stops=args.min_stops,
            max_pit_stops=args.max_stops,
            rules=config,
        )

        strategy = optimizer.optimize_pit_strategy(opt_config, config)
        _print_strategy(strategy)

        result = simulator.simulate_race(
            track,
            strategy,
            opt_config.fuel_model,
            WeatherTimeline(track_temperature=args.track_temp),
            total_laps=opt_config.total_laps,
            config=config,
        )
        _print_simulation(result)

        output_dir = _output_dir(args, config)
        json_path = output_dir / "strategy.json"
        with open(json_path, "w") as f:
            json.dump(strategy.to_dict(), f, indent=2)
        logger.info(f"Strategy saved to: {json_path}")

        if args.report:
            report.generate_report(track, strategy, result, config=config, output_path=output_dir / "report.html")

        return 0

    except Exception as e:
        logger.error(f"Optimization failed: {e}", exc_info=args.verbose)
        return 1


def run_simulate(args: argparse.Namespace) -> int:
    """Simulate a strategy (from JSON or --start/--stops) lap by lap."""
    try:
        config = cfg.RaceRulesConfig(random_seed=args.seed)
        track = circuits.get_circuit(args.track)

        strategy = _load_strategy(Path(args.strategy)) if args.strategy else _build_manual_strategy(args, config)
        fuel_model = FuelConsumptionModel.for_circuit(track, config)
        weather = _weather_from_args(args)

        logger.info(f"Simulating {strategy.describe()} at {track.name}")
        result = simulator.simulate_race(track, strategy, fuel_model, weather, args.laps, config)
        _print_simulation(result)

        monte_carlo = None
        if args.num_sims > 1:
            monte_carlo = simulator.run_monte_carlo(
                track,
                strategy,
                fuel_model,
                weather,
                args.laps,
                config,
                n_simulations=args.num_sims,
                show_progress=not args.quiet,
            )
            summary = simulator.summarize_monte_carlo(monte_carlo)
            print(f"\nMonte Carlo ({summary['n_simulations']} runs):")
            print(f"  Mean:   {summary['mean_time']:.1f}s ± {summary['std_time']:.1f}s")
            print(f"  P5-P95: {summary['p5_time']:.1f}s - {summary['p95_time']:.1f}s")

        output_dir = _output_dir(args, config)
        json_path = output_dir / "simulation.json"
        with open(json_path, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info(f"Simulation saved to: {json_path}")

        if args.report:
            report.generate_report(
                track, strategy, result, monte_carlo, config, output_path=output_dir / "report.html"
            )

        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=args.verbose)
        return 1


def run_compare(args: argparse.Namespace) -> int:
    """Compare two strategies stored as JSON."""
    try:
        track = circuits.get_circuit(args.track)
        strategy_a = _load_strategy(Path(args.strategy_a))
        strategy_b = _load_strategy(Path(args.strategy_b))
        opt_config = optimizer.build_optimization_config(track, total_laps=args.laps)

        result = comparison.compare_strategies(strategy_a, strategy_b, opt_config)

        print(f"\n{'='*80}")
        print("STRATEGY COMPARISON")
        print(f"{'='*80}\n")
        print(f"A: {strategy_a.describe()}")
        print(f"B: {strategy_b.describe()}\n")
        print(f"Time delta (A-B):  {result.time_delta:+.2f}s")
        print(f"Risk delta (A-B):  {result.risk_delta:+.2f}")
        breakdown = result.breakdown
        print(f"Tire wear:         {breakdown.tire_wear_difference:+.3f}")
        print(f"Fuel efficiency:   {breakdown.fuel_efficiency_difference:+.4f} laps/kg")
        print(f"Pit loss:          {breakdown.pit_loss_difference:+.2f}s")
        print(f"Overtaking:        {breakdown.overtaking_opportunities:+d}")
        print(f"\nRecommendation:    {result.recommendation.value}")
        return 0

    except Exception as e:
        logger.error(f"Comparison failed: {e}", exc_info=args.verbose)
        return 1


def run_recommend(args: argparse.Namespace) -> int:
    """Recommend a compound for the next stint."""
    try:
        config = cfg.RaceRulesConfig()
        track = circuits.get_circuit(args.track)
        compounds = _parse_compounds(args.compounds)
        fuel_load = args.fuel if args.fuel is not None else config.max_fuel_capacity
        factors = optimizer.build_optimization_config(track, rules=config).degradation_factors

        print(
            f"\nCompound scores at {track.name} "
            f"({args.track_temp:.0f}C track, {fuel_load:.0f} kg, {args.stint} laps):"
        )
        for compound in compounds:
            score = compound_selection.score_compound(
                compound, track, args.track_temp, fuel_load, args.stint, factors, config
            )
            print(f"  {compound.value:<13} {score:.3f}")

        selected = compound_selection.select_optimal_compound(
            track, compounds, args.track_temp, fuel_load, args.stint, factors, config
        )
        print(f"\nRecommended compound: {selected.value} ({selected.label})")
        return 0

    except Exception as e:
        logger.error(f"Recommendation failed: {e}", exc_info=args.verbose)
        return 1


def run_circuits(args: argparse.Namespace) -> int:
    """List the built-in circuits."""
    for track in circuits.famous_circuits():
        chars = track.characteristics
        print(
            f"{track.id:<12} {track.name:<38} {track.typical_race_laps:>3} laps  "
            f"record {track.lap_record:7.3f}s  severity {chars.tire_severity:.2f}  "
            f"fuel x{chars.fuel_consumption:.2f}"
        )
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--track", type=str, default="monaco", help="Circuit id (see 'circuits')")
    parser.add_argument("--laps", type=int, help="Race distance (defaults to the circuit's)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Pit strategy optimizer and lap-by-lap race simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Optimize a Monaco strategy
  pitstrategy optimize --track monaco --compounds C1,C2,C3

  # Simulate a two-stop plan with 200 Monte Carlo runs
  pitstrategy simulate --track monaco --start C3 --stops 20:C4,40:C5 --num-sims 200

  # Compare two saved strategies
  pitstrategy compare --track monaco a.json b.json

  # Recommend a compound for a 25-lap stint
  pitstrategy recommend --track spa --compounds C2,C3,C4 --stint 25
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    opt_parser = subparsers.add_parser("optimize", help="Find the optimal pit strategy")
    _add_common(opt_parser)
    opt_parser.add_argument("--compounds", type=str, default="C1,C2,C3", help="Comma-separated compounds")
    opt_parser.add_argument("--pit-lane", type=float, default=20.0, help="Pit lane time loss (s)")
    opt_parser.add_argument("--tire-change", type=float, default=2.5, help="Tire change time (s)")
    opt_parser.add_argument("--position", type=int, default=1, help="Current race position")
    opt_parser.add_argument("--fuel", type=float, help="Starting fuel (kg, full tank if omitted)")
    opt_parser.add_argument("--min-stops", type=int, help="Minimum stops (rule set default if omitted)")
    opt_parser.add_argument("--max-stops", type=int, default=3)
    opt_parser.add_argument("--track-temp", type=float, default=30.0, help="Track temperature (C)")
    opt_parser.add_argument("--seed", type=int, default=42, help="Random seed")
    opt_parser.add_argument("--run-id", type=str, help="Custom run identifier")
    opt_parser.add_argument("--report", action="store_true", help="Write an HTML report")

    sim_parser = subparsers.add_parser("simulate", help="Simulate a strategy lap by lap")
    _add_common(sim_parser)
    sim_parser.add_argument("--strategy", type=str, help="Strategy JSON file")
    sim_parser.add_argument("--start", type=str, default="C3", help="Starting compound")
    sim_parser.add_argument("--stops", type=str, help="Pit stops as LAP:COMPOUND,...")
    sim_parser.add_argument("--pit-loss", type=float, default=22.0, help="Pit loss per stop (s)")
    sim_parser.add_argument("--fuel", type=float, help="Starting fuel (kg, full tank if omitted)")
    sim_parser.add_argument(
        "--weather", type=str, default="dry", choices=[c.value for c in WeatherCondition]
    )
    sim_parser.add_argument("--track-temp", type=float, default=30.0, help="Track temperature (C)")
    sim_parser.add_argument("--num-sims", type=int, default=1, help="Monte Carlo repetitions")
    sim_parser.add_argument("--seed", type=int, default=42, help="Random seed")
    sim_parser.add_argument("--run-id", type=str, help="Custom run identifier")
    sim_parser.add_argument("--report", action="store_true", help="Write an HTML report")
    sim_parser.add_argument("--quiet", action="store_true", help="Hide the progress bar")

    cmp_parser = subparsers.add_parser("compare", help="Compare two strategy JSON files")
    _add_common(cmp_parser)
    cmp_parser.add_argument("strategy_a", type=str)
    cmp_parser.add_argument("strategy_b", type=str)

    rec_parser = subparsers.add_parser("recommend", help="Recommend a compound for a stint")
    _add_common(rec_parser)
    rec_parser.add_argument("--compounds", type=str, default="C1,C2,C3", help="Comma-separated compounds")
    rec_parser.add_argument("--track-temp", type=float, default=30.0, help="Track temperature (C)")
    rec_parser.add_argument("--fuel", type=float, help="Fuel on board (kg, full tank if omitted)")
    rec_parser.add_argument("--stint", type=int, default=20, help="Target stint length (laps)")

    subparsers.add_parser("circuits", help="List built-in circuits")

    args = parser.parse_args(argv)

    if args.command == "optimize":
        return run_optimize(args)
    elif args.command == "simulate":
        return run_simulate(args)
    elif args.command == "compare":
        return run_compare(args)
    elif args.command == "recommend":
        return run_recommend(args)
    elif args.command == "circuits":
        return run_circuits(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
