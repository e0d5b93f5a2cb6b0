"""Tests for plots and the HTML report."""

from pitstrategy.report import generate_report
from pitstrategy.simulator import compare_simulations, run_monte_carlo, simulate_race
from pitstrategy.tire_model import TireCompound
from pitstrategy.viz import (
    plot_fuel_trace,
    plot_lap_times,
    plot_race_time_distributions,
    plot_strategy_comparison,
)


class TestPlots:
    """Tests for plotly figures."""

    def test_lap_times_one_trace_per_stint(self, monaco, two_stop_strategy):
        fig = plot_lap_times(simulate_race(monaco, two_stop_strategy))
        assert [trace.name for trace in fig.data] == ["C3", "C4", "C5"]

    def test_fuel_trace(self, monaco, two_stop_strategy):
        fig = plot_fuel_trace(simulate_race(monaco, two_stop_strategy))
        assert len(fig.data) == 1
        assert len(fig.data[0].y) == 78

    def test_monte_carlo_plots(self, monaco, two_stop_strategy, strategy_factory):
        one_stop = strategy_factory(TireCompound.C3, [(25, TireCompound.C2, 22.0)])
        results = {
            "two-stop": run_monte_carlo(monaco, two_stop_strategy, n_simulations=3, show_progress=False),
            "one-stop": run_monte_carlo(monaco, one_stop, n_simulations=3, show_progress=False),
        }

        assert len(plot_race_time_distributions(results).data) == 2
        bar = plot_strategy_comparison(compare_simulations(results))
        assert len(bar.data[0].x) == 2


class TestReport:
    """Tests for the HTML report."""

    def test_report_written(self, monaco, two_stop_strategy, tmp_path):
        """Test report content and file output."""
        result = simulate_race(monaco, two_stop_strategy)
        output = tmp_path / "reports" / "report.html"

        html = generate_report(monaco, two_stop_strategy, result, output_path=output)

        assert output.exists()
        assert "Circuit de Monaco" in html
        assert two_stop_strategy.describe() in html
        assert "Monte Carlo" not in html

    def test_report_with_monte_carlo(self, monaco, two_stop_strategy):
        result = simulate_race(monaco, two_stop_strategy)
        runs = run_monte_carlo(monaco, two_stop_strategy, n_simulations=3, show_progress=False)

        html = generate_report(monaco, two_stop_strategy, result, runs)
        assert "Monte Carlo (3 runs)" in html

    def test_warnings_are_truncated(self, monaco, strategy_factory):
        strategy = strategy_factory(TireCompound.C3, [], starting_fuel=80.0)
        result = simulate_race(monaco, strategy)

        html = generate_report(monaco, strategy, result, max_warnings=2)
        assert f"Warnings ({len(result.warnings)})" in html
        assert f"... and {len(result.warnings) - 2} more" in html
