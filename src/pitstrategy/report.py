"""HTML report generation for an optimization and simulation run."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Template

from pitstrategy import viz
from pitstrategy.circuit import Circuit
from pitstrategy.config import DEFAULT_CONFIG, RaceRulesConfig
from pitstrategy.simulator import SimulationResult, compare_simulations
from pitstrategy.strategy import RaceStrategy

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <title>Pit Strategy Report - {{ circuit.name }}</title>
    <style>
        body { font-family: Arial; max-width: 1400px; margin: 0 auto; padding: 20px;
               background: #0f0f0f; color: #e0e0e0; }
        h1 { color: #ff1e1e; border-bottom: 3px solid #ff1e1e; }
        h2 { color: #1e90ff; margin-top: 30px; }
        table { border-collapse: collapse; margin: 15px 0; }
        td, th { padding: 6px 14px; border-bottom: 1px solid #333; text-align: left; }
        .header { background: #1a1a1a; padding: 20px; border-radius: 10px; margin-bottom: 30px; }
        .recommendation { background: #1a3a1a; padding: 20px; border-radius: 10px;
                         border-left: 5px solid #00ff00; margin: 20px 0; }
        .plot { margin: 30px 0; text-align: center; }
        .warnings { background: #2d1a1a; padding: 15px; border-radius: 5px;
                   border-left: 4px solid #ff6b6b; margin: 20px 0; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Pit Strategy Report</h1>
        <h2>{{ circuit.name }}</h2>
        <p><strong>Country:</strong> {{ circuit.country }}</p>
        <p><strong>Race distance:</strong> {{ total_laps }} laps ({{ "%.1f"|format(circuit.race_distance_km) }} km)</p>
        <p><strong>Generated:</strong> {{ generation_time }}</p>
    </div>

    <div class="recommendation">
        <h3>Recommended Strategy</h3>
        <p><strong>{{ strategy.describe() }}</strong></p>
        <p>Predicted race time: {{ "%.1f"|format(strategy.predicted_race_time) }}s
           (confidence {{ "%.0f"|format(strategy.confidence * 100) }}%)</p>
        <table>
            <tr><th>Lap</th><th>Compound</th><th>Pit loss (s)</th><th>Reason</th></tr>
            {% for stop in strategy.pit_stops %}
            <tr><td>{{ stop.lap }}</td><td>{{ stop.compound.label }}</td>
                <td>{{ "%.2f"|format(stop.pit_loss) }}</td><td>{{ stop.reason.value }}</td></tr>
            {% endfor %}
        </table>
    </div>

    <h2>Simulated Race</h2>
    <p>Total time {{ "%.1f"|format(result.total_time) }}s, average lap
       {{ "%.3f"|format(result.average_lap_time) }}s, fastest {{ "%.3f"|format(result.fastest_lap) }}s</p>
    <div class="plot">{{ plot_lap_times }}</div>
    <div class="plot">{{ plot_fuel }}</div>

    {% if plot_distributions %}
    <h2>Monte Carlo ({{ n_sims }} runs)</h2>
    <div class="plot">{{ plot_distributions }}</div>
    {% endif %}

    {% if result.warnings %}
    <div class="warnings">
        <h3>Warnings ({{ result.warnings|length }})</h3>
        <ul>
        {% for warning in result.warnings[:max_warnings] %}
            <li>{{ warning }}</li>
        {% endfor %}
        </ul>
        {% if result.warnings|length > max_warnings %}
        <p>... and {{ result.warnings|length - max_warnings }} more</p>
        {% endif %}
    </div>
    {% endif %}
</body>
</html>
"""


def generate_report(
    circuit: Circuit,
    strategy: RaceStrategy,
    result: SimulationResult,
    monte_carlo: Optional[list[SimulationResult]] = None,
    config: RaceRulesConfig = DEFAULT_CONFIG,
    output_path: Optional[Path] = None,
    max_warnings: int = 25,
) -> str:
    """Render the HTML report and optionally write it to ``output_path``."""
    logger.info("Generating HTML report...")

    plot_laps = viz.plot_lap_times(result, config).to_html(include_plotlyjs="cdn", div_id="lap_plot")
    plot_fuel = viz.plot_fuel_trace(result, config).to_html(include_plotlyjs=False, div_id="fuel_plot")

    plot_dist = ""
    if monte_carlo:
        results_dict = {strategy.describe(): monte_carlo}
        plot_dist = viz.plot_race_time_distributions(results_dict, config).to_html(
            include_plotlyjs=False, div_id="dist_plot"
        )
        logger.debug(f"Monte Carlo summary:\n{compare_simulations(results_dict).to_string()}")

    template = Template(HTML_TEMPLATE)
    html = template.render(
        circuit=circuit,
        strategy=strategy,
        result=result,
        total_laps=result.total_laps,
        plot_lap_times=plot_laps,
        plot_fuel=plot_fuel,
        plot_distributions=plot_dist,
        n_sims=len(monte_carlo) if monte_carlo else 0,
        max_warnings=max_warnings,
        generation_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
        logger.info(f"Report saved to: {output_path}")

    return html
