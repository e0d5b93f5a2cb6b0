"""Tests for the dynamic-programming pit strategy optimizer."""

import dataclasses

import pytest

from pitstrategy.config import RaceRulesConfig
from pitstrategy.exceptions import InfeasibleStrategyError, InvalidConfigError, OptimizationError
from pitstrategy.optimizer import (
    OPTIMIZER_AGENT,
    CompetitorState,
    build_optimization_config,
    calculate_expected_lap_times,
    calculate_pit_window,
    determine_pit_reason,
    estimate_time_loss,
    is_valid_strategy,
    optimize_pit_strategy,
    predict_lap_time,
    tire_age_at_lap,
)
from pitstrategy.strategy import PitStop, PitStopReason
from pitstrategy.tire_model import DegradationFactors, TireCompound


def make_stop(lap: int, compound: TireCompound = TireCompound.C4) -> PitStop:
    return PitStop(lap=lap, compound=compound, pit_loss=22.0)


class TestValidation:
    """Tests for precondition checks raised before the search."""

    def test_zero_laps(self, opt_config):
        """Test total laps must be positive."""
        config = dataclasses.replace(opt_config, total_laps=0)
        with pytest.raises(InvalidConfigError, match="Total laps must be greater than 0"):
            optimize_pit_strategy(config)

    def test_no_compounds(self, opt_config):
        """Test at least one compound is required."""
        config = dataclasses.replace(opt_config, available_compounds=())
        with pytest.raises(InvalidConfigError, match="at least one available compound"):
            optimize_pit_strategy(config)

    def test_min_exceeds_max(self, opt_config):
        """Test min stops cannot exceed max stops."""
        config = dataclasses.replace(opt_config, min_pit_stops=3, max_pit_stops=2)
        with pytest.raises(InvalidConfigError, match="Min pit stops cannot exceed max pit stops"):
            optimize_pit_strategy(config)

    def test_no_fuel(self, opt_config):
        """Test starting fuel must be positive."""
        config = dataclasses.replace(opt_config, starting_fuel=0.0)
        with pytest.raises(InvalidConfigError, match="Starting fuel"):
            optimize_pit_strategy(config)

    def test_fuel_above_capacity(self, opt_config):
        """Test starting fuel is capped by the rule set's tank capacity."""
        rules = RaceRulesConfig(max_fuel_capacity=100.0)
        with pytest.raises(InvalidConfigError, match="exceeds maximum fuel capacity of 100.0 kg"):
            optimize_pit_strategy(opt_config, rules)

    def test_unavailable_starting_compound(self, opt_config):
        """Test starting compound must be available."""
        config = dataclasses.replace(opt_config, starting_compound=TireCompound.C1)
        with pytest.raises(InvalidConfigError, match="Starting compound C1"):
            optimize_pit_strategy(config)

    def test_config_error_is_value_error(self, opt_config):
        """Test config errors can be caught as ValueError and as OptimizationError."""
        config = dataclasses.replace(opt_config, total_laps=0)
        with pytest.raises(ValueError):
            optimize_pit_strategy(config)
        with pytest.raises(OptimizationError):
            optimize_pit_strategy(config)


class TestInfeasible:
    """Tests for the infeasible-strategy error."""

    def test_single_compound(self, opt_config):
        """Test a single dry compound can never satisfy the two-compound rule."""
        config = dataclasses.replace(opt_config, available_compounds=(TireCompound.C3,))
        with pytest.raises(InfeasibleStrategyError, match="No valid strategy found within constraints"):
            optimize_pit_strategy(config)

    def test_no_stops_allowed(self, opt_config):
        """Test zero allowed stops cannot change compound."""
        config = dataclasses.replace(opt_config, min_pit_stops=0, max_pit_stops=0)
        with pytest.raises(InfeasibleStrategyError):
            optimize_pit_strategy(config)

    def test_infeasible_is_not_config_error(self, opt_config):
        """Test the two error families are distinct."""
        config = dataclasses.replace(opt_config, available_compounds=(TireCompound.C3,))
        with pytest.raises(OptimizationError) as exc_info:
            optimize_pit_strategy(config)
        assert not isinstance(exc_info.value, InvalidConfigError)


class TestLapTimeModel:
    """Tests for the optimizer lap-time prediction."""

    def test_wear_never_makes_lap_faster(self, opt_config):
        """Test lap time is non-decreasing in tire age."""
        for compound in (TireCompound.C1, TireCompound.C3, TireCompound.C5):
            times = [predict_lap_time(compound, age, opt_config, 10) for age in range(0, 45)]
            assert all(a <= b for a, b in zip(times, times[1:]))

    def test_soft_is_faster_when_fresh(self, opt_config):
        """Test grip bonus for softer compounds."""
        assert predict_lap_time(TireCompound.C5, 1, opt_config, 10) < predict_lap_time(
            TireCompound.C3, 1, opt_config, 10
        )

    def test_lighter_car_is_faster(self, opt_config):
        """Test fuel penalty shrinks over the race."""
        early = predict_lap_time(TireCompound.C3, 5, opt_config, 5)
        late = predict_lap_time(TireCompound.C3, 5, opt_config, 45)
        assert late < early

    def test_race_pace_near_lap_record(self, opt_config):
        """Test lap time sits about 3% off the record."""
        lap_time = predict_lap_time(TireCompound.C3, 10, opt_config, 25)
        record = opt_config.circuit.lap_record
        assert record * 1.02 < lap_time < record * 1.05


class TestPitWindow:
    """Tests for pit window calculation."""

    def test_window_from_race_start(self, opt_config):
        """Test C3 window with neutral degradation."""
        window = calculate_pit_window(0, TireCompound.C3, opt_config)
        assert window.earliest_lap == 17
        assert window.optimal_start == 20
        assert window.optimal_end == 22
        assert window.latest_lap == 23
        assert window.constraints == ()

    def test_window_ordering(self, opt_config):
        """Test earliest <= optimal start <= optimal end <= latest <= total laps."""
        for compound in TireCompound:
            for lap in range(0, opt_config.total_laps + 1, 5):
                window = calculate_pit_window(lap, compound, opt_config)
                assert 1 <= window.earliest_lap
                assert window.earliest_lap <= window.optimal_start
                assert window.optimal_start <= window.optimal_end
                assert window.optimal_end <= window.latest_lap
                assert window.latest_lap <= opt_config.total_laps - 1

    def test_degradation_shrinks_window(self, opt_config):
        """Test severe degradation brings the window forward."""
        severe = dataclasses.replace(opt_config, degradation_factors=DegradationFactors(track_severity=1.5))
        normal_window = calculate_pit_window(0, TireCompound.C3, opt_config)
        severe_window = calculate_pit_window(0, TireCompound.C3, severe)
        assert severe_window.latest_lap < normal_window.latest_lap

    def test_high_degradation_note(self, opt_config):
        """Test severe tracks are flagged."""
        severe = dataclasses.replace(opt_config, degradation_factors=DegradationFactors(track_severity=1.3))
        window = calculate_pit_window(0, TireCompound.C3, severe)
        assert "High tire degradation track" in window.constraints

    def test_undercut_note(self, opt_config):
        """Test competitor stopping inside the window is an undercut chance."""
        rival = CompetitorState(
            position=3, gap_seconds=2.0, compound=TireCompound.C3, tire_age=10, estimated_pit_lap=20
        )
        config = dataclasses.replace(opt_config, competitors_ahead=(rival,))
        window = calculate_pit_window(0, TireCompound.C3, config)
        assert "Potential undercut opportunity on P3 at lap 19" in window.constraints

    def test_contains(self, opt_config):
        """Test window membership is inclusive."""
        window = calculate_pit_window(0, TireCompound.C3, opt_config)
        assert window.contains(17)
        assert window.contains(23)
        assert not window.contains(16)
        assert not window.contains(24)


class TestTimeLoss:
    """Tests for pit stop time loss."""

    def test_formula(self, opt_config):
        """Test base loss times fuel factor plus position penalty."""
        assert estimate_time_loss(opt_config, 25) == pytest.approx(20.5 * 1.05 + 1.0)

    def test_early_stop_costs_more(self, opt_config):
        """Test heavier car loses more time in the pit lane."""
        assert estimate_time_loss(opt_config, 10) >= estimate_time_loss(opt_config, 40)

    @pytest.mark.parametrize("position,penalty", [(1, 1.5), (3, 1.5), (4, 1.0), (10, 1.0), (11, 0.5)])
    def test_position_penalty(self, opt_config, position, penalty):
        """Test position penalty steps."""
        config = dataclasses.replace(opt_config, current_position=position)
        assert estimate_time_loss(config, 50) == pytest.approx(20.5 + penalty)


class TestHelpers:
    """Tests for reason inference, tire age and validity."""

    def test_pit_reason(self, opt_config):
        """Test narrative reasons."""
        assert determine_pit_reason(25, opt_config, 0) == PitStopReason.MANDATORY
        assert determine_pit_reason(10, opt_config, 1) == PitStopReason.UNDERCUT
        assert determine_pit_reason(40, opt_config, 1) == PitStopReason.TIRE_DEGRADATION
        assert determine_pit_reason(25, opt_config, 1) == PitStopReason.OPPORTUNISTIC

    def test_tire_age(self):
        """Test tire age counts from the most recent earlier stop."""
        assert tire_age_at_lap(10, ()) == 10
        assert tire_age_at_lap(25, (make_stop(20),)) == 5
        assert tire_age_at_lap(50, (make_stop(20),)) == 30
        assert tire_age_at_lap(20, (make_stop(20),)) == 20

    def test_is_valid_strategy(self, opt_config):
        """Test stop count and compound diversity."""
        assert not is_valid_strategy((), opt_config)
        assert not is_valid_strategy((make_stop(20, TireCompound.C3),), opt_config)
        assert is_valid_strategy((make_stop(20, TireCompound.C4),), opt_config)
        assert is_valid_strategy((make_stop(20, TireCompound.INTERMEDIATE),), opt_config)

    def test_expected_lap_times_by_stint(self, opt_config):
        """Test expected lap times are grouped by stint."""
        stops = (make_stop(20), make_stop(35, TireCompound.C5))
        lap_times = calculate_expected_lap_times(opt_config, stops)
        assert sorted(lap_times) == [0, 1, 2]
        assert [len(lap_times[i]) for i in range(3)] == [20, 15, 15]

    def test_expected_lap_times_restart_tire_age(self, opt_config):
        """Test the first lap after a stop is run on fresh tires."""
        stops = (make_stop(20),)
        lap_times = calculate_expected_lap_times(opt_config, stops)

        assert lap_times[0][-1] == pytest.approx(predict_lap_time(TireCompound.C3, 20, opt_config, 20))
        assert lap_times[1][0] == pytest.approx(predict_lap_time(TireCompound.C4, 1, opt_config, 21))


class TestOptimizePitStrategy:
    """Tests for the full optimization."""

    def test_monaco_race(self, monaco):
        """Test full Monaco race with hard compounds."""
        config = build_optimization_config(
            monaco,
            available_compounds=[TireCompound.C1, TireCompound.C2, TireCompound.C3],
            min_pit_stops=1,
            max_pit_stops=3,
        )
        strategy = optimize_pit_strategy(config)

        assert config.total_laps == 78
        assert strategy.num_pit_stops >= 1
        assert 5000 < strategy.predicted_race_time < 7000
        assert strategy.is_valid(78)

    def test_uses_two_compounds(self, opt_config):
        """Test returned strategies use at least two distinct compounds."""
        for max_stops in (1, 2, 3):
            config = dataclasses.replace(opt_config, max_pit_stops=max_stops)
            strategy = optimize_pit_strategy(config)
            assert len(set(strategy.compounds_used())) >= 2
            assert 1 <= strategy.num_pit_stops <= max_stops

    def test_stops_inside_race(self, opt_config):
        """Test stop laps are strictly increasing and before the flag."""
        strategy = optimize_pit_strategy(opt_config)
        laps = [stop.lap for stop in strategy.pit_stops]
        assert laps == sorted(set(laps))
        assert all(1 <= lap < opt_config.total_laps for lap in laps)

    def test_first_stop_is_mandatory(self, opt_config):
        """Test reason and confidence on generated stops."""
        strategy = optimize_pit_strategy(opt_config)
        assert strategy.pit_stops[0].reason == PitStopReason.MANDATORY
        assert all(stop.confidence == 0.85 for stop in strategy.pit_stops)

    def test_predicted_time_matches_expected_laps(self, opt_config):
        """Test predicted time is the sum of lap times plus pit losses."""
        strategy = optimize_pit_strategy(opt_config)
        lap_total = sum(sum(times) for times in strategy.expected_lap_times.values())
        assert strategy.predicted_race_time == pytest.approx(lap_total + strategy.total_pit_loss())
        assert sum(len(times) for times in strategy.expected_lap_times.values()) == opt_config.total_laps

    def test_strategy_metadata(self, opt_config):
        """Test output strategy fields."""
        strategy = optimize_pit_strategy(opt_config)
        assert strategy.starting_compound == TireCompound.C3
        assert strategy.confidence == 0.80
        assert strategy.fuel_plan.starting_fuel == 110.0
        assert strategy.fuel_plan.fuel_saving_per_lap == 0.0
        assert strategy.metadata.num_simulations == 1
        assert strategy.metadata.contributing_agents == (OPTIMIZER_AGENT,)

    def test_deterministic(self, opt_config):
        """Test repeated runs give the same plan."""
        first = optimize_pit_strategy(opt_config)
        second = optimize_pit_strategy(opt_config)
        assert [(s.lap, s.compound) for s in first.pit_stops] == [(s.lap, s.compound) for s in second.pit_stops]
        assert first.predicted_race_time == second.predicted_race_time
        assert first.id != second.id

    def test_explicit_starting_compound(self, opt_config):
        """Test starting compound can be chosen."""
        config = dataclasses.replace(opt_config, starting_compound=TireCompound.C4)
        strategy = optimize_pit_strategy(config)
        assert strategy.starting_compound == TireCompound.C4
        assert strategy.pit_stops[0].compound != TireCompound.C4

    def test_more_stops_never_slower(self, opt_config):
        """Test widening the stop range cannot worsen the optimum."""
        one_stop = optimize_pit_strategy(dataclasses.replace(opt_config, max_pit_stops=1))
        three_stop = optimize_pit_strategy(opt_config)
        assert three_stop.predicted_race_time <= one_stop.predicted_race_time + 1e-6

    def test_intermediate_waives_compound_rule(self, opt_config):
        """Test a single dry compound plus intermediates is a legal plan."""
        config = dataclasses.replace(
            opt_config,
            available_compounds=(TireCompound.C3, TireCompound.INTERMEDIATE),
            max_pit_stops=1,
        )
        strategy = optimize_pit_strategy(config)

        assert strategy.compounds_used() == [TireCompound.C3, TireCompound.INTERMEDIATE]
        assert strategy.is_valid(config.total_laps)


class TestRuleSet:
    """Tests for injecting a non-default rule set."""

    def test_fuel_buffer_reaches_fuel_plan(self, opt_config):
        """Test a larger regulatory buffer forces fuel saving."""
        default = optimize_pit_strategy(opt_config)
        strict = optimize_pit_strategy(opt_config, RaceRulesConfig(min_fuel_buffer=30.0))

        assert default.fuel_plan.minimum_buffer == 1.0
        assert default.fuel_plan.fuel_saving_per_lap == 0.0
        assert strict.fuel_plan.minimum_buffer == 30.0
        # 50 laps at the mid-race burn of 1.644 kg/lap against 80 kg usable
        assert strict.fuel_plan.fuel_saving_per_lap == pytest.approx((1.644 * 50 - 80.0) / 50)

    def test_build_config_defaults_from_rules(self, monaco):
        """Test stop count, fuel load and buffer default to the rule set."""
        rules = RaceRulesConfig(min_pit_stops=2, max_fuel_capacity=100.0, min_fuel_buffer=5.0)
        config = build_optimization_config(monaco, rules=rules)

        assert config.min_pit_stops == 2
        assert config.starting_fuel == 100.0
        assert config.fuel_model.min_buffer == 5.0

        strategy = optimize_pit_strategy(config, rules)
        assert strategy.num_pit_stops >= 2
        assert strategy.fuel_plan.starting_fuel == 100.0
