"""Tests for tire compound characteristics and degradation factors."""

import math

import pytest

from pitstrategy.tire_model import (
    DegradationFactors,
    TireCompound,
    characteristics,
    grip_multiplier,
    remaining_life,
)


class TestTireCompound:
    """Tests for the compound enumeration."""

    def test_ordering_hard_to_soft(self):
        """Test compounds are ordered from hardest to softest, wets last."""
        assert TireCompound.C0.rank < TireCompound.C3.rank < TireCompound.C5.rank
        assert TireCompound.C5.rank < TireCompound.INTERMEDIATE.rank < TireCompound.WET.rank

    def test_wet_flags(self):
        """Test dry/wet classification."""
        assert TireCompound.C2.is_dry
        assert not TireCompound.C2.is_wet
        assert TireCompound.INTERMEDIATE.is_wet
        assert TireCompound.WET.is_wet

    def test_parse(self):
        """Test parsing from user text."""
        assert TireCompound.parse("c4") == TireCompound.C4
        assert TireCompound.parse(" inter ") == TireCompound.INTERMEDIATE
        assert TireCompound.parse("wet") == TireCompound.WET

        with pytest.raises(ValueError, match="Unknown tire compound"):
            TireCompound.parse("C9")


class TestCharacteristics:
    """Tests for the characteristics lookup table."""

    def test_every_compound_has_characteristics(self):
        """Test lookup is total over all compounds."""
        for compound in TireCompound:
            chars = characteristics(compound)
            assert chars.compound == compound
            assert 0.65 <= chars.grip_level <= 0.95
            assert 15 <= chars.typical_life <= 40

    def test_softer_compounds_grip_more_and_last_less(self):
        """Test dry compound trade-off between grip and life."""
        dry = [c for c in TireCompound if c.is_dry]
        grips = [characteristics(c).grip_level for c in dry]
        lives = [characteristics(c).typical_life for c in dry]

        assert grips == sorted(grips)
        assert lives == sorted(lives, reverse=True)

    def test_medium_values(self):
        """Test C3 row."""
        chars = characteristics(TireCompound.C3)
        assert chars.grip_level == 0.85
        assert chars.degradation_rate == 0.013
        assert chars.optimal_temp_range == (92.0, 112.0)
        assert chars.typical_life == 25

    def test_lookup_is_idempotent(self):
        """Test repeated lookups return identical results."""
        assert characteristics(TireCompound.C4) == characteristics(TireCompound.C4)


class TestGripMultiplier:
    """Tests for temperature grip multiplier."""

    def test_inside_band(self):
        """Test full grip inside the optimal band."""
        chars = characteristics(TireCompound.C3)
        assert grip_multiplier(chars, 92.0) == 1.0
        assert grip_multiplier(chars, 112.0) == 1.0

    def test_cold_tire(self):
        """Test grip falls 2% per degree below the band, floored at 0.5."""
        chars = characteristics(TireCompound.C3)
        assert grip_multiplier(chars, 82.0) == pytest.approx(0.8)
        assert grip_multiplier(chars, 20.0) == 0.5

    def test_hot_tire(self):
        """Test grip falls 3% per degree above the band, floored at 0.3."""
        chars = characteristics(TireCompound.C3)
        assert grip_multiplier(chars, 122.0) == pytest.approx(0.7)
        assert grip_multiplier(chars, 200.0) == 0.3


class TestRemainingLife:
    """Tests for remaining tire life."""

    def test_remaining_life(self):
        """Test life from current wear and severity."""
        chars = characteristics(TireCompound.C3)
        assert remaining_life(chars, 0.5, 1.0) == pytest.approx(0.5 / 0.013)

    def test_severe_track_shortens_life(self):
        """Test higher severity means fewer laps."""
        chars = characteristics(TireCompound.C3)
        assert remaining_life(chars, 0.2, 1.3) < remaining_life(chars, 0.2, 1.0)

    def test_zero_degradation_is_infinite(self):
        """Test zero severity resolves to infinity instead of dividing by zero."""
        chars = characteristics(TireCompound.C3)
        assert math.isinf(remaining_life(chars, 0.5, 0.0))


class TestDegradationFactors:
    """Tests for degradation factors."""

    def test_default_multiplier(self):
        """Test neutral factors multiply to 1."""
        assert DegradationFactors().total_multiplier() == 1.0

    def test_multiplier_is_product(self):
        """Test combined multiplier."""
        factors = DegradationFactors(track_severity=2.0, temperature_factor=1.5, downforce_factor=0.5)
        assert factors.total_multiplier() == pytest.approx(1.5)

    @pytest.mark.parametrize("name", ["track_severity", "driving_style_factor", "fuel_load_factor"])
    def test_non_positive_factor_rejected(self, name):
        """Test every factor must be positive."""
        with pytest.raises(ValueError):
            DegradationFactors(**{name: 0.0})
