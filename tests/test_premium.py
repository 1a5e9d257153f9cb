"""
Tests for the premium calculator.
"""
import math

import pytest

from premium import COVERAGE_ORDER, PremiumValidationError, calculate_premium


class TestCalculatePremium:
    """Test the rating formula and its rounding."""

    def test_ljubljana_full(self):
        """Test the worked example for a rated city."""
        result = calculate_premium(5, 150, "Ljubljana", "full")
        assert result.annual_eur == 573
        assert result.monthly_eur == 48

    def test_other_city_tiers(self):
        assert calculate_premium(5, 150, "Other", "basic").annual_eur == 352
        assert calculate_premium(5, 150, "Other", "basic").monthly_eur == 29
        assert calculate_premium(5, 150, "Other", "partial").annual_eur == 451
        assert calculate_premium(5, 150, "Other", "partial").monthly_eur == 38

    def test_monthly_rounds_half_up(self):
        # 546 / 12 == 45.5
        result = calculate_premium(5, 150, "Other", "full")
        assert result.annual_eur == 546
        assert result.monthly_eur == 46

    def test_breakdown(self):
        result = calculate_premium(5, 150, "LJUBLJANA", "partial")
        assert result.breakdown["base"] == 220.0
        assert result.breakdown["city_factor"] == 1.05
        assert result.breakdown["coverage_factor"] == 1.28
        assert result.breakdown["age_factor"] == pytest.approx(1.0)
        assert result.breakdown["hp_factor"] == pytest.approx(1.6)

    def test_unknown_and_missing_city(self):
        """Test unrated and missing cities rate as Other."""
        a = calculate_premium(5, 150, "Trzin", "basic")
        b = calculate_premium(5, 150, None, "basic")
        assert a.breakdown["city_factor"] == 1.0
        assert a.annual_eur == b.annual_eur == 352

    def test_age_factor_clamped(self):
        assert calculate_premium(0, 100, "Other", "basic").breakdown["age_factor"] == pytest.approx(1.10)
        assert calculate_premium(40, 100, "Other", "basic").breakdown["age_factor"] == 0.78

    def test_hp_factor_clamped(self):
        assert calculate_premium(5, 20, "Other", "basic").breakdown["hp_factor"] == pytest.approx(0.95)
        assert calculate_premium(5, 600, "Other", "basic").breakdown["hp_factor"] == 1.60

    @pytest.mark.parametrize("age, hp", [(0, 20), (5, 150), (12, 90), (40, 600)])
    def test_tiers_strictly_increasing(self, age, hp):
        """Test that a pricier tier always costs more."""
        annual = [calculate_premium(age, hp, "Maribor", level).annual_eur for level in COVERAGE_ORDER]
        assert annual == sorted(annual)
        assert len(set(annual)) == len(annual)


class TestValidation:
    """Test rejected inputs."""

    @pytest.mark.parametrize("age", [-1, math.nan, math.inf, None, "star"])
    def test_bad_age(self, age):
        with pytest.raises(PremiumValidationError):
            calculate_premium(age, 150, "Other", "basic")

    @pytest.mark.parametrize("hp", [0, -5, math.nan, None])
    def test_bad_horsepower(self, hp):
        with pytest.raises(PremiumValidationError):
            calculate_premium(5, hp, "Other", "basic")

    @pytest.mark.parametrize("level", [None, "", "gold"])
    def test_bad_coverage(self, level):
        with pytest.raises(PremiumValidationError):
            calculate_premium(5, 150, "Other", level)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            calculate_premium(5, 150, "Other", "gold")
