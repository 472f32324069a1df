"""
Unit tests for the statistics engine.
"""

import math

import pandas as pd
import pytest

from pulse.anomaly.schema import StatsSummary
from pulse.anomaly.stats import (
    calculate_stats,
    mean,
    percentile,
    plain_number,
    population_std,
    round_half_up,
)
from pulse.core.exceptions import InvalidInputError


class TestPercentile:
    """Linear-interpolation percentile."""

    def test_median_of_one_to_ten(self):
        assert percentile(list(range(1, 11)), 50) == pytest.approx(5.5)

    def test_extremes_are_first_and_last(self):
        values = [3, 7, 8, 15, 21]
        assert percentile(values, 0) == 3
        assert percentile(values, 100) == 21

    def test_empty_is_zero(self):
        for p in (0, 50, 95, 100):
            assert percentile([], p) == 0

    def test_single_element(self):
        for p in (0, 37.5, 100):
            assert percentile([42], p) == 42

    def test_interpolates_between_ranks(self):
        # index = 0.95 * 4 = 3.8 -> 40 + 0.8 * (50 - 40)
        assert percentile([10, 20, 30, 40, 50], 95) == pytest.approx(48.0)

    def test_monotonic_in_p(self):
        values = sorted([5, 1, 9, 3, 3, 12, 7])
        results = [percentile(values, p) for p in range(0, 101, 5)]
        assert results == sorted(results)

    def test_matches_pandas_linear_quantile(self):
        values = sorted([12.0, 3.5, 7.25, 100.0, 41.0, 8.0, 8.0, 19.5])
        series = pd.Series(values)
        for p in (1, 25, 50, 90, 95, 99):
            assert percentile(values, p) == pytest.approx(series.quantile(p / 100))

    @pytest.mark.parametrize("p", [-1, 100.5, 101])
    def test_out_of_range_p_raises(self, p):
        with pytest.raises(InvalidInputError):
            percentile([1, 2, 3], p)

    def test_out_of_range_p_raises_even_when_empty(self):
        with pytest.raises(InvalidInputError):
            percentile([], 150)

    def test_nan_raises(self):
        with pytest.raises(InvalidInputError):
            percentile([1.0, math.nan, 3.0], 50)


class TestCalculateStats:
    """Composite summary."""

    def test_empty_sample_is_all_zero(self):
        assert calculate_stats([]) == StatsSummary()

    def test_basic_summary(self):
        stats = calculate_stats([10, 20, 30, 40, 50])

        assert stats.mean == 30
        assert stats.min == 10
        assert stats.max == 50
        assert stats.p50 == 30
        assert stats.median == stats.p50
        assert stats.p95 > 40
        # population std of 10..50 is sqrt(200)
        assert stats.stddev == pytest.approx(14.14)

    def test_unordered_input_is_not_mutated(self):
        values = [30, 10, 50, 20, 40]
        stats = calculate_stats(values)

        assert values == [30, 10, 50, 20, 40]
        assert stats.min == 10
        assert stats.max == 50

    def test_ordering_invariant(self):
        stats = calculate_stats([7, 1, 1, 2, 900, 3, 44, 5])
        assert stats.min <= stats.p50 <= stats.p95 <= stats.p99 <= stats.max
        assert stats.stddev >= 0

    def test_mean_and_stddev_rounded_to_two_places(self):
        stats = calculate_stats([1, 2, 2])
        assert stats.mean == 1.67
        assert stats.stddev == 0.47

    def test_stddev_matches_pandas_population_std(self, steady_baseline):
        stats = calculate_stats(steady_baseline)
        expected = pd.Series(steady_baseline, dtype=float).std(ddof=0)
        assert stats.stddev == pytest.approx(round(expected, 2))

    def test_infinite_value_raises(self):
        with pytest.raises(InvalidInputError):
            calculate_stats([1.0, math.inf])


def test_mean_and_std_of_empty_are_zero():
    assert mean([]) == 0.0
    assert population_std([]) == 0.0


def test_population_std_uses_n_divisor():
    # [0, 2] -> mean 1, squared deviations 1 + 1, divided by 2
    assert population_std([0, 2]) == pytest.approx(1.0)


def test_round_half_up_breaks_ties_upwards():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(33.333333, 2) == 33.33


class TestExtremeFiniteValues:
    """Finite inputs near the float limits still produce finite summaries."""

    def test_deviations_beyond_square_range(self):
        stats = calculate_stats([1e200, -1e200, 0.0])

        assert stats.mean == 0
        # population std of (1, -1, 0) is sqrt(2/3), scaled by 1e200
        assert stats.stddev == pytest.approx(math.sqrt(2 / 3) * 1e200)
        assert stats.min == -1e200
        assert stats.max == 1e200

    def test_sum_beyond_float_range(self):
        stats = calculate_stats([1e308, 1e308])

        assert stats.mean == 1e308
        assert stats.stddev == 0
        assert stats.p95 == pytest.approx(1e308)

    def test_every_field_is_finite(self):
        stats = calculate_stats([1.7e308, -1.7e308, 1.7e308, 3.0])
        assert all(math.isfinite(v) for v in stats.model_dump().values())

    def test_mean_of_overflowing_sum(self):
        assert mean([1.5e308, 1.5e308, 1.5e308]) == pytest.approx(1.5e308)

    def test_round_half_up_keeps_unscalable_values(self):
        assert round_half_up(1e308, 2) == 1e308


def test_calculate_stats_is_idempotent(steady_baseline):
    assert calculate_stats(steady_baseline) == calculate_stats(steady_baseline)


def test_plain_number_keeps_all_digits():
    assert plain_number(1234567) == "1234567"
    assert plain_number(1234567.0) == "1234567"
    assert plain_number(2.5) == "2.5"
    assert plain_number(0.1) == "0.1"
    assert plain_number(1e308) == "1e+308"
