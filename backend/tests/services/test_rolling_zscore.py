"""
Tests for backend/mvrv_zscore/services/rolling_zscore.py

Covers:
- window_stats: mean / population stddev and window size checks
- point_zscore: formula, rounding, zero-variance policy
- series_zscore: output length, date alignment, determinism
- latest_zscore: newest point only
"""

import math

import pytest

from mvrv_zscore.constants import WINDOW_SIZE
from mvrv_zscore.exceptions import InsufficientWindowDataError
from mvrv_zscore.services.rolling_zscore import (
    latest_zscore,
    point_zscore,
    series_zscore,
    window_stats,
)


def _alternating(low=1.0, high=3.0):
    """Window alternating low/high. Defaults give mean 2.0 and stddev 1.0."""
    return [low if i % 2 == 0 else high for i in range(WINDOW_SIZE)]


# =============================================================================
# window_stats
# =============================================================================


class TestWindowStats:
    """Tests for window_stats()."""

    def test_mean_and_population_stddev(self):
        """Happy path: alternating 1/3 window has mean 2 and stddev 1."""
        mean, stddev = window_stats(_alternating())
        assert mean == 2.0
        assert stddev == 1.0

    def test_uses_population_divisor(self):
        """Happy path: divisor is WINDOW_SIZE, not WINDOW_SIZE - 1."""
        window = [0.0] * (WINDOW_SIZE - 1) + [float(WINDOW_SIZE)]
        mean, stddev = window_stats(window)
        assert mean == pytest.approx(1.0)
        expected_var = ((WINDOW_SIZE - 1) * 1.0 + (WINDOW_SIZE - 1) ** 2) / WINDOW_SIZE
        assert stddev == pytest.approx(math.sqrt(expected_var))

    def test_short_window_raises(self):
        """Failure: one value short of a full window."""
        with pytest.raises(InsufficientWindowDataError) as exc_info:
            window_stats([1.0] * (WINDOW_SIZE - 1))
        assert exc_info.value.expected == WINDOW_SIZE
        assert exc_info.value.actual == WINDOW_SIZE - 1

    def test_long_window_raises(self):
        """Failure: one value over a full window."""
        with pytest.raises(InsufficientWindowDataError):
            window_stats([1.0] * (WINDOW_SIZE + 1))

    def test_empty_window_raises(self):
        """Edge case: empty window."""
        with pytest.raises(InsufficientWindowDataError):
            window_stats([])

    def test_window_error_is_not_request_level(self):
        """Edge case: window errors are plain ValueErrors, not AppErrors."""
        from mvrv_zscore.exceptions import AppError

        err = InsufficientWindowDataError(WINDOW_SIZE, 3)
        assert isinstance(err, ValueError)
        assert not isinstance(err, AppError)


# =============================================================================
# point_zscore
# =============================================================================


class TestPointZScore:
    """Tests for point_zscore()."""

    def test_positive_zscore(self):
        """Happy path: value two stddevs above the mean."""
        assert point_zscore(4.0, _alternating()) == 2.0

    def test_negative_zscore(self):
        """Happy path: value below the mean yields a negative score."""
        assert point_zscore(0.5, _alternating()) == -1.5

    def test_value_at_mean_is_zero(self):
        """Happy path: value equal to the mean scores zero."""
        assert point_zscore(2.0, _alternating()) == 0.0

    def test_rounded_to_four_decimals(self):
        """Happy path: result is rounded to 4 decimal places."""
        assert point_zscore(2.123456789, _alternating()) == 0.1235

    def test_scales_with_stddev(self):
        """Happy path: wider window shrinks the score."""
        # 0/4 alternating: mean 2, stddev 2
        assert point_zscore(5.0, _alternating(0.0, 4.0)) == 1.5

    @pytest.mark.parametrize("c", [2.0, 0.1, 1.234567, 1e-6, 123456.789])
    def test_constant_window_returns_zero(self, c):
        """Edge case: zero variance returns exactly 0, not inf/NaN."""
        result = point_zscore(c, [c] * WINDOW_SIZE)
        assert result == 0
        assert not math.isnan(result)

    def test_constant_window_with_outlier_current_returns_zero(self):
        """Edge case: flat window scores 0 even for a far-off current value."""
        assert point_zscore(4.0, [2.0] * WINDOW_SIZE) == 0

    def test_wrong_window_size_raises(self):
        """Failure: caller passed a short window."""
        with pytest.raises(InsufficientWindowDataError):
            point_zscore(1.0, [1.0, 2.0, 3.0])

    def test_accepts_tuple_window(self):
        """Edge case: any sequence type works."""
        assert point_zscore(4.0, tuple(_alternating())) == 2.0


# =============================================================================
# series_zscore
# =============================================================================


class TestSeriesZScore:
    """Tests for series_zscore()."""

    def test_empty_series(self, make_raw_series):
        """Edge case: empty input yields empty output."""
        assert series_zscore([]) == []

    @pytest.mark.parametrize("n", [1, 100, WINDOW_SIZE - 1, WINDOW_SIZE])
    def test_short_series_returns_empty(self, make_raw_series, n):
        """Edge case: no point has a full preceding window."""
        series = make_raw_series([1.0 + i * 0.001 for i in range(n)])
        assert series_zscore(series) == []

    def test_minimum_series_yields_one_point(self, make_raw_series):
        """Happy path: WINDOW_SIZE + 1 points produce exactly one derived point."""
        series = make_raw_series(_alternating() + [4.0])
        result = series_zscore(series)
        assert len(result) == 1
        assert result[0].date == series[WINDOW_SIZE].date
        assert result[0].zscore == 2.0

    def test_length_and_date_alignment(self, wavy_series):
        """Happy path: len = n - WINDOW_SIZE and dates line up by index."""
        result = series_zscore(wavy_series)
        assert len(result) == len(wavy_series) - WINDOW_SIZE
        for k, point in enumerate(result):
            assert point.date == wavy_series[WINDOW_SIZE + k].date

    def test_each_point_matches_point_zscore(self, wavy_series):
        """Happy path: every derived point uses its own trailing window."""
        values = [p.mvrv for p in wavy_series]
        result = series_zscore(wavy_series)
        for k, point in enumerate(result):
            i = WINDOW_SIZE + k
            assert point.zscore == point_zscore(values[i], values[i - WINDOW_SIZE:i])

    def test_current_point_excluded_from_window(self, make_raw_series):
        """Edge case: spike on the scored day does not feed its own window."""
        series = make_raw_series([2.0] * WINDOW_SIZE + [4.0])
        result = series_zscore(series)
        assert result[0].zscore == 0

    def test_constant_then_jump_scenario(self, make_raw_series):
        """Scenario: 730 x 2.0 then 4.0 scores 0 under the zero-stddev rule."""
        series = make_raw_series([2.0] * 730 + [4.0])
        result = series_zscore(series)
        assert len(result) == 1
        assert result[0].zscore == 0
        assert result[0].mvrv == 4.0

    def test_carries_rounded_mvrv_and_price(self, make_raw_series):
        """Happy path: mvrv rounded to 6 decimals, price passed through."""
        series = make_raw_series(_alternating() + [1.23456789], price=43210.55)
        point = series_zscore(series)[0]
        assert point.mvrv == 1.234568
        assert point.price == 43210.55

    def test_missing_price_defaults_to_zero(self, make_raw_series):
        """Edge case: raw point without price reports 0."""
        series = make_raw_series(_alternating() + [2.5], price=None)
        assert series_zscore(series)[0].price == 0

    def test_deterministic(self, wavy_series):
        """Happy path: two runs over the same input are identical."""
        first = [p.model_dump() for p in series_zscore(wavy_series)]
        second = [p.model_dump() for p in series_zscore(wavy_series)]
        assert first == second

    def test_does_not_mutate_input(self, wavy_series):
        """Edge case: raw series is left untouched."""
        before = [p.model_dump() for p in wavy_series]
        series_zscore(wavy_series)
        assert [p.model_dump() for p in wavy_series] == before


# =============================================================================
# latest_zscore
# =============================================================================


class TestLatestZScore:
    """Tests for latest_zscore()."""

    def test_matches_last_series_point(self, wavy_series):
        """Happy path: same result as the last point of the full series."""
        assert latest_zscore(wavy_series) == series_zscore(wavy_series)[-1]

    def test_short_series_returns_none(self, make_raw_series):
        """Edge case: exactly WINDOW_SIZE points is one too few."""
        assert latest_zscore(make_raw_series([1.0] * WINDOW_SIZE)) is None

    def test_minimum_series(self, make_raw_series):
        """Happy path: WINDOW_SIZE + 1 points."""
        series = make_raw_series(_alternating() + [0.5])
        latest = latest_zscore(series)
        assert latest.date == series[-1].date
        assert latest.zscore == -1.5
