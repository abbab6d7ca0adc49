"""Unit tests for window-bounded series statistics."""

import math

import pytest

from tsgraph.gnuplot.series import InvalidSampleError, Series
from tsgraph.gnuplot.stats import StatsSummary, compute_stats, format_compact, truncate2


def test_truncate2_rounds_toward_zero():
    assert truncate2(2.999) == 2.99
    assert truncate2(-2.999) == -2.99
    assert truncate2(7.0) == 7.0


def test_truncate2_uses_exact_float_value():
    """1.005 is stored as 1.00499999..., so truncation gives 1.0, not 1.01."""
    assert truncate2(1.005) == 1.0


def test_truncate2_large_value():
    assert truncate2(1e300) == 1e300


@pytest.mark.parametrize(
    "value, expected",
    [
        (15000, "15k"),
        (17600, "17.6k"),
        (1234.567, "1.23k"),
        (1000, "1000"),
        (999.5, "999.5"),
        (5, "5"),
        (0, "0"),
        (-3.5, "-3.5"),
    ],
)
def test_format_compact(value, expected):
    assert format_compact(value) == expected


def test_compute_stats_basic():
    s = Series("m", [(1000, 5), (1500, 15000), (2000, 7)])
    stats = compute_stats(s, 1000, 2000)
    assert stats.max == 15000
    assert stats.min == 5
    assert stats.current == 7
    assert stats.average == 5004.0
    assert stats.max_str == "15k"
    assert stats.cur_str == "7"
    assert stats.avg_str == "5k"


def test_compute_stats_only_counts_window():
    """Samples outside the inclusive window are ignored."""
    s = Series("m", [(5, 100), (10, 1), (20, 3), (21, -50)])
    stats = compute_stats(s, 10, 20)
    assert stats.max == 3
    assert stats.min == 1
    assert stats.average == 2
    assert stats.current == 3


def test_compute_stats_average_is_truncated():
    s = Series("m", [(1, 1), (2, 0), (3, 0)])
    stats = compute_stats(s, 1, 3)
    assert stats.average == 0.33


def test_compute_stats_empty_window_is_zero():
    s = Series("m", [(1, 42.5), (2, 43.5)])
    assert compute_stats(s, 10, 20) == StatsSummary(0.0, 0.0, 0.0, 0.0)


def test_compute_stats_empty_series_is_zero():
    assert compute_stats(Series("m"), 0, 10) == StatsSummary()


def test_compute_stats_current_is_latest_timestamp_not_last_sample():
    s = Series("m", [(10, 1), (30, 3), (20, 2)])
    assert compute_stats(s, 0, 100).current == 3


def test_compute_stats_current_tie_keeps_first():
    s = Series("m", [(10, 1), (20, 2), (20, 3)])
    assert compute_stats(s, 0, 100).current == 2


def test_compute_stats_mixed_int_and_float():
    s = Series("m", [(1, 1), (2, 2.5)])
    stats = compute_stats(s, 0, 10)
    assert stats.average == 1.75
    assert stats.max == 2.5


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_compute_stats_rejects_non_finite_in_window(bad):
    s = Series("m", [(1, 1.0), (2, bad)])
    with pytest.raises(InvalidSampleError) as exc_info:
        compute_stats(s, 0, 10)
    assert "NaN or Infinity" in str(exc_info.value)


def test_compute_stats_ignores_non_finite_outside_window():
    s = Series("m", [(1, math.nan), (5, 2.0)])
    assert compute_stats(s, 5, 10).max == 2.0


def test_title_format():
    stats = StatsSummary(max=17600, min=1.5, current=2, average=3.25)
    assert stats.title("sys.cpu") == "sys.cpu{Cur: 2  Min: 1.5  Max: 17.6k  Avg: 3.25}"
