"""
Window-bounded summary statistics for one series — numpy + decimal.

The summary feeds the legend title of each plotted series:
``metric{Cur: c  Min: m  Max: M  Avg: a}``.

Conventions:
  1. Window: samples with ``start_time <= ts <= end_time`` (inclusive on
     both ends) are counted. Everything else is ignored.
  2. Current: the value of the sample with the largest timestamp in the
     window. Ties keep the first sample seen; a timestamp of 0 never
     becomes current.
  3. Empty window: max, min, current and average are all 0.
  4. Truncation: every output is truncated toward zero to 2 decimals using
     the exact decimal expansion of the float (not nearest rounding).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal

import numpy as np

from tsgraph.gnuplot.series import Series

_CENT = Decimal("0.01")
# Wide enough for the full decimal expansion of any finite double.
_TRUNCATE_CONTEXT = Context(prec=400)


def truncate2(value: float) -> float:
    """Truncate ``value`` toward zero to 2 decimal places."""
    d = Decimal(float(value)).quantize(_CENT, rounding=ROUND_DOWN, context=_TRUNCATE_CONTEXT)
    return float(d)


def _plain(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_compact(value: float) -> str:
    """Compact text for a statistic: values above 1000 are shown in thousands.

    17600 -> "17.6k", 15000 -> "15k", 999.5 -> "999.5".
    """
    if value > 1000:
        return _plain(truncate2(value / 1000)) + "k"
    return _plain(value)


@dataclass(frozen=True)
class StatsSummary:
    """Truncated max/min/current/average of one series over the plot window."""
    max: float = 0.0
    min: float = 0.0
    current: float = 0.0
    average: float = 0.0

    @property
    def max_str(self) -> str:
        return format_compact(self.max)

    @property
    def min_str(self) -> str:
        return format_compact(self.min)

    @property
    def cur_str(self) -> str:
        return format_compact(self.current)

    @property
    def avg_str(self) -> str:
        return format_compact(self.average)

    def title(self, metric_name: str) -> str:
        """Legend title combining the metric name with the compact stats."""
        return (
            f"{metric_name}{{Cur: {self.cur_str}  Min: {self.min_str}  "
            f"Max: {self.max_str}  Avg: {self.avg_str}}}"
        )


def compute_stats(series: Series, start_time: int, end_time: int) -> StatsSummary:
    """Compute the StatsSummary of ``series`` over ``[start_time, end_time]``.

    Args:
        series: Series to summarize.
        start_time: Window start (UNIX seconds, inclusive).
        end_time: Window end (UNIX seconds, inclusive).

    Returns:
        StatsSummary with all four values truncated to 2 decimals.

    Raises:
        InvalidSampleError: If an in-window fractional sample is NaN or infinite.
    """
    n = len(series)
    if n == 0:
        return StatsSummary()

    ts = np.fromiter((s.timestamp for s in series), dtype=np.int64, count=n)
    in_window = (ts >= start_time) & (ts <= end_time)
    if not in_window.any():
        return StatsSummary()

    window_samples = [s for s, keep in zip(series, in_window) if keep]
    for i, sample in enumerate(window_samples, start=1):
        sample.check_finite(f"#{i}")

    ts_w = ts[in_window]
    values = np.array([s.as_float() for s in window_samples], dtype=np.float64)

    # cumsum accumulates left to right, in sample order.
    total = float(np.cumsum(values)[-1])
    average = total / len(values)

    latest = int(np.argmax(ts_w))
    current = float(values[latest]) if ts_w[latest] > 0 else 0.0

    return StatsSummary(
        max=truncate2(float(values.max())),
        min=truncate2(float(values.min())),
        current=truncate2(current),
        average=truncate2(average),
    )
