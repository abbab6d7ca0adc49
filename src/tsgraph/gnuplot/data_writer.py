"""Per-series data files for gnuplot.

Each series is written to ``<basepath>_<i>.dat`` as one
``"<adjusted_ts> <value>"`` line per sample, where
``adjusted_ts = ts + utc_offset`` (gnuplot renders timestamps in UTC, so a
fixed delta is applied to get local time).

In stacked mode each written value also includes the running total of all
lower-index series at the same raw timestamp. The running totals live in a
StackAccumulator that is passed into and returned from every per-series
write, in ascending series order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence, Union

from tsgraph.utils.logging import get_logger
from tsgraph.gnuplot.series import Series

logger = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class StackAccumulator:
    """Running totals keyed by raw (unadjusted) timestamp."""
    totals: Mapping[int, float] = field(default_factory=dict)

    def get(self, timestamp: int) -> float:
        return self.totals.get(timestamp, 0.0)

    def updated(self, new_totals: Mapping[int, float]) -> "StackAccumulator":
        """Return a copy with ``new_totals`` merged over the current totals."""
        merged = dict(self.totals)
        merged.update(new_totals)
        return StackAccumulator(merged)


def data_file_path(basepath: PathLike, index: int) -> Path:
    """Path of the data file for series ``index``."""
    return Path(f"{basepath}_{index}.dat")


def format_value(value: float) -> str:
    """Value text as written to data files (shortest round-trip float repr)."""
    return repr(float(value))


def write_series_file(
    path: PathLike,
    series: Series,
    *,
    utc_offset: int,
    window: tuple[int, int],
    accumulator: StackAccumulator,
    accumulate: bool,
    index: int = 0,
) -> tuple[int, StackAccumulator]:
    """Write one series to ``path``.

    Every sample is written, whether or not it falls inside ``window``.

    Args:
        path: Output data file.
        series: Series to write.
        utc_offset: Seconds added to every timestamp.
        window: Inclusive (start_time, end_time) used for counting only.
        accumulator: Running totals from the series written before this one.
        accumulate: If True, add the running total at the same timestamp
            to each value (stacked mode).
        index: Series index, used in error messages.

    Returns:
        (number of samples inside the window, updated accumulator).

    Raises:
        InvalidSampleError: If a fractional value is NaN or infinite.
        OSError: If the file cannot be written.
    """
    start_time, end_time = window
    npoints = 0
    new_totals: dict[int, float] = {}
    with open(path, "w", encoding="utf-8") as datafile:
        for sample in series:
            ts = sample.timestamp
            if start_time <= ts <= end_time:
                npoints += 1
            sample.check_finite(f"#{index}")
            value = sample.as_float()
            if accumulate:
                # Duplicate timestamps within one series build on each other.
                value += new_totals.get(ts, accumulator.get(ts))
            new_totals[ts] = value
            datafile.write(f"{ts + utc_offset} {format_value(value)}\n")
    logger.debug(f"Wrote {len(series)} samples for {series.metric_name!r} to {path}")
    return npoints, accumulator.updated(new_totals)


def write_data_files(
    basepath: PathLike,
    series_list: Sequence[Series],
    *,
    utc_offset: int,
    window: tuple[int, int],
    stacked: bool = False,
    have_total: bool = False,
) -> tuple[list[Path], int]:
    """Write one data file per series.

    When ``have_total`` is set, the last series is a total and is written
    without stacking.

    Returns:
        (data file paths in series order, total in-window sample count).
    """
    nseries = len(series_list)
    if stacked:
        logger.info("stacked mode on")
    else:
        logger.info("stacked mode off")

    paths: list[Path] = []
    npoints = 0
    accumulator = StackAccumulator()
    for i, series in enumerate(series_list):
        accumulate = stacked and not (have_total and i == nseries - 1)
        path = data_file_path(basepath, i)
        count, accumulator = write_series_file(
            path,
            series,
            utc_offset=utc_offset,
            window=window,
            accumulator=accumulator,
            accumulate=accumulate,
            index=i,
        )
        npoints += count
        paths.append(path)
    return paths, npoints
