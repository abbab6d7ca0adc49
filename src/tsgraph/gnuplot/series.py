"""Time-series input types for gnuplot plotting.

This module defines the read-only inputs of a Plot: samples (a tagged
integer/float value at a UNIX timestamp), the Series that groups them under
a metric name, and point-in-time Annotations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, Union

Number = Union[int, float]


class InvalidSampleError(ValueError):
    """Raised when a sample value is NaN or infinite."""


@dataclass(frozen=True, order=True)
class Annotation:
    """A point-in-time marker rendered as a vertical line plus a label.

    Ordering is by start_time (then description), so a list of
    annotations sorts chronologically.
    """
    start_time: int
    description: str = ""


@dataclass(frozen=True)
class Sample:
    """One (timestamp, value) pair.

    The value keeps its representation: integral samples stay ``int``,
    fractional ones stay ``float``. Only fractional values can be non-finite.
    """
    timestamp: int
    value: Number

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int) and not isinstance(self.value, bool)

    def check_finite(self, where: str = "") -> None:
        """Raise InvalidSampleError if this sample holds NaN or +/-Infinity."""
        if self.is_integer:
            return
        value = float(self.value)
        if math.isnan(value) or math.isinf(value):
            raise InvalidSampleError(
                f"NaN or Infinity found in datapoints {where}: {value} d={self}"
            )

    def as_float(self) -> float:
        return float(self.value)


def _to_sample(item: Union[Sample, Sequence[Number]]) -> Sample:
    if isinstance(item, Sample):
        return item
    ts, value = item
    if isinstance(value, bool):
        value = int(value)
    return Sample(int(ts), value)


@dataclass(frozen=True)
class Series:
    """A named, time-ordered sequence of samples plus its own annotations.

    Samples may be given as Sample instances or (timestamp, value) pairs.
    """
    metric_name: str
    samples: tuple[Sample, ...] = ()
    annotations: tuple[Annotation, ...] = field(default_factory=tuple)

    def __init__(
        self,
        metric_name: str,
        samples: Iterable[Union[Sample, Sequence[Number]]] = (),
        annotations: Iterable[Annotation] = (),
    ) -> None:
        object.__setattr__(self, "metric_name", str(metric_name))
        object.__setattr__(self, "samples", tuple(_to_sample(s) for s in samples))
        object.__setattr__(self, "annotations", tuple(annotations or ()))

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)
