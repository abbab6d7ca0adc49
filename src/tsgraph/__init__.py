"""
tsgraph: gnuplot scripts and data files for time series graphs.

This package provides:
- Plot: turns series, annotations and gnuplot parameters into data files
  and a gnuplot script
- Series / Sample / Annotation: the plotted inputs
- Logging utilities for library and application use

For logging configuration in standalone scripts:
    ```python
    from tsgraph.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from tsgraph.utils.logging import configure_logging, get_logger

from tsgraph.gnuplot import Annotation, InvalidSampleError, Plot, PlotParams, Sample, Series, StatsSummary

# NullHandler so logs don't propagate to root when no application has
# configured logging. Scripts call configure_logging() for real output.
_logger = logging.getLogger("tsgraph")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "Annotation",
    "InvalidSampleError",
    "Plot",
    "PlotParams",
    "Sample",
    "Series",
    "StatsSummary",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
