"""Gnuplot script and data file generation for time series graphs."""

from tsgraph.gnuplot.plot import Plot
from tsgraph.gnuplot.plot_params import PlotParams
from tsgraph.gnuplot.series import Annotation, InvalidSampleError, Sample, Series
from tsgraph.gnuplot.stats import StatsSummary

__all__ = [
    "Annotation",
    "InvalidSampleError",
    "Plot",
    "PlotParams",
    "Sample",
    "Series",
    "StatsSummary",
]
