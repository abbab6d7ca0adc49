"""Gnuplot script generation.

This module provides the ScriptGenerator class, which turns plot settings,
the per-series/merged data files, series statistics and annotations into
the ``<basepath>.gnuplot`` script consumed verbatim by gnuplot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from tsgraph.utils.logging import get_logger
from tsgraph.gnuplot.plot_params import PlotParams
from tsgraph.gnuplot.series import Annotation, Series
from tsgraph.gnuplot.stats import StatsSummary, compute_stats

logger = get_logger(__name__)

PathLike = Union[str, Path]

FONT_FILE = "MSYH.TTF"
DEFAULT_BGCOLOR = "xFFFFFF"
TRANSPARENT = "transparent"
SECONDARY_AXIS = "x1y2"
STEP_METRIC = "ping"
SINGLE_SERIES_COLOR = "2"
CONTINUATION = ", \\"

# (exclusive upper bound on the time span in seconds, x tick label format)
X_FORMATS = (
    (2100, "%H:%M:%S"),        # 35m
    (86400, "%H:%M"),          # 1d
    (604800, "%a %H:%M"),      # 1w
    (1209600, "%a %d %H:%M"),  # 2w
    (7776000, "%b %d"),        # 90d
)
X_FORMAT_LONG = "%Y/%m/%d"


def x_format(start_time: int, end_time: int) -> str:
    """Pick a sensible time format for the x axis from the plotted span."""
    timespan = end_time - start_time
    for bound, fmt in X_FORMATS:
        if timespan < bound:
            return fmt
    return X_FORMAT_LONG


def metrics_from_query(query: Optional[Mapping[str, Sequence[str]]]) -> list[str]:
    """Metric names of the ``m`` query terms (``agg:downsample:metric{tags}``)."""
    if query is None or "m" not in query:
        raise ValueError("A query with 'm' terms is required to plot zero series")
    names = []
    for term in query["m"]:
        parts = term.split(":")
        if len(parts) < 3:
            raise ValueError(f"Malformed query term {term!r}: expected at least 3 ':'-separated fields")
        names.append(parts[2])
    return names


@dataclass
class ScriptGenerator:
    """Writes the gnuplot script for one dump.

    Attributes:
        basepath: Base path shared by all output files.
        start_time: Window start (UNIX seconds).
        end_time: Window end (UNIX seconds).
        utc_offset: Seconds added to timestamps to get local time.
        width: Image width in pixels.
        height: Image height in pixels, before per-series padding.
        params: Typed gnuplot parameters.
        series: Series in caller order.
        options: Per-series gnuplot options, same order as series.
        datafiles: Per-series data files, same order as series.
        mergefile: Merged data file (stacked mode only).
        global_annotations: Annotations not tied to a series.
        query: Query description, used only when there are no series.
        stats: Filled by render(); StatsSummary per series index.
    """
    basepath: PathLike
    start_time: int
    end_time: int
    utc_offset: int
    width: int
    height: int
    params: PlotParams
    series: Sequence[Series] = ()
    options: Sequence[str] = ()
    datafiles: Sequence[PathLike] = ()
    mergefile: Optional[PathLike] = None
    global_annotations: Sequence[Annotation] = ()
    query: Optional[Mapping[str, Sequence[str]]] = None
    stats: list[Optional[StatsSummary]] = field(default_factory=list)

    @property
    def script_path(self) -> Path:
        return Path(f"{self.basepath}.gnuplot")

    @property
    def image_path(self) -> str:
        return f"{self.basepath}.png"

    def write(self) -> Path:
        """Render the script and write it to ``<basepath>.gnuplot``."""
        text = self.render()
        path = self.script_path
        with open(path, "w", encoding="utf-8") as gp:
            gp.write(text)
        logger.info(f"Wrote Gnuplot script to {path}")
        return path

    def render(self) -> str:
        """Return the full script text."""
        colors = self.params.color_table()
        lines = [
            self._terminal(),
            *self._style(),
            *self._axes(),
            *self._passthrough(),
            *self._secondary_axis(),
            *self._annotations(),
        ]
        return "\n".join(lines) + "\n" + self._plot(colors)

    # -----------------------------
    # Directive groups
    # -----------------------------
    def _font(self) -> str:
        return self.params.font or ""

    def _terminal(self) -> str:
        nseries = len(self.series)
        height = self.height + (nseries - 1) * 10
        out = f'set terminal png small size {self.width},{height} font "{FONT_FILE}, {self._font()}"'
        fgcolor = self.params.fgcolor
        bgcolor = self.params.bgcolor
        if fgcolor is not None and bgcolor is None:
            # A fgcolor can't be given without a bgcolor.
            bgcolor = DEFAULT_BGCOLOR
        if bgcolor is not None:
            if fgcolor is not None and bgcolor == TRANSPARENT:
                # Otherwise gnuplot would take the fgcolor as the bgcolor.
                bgcolor = f"{TRANSPARENT} {DEFAULT_BGCOLOR}"
            out += f" {bgcolor}"
        if fgcolor is not None:
            out += f" {fgcolor}"
        return out

    def _style(self) -> list[str]:
        return [
            f'set key font "{FONT_FILE}, {self._font()} "',
            "set key Left",
            "set key reverse",
            "set style fill transparent solid 0.5 noborder",
            "set xdata time",
            'set timefmt "%s"',
            "if (GPVAL_VERSION < 4.6) set xtics rotate; else set xtics rotate right",
            f'set output "{self.image_path}"',
            f'set xrange ["{self.start_time + self.utc_offset}":"{self.end_time + self.utc_offset}"]',
        ]

    def _axes(self) -> list[str]:
        out = []
        if not self.params.has_directive("format x"):
            out.append(f'set format x "{x_format(self.start_time, self.end_time)}"')
        if self.series:
            out.append("set grid")
            out.append("set style data linespoints")
            if not self.params.has_directive("key"):
                out.append("set key right box")
        else:
            out.append("unset key")
            if not self.params.has_directive("label"):
                out.append('set label "No data" at graph 0.5,0.9 center')
        return out

    def _passthrough(self) -> list[str]:
        return [
            f"set {key} {value}" if value is not None else f"unset {key}"
            for key, value in self.params.passthrough
        ]

    def _secondary_axis(self) -> list[str]:
        if any(SECONDARY_AXIS in opts for opts in self.options):
            # Second scale for the y axis on the right-hand side.
            return ["set y2tics border"]
        return []

    def _annotations(self) -> list[str]:
        notes: list[Annotation] = []
        for s in self.series:
            notes.extend(s.annotations)
        notes.extend(self.global_annotations or ())
        out = []
        for note in sorted(notes, key=lambda n: n.start_time):
            ts = note.start_time
            text = note.description
            out.append(f'set arrow from "{ts}", graph 0 to "{ts}", graph 1 nohead ls 3')
            out.append(
                f'set object rectangle at "{ts}", graph 0 size char (strlen("{text}")), '
                f'char 1 front fc rgbcolor "white"'
            )
            out.append(f'set label "{text}" at "{ts}", graph 0 front center')
        return out

    # -----------------------------
    # plot command
    # -----------------------------
    def _source(self, i: int) -> str:
        nseries = len(self.series)
        if not self.params.stacked or i == 0:
            return f' "{self.datafiles[i]}" using 1:2'
        if i == nseries - 1 and self.params.have_total:
            return f' "{self.mergefile}" using 1:{i + 2}'
        return f' "{self.mergefile}" using 1:{i + 1}:{i + 2}'

    def _series_clause(self, i: int, colors: Mapping[str, str]) -> str:
        nseries = len(self.series)
        s = self.series[i]
        summary = compute_stats(s, self.start_time, self.end_time)
        self.stats[i] = summary
        title = summary.title(s.metric_name)

        out = self._source(i)
        if self.params.smooth is not None:
            out += f" smooth {self.params.smooth}"
        if s.metric_name == STEP_METRIC:
            # Metrics that only take the values 0 or 1.
            out += " with steps "
        filled = self.params.stacked and (i != nseries - 1 or not self.params.have_total)
        if filled:
            out += " w filledcurves x1" if i == 0 else " w filledcurves "
            if nseries == 1:
                out += f" lc {SINGLE_SERIES_COLOR} "
            elif s.metric_name in colors:
                out += f" lc {colors[s.metric_name]} "
            out += f' lw 2 title "{title}"'
        else:
            out += f' pt 0 lw 2 title "{title}"'
        opts = self.options[i] if i < len(self.options) else ""
        if opts:
            out += f" {opts}"
        return out

    def _plot(self, colors: Mapping[str, str]) -> str:
        nseries = len(self.series)
        self.stats = [None] * nseries
        if nseries:
            # Descending order: series 0 is drawn last, on top.
            clauses = [self._series_clause(i, colors) for i in range(nseries - 1, -1, -1)]
        else:
            clauses = [f' 0 pt 0 lw 2 title "{name}"' for name in metrics_from_query(self.query)]
        return "plot " + (CONTINUATION + "\n").join(clauses) + "\n"
