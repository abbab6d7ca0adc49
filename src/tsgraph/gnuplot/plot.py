"""Produces files to generate graphs with gnuplot.

Plot takes a number of Series and writes a gnuplot script plus the data
files it reads:

    <basepath>_<i>.dat        one per series
    <basepath>_mergefile.dat  stacked mode only
    <basepath>.gnuplot        the script; gnuplot renders <basepath>.png

Typical use:
    ```python
    plot = Plot(start_time, end_time, "Europe/Paris")
    plot.set_dimensions(800, 600)
    plot.set_params({"stacked": "true", "yrange": "[0:]"})
    plot.add(Series("sys.cpu.user", samples), "")
    npoints = plot.dump_to_files("/tmp/graphs/abc123")
    ```
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from tsgraph.utils.logging import get_logger
from tsgraph.gnuplot.data_writer import write_data_files
from tsgraph.gnuplot.merge import merge_data_files
from tsgraph.gnuplot.plot_params import PlotParams, default_color_table_path
from tsgraph.gnuplot.script_generator import ScriptGenerator
from tsgraph.gnuplot.series import Annotation, Series
from tsgraph.gnuplot.stats import StatsSummary

logger = get_logger(__name__)

PathLike = Union[str, Path]

# Timestamps are unsigned 32-bit UNIX seconds.
MAX_TIMESTAMP = 0xFFFFFFFF

# Minimum width / height allowed, in pixels.
MIN_PIXELS = 100
DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768


def utc_offset_of(tz: Union[tzinfo, str, None]) -> int:
    """Current offset of ``tz`` from UTC, in seconds.

    ``None`` means the local time zone; a string is a zoneinfo key.
    """
    if tz is None:
        offset = datetime.now().astimezone().utcoffset()
    else:
        if isinstance(tz, str):
            tz = ZoneInfo(tz)
        offset = datetime.now(tz).utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


class Plot:
    """A set of series to plot over a fixed time window.

    Attributes:
        start_time: Window start (UNIX seconds, unsigned 32 bits).
        end_time: Window end (UNIX seconds, unsigned 32 bits).
        utc_offset: Seconds added to timestamps to render local time.
            Fixed at construction.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(
        self,
        start_time: int,
        end_time: int,
        tz: Union[tzinfo, str, None] = None,
        *,
        color_table_path: Optional[PathLike] = None,
    ) -> None:
        """Initialize a Plot for the window ``[start_time, end_time]``.

        Args:
            start_time: Timestamp of the start of the graph.
            end_time: Timestamp of the end of the graph.
            tz: Time zone used to render timestamps; local time zone if None.
            color_table_path: Per-metric color table for stacked bands.
                Defaults to the per-user config location.

        Raises:
            ValueError: If a timestamp doesn't fit in 32 unsigned bits or
                start_time >= end_time.
        """
        if not 0 <= start_time <= MAX_TIMESTAMP:
            raise ValueError(f"Invalid start time: {start_time}")
        if not 0 <= end_time <= MAX_TIMESTAMP:
            raise ValueError(f"Invalid end time: {end_time}")
        if start_time >= end_time:
            raise ValueError(
                f"start time ({start_time}) is greater than or equal to end time: {end_time}"
            )
        self.start_time = int(start_time)
        self.end_time = int(end_time)
        self.utc_offset = utc_offset_of(tz)
        self.width = DEFAULT_WIDTH
        self.height = DEFAULT_HEIGHT
        self.color_table_path = (
            Path(color_table_path) if color_table_path is not None else default_color_table_path()
        )

        self._series: list[Series] = []
        self._options: list[str] = []
        self._params: dict[str, Optional[str]] = {}
        self._globals: list[Annotation] = []
        self._query: Optional[Mapping[str, Sequence[str]]] = None
        self._stats = StatsSummary()

    # -----------------------------
    # Configuration
    # -----------------------------
    def set_dimensions(self, width: int, height: int) -> None:
        """Set the size of the image, in pixels.

        Raises:
            ValueError: If width or height is below MIN_PIXELS.
        """
        if width < MIN_PIXELS or height < MIN_PIXELS:
            what = "width" if width < MIN_PIXELS else "height"
            raise ValueError(f"{what} smaller than {MIN_PIXELS} in {width}x{height}")
        self.width = int(width)
        self.height = int(height)

    def set_params(self, params: Optional[Mapping[str, Optional[str]]]) -> None:
        """Set the gnuplot parameters of this plot.

        Each entry is written as ``set KEY VALUE`` (``unset KEY`` when the
        value is None), except the special keys:

        - ``stacked``: stack series as filled bands.
        - ``haveTotal``: the last series is a total, drawn unstacked.
        - ``smooth``: gnuplot smoothing applied to every series.
        - ``bgcolor``: ``transparent`` or an RGB color such as ``x01AB23``.
        - ``fgcolor``: an RGB color such as ``x42BEE7``.
        - ``font``: font size used for the image and the key.

        The mapping is copied, never modified.
        """
        self._params = dict(params or {})

    def set_globals(self, annotations: Optional[Sequence[Annotation]]) -> None:
        """Set the global annotations, drawn in addition to per-series ones."""
        self._globals = list(annotations or ())

    def set_query(self, query: Optional[Mapping[str, Sequence[str]]]) -> None:
        """Set the query description (``{"m": ["sum:1h-avg:metric", ...]}``).

        Only used to title empty lines when no series was added.
        """
        self._query = query

    def add(self, series: Series, options: Optional[str] = "") -> None:
        """Add a series to plot with its own gnuplot options."""
        # Emptiness is only checked at dump time, to avoid an extra pass
        # over the samples here.
        self._series.append(series)
        self._options.append(options or "")

    @property
    def series(self) -> tuple[Series, ...]:
        """Read-only view of the series added so far."""
        return tuple(self._series)

    # -----------------------------
    # Output
    # -----------------------------
    def dump_to_files(self, basepath: PathLike) -> int:
        """Write the data files and the gnuplot script.

        Args:
            basepath: All files created start with this path.

        Returns:
            Number of samples inside the plot window, across all series.

        Raises:
            InvalidSampleError: If a sample value is NaN or infinite.
            OSError: If a file cannot be written.
        """
        params = PlotParams.from_mapping(self._params, color_table_path=self.color_table_path)
        nseries = len(self._series)
        window = (self.start_time, self.end_time)

        datafiles, npoints = write_data_files(
            basepath,
            self._series,
            utc_offset=self.utc_offset,
            window=window,
            stacked=params.stacked,
            have_total=params.have_total,
        )

        mergefile = None
        if params.stacked and nseries > 0:
            mergefile = merge_data_files(basepath, datafiles)

        if npoints == 0:
            # gnuplot can't pick a y range for an empty graph when the
            # x range is fixed. Any values will do.
            params = params.with_directive("yrange", "[0:10]")

        generator = ScriptGenerator(
            basepath=basepath,
            start_time=self.start_time,
            end_time=self.end_time,
            utc_offset=self.utc_offset,
            width=self.width,
            height=self.height,
            params=params,
            series=self._series,
            options=self._options,
            datafiles=datafiles,
            mergefile=mergefile,
            global_annotations=self._globals,
            query=self._query,
        )
        generator.write()
        if generator.stats:
            # Series 0 is plotted last.
            self._stats = generator.stats[0] or StatsSummary()
        logger.info(f"Dumped {nseries} series ({npoints} points in window) to {basepath}")
        return npoints

    # -----------------------------
    # Statistics of the last series summarized
    # -----------------------------
    @property
    def stats(self) -> StatsSummary:
        return self._stats

    def get_max(self) -> str:
        return self._stats.max_str

    def get_min(self) -> str:
        return self._stats.min_str

    def get_cur(self) -> str:
        return self._stats.cur_str

    def get_avg(self) -> str:
        return self._stats.avg_str
