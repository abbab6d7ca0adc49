"""End-to-end tests for Plot.dump_to_files()."""

from __future__ import annotations

import math
from datetime import timedelta, timezone
from pathlib import Path

import pytest

from tsgraph.gnuplot.plot import MIN_PIXELS, Plot, utc_offset_of
from tsgraph.gnuplot.series import Annotation, InvalidSampleError, Series

PLUS_TWO = timezone(timedelta(hours=2))


@pytest.fixture
def no_colors(tmp_path) -> Path:
    """Color table path that doesn't exist, so tests never read user config."""
    return tmp_path / "no_colors"


def test_utc_offset_of_fixed_zones():
    assert utc_offset_of(timezone.utc) == 0
    assert utc_offset_of(PLUS_TWO) == 7200


def test_utc_offset_of_local_is_int():
    assert isinstance(utc_offset_of(None), int)


@pytest.mark.parametrize(
    "start, end, message",
    [
        (2000, 1000, "greater than or equal"),
        (1000, 1000, "greater than or equal"),
        (-1, 1000, "Invalid start time"),
        (0, 2**32, "Invalid end time"),
    ],
)
def test_invalid_time_range(start, end, message):
    with pytest.raises(ValueError) as exc_info:
        Plot(start, end, timezone.utc)
    assert message in str(exc_info.value)


def test_max_unsigned_end_time_accepted(no_colors):
    plot = Plot(0, 2**32 - 1, timezone.utc, color_table_path=no_colors)
    assert plot.end_time == 2**32 - 1


def test_set_dimensions(no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    assert (plot.width, plot.height) == (1024, 768)
    plot.set_dimensions(MIN_PIXELS, 400)
    assert (plot.width, plot.height) == (100, 400)
    with pytest.raises(ValueError) as exc_info:
        plot.set_dimensions(50, 200)
    assert str(exc_info.value) == "width smaller than 100 in 50x200"
    with pytest.raises(ValueError) as exc_info:
        plot.set_dimensions(200, 99)
    assert str(exc_info.value) == "height smaller than 100 in 200x99"
    assert (plot.width, plot.height) == (100, 400)


def test_add_normalizes_options(no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    s = Series("a")
    plot.add(s, None)
    assert plot.series == (s,)


def test_single_series_end_to_end(basepath, no_colors):
    plot = Plot(1000, 2000, PLUS_TWO, color_table_path=no_colors)
    plot.set_params({})
    plot.add(Series("sys.load", [(1000, 5), (1500, 15000), (2000, 7)]), "")

    npoints = plot.dump_to_files(basepath)

    assert npoints == 3
    assert Path(f"{basepath}_0.dat").read_text(encoding="utf-8") == (
        "8200 5.0\n8700 15000.0\n9200 7.0\n"
    )
    assert not Path(f"{basepath}_mergefile.dat").exists()
    assert plot.get_max() == "15k"
    assert plot.get_min() == "5"
    assert plot.get_cur() == "7"
    assert plot.get_avg() == "5k"

    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert f'set output "{basepath}.png"\n' in script
    assert 'set xrange ["8200":"9200"]\n' in script
    assert "set yrange" not in script
    assert f'plot  "{basepath}_0.dat" using 1:2 pt 0 lw 2 title "sys.load{{Cur: 7  Min: 5  Max: 15k  Avg: 5k}}"\n' in script


def test_stacked_two_series_merged_row(basepath, no_colors):
    plot = Plot(4000, 6000, timezone.utc, color_table_path=no_colors)
    plot.set_params({"stacked": "true"})
    plot.add(Series("a", [(5000, 10)]), "")
    plot.add(Series("b", [(5000, 20)]), "")

    assert plot.dump_to_files(basepath) == 2

    rows = Path(f"{basepath}_mergefile.dat").read_text(encoding="utf-8").splitlines()
    assert rows == ["5000 10.0 30.0 "]
    ts, *values = rows[0].split()
    assert ts == "5000"
    assert [float(v) for v in values] == [10, 30]

    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert f'"{basepath}_mergefile.dat" using 1:2:3 w filledcurves ' in script
    assert f'"{basepath}_0.dat" using 1:2 w filledcurves x1' in script
    # Stats come from the raw series, not the stacked files.
    assert 'title "b{Cur: 20  Min: 20  Max: 20  Avg: 20}"' in script


def test_stacked_uses_color_table(basepath, tmp_path):
    colors = tmp_path / "colors"
    colors.write_text("b x00FF00\n", encoding="utf-8")
    plot = Plot(4000, 6000, timezone.utc, color_table_path=colors)
    plot.set_params({"stacked": "true"})
    plot.add(Series("a", [(5000, 10)]), "")
    plot.add(Series("b", [(5000, 20)]), "")
    plot.dump_to_files(basepath)
    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert " lc x00FF00 " in script


def test_zero_series_uses_query(basepath, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    plot.set_params({})
    plot.set_query({"m": ["sum:1h-avg:mymetric"]})

    assert plot.dump_to_files(basepath) == 0

    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert script.endswith('plot  0 pt 0 lw 2 title "mymetric"\n')
    assert "set yrange [0:10]\n" in script
    assert not Path(f"{basepath}_mergefile.dat").exists()


def test_zero_series_without_query_is_rejected(basepath, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    with pytest.raises(ValueError):
        plot.dump_to_files(basepath)


def test_no_points_in_window_forces_yrange(basepath, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    caller_params = {"yrange": "[5:]"}
    plot.set_params(caller_params)
    plot.add(Series("a", [(10, 1), (3000, 2)]), "")

    assert plot.dump_to_files(basepath) == 0

    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert "set yrange [0:10]\n" in script
    assert "set yrange [5:]" not in script
    assert caller_params == {"yrange": "[5:]"}
    assert plot.get_max() == "0"


def test_params_not_consumed_between_dumps(tmp_path, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    params = {"stacked": "1", "smooth": "unique", "grid": None}
    plot.set_params(params)
    plot.add(Series("a", [(1000, 1)]), "")
    plot.add(Series("b", [(1000, 2)]), "")
    plot.dump_to_files(tmp_path / "one")
    plot.dump_to_files(tmp_path / "two")
    assert params == {"stacked": "1", "smooth": "unique", "grid": None}
    one = (tmp_path / "one.gnuplot").read_text(encoding="utf-8")
    two = (tmp_path / "two.gnuplot").read_text(encoding="utf-8")
    assert one.replace(str(tmp_path / "one"), "X") == two.replace(str(tmp_path / "two"), "X")
    assert " smooth unique" in two
    assert "unset grid\n" in two


def test_global_and_series_annotations(basepath, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    plot.set_globals([Annotation(1800, "global")])
    plot.add(Series("a", [(1000, 1)], annotations=[Annotation(1200, "local")]), "")
    plot.dump_to_files(basepath)
    script = Path(f"{basepath}.gnuplot").read_text(encoding="utf-8")
    assert script.index('set label "local"') < script.index('set label "global"')


def test_non_finite_value_aborts_dump(basepath, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    plot.add(Series("a", [(1000, 1)]), "")
    plot.add(Series("b", [(1000, math.inf)]), "")
    with pytest.raises(InvalidSampleError):
        plot.dump_to_files(basepath)
    assert Path(f"{basepath}_0.dat").exists()
    assert not Path(f"{basepath}.gnuplot").exists()


def test_unwritable_basepath_raises(tmp_path, no_colors):
    plot = Plot(1000, 2000, timezone.utc, color_table_path=no_colors)
    plot.add(Series("a", [(1000, 1)]), "")
    with pytest.raises(OSError):
        plot.dump_to_files(tmp_path / "missing_dir" / "graph")
