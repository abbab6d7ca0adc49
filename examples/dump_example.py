"""Dump a stacked two-series plot into a temporary directory.

Run:
    python examples/dump_example.py
    gnuplot <printed dir>/mem.gnuplot
"""

import tempfile
from pathlib import Path

from tsgraph import Annotation, Plot, Series
from tsgraph.utils.logging import configure_logging

configure_logging(level="DEBUG")

START = 1_700_000_000
END = START + 3600

used = Series("sys.mem.used", [(START + 60 * i, 1000 + 10 * i) for i in range(60)])
cached = Series(
    "sys.mem.cached",
    [(START + 60 * i, 400.5 + i) for i in range(60)],
    annotations=[Annotation(START + 1800, "deploy")],
)
total = Series("sys.mem.total", [(START + 60 * i, 4096) for i in range(60)])

plot = Plot(START, END, "UTC")
plot.set_dimensions(800, 400)
plot.set_params({"stacked": "true", "haveTotal": "true", "yrange": "[0:]"})
plot.add(used, "")
plot.add(cached, "")
plot.add(total, "")

out_dir = Path(tempfile.mkdtemp(prefix="tsgraph_"))
npoints = plot.dump_to_files(out_dir / "mem")
print(f"{npoints} points in window; files in {out_dir}")
print(f"last summary: cur={plot.get_cur()} max={plot.get_max()} avg={plot.get_avg()}")
