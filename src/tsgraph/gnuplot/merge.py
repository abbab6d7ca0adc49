"""
Merge per-series data files into one multi-column file — pure pandas.

Stacked graphs are drawn as filled bands between consecutive cumulative
columns, so gnuplot needs every series aligned on the same timestamps in
one file. The merged file has one row per distinct timestamp:

    "<timestamp_text> <v0> <v1> ... <v(n-1)> "

Assumptions (documented):
  1. Alignment is on the timestamp *text* as read from the data files; the
     text is emitted unchanged.
  2. Rows are ordered by the numeric value of the timestamp, so "999" comes
     before "1000".
  3. A timestamp missing from a series leaves that slot empty (two
     consecutive separators). Every row ends with a trailing space.
  4. If a series file repeats a timestamp, the last value wins.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence, Union

import pandas as pd

from tsgraph.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def merge_file_path(basepath: PathLike) -> Path:
    """Path of the merged data file for ``basepath``."""
    return Path(f"{basepath}_mergefile.dat")


def read_data_file(path: PathLike) -> pd.Series:
    """Read one per-series data file as a str Series indexed by timestamp text."""
    path = Path(path)
    if path.stat().st_size == 0:
        return pd.Series([], dtype=object, index=pd.Index([], dtype=object))
    df = pd.read_csv(
        path,
        sep=" ",
        header=None,
        names=["ts", "value"],
        dtype=str,
        keep_default_na=False,
    )
    df = df.drop_duplicates(subset="ts", keep="last")
    return df.set_index("ts")["value"]


def build_merged_table(datafiles: Sequence[PathLike]) -> pd.DataFrame:
    """Align all data files on timestamp text.

    Returns:
        DataFrame indexed by timestamp text (numerically sorted) with one
        column per data file, in file order. Missing slots are "".
    """
    nseries = len(datafiles)
    columns = []
    for i, path in enumerate(datafiles):
        logger.info(f"reading data file: {path}")
        columns.append(read_data_file(path).rename(i))

    table = pd.concat(columns, axis=1) if columns else pd.DataFrame()
    table = table.reindex(columns=range(nseries))
    if len(table.index):
        table = table.sort_index(key=lambda idx: pd.to_numeric(idx), kind="stable")
    return table.fillna("")


def format_merged_row(timestamp: str, values: Sequence[str]) -> str:
    """One merged-file line (without the newline)."""
    return timestamp + " " + "".join(f"{v} " for v in values)


def merge_data_files(basepath: PathLike, datafiles: Sequence[PathLike]) -> Path:
    """Write ``<basepath>_mergefile.dat`` from the per-series data files.

    Args:
        basepath: Base path shared by all output files.
        datafiles: Per-series data files, in series order.

    Returns:
        Path of the merged file.

    Raises:
        OSError: If a data file cannot be read or the merged file written.
    """
    logger.info("start merge data file...")
    table = build_merged_table(datafiles)
    out_path = merge_file_path(basepath)
    with open(out_path, "w", encoding="utf-8") as mergefile:
        for row in table.itertuples(index=True, name=None):
            mergefile.write(format_merged_row(str(row[0]), row[1:]) + "\n")
    logger.info(f"finished merge data file, created {out_path} ({len(table)} rows)")
    return out_path
