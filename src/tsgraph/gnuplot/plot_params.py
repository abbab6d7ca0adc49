"""Gnuplot parameters for one plot dump.

Design:
- The caller hands a plain ``{key: value}`` mapping to Plot.set_params().
  A ``None`` value means ``unset <key>`` in the script.
- PlotParams is built from that mapping once per dump and never mutates it.
  The special keys (stacked, haveTotal, smooth, fgcolor, bgcolor, font)
  become typed fields; every other key is kept, in caller order, as a
  passthrough directive written verbatim as ``set <key> <value>``.
- The per-metric color table is a line-oriented ``"<metric> <color>"``
  file. Its location is explicit; by default it lives in the per-user
  config dir resolved with platformdirs. A missing or unreadable table is
  logged and treated as empty.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from platformdirs import user_config_dir

from tsgraph.utils.logging import get_logger

logger = get_logger(__name__)

STACKED = "stacked"
HAVE_TOTAL = "haveTotal"
SMOOTH = "smooth"
FGCOLOR = "fgcolor"
BGCOLOR = "bgcolor"
FONT = "font"

SPECIAL_KEYS = (STACKED, HAVE_TOTAL, SMOOTH, FGCOLOR, BGCOLOR, FONT)

COLOR_TABLE_FILENAME = "colors"


def default_color_table_path(app_name: str = "tsgraph", app_author: str | None = None) -> Path:
    """
    Determine the OS-appropriate per-user color table path.

    macOS:   ~/Library/Application Support/tsgraph/colors
    Linux:   ~/.config/tsgraph/colors
    Windows: %APPDATA%\\tsgraph\\colors
    """
    return Path(user_config_dir(app_name, app_author)) / COLOR_TABLE_FILENAME


def load_color_table(path: Optional[Path]) -> dict[str, str]:
    """Read ``metric_name -> color`` pairs from a color table file.

    Lines with fewer than two space-separated fields are skipped. Any I/O
    error yields an empty table; it is never fatal.
    """
    colors: dict[str, str] = {}
    if path is None:
        return colors
    try:
        with open(path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                parts = line.rstrip("\n").split(" ")
                if len(parts) < 2:
                    logger.warning(f"Malformed line {lineno} in color table {path}, ignoring")
                    continue
                colors[parts[0]] = parts[1]
    except FileNotFoundError:
        logger.info(f"Color table not found at {path}, using gnuplot default colors")
    except OSError as e:
        logger.info(f"Error reading color table {path}: {e}, using gnuplot default colors")
    return colors


@dataclass(frozen=True)
class PlotParams:
    """Typed view of the gnuplot parameters of one dump.

    Attributes:
        stacked: Stack series on top of each other (filled bands).
        have_total: The last series is a total and is not stacked.
        smooth: gnuplot ``smooth`` option applied to every series.
        fgcolor: Foreground color (e.g. ``x42BEE7``).
        bgcolor: Background color or ``transparent``.
        font: Font size/spec appended to the terminal and key fonts.
        passthrough: Remaining ``(key, value)`` directives, caller order.
        color_table_path: Where to read per-metric band colors from.
    """
    stacked: bool = False
    have_total: bool = False
    smooth: Optional[str] = None
    fgcolor: Optional[str] = None
    bgcolor: Optional[str] = None
    font: Optional[str] = None
    passthrough: tuple[tuple[str, Optional[str]], ...] = ()
    color_table_path: Optional[Path] = None

    @classmethod
    def from_mapping(
        cls,
        params: Optional[Mapping[str, Optional[str]]],
        *,
        color_table_path: Optional[Path] = None,
    ) -> "PlotParams":
        """Split a caller mapping into special fields and passthrough directives."""
        params = dict(params or {})
        passthrough = tuple(
            (str(k), None if v is None else str(v))
            for k, v in params.items()
            if k not in SPECIAL_KEYS
        )

        def text(key: str) -> Optional[str]:
            value = params.get(key)
            return None if value is None else str(value)

        return cls(
            stacked=params.get(STACKED) is not None,
            have_total=params.get(HAVE_TOTAL) is not None,
            smooth=text(SMOOTH),
            fgcolor=text(FGCOLOR),
            bgcolor=text(BGCOLOR),
            font=text(FONT),
            passthrough=passthrough,
            color_table_path=color_table_path,
        )

    def has_directive(self, key: str) -> bool:
        """True if a passthrough directive for ``key`` exists (set or unset)."""
        return any(k == key for k, _ in self.passthrough)

    def with_directive(self, key: str, value: Optional[str]) -> "PlotParams":
        """Return a copy with the passthrough directive ``key`` set to ``value``.

        An existing entry keeps its position; a new one is appended.
        """
        if self.has_directive(key):
            entries = tuple((k, value if k == key else v) for k, v in self.passthrough)
        else:
            entries = self.passthrough + ((key, value),)
        return replace(self, passthrough=entries)

    def color_table(self) -> dict[str, str]:
        return load_color_table(self.color_table_path)
