"""Filter rows and lay them out as an aligned, coloured table."""

from __future__ import annotations

import io
import re
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .errors import GhNotifyError
from .models import BLANK_GLYPH, REFERENCE_WIDTH, Row

FINAL_MSG = "All caught up!"

# a regex that matches nothing
NEVER_MATCH = r"(?!)"

GUTTER = "  "
# number of leading columns fzf hides (timestamp, thread id, state, anchor)
HIDDEN_COLUMNS = 4
_ALIGNED_COLUMNS = len(Row._fields) - 1
_RESET = "\x1b[0m"

COLUMN_STYLES = {
    4: "bright_black",  # date
    5: "bright_black",  # time
    6: "magenta",  # unread glyph
    7: "bold",  # repository
    8: "cyan",  # subject type
    9: "green",  # reference number
}


def compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise GhNotifyError(f"invalid pattern {pattern!r}: {e}") from e


def filter_rows(rows: Iterable[Row], exclude: str = NEVER_MATCH, include: str = "") -> list[Row]:
    """Keep rows matching `include` and not matching `exclude`.

    Both are regular expressions searched in the whole tab-separated row,
    hidden fields included.
    """
    exclude_re = compile_pattern(exclude)
    include_re = compile_pattern(include)
    kept = []
    for row in rows:
        line = row.serialize()
        if exclude_re.search(line) or not include_re.search(line):
            continue
        kept.append(row)
    return kept


def _cells(row: Row) -> list[str]:
    cells = [cell or BLANK_GLYPH for cell in row[:_ALIGNED_COLUMNS]]
    cells[9] = cells[9].ljust(REFERENCE_WIDTH)
    return cells


def align(rows: list[Row]) -> list[Text]:
    """Pad the first ten columns to a common width; the title runs to the end of the line."""
    cells = [_cells(row) for row in rows]
    widths = [max((len(c[i]) for c in cells), default=0) for i in range(_ALIGNED_COLUMNS)]

    lines = []
    for row, row_cells in zip(rows, cells, strict=True):
        line = Text()
        for index, (cell, width) in enumerate(zip(row_cells, widths, strict=True)):
            line.append(cell.ljust(width), style=COLUMN_STYLES.get(index, ""))
            line.append(GUTTER)
        line.append(row.title or BLANK_GLYPH)
        lines.append(line)
    return lines


def render(rows: list[Row], *, color: bool = True) -> str:
    """Render rows as newline-separated text, with ANSI colours when color is set."""
    console = Console(
        file=io.StringIO(),
        force_terminal=color,
        color_system="standard" if color else None,
        highlight=False,
        soft_wrap=True,
    )
    with console.capture() as capture:
        for line in align(rows):
            console.print(line)
    return capture.get().rstrip("\n")


def placeholder() -> str:
    """The row shown when a reload finds nothing.

    fzf hides the first columns of every row, so the message is preceded by
    invisible tokens that fill them.
    """
    return " ".join([_RESET] * HIDDEN_COLUMNS + [FINAL_MSG])
