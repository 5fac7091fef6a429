from __future__ import annotations

import logging
import re
from fractions import Fraction
from dataclasses import dataclass

from .grid import Grid, is_blank

"""Header inference for reconstructed grids.

Finds where the column labels are (skipping banner / title rows), how many
rows the header block spans (1-3) and produces one unique label per column.

Depth heuristic: header rows are mostly label text, data rows tend to be more
numeric. The first row whose numeric-or-date-like ratio jumps by at least
NUMERIC_JUMP over the row above it is taken as the first data row.
"""

__all__ = [
    "HeaderInfo",
    "infer_header",
    "is_numeric_or_date_like",
    "dedupe_labels",
]

logger = logging.getLogger(__name__)

BANNER_PROBE_ROWS = 10
MAX_HEADER_DEPTH = 3
NUMERIC_JUMP = Fraction(1, 5)
LOOKAHEAD_ROWS = 200

_NUMBER_RE = re.compile(
    r"^[-+(]?\s*[$€£¥₫]?\s*(\d{1,3}(,\d{3})+|\d+)?(\.\d+)?\s*[%)]?$"
)
_SCI_RE = re.compile(r"^[-+]?\d+(\.\d+)?[eE][-+]?\d+$")
_DATE_RE = re.compile(
    r"^(\d{4}[-/.]\d{1,2}[-/.]\d{1,2}|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})([ T]\d{1,2}:\d{2}(:\d{2})?)?$"
)


@dataclass(frozen=True)
class HeaderInfo:
    """Result of header inference.

    start_row is the first header row (after skipped banner rows); data rows
    begin at first_data_row.
    """
    columns: list[str]
    depth: int
    start_row: int
    max_cols: int

    @property
    def first_data_row(self) -> int:
        return self.start_row + self.depth


def is_numeric_or_date_like(value: str) -> bool:
    s = value.strip()
    if not s:
        return False
    if _DATE_RE.match(s) or _SCI_RE.match(s):
        return True
    return bool(_NUMBER_RE.match(s)) and any(ch.isdigit() for ch in s)


def _numeric_ratio(row: list[str]) -> Fraction:
    filled = [v for v in row if not is_blank(v)]
    if not filled:
        return Fraction(0)
    return Fraction(sum(1 for v in filled if is_numeric_or_date_like(v)), len(filled))


def _is_banner(row: list[str]) -> bool:
    return len({v.strip() for v in row if not is_blank(v)}) <= 1


def _skip_banner_rows(grid: Grid, width: int) -> int:
    # a one-column table would look like nothing but banners
    if width <= 1:
        return 0
    start = 0
    limit = min(BANNER_PROBE_ROWS, len(grid) - 1)
    while start < limit and _is_banner(grid[start]):
        start += 1
    return start


def _header_depth(grid: Grid, start: int) -> int:
    available = len(grid) - start
    depth = 1
    for k in range(1, MAX_HEADER_DEPTH + 1):
        if start + k >= len(grid):
            break
        if _numeric_ratio(grid[start + k]) - _numeric_ratio(grid[start + k - 1]) >= NUMERIC_JUMP:
            depth = k
            break
    return max(1, min(depth, MAX_HEADER_DEPTH, available))


def _collapse(value: str) -> str:
    return " ".join(str(value).split())


def dedupe_labels(labels: list[str]) -> list[str]:
    """Make labels unique: repeats get _2, _3, ... in first-seen order."""
    used: set[str] = set()
    counts: dict[str, int] = {}
    out: list[str] = []
    for label in labels:
        if label not in used:
            counts[label] = 1
            used.add(label)
            out.append(label)
            continue
        n = counts[label]
        while True:
            n += 1
            candidate = f"{label}_{n}"
            if candidate not in used:
                break
        counts[label] = n
        used.add(candidate)
        out.append(candidate)
    return out


def infer_header(grid: Grid) -> HeaderInfo:
    """Infer header block depth and column names for a trimmed grid."""
    if not grid:
        return HeaderInfo(columns=[], depth=0, start_row=0, max_cols=0)

    width = max(len(r) for r in grid)
    start = _skip_banner_rows(grid, width)
    depth = _header_depth(grid, start)
    header_rows = grid[start: start + depth]

    window = grid[start: start + depth + LOOKAHEAD_ROWS]
    max_cols = max(len(r) for r in window)

    labels: list[str] = []
    for col in range(max_cols):
        label = ""
        for row in reversed(header_rows):
            if col < len(row) and not is_blank(row[col]):
                label = _collapse(row[col])
                break
        labels.append(label or f"Column_{col + 1}")

    columns = dedupe_labels(labels)
    logger.debug("header start_row=%d depth=%d columns=%s", start, depth, columns)
    return HeaderInfo(columns=columns, depth=depth, start_row=start, max_cols=max_cols)
