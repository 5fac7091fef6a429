from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models.cell import MergeRange, SheetCells

"""Grid reconstruction.

Turns a decoded sheet (sparse cell map + merge ranges) into a dense,
rectangular grid of display strings:

1. bounds = bounding box of non-empty cells united with all merge ranges
2. dense materialization; empty cells inside a merge take the anchor value
3. empty border rows / columns trimmed

Coordinates in the returned grid are relative to the trimmed table, not to
A1.
"""

__all__ = [
    "Grid",
    "TableStructureError",
    "EmptySheetError",
    "build_grid",
    "fill_merged_regions",
    "trim_grid",
    "is_blank",
]

logger = logging.getLogger(__name__)

Grid = list[list[str]]


class TableStructureError(Exception):
    """Base class for errors that abort processing of a workbook."""


class EmptySheetError(TableStructureError):
    """Raised when a sheet holds no usable cells (before or after trimming)."""


def is_blank(value: str | None) -> bool:
    return value is None or str(value).strip() == ""


def _bounds(sheet: SheetCells) -> tuple[int, int, int, int]:
    non_empty = [pos for pos, cell in sheet.cells.items() if not is_blank(cell.resolved())]
    if not non_empty:
        raise EmptySheetError(f"sheet '{sheet.name}' has no non-empty cells")
    rows = [r for r, _ in non_empty]
    cols = [c for _, c in non_empty]
    top, left, bottom, right = min(rows), min(cols), max(rows), max(cols)
    for m in sheet.merges:
        top = min(top, m.start_row)
        left = min(left, m.start_col)
        bottom = max(bottom, m.end_row)
        right = max(right, m.end_col)
    return top, left, bottom, right


def fill_merged_regions(grid: Grid, merges: Iterable[MergeRange]) -> Grid:
    """Copy each merge anchor's value into the empty cells of its range.

    Merge coordinates are grid-relative. Parts of a range outside the grid are
    ignored. Running this on an already filled grid returns an equal grid.
    """
    out = [list(row) for row in grid]
    if not out:
        return out
    for m in merges:
        if not (0 <= m.start_row < len(out) and 0 <= m.start_col < len(out[m.start_row])):
            continue
        anchor = out[m.start_row][m.start_col]
        for r in range(m.start_row, min(m.end_row, len(out) - 1) + 1):
            row = out[r]
            for c in range(m.start_col, min(m.end_col, len(row) - 1) + 1):
                if is_blank(row[c]):
                    row[c] = anchor
    return out


def trim_grid(grid: Grid) -> Grid:
    """Pad ragged rows, then drop all-blank border rows and columns.

    Rows are trimmed first, columns second. The result is rectangular; an
    already trimmed grid comes back unchanged.
    """
    width = max((len(r) for r in grid), default=0)
    rows = [list(r) + [""] * (width - len(r)) for r in grid]

    top = 0
    while top < len(rows) and all(is_blank(v) for v in rows[top]):
        top += 1
    bottom = len(rows) - 1
    while bottom >= top and all(is_blank(v) for v in rows[bottom]):
        bottom -= 1
    rows = rows[top: bottom + 1]
    if not rows:
        return []

    left = 0
    while left < width and all(is_blank(r[left]) for r in rows):
        left += 1
    right = width - 1
    while right >= left and all(is_blank(r[right]) for r in rows):
        right -= 1
    return [r[left: right + 1] for r in rows]


def build_grid(sheet: SheetCells) -> Grid:
    """Reconstruct the dense, merge-filled and trimmed grid of a sheet.

    Raises:
        EmptySheetError: no non-empty cell exists, or nothing is left after trimming
    """
    top, left, bottom, right = _bounds(sheet)
    height = bottom - top + 1
    width = right - left + 1

    grid: Grid = [[""] * width for _ in range(height)]
    for (r, c), cell in sheet.cells.items():
        if top <= r <= bottom and left <= c <= right:
            grid[r - top][c - left] = cell.resolved()

    merges = [m.shifted(top, left) for m in sheet.merges]
    grid = fill_merged_regions(grid, merges)
    grid = trim_grid(grid)
    if not grid or not grid[0]:
        raise EmptySheetError(f"sheet '{sheet.name}' is empty after trimming")

    logger.debug(
        "sheet=%s bounds=(%d,%d)-(%d,%d) merges=%d grid=%dx%d",
        sheet.name, top, left, bottom, right, len(sheet.merges), len(grid), len(grid[0]),
    )
    return grid
