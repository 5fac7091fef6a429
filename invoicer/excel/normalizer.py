from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models.cell import SheetCells
from .grid import Grid, TableStructureError, build_grid, is_blank
from .headers import HeaderInfo, infer_header

"""Row normalization: grid rows below the header block -> records.

A record maps every inferred column name to the row's cell text. Rows whose
cells are all blank are dropped.
"""

__all__ = [
    "Record",
    "NoDataRowsError",
    "SheetData",
    "normalize_rows",
    "load_sheet_data",
]

logger = logging.getLogger(__name__)

Record = dict[str, str]


class NoDataRowsError(TableStructureError):
    """Raised when no data row remains after the header block."""


@dataclass(frozen=True)
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[Record]  # normalized (column name -> text)
    header_depth: int = 1
    header_start_row: int = 0


def normalize_rows(grid: Grid, header: HeaderInfo) -> list[Record]:
    """Zip every data row with the column names.

    Raises:
        NoDataRowsError: nothing but blank rows (or nothing at all) below the header
    """
    width = header.max_cols
    records: list[Record] = []
    for raw in grid[header.first_data_row:]:
        row = list(raw[:width]) + [""] * (width - len(raw))
        if all(is_blank(v) for v in row):
            continue
        records.append(dict(zip(header.columns, row)))
    if not records:
        raise NoDataRowsError(
            f"no data rows below header (header rows {header.start_row + 1}"
            f"-{header.first_data_row})"
        )
    return records


def load_sheet_data(sheet: SheetCells) -> SheetData:
    """Run grid reconstruction, header inference and row normalization."""
    grid = build_grid(sheet)
    header = infer_header(grid)
    rows = normalize_rows(grid, header)
    logger.info(
        "sheet=%s columns=%d header_depth=%d records=%d",
        sheet.name, len(header.columns), header.depth, len(rows),
    )
    return SheetData(
        sheet_name=sheet.name,
        columns=list(header.columns),
        rows=rows,
        header_depth=header.depth,
        header_start_row=header.start_row,
    )
