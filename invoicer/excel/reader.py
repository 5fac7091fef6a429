from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook

from ..models.cell import Cell, CellValue, MergeRange, SheetCells

"""Workbook decoding (byte I/O boundary of the pipeline).

Only the first sheet is decoded. .xlsx / .xlsm go through openpyxl so merged
ranges survive; .csv goes through pandas (no merges, every cell is text).
"""

__all__ = [
    "WorkbookReadError",
    "read_workbook",
    "EXCEL_SUFFIXES",
    "CSV_SUFFIXES",
]

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}
_ZIP_MAGIC = b"PK\x03\x04"


class WorkbookReadError(Exception):
    """Raised when workbook bytes cannot be decoded."""


def read_workbook(source: Path | bytes, file_name: str | None = None) -> SheetCells:
    """Decode the first sheet of a workbook.

    Parameters
    ----------
    source: path to the workbook, or its raw bytes
    file_name: name used to pick the decoder when `source` is bytes
               (defaults to sniffing the zip signature)
    """
    if isinstance(source, Path):
        if not source.exists():
            raise WorkbookReadError(f"workbook not found: {source}")
        data = source.read_bytes()
        file_name = file_name or source.name
    else:
        data = source

    suffix = Path(file_name).suffix.lower() if file_name else ""
    if not suffix:
        suffix = ".xlsx" if data.startswith(_ZIP_MAGIC) else ".csv"

    if suffix in EXCEL_SUFFIXES:
        return _read_excel_bytes(data)
    if suffix in CSV_SUFFIXES:
        return _read_csv_bytes(data, Path(file_name).stem if file_name else "Sheet1")
    raise WorkbookReadError(f"unsupported workbook format: {suffix}")


def _read_excel_bytes(data: bytes) -> SheetCells:
    try:
        wb = load_workbook(filename=BytesIO(data), data_only=True)
    except Exception as e:
        raise WorkbookReadError(f"cannot open workbook: {e}") from e

    ws = wb.worksheets[0]
    if len(wb.worksheets) > 1:
        logger.info("workbook has %d sheets; only '%s' is processed", len(wb.worksheets), ws.title)

    # openpyxl is 1-based; everything downstream is 0-based
    merges = [
        MergeRange(
            start_row=int(cr.min_row) - 1,
            start_col=int(cr.min_col) - 1,
            end_row=int(cr.max_row) - 1,
            end_col=int(cr.max_col) - 1,
        )
        for cr in ws.merged_cells.ranges
    ]

    cells: dict[tuple[int, int], Cell] = {}
    for row in ws.iter_rows():
        for cell in row:
            value = getattr(cell, "value", None)
            if value is None:
                continue
            cv = CellValue.from_python(value)
            display = _display_from_format(value, str(getattr(cell, "number_format", "") or ""))
            cells[(cell.row - 1, cell.column - 1)] = Cell(value=cv, display=display)

    return SheetCells(name=str(ws.title), cells=cells, merges=merges)


def _display_from_format(value: object, fmt: str) -> str | None:
    """Pre-formatted text for numeric cells whose format changes what is shown.

    Only percent and fixed-decimal formats are honored; thousands separators
    and currency symbols are left out so the text stays parseable as a number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    section = re.sub(r"\"[^\"]*\"|\[[^\]]+\]", "", fmt.split(";", 1)[0])
    if "%" in section:
        m = re.search(r"0\.(0+)", section)
        places = len(m.group(1)) if m else 0
        return f"{float(value) * 100:.{places}f}%"
    m = re.search(r"[#0]\.(0+)", section)
    if m:
        return f"{float(value):.{len(m.group(1))}f}"
    return None


def _read_csv_bytes(data: bytes, name: str) -> SheetCells:
    try:
        df = pd.read_csv(
            BytesIO(data),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return SheetCells(name=name)
    except (UnicodeDecodeError, pd.errors.ParserError) as e:
        raise WorkbookReadError(f"cannot parse csv: {e}") from e

    cells: dict[tuple[int, int], Cell] = {}
    for r, raw in enumerate(df.itertuples(index=False, name=None)):
        for c, value in enumerate(raw):
            if value is None or pd.isna(value) or value == "":
                continue
            cells[(r, c)] = Cell(value=CellValue.text(str(value)))
    return SheetCells(name=name, cells=cells)
