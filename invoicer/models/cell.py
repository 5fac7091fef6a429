from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

"""Cell-level models for decoded spreadsheet sheets.

A decoded sheet is a sparse map of Cell objects keyed by 0-based (row, col)
plus the list of merged ranges. Values are kept as a closed tagged variant
(CellValue) until the grid stage turns every cell into display text once.
"""

__all__ = [
    "CellKind",
    "CellValue",
    "Cell",
    "MergeRange",
    "SheetCells",
    "number_to_text",
]


class CellKind(Enum):
    """Closed set of cell value variants."""
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOL = "bool"


def number_to_text(value: float) -> str:
    """Stringify a number the way a spreadsheet shows a General-format cell.

    Integral values lose their fractional part (2.0 -> "2"); everything else
    uses the shortest round-trip representation.
    """
    if value != value or value in (float("inf"), float("-inf")):
        return str(value)
    if float(value).is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


@dataclass(frozen=True)
class CellValue:
    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> CellValue:
        return cls(CellKind.EMPTY)

    @classmethod
    def text(cls, value: str) -> CellValue:
        return cls(CellKind.TEXT, value)

    @classmethod
    def number(cls, value: float) -> CellValue:
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def date_value(cls, value: date | datetime) -> CellValue:
        return cls(CellKind.DATE, value)

    @classmethod
    def boolean(cls, value: bool) -> CellValue:
        return cls(CellKind.BOOL, bool(value))

    @classmethod
    def from_python(cls, value: Any) -> CellValue:
        """Classify a raw value coming out of a workbook library."""
        if value is None:
            return cls.empty()
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, (int, float, Decimal)):
            return cls.number(float(value))
        if isinstance(value, (datetime, date)):
            return cls.date_value(value)
        if isinstance(value, time):
            return cls.text(value.isoformat())
        text = str(value)
        if text == "":
            return cls.empty()
        return cls.text(text)

    def to_text(self) -> str:
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.TEXT:
            return str(self.value)
        if self.kind is CellKind.NUMBER:
            return number_to_text(self.value)
        if self.kind is CellKind.BOOL:
            return "TRUE" if self.value else "FALSE"
        # DATE
        v = self.value
        if isinstance(v, datetime):
            if v.hour == 0 and v.minute == 0 and v.second == 0 and v.microsecond == 0:
                return v.date().isoformat()
            return v.replace(microsecond=0).isoformat(sep=" ")
        return v.isoformat()


@dataclass(frozen=True)
class Cell:
    """A single sheet position.

    `display` is the pre-formatted text of the cell; when present and non-empty
    it wins over the raw value.
    """
    value: CellValue
    display: str | None = None

    def resolved(self) -> str:
        if self.display:
            return self.display
        return self.value.to_text()


@dataclass(frozen=True)
class MergeRange:
    """Merged block of cells, 0-based and inclusive on both ends."""
    start_row: int
    start_col: int
    end_row: int
    end_col: int

    def contains(self, row: int, col: int) -> bool:
        return self.start_row <= row <= self.end_row and self.start_col <= col <= self.end_col

    def shifted(self, rows: int, cols: int) -> MergeRange:
        return MergeRange(
            start_row=self.start_row - rows,
            start_col=self.start_col - cols,
            end_row=self.end_row - rows,
            end_col=self.end_col - cols,
        )


@dataclass(frozen=True)
class SheetCells:
    """Decoded first sheet of a workbook (sparse representation)."""
    name: str
    cells: dict[tuple[int, int], Cell] = field(default_factory=dict)
    merges: list[MergeRange] = field(default_factory=list)
