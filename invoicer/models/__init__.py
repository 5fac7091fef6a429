"""Domain models for the spreadsheet -> invoice PDF generator."""

from .cell import Cell, CellKind, CellValue, MergeRange, SheetCells
from .invoice import NO_GROUPING, Invoice, InvoiceLine, Mapping
from .settings import A4, PageGeometry, Settings

__all__ = [
    # Sheet models
    "Cell",
    "CellKind",
    "CellValue",
    "MergeRange",
    "SheetCells",
    # Invoice models
    "NO_GROUPING",
    "Invoice",
    "InvoiceLine",
    "Mapping",
    # Rendering
    "A4",
    "PageGeometry",
    "Settings",
]
