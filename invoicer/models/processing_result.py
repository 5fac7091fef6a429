from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Export result models.

ExportResult aggregates one export run (one workbook, one selection) and feeds
the SUMMARY line; InvoiceStat records what happened to each selected invoice.
"""


@dataclass(frozen=True)
class InvoiceStat:
    """Per-invoice export statistics."""
    index: int  # Invoice batch index
    invoice_number: str
    file_name: str  # archive entry name ("" when not exported)
    status: str  # exported / skipped_invalid / failed
    pages: int = 0
    size_bytes: int = 0
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ExportResult:
    """Aggregated result of one export run."""
    total_invoices: int  # invoices computed for the workbook
    selected_invoices: int  # invoices the caller asked to export
    exported: int
    skipped_invalid: int  # selected but carrying validation errors
    failed: int  # rendering raised
    total_pages: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_invoices_per_sec: float
    invoice_stats: list[InvoiceStat] | None = None

    @property
    def has_skipped(self) -> bool:
        return self.skipped_invalid > 0 or self.failed > 0
