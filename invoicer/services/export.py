from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime
from pathlib import PurePath

from ..layout.engine import layout_invoice
from ..layout.pdf import render_pdf
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.invoice import Invoice
from ..models.processing_result import ExportResult, InvoiceStat
from ..models.settings import A4, PageGeometry, Settings
from .archive import Archive
from .progress import ProgressTracker

"""Export stage: selected invoices -> PDF entries in an archive.

Selection is a set of invoice indices owned by the caller (None = all).
Invoices that carry validation errors are skipped by default and reported to
the error log; each exported invoice becomes one archive entry named after
its invoice number.
"""

__all__ = [
    "sanitize_filename",
    "entry_name",
    "render_invoice",
    "export_invoices",
]

logger = logging.getLogger(__name__)

MAX_FILENAME_LEN = 80
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.\-]+")


def sanitize_filename(name: str) -> str:
    """Replace runs of characters outside [A-Za-z0-9_.-] with '_', cut to 80 chars."""
    return _UNSAFE_RE.sub("_", str(name or ""))[:MAX_FILENAME_LEN] or "invoice"


def entry_name(invoice: Invoice, settings: Settings, issue_date: date) -> str:
    """Archive entry name for an invoice (sanitized, with .pdf suffix)."""
    number = invoice.invoice_number or f"INV-{invoice.index + 1}"
    try:
        stem = settings.file_name_pattern.format(
            invoice_number=number,
            customer=invoice.customer,
            date=issue_date.isoformat(),
            index=invoice.index,
        )
    except (KeyError, IndexError, ValueError) as e:
        logger.warning("bad file_name_pattern %r (%s); using invoice number", settings.file_name_pattern, e)
        stem = number
    return f"{sanitize_filename(stem)}.pdf"


def _unique(name: str, used: set[str]) -> str:
    if name not in used:
        return name
    path = PurePath(name)
    n = 2
    while f"{path.stem}_{n}{path.suffix}" in used:
        n += 1
    return f"{path.stem}_{n}{path.suffix}"


def render_invoice(
    invoice: Invoice,
    settings: Settings,
    *,
    issue_date: date,
    geometry: PageGeometry = A4,
) -> tuple[bytes, int]:
    """Lay out and render one invoice. Returns (pdf bytes, page count)."""
    pages = layout_invoice(invoice, settings, issue_date=issue_date, geometry=geometry)
    data = render_pdf(pages, geometry, title=invoice.invoice_number, author=settings.company_name)
    return data, len(pages)


def export_invoices(
    invoices: Sequence[Invoice],
    settings: Settings,
    archive: Archive,
    *,
    issue_date: date,
    selection: Iterable[int] | None = None,
    skip_invalid: bool = True,
    error_log: ErrorLogBuffer | None = None,
    source_name: str = "",
    geometry: PageGeometry = A4,
) -> ExportResult:
    """Render the selected invoices into `archive`.

    Args:
        invoices: full invoice batch (indices as produced by the grouper)
        settings: rendering settings (watermark already resolved by the caller)
        archive: destination for the PDF entries
        issue_date: date printed on the invoices and used in file names
        selection: invoice indices to export; None exports every invoice
        skip_invalid: skip invoices with validation errors (reported to error_log)
        error_log: buffer receiving one record per skipped / failed invoice
        source_name: workbook name used in error records

    Returns:
        ExportResult with per-invoice stats
    """
    start_time = datetime.now(UTC)
    chosen = set(selection) if selection is not None else None
    selected = [inv for inv in invoices if chosen is None or inv.index in chosen]

    stats: list[InvoiceStat] = []
    used_names: set[str] = set()
    exported = skipped = failed = pages_total = 0

    with ProgressTracker(len(selected)) as progress:
        for inv in selected:
            progress.start_invoice(inv.invoice_number)
            if skip_invalid and inv.has_errors:
                skipped += 1
                message = f"missing or invalid: {', '.join(inv.validation_errors)}"
                logger.warning("skip invoice=%s index=%d (%s)", inv.invoice_number, inv.index, message)
                if error_log is not None:
                    error_log.append(ErrorRecord.create(
                        file=source_name,
                        invoice=inv.index,
                        invoice_number=inv.invoice_number,
                        error_type="VALIDATION_ERROR",
                        message=message,
                    ))
                stats.append(InvoiceStat(inv.index, inv.invoice_number, "", "skipped_invalid"))
                progress.finish_invoice()
                continue

            t0 = datetime.now(UTC)
            try:
                data, page_count = render_invoice(inv, settings, issue_date=issue_date, geometry=geometry)
                name = _unique(entry_name(inv, settings, issue_date), used_names)
                archive.add(name, data)
            except Exception as e:
                failed += 1
                logger.error("render failed invoice=%s index=%d: %s", inv.invoice_number, inv.index, e)
                if error_log is not None:
                    error_log.append(ErrorRecord.create(
                        file=source_name,
                        invoice=inv.index,
                        invoice_number=inv.invoice_number,
                        error_type="RENDER_ERROR",
                        message=str(e),
                    ))
                stats.append(InvoiceStat(inv.index, inv.invoice_number, "", "failed"))
                progress.finish_invoice()
                continue

            used_names.add(name)
            exported += 1
            pages_total += page_count
            elapsed = (datetime.now(UTC) - t0).total_seconds()
            stats.append(InvoiceStat(
                index=inv.index,
                invoice_number=inv.invoice_number,
                file_name=name,
                status="exported",
                pages=page_count,
                size_bytes=len(data),
                elapsed_seconds=elapsed,
            ))
            logger.debug("exported invoice=%s entry=%s pages=%d bytes=%d", inv.invoice_number, name, page_count, len(data))
            progress.set_postfix(exported=exported, skipped=skipped)
            progress.finish_invoice()

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput = exported / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ExportResult(
        total_invoices=len(invoices),
        selected_invoices=len(selected),
        exported=exported,
        skipped_invalid=skipped,
        failed=failed,
        total_pages=pages_total,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_invoices_per_sec=throughput,
        invoice_stats=stats,
    )
