from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping as MappingABC
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from ..config.loader import AppConfig
from ..excel.grid import TableStructureError
from ..excel.normalizer import SheetData, load_sheet_data
from ..excel.reader import WorkbookReadError, read_workbook
from ..invoices.grouper import recompute
from ..invoices.mapping import guess_mapping, missing_roles, restore_mapping
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.invoice import Invoice, Mapping
from ..models.processing_result import ExportResult
from ..models.settings import Settings
from .archive import Archive, DirectoryArchive, ZipArchive
from .export import export_invoices

"""Pipeline orchestration: workbook -> records -> invoices -> archive.

Coordinates the stages for one workbook:
1. decode the first sheet and normalize it into records
2. resolve the column mapping (restore the saved one, or guess)
3. group records into invoices
4. export the selected invoices into a directory or zip archive

Workbook-level failures are fatal for the run: they are written to the error
log (invoice=-1) and re-raised as ProcessingError.
"""

__all__ = [
    "ProcessingError",
    "PreparedBatch",
    "load_records",
    "resolve_mapping",
    "resolve_settings",
    "prepare",
    "open_archive",
    "run",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal error for the current workbook."""


class PreparedBatch:
    """Records, mapping and invoices of one workbook (before export)."""

    def __init__(self, sheet: SheetData, mapping: Mapping, invoices: list[Invoice]) -> None:
        self.sheet = sheet
        self.mapping = mapping
        self.invoices = invoices


def load_records(path: Path) -> SheetData:
    """Decode `path` and run grid / header / row stages.

    Raises:
        ProcessingError: unreadable file or no usable table in the first sheet
    """
    if not path.exists():
        raise ProcessingError(f"workbook not found: {path}")
    try:
        cells = read_workbook(path)
        return load_sheet_data(cells)
    except (WorkbookReadError, TableStructureError) as e:
        raise ProcessingError(f"{path.name}: {e}") from e


def resolve_mapping(saved: MappingABC[str, Any] | None, columns: Iterable[str]) -> Mapping:
    """Saved mapping restored against `columns`, or a guess when nothing is saved."""
    if saved:
        return restore_mapping(saved, columns)
    return guess_mapping(columns)


def resolve_settings(settings: Settings, restricted: bool = False) -> Settings:
    """Restricted usage tier always renders the watermark."""
    if restricted and not settings.watermark:
        return replace(settings, watermark=True)
    return settings


def prepare(config: AppConfig, workbook_path: Path, *, issue_date: date) -> PreparedBatch:
    sheet = load_records(workbook_path)
    mapping = resolve_mapping(config.mapping, sheet.columns)
    missing = missing_roles(mapping)
    if missing:
        logger.warning("mapping incomplete, missing: %s", ", ".join(missing))
    invoices = recompute(sheet.rows, mapping, issue_date=issue_date)
    return PreparedBatch(sheet, mapping, invoices)


def open_archive(out_dir: Path, use_zip: bool, stem: str) -> Archive:
    if use_zip:
        return ZipArchive(out_dir / f"{stem}.zip")
    return DirectoryArchive(out_dir)


def run(
    config: AppConfig,
    workbook_path: Path,
    *,
    out_dir: Path | None = None,
    use_zip: bool | None = None,
    selection: Iterable[int] | None = None,
    skip_invalid: bool | None = None,
    restricted: bool = False,
    issue_date: date | None = None,
    logs_dir: Path | None = None,
) -> ExportResult:
    """Process one workbook end to end.

    Args:
        config: loaded application config
        workbook_path: .xlsx / .xlsm / .csv file
        out_dir: output directory (default: config.output.directory)
        use_zip: write one zip instead of loose files (default: config.output.archive)
        selection: invoice indices to export (None = all)
        skip_invalid: skip invoices with validation errors (default: config)
        restricted: restricted usage tier (forces the watermark)
        issue_date: date printed on invoices (default: config, then today)
        logs_dir: directory for the JSON-lines error log

    Returns:
        ExportResult of the export stage

    Raises:
        ProcessingError: workbook could not be turned into records
    """
    error_log = ErrorLogBuffer(logs_dir)
    when = issue_date or config.issue_date or date.today()
    target = out_dir or Path(config.output.directory)
    zipped = config.output.archive == "zip" if use_zip is None else use_zip
    skip = config.output.skip_invalid if skip_invalid is None else skip_invalid
    settings = resolve_settings(config.settings, restricted)

    try:
        batch = prepare(config, workbook_path, issue_date=when)
    except ProcessingError as e:
        error_log.append(ErrorRecord.create(
            file=workbook_path.name,
            invoice=-1,
            invoice_number="",
            error_type="WORKBOOK_ERROR",
            message=str(e),
        ))
        log_path = error_log.flush()
        logger.error("%s (error log: %s)", e, log_path)
        raise

    logger.info(
        "workbook=%s invoices=%d grouping=%s issue_date=%s",
        workbook_path.name, len(batch.invoices), batch.mapping.grouping_enabled, when.isoformat(),
    )

    with open_archive(target, zipped, workbook_path.stem) as archive:
        result = export_invoices(
            batch.invoices,
            settings,
            archive,
            issue_date=when,
            selection=selection,
            skip_invalid=skip,
            error_log=error_log,
            source_name=workbook_path.name,
        )

    log_path = error_log.flush()
    if log_path is not None:
        logger.warning("error log written: %s", log_path)
    return result
