from __future__ import annotations

import argparse
import os
import sys
from datetime import date
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from invoicer.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config, parse_issue_date
from invoicer.invoices.mapping import missing_roles
from invoicer.logging.init import log_summary, set_debug, setup_logging
from invoicer.services.pipeline import ProcessingError, prepare, run
from invoicer.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env (override) and the YAML config
- decode the workbook, resolve the mapping, group invoices
- export the selected invoices, print the SUMMARY line

Exit codes: 0 all selected invoices exported, 1 fatal (config / workbook),
2 some invoices skipped for validation errors or failed to render.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

PREVIEW_ROWS = 5
_TRUTHY = {"1", "true", "yes", "on"}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values override the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_selection(value: str) -> set[int]:
    try:
        return {int(part) for part in value.split(",") if part.strip()}
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid selection {value!r}: expected e.g. 0,2,5") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="invoicer", description="Spreadsheet -> invoice PDF generator")
    p.add_argument("workbook", type=Path, help=".xlsx / .xlsm / .csv file")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/invoice.yml)")
    p.add_argument("--out", type=Path, default=None, help="Output directory (overrides config)")
    p.add_argument("--zip", action="store_true", help="Write one zip archive instead of loose PDFs")
    p.add_argument("--select", type=_parse_selection, default=None, help="Comma separated invoice indices")
    p.add_argument("--include-invalid", action="store_true", help="Render invoices that have validation errors")
    p.add_argument("--restricted", action="store_true", help="Restricted usage tier (forces watermark)")
    p.add_argument("--issue-date", default=None, help="Issue date YYYY-MM-DD (default: today)")
    p.add_argument("--inspect-data", action="store_true", help="Print columns, mapping and invoice preview then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env = os.getenv("INVOICER_CONFIG")
    return Path(env) if env else DEFAULT_CONFIG_PATH


def _inspect_data(cfg: AppConfig, workbook: Path, issue_date: date) -> int:
    try:
        batch = prepare(cfg, workbook, issue_date=issue_date)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL

    sheet = batch.sheet
    print(f"FILE: {workbook.name} SHEET: {sheet.sheet_name}")
    print(f"  columns={sheet.columns}")
    print(f"  header_depth={sheet.header_depth} header_start_row={sheet.header_start_row + 1}")
    print(f"  mapping={batch.mapping.to_dict()}")
    missing = missing_roles(batch.mapping)
    if missing:
        print(f"  mapping_missing={missing}")

    frame = pd.DataFrame(sheet.rows, columns=sheet.columns)
    print(f"  records={len(frame)}")
    with pd.option_context("display.max_columns", None, "display.width", 120):
        print(frame.head(PREVIEW_ROWS).to_string(index=False))

    for inv in batch.invoices:
        status = f"errors={list(inv.validation_errors)}" if inv.has_errors else "ok"
        print(
            f"  [{inv.index}] {inv.invoice_number} customer={inv.customer!r} "
            f"lines={len(inv.lines)} total={inv.total:g} {status}"
        )
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> read sys.argv; an explicit [] must not pick up pytest's arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(_config_path(args))
        issue_date = parse_issue_date(args.issue_date or os.getenv("INVOICER_ISSUE_DATE"))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    workbook: Path = args.workbook
    when = issue_date or cfg.issue_date or date.today()

    if args.inspect_data:
        return _inspect_data(cfg, workbook, when)

    restricted = args.restricted or os.getenv("INVOICER_RESTRICTED_TIER", "").strip().lower() in _TRUTHY
    logger.info(f"Processing workbook: {workbook}")

    try:
        result = run(
            cfg,
            workbook,
            out_dir=args.out,
            use_zip=True if args.zip else None,
            selection=args.select,
            skip_invalid=False if args.include_invalid else None,
            restricted=restricted,
            issue_date=when,
        )
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    # log_summary adds the "SUMMARY " label itself
    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.has_skipped:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
