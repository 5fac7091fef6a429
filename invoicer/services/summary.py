from __future__ import annotations

from ..models.processing_result import ExportResult

"""SUMMARY line rendering for export runs."""


def _fmt(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ExportResult) -> str:
    """Render the SUMMARY line of an export run.

    Format:
    SUMMARY invoices={selected}/{total} exported={n} skipped_invalid={k}
    failed={f} pages={p} elapsed_sec={s} throughput_ips={r}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ExportResult(
        ...     total_invoices=5, selected_invoices=4, exported=3, skipped_invalid=1,
        ...     failed=0, total_pages=3, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_invoices_per_sec=1.5,
        ... )
        >>> render_summary_line(result)
        'SUMMARY invoices=4/5 exported=3 skipped_invalid=1 failed=0 pages=3 elapsed_sec=2 throughput_ips=1.5'
    """
    return (
        f"SUMMARY invoices={result.selected_invoices}/{result.total_invoices} "
        f"exported={result.exported} "
        f"skipped_invalid={result.skipped_invalid} "
        f"failed={result.failed} "
        f"pages={result.total_pages} "
        f"elapsed_sec={_fmt(result.elapsed_seconds)} "
        f"throughput_ips={_fmt(result.throughput_invoices_per_sec)}"
    )
