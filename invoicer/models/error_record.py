from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the export error log.

One record per invoice that the export stage refused to render (validation
errors) or failed to render. `invoice` is the batch index of the invoice, or
-1 for workbook-level failures where no invoice exists.

The record adheres to invoicer/contracts/error_log_schema.json.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook file name being processed
        invoice: Invoice batch index; -1 when the error is not tied to an invoice
        invoice_number: Invoice number (empty for workbook-level errors)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    invoice: int
    invoice_number: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str, invoice: int, invoice_number: str, error_type: str, message: str
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            invoice=invoice,
            invoice_number=invoice_number,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line (no keys beyond the dataclass fields)."""
        return json.dumps(asdict(self), ensure_ascii=False)
