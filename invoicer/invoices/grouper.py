from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping as MappingABC, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..models.invoice import Invoice, InvoiceLine, Mapping
from .mapping import is_mapping_valid, missing_roles

"""Invoice grouping.

Applies a column mapping to normalized records and produces invoices, either
one per record (ungrouped) or one per group-by value (grouped).

Bad cells never abort a batch: unparsable quantities / prices become 0 and
the problem is recorded in the invoice's validation_errors, which the export
stage checks before rendering.
"""

__all__ = [
    "parse_number",
    "group_invoices",
    "recompute",
]

logger = logging.getLogger(__name__)

# validation strings (field labels)
ERR_CUSTOMER = "Customer"
ERR_DESCRIPTION = "Description"
ERR_QUANTITY = "Quantity"
ERR_UNIT_PRICE = "Unit Price"

_STRIP_RE = re.compile(r"[\s$€£¥₫]")
_GROUPED_RE = re.compile(r"^[-+]?\d{1,3}(,\d{3})+(\.\d+)?$")
_FLOAT_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")


def parse_number(value: Any) -> tuple[float, bool]:
    """Coerce a cell to a number.

    Returns (number, ok). Anything unparsable or non-finite yields (0.0, False).
    Whitespace and currency symbols are ignored. Commas are accepted only as
    thousands separators between 3-digit groups ("1,234.50"); "1,5" is rejected.
    """
    if value is None or isinstance(value, bool):
        return 0.0, False
    if isinstance(value, (int, float)):
        num = float(value)
        return (num, True) if math.isfinite(num) else (0.0, False)
    text = _STRIP_RE.sub("", str(value))
    if "," in text:
        if not _GROUPED_RE.match(text):
            return 0.0, False
        text = text.replace(",", "")
    if not _FLOAT_RE.match(text):
        return 0.0, False
    num = float(text)
    if not math.isfinite(num):
        return 0.0, False
    return num, True


def _text(record: MappingABC[str, Any], column: str) -> str:
    if not column:
        return ""
    value = record.get(column)
    return "" if value is None else str(value).strip()


@dataclass
class _Row:
    """Mapped view of one record."""
    customer: str
    email: str
    invoice_no: str
    description: str
    group: str
    quantity: float
    unit_price: float
    errors: list[str]

    @property
    def is_blank(self) -> bool:
        return not self.customer and not self.description and self.quantity == 0 and self.unit_price == 0


def _map_row(record: MappingABC[str, Any], mapping: Mapping) -> _Row:
    customer = _text(record, mapping.customer)
    description = _text(record, mapping.description)
    quantity, qty_ok = parse_number(record.get(mapping.quantity))
    unit_price, unit_ok = parse_number(record.get(mapping.unit_price))

    errors: list[str] = []
    if not customer:
        errors.append(ERR_CUSTOMER)
    if not description:
        errors.append(ERR_DESCRIPTION)
    if not qty_ok or quantity == 0:
        errors.append(ERR_QUANTITY)
    if not unit_ok:
        errors.append(ERR_UNIT_PRICE)

    return _Row(
        customer=customer,
        email=_text(record, mapping.email),
        invoice_no=_text(record, mapping.invoice_no),
        description=description,
        group=_text(record, mapping.group_by) if mapping.grouping_enabled else "",
        quantity=quantity,
        unit_price=unit_price,
        errors=errors,
    )


@dataclass
class _Bucket:
    customer: str
    email: str
    group_label: str
    invoice_number: str
    lines: list[InvoiceLine] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def add(self, row: _Row) -> None:
        self.lines.append(InvoiceLine.create(row.description, row.quantity, row.unit_price))
        for e in row.errors:
            if e not in self.errors:
                self.errors.append(e)


def _ungrouped(records: Sequence[MappingABC[str, Any]], mapping: Mapping) -> list[_Bucket]:
    buckets: list[_Bucket] = []
    for i, record in enumerate(records):
        row = _map_row(record, mapping)
        if row.is_blank:
            continue
        bucket = _Bucket(
            customer=row.customer,
            email=row.email,
            group_label="",
            invoice_number=row.invoice_no or f"INV-{i + 1}",
        )
        bucket.add(row)
        buckets.append(bucket)
    return buckets


def _grouped(
    records: Sequence[MappingABC[str, Any]], mapping: Mapping, issue_date: date
) -> list[_Bucket]:
    # dict keeps bucket creation order
    buckets: dict[tuple[bool, str], _Bucket] = {}
    stamp = issue_date.isoformat()
    for record in records:
        row = _map_row(record, mapping)
        if not row.group and not row.customer and not row.description:
            continue
        # rows without a group value aggregate per customer
        key = (True, row.group) if row.group else (False, row.customer)
        bucket = buckets.get(key)
        if bucket is None:
            seq = len(buckets) + 1
            bucket = _Bucket(
                customer=row.customer,
                email=row.email,
                group_label=row.group,
                invoice_number=row.invoice_no or f"INV-{stamp}-{seq:03d}",
            )
            buckets[key] = bucket
        bucket.add(row)
    return list(buckets.values())


def group_invoices(
    records: Sequence[MappingABC[str, Any]],
    mapping: Mapping,
    *,
    issue_date: date | None = None,
) -> list[Invoice]:
    """Build invoices from records under a mapping.

    An invalid mapping yields an empty list; callers check is_mapping_valid()
    first when they need to tell the two apart.
    """
    if not is_mapping_valid(mapping):
        logger.debug("mapping invalid (missing %s); no invoices", missing_roles(mapping))
        return []

    if mapping.grouping_enabled:
        buckets = _grouped(records, mapping, issue_date or date.today())
    else:
        buckets = _ungrouped(records, mapping)

    invoices = [
        Invoice(
            customer=b.customer,
            email=b.email,
            group_label=b.group_label,
            invoice_number=b.invoice_number,
            lines=tuple(b.lines),
            validation_errors=tuple(b.errors),
            index=i,
        )
        for i, b in enumerate(buckets)
    ]
    logger.debug(
        "grouped records=%d invoices=%d with_errors=%d grouping=%s",
        len(records), len(invoices), sum(1 for inv in invoices if inv.has_errors), mapping.grouping_enabled,
    )
    return invoices


def recompute(
    records: Sequence[MappingABC[str, Any]],
    mapping: Mapping,
    *,
    issue_date: date | None = None,
) -> list[Invoice]:
    """Full rebuild of the invoice batch.

    Callers invoke this whenever the records or the mapping change; nothing
    is cached between calls, so indices are stable for identical inputs.
    """
    return group_invoices(records, mapping, issue_date=issue_date)
