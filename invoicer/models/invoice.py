from __future__ import annotations

from dataclasses import dataclass

"""Invoice domain models.

Mapping is the user's assignment of logical roles to column headers.
InvoiceLine / Invoice are produced by the grouping stage and consumed
read-only by the layout engine and the export stage.
"""

__all__ = [
    "NO_GROUPING",
    "Mapping",
    "InvoiceLine",
    "Invoice",
]

# Sentinel a selection UI stores when the user picks "no group column"
NO_GROUPING = "-- No Grouping --"


@dataclass(frozen=True)
class Mapping:
    """Role -> column header assignment. Empty string means unassigned."""
    customer: str = ""
    email: str = ""
    invoice_no: str = ""
    description: str = ""
    quantity: str = ""
    unit_price: str = ""
    group_by: str = ""
    grouping_enabled: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "customer": self.customer,
            "email": self.email,
            "invoice_no": self.invoice_no,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "group_by": self.group_by,
            "grouping_enabled": self.grouping_enabled,
        }


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    quantity: float
    unit_price: float
    line_total: float

    @classmethod
    def create(cls, description: str, quantity: float, unit_price: float) -> InvoiceLine:
        return cls(
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            line_total=quantity * unit_price,
        )


@dataclass(frozen=True)
class Invoice:
    """One billing document.

    `index` is the position of the invoice in the batch it was computed in
    and is the only identifier the selection / export stage relies on.
    """
    customer: str
    email: str
    group_label: str
    invoice_number: str
    lines: tuple[InvoiceLine, ...] = ()
    validation_errors: tuple[str, ...] = ()
    index: int = 0

    @property
    def total(self) -> float:
        return sum(line.line_total for line in self.lines)

    @property
    def has_errors(self) -> bool:
        return bool(self.validation_errors)
