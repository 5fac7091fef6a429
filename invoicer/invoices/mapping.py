from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping as MappingABC
from typing import Any

from ..models.invoice import NO_GROUPING, Mapping

"""Column mapping helpers.

- validity check used before grouping (required roles assigned)
- best-effort guess of a mapping from column names
- restoring a persisted mapping against the columns of a new workbook
"""

__all__ = [
    "REQUIRED_ROLES",
    "missing_roles",
    "is_mapping_valid",
    "guess_mapping",
    "restore_mapping",
    "mapping_from_dict",
]

logger = logging.getLogger(__name__)

# role attribute -> label shown to the user
REQUIRED_ROLES = {
    "customer": "Customer",
    "description": "Description",
    "quantity": "Quantity",
    "unit_price": "Unit Price",
}

_COLUMN_ROLES = ("customer", "email", "invoice_no", "description", "quantity", "unit_price", "group_by")

# role -> substrings tried in order (case-insensitive)
_GUESS_NEEDLES: dict[str, tuple[str, ...]] = {
    "customer": ("name", "customer", "client"),
    "email": ("email",),
    "invoice_no": ("invoice", "inv"),
    "description": ("desc", "item", "service"),
    "quantity": ("qty", "quantity"),
    "unit_price": ("price", "unit", "rate"),
    "group_by": ("group", "project", "client"),
}


def missing_roles(mapping: Mapping) -> list[str]:
    """Human readable names of required roles that are not assigned."""
    missing = [label for attr, label in REQUIRED_ROLES.items() if not getattr(mapping, attr)]
    if mapping.grouping_enabled and (not mapping.group_by or mapping.group_by == NO_GROUPING):
        missing.append("Group By")
    return missing


def is_mapping_valid(mapping: Mapping) -> bool:
    return not missing_roles(mapping)


def _guess(headers: list[str], needles: Iterable[str]) -> str:
    for needle in needles:
        for h in headers:
            if needle in h.lower():
                return h
    return ""


def guess_mapping(headers: Iterable[str]) -> Mapping:
    """Guess role assignments from column names.

    Grouping is switched on only when a group column was found.
    """
    h = list(headers)
    guessed = {role: _guess(h, needles) for role, needles in _GUESS_NEEDLES.items()}
    mapping = Mapping(**guessed, grouping_enabled=bool(guessed["group_by"]))
    logger.debug("guessed mapping %s", mapping.to_dict())
    return mapping


def mapping_from_dict(data: MappingABC[str, Any]) -> Mapping:
    """Build a Mapping from a plain dict (unknown keys ignored, None -> "")."""
    values = {role: str(data.get(role) or "") for role in _COLUMN_ROLES}
    return Mapping(**values, grouping_enabled=bool(data.get("grouping_enabled", False)))


def restore_mapping(saved: MappingABC[str, Any], headers: Iterable[str]) -> Mapping:
    """Apply a persisted mapping to a new set of columns.

    A saved column reference is kept only if it still names a column (or is
    blank, or is the no-grouping sentinel); otherwise the guessed value for
    that role is used.
    """
    h = list(headers)
    available = set(h)
    guessed = guess_mapping(h)
    values: dict[str, str] = {}
    for role in _COLUMN_ROLES:
        saved_value = saved.get(role)
        if saved_value is None:
            values[role] = getattr(guessed, role)
            continue
        saved_value = str(saved_value)
        if saved_value == "" or saved_value in available or (role == "group_by" and saved_value == NO_GROUPING):
            values[role] = saved_value
        else:
            logger.warning("saved mapping %s=%r is not a column of this workbook; using guess", role, saved_value)
            values[role] = getattr(guessed, role)
    grouping = saved.get("grouping_enabled")
    if grouping is None:
        grouping = guessed.grouping_enabled
    return Mapping(**values, grouping_enabled=bool(grouping))
