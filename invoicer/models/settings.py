from __future__ import annotations

from dataclasses import dataclass

"""Rendering settings and page geometry.

Settings are persisted by an external store (here: the YAML config) and are
handed to the layout engine as a plain validated struct.
"""

__all__ = [
    "Settings",
    "PageGeometry",
    "A4",
]


@dataclass(frozen=True)
class Settings:
    company_name: str = "Your Company"
    company_email: str = ""
    company_address: str = ""
    company_tax_id: str = ""
    currency: str = "USD"
    locale: str = "en-US"
    watermark: bool = False  # restricted usage tier
    watermark_text: str = "WATERMARK"
    file_name_pattern: str = "{invoice_number}"


@dataclass(frozen=True)
class PageGeometry:
    """Fixed page size and margins in PDF points."""
    width: float
    height: float
    margin_top: float = 40
    margin_right: float = 40
    margin_bottom: float = 50
    margin_left: float = 40

    @property
    def usable_width(self) -> float:
        return self.width - self.margin_left - self.margin_right


A4 = PageGeometry(width=595.28, height=841.89)
