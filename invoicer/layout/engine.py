from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from reportlab.pdfbase.pdfmetrics import stringWidth

from ..models.invoice import Invoice, InvoiceLine
from ..models.settings import A4, PageGeometry, Settings
from .formatting import format_issue_date, format_money, format_quantity

"""Invoice page layout.

Lays one invoice out on fixed-size pages as a list of draw operations
(text / rectangle / line) using PDF coordinates (origin bottom-left, y up).
The layout keeps a single running cursor `y`; every table row checks the
space left before it is drawn and opens a new page (with the table header
redrawn) when it does not fit.

Text is measured with reportlab's built-in Helvetica metrics so the layout
matches what the PDF renderer draws.
"""

__all__ = [
    "TextOp",
    "RectOp",
    "LineOp",
    "LayoutPage",
    "InvoiceLayout",
    "layout_invoice",
    "wrap_text",
    "text_width",
]

logger = logging.getLogger(__name__)

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

Color = tuple[float, float, float]
BLACK: Color = (0.0, 0.0, 0.0)
GREY: Color = (0.35, 0.35, 0.35)
LIGHT_GREY: Color = (0.9, 0.9, 0.9)
BAND_GREY: Color = (0.95, 0.95, 0.95)

# description / qty / unit price / total
COLUMN_SHARES = (0.60, 0.10, 0.15, 0.15)
CELL_PAD = 10
LINE_HEIGHT = 12
ROW_PAD_TOP = 8
ROW_PAD_BOTTOM = 8
BODY_SIZE = 10
TABLE_HEADER_HEIGHT = 20
TABLE_HEADER_ADVANCE = 25
HEADER_RESERVE = 40  # room kept for a redrawn table header when a row forces a break
GAP_BEFORE_TABLE = 24
META_TEXT_HEIGHT = 12
TOTAL_GAP = 20
TOTAL_NEED = 28

WATERMARK_X = 120
WATERMARK_Y = 420
WATERMARK_SIZE = 70
WATERMARK_ANGLE = -30
WATERMARK_OPACITY = 0.05


@dataclass(frozen=True)
class TextOp:
    text: str
    x: float
    y: float  # baseline
    size: float
    font: str = FONT
    color: Color = BLACK
    opacity: float = 1.0
    angle: float = 0.0


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    color: Color = BAND_GREY


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.5
    color: Color = LIGHT_GREY


@dataclass
class LayoutPage:
    number: int
    ops: list[TextOp | RectOp | LineOp] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


def text_width(text: str, font: str = FONT, size: float = BODY_SIZE) -> float:
    return stringWidth(text, font, size)


def wrap_text(text: str, max_width: float, font: str = FONT, size: float = BODY_SIZE) -> list[str]:
    """Greedy word wrap.

    A word is appended to the current line unless that makes the line wider
    than max_width and the line already has content. A single word wider than
    max_width gets a line of its own. Always returns at least one line.
    """
    lines: list[str] = []
    line = ""
    for word in str(text or "").split():
        candidate = f"{line} {word}" if line else word
        if line and text_width(candidate, font, size) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines or [""]


class InvoiceLayout:
    """Stateful layout of a single invoice. One instance per invoice."""

    def __init__(
        self,
        settings: Settings,
        *,
        issue_date: date,
        geometry: PageGeometry = A4,
    ) -> None:
        self.settings = settings
        self.issue_date = issue_date
        self.geometry = geometry
        self.pages: list[LayoutPage] = []
        self.page: LayoutPage | None = None
        self.y = 0.0

        g = geometry
        tw = g.usable_width
        self.w_desc, self.w_qty, self.w_unit, self.w_total = (tw * s for s in COLUMN_SHARES)
        self.x_desc = g.margin_left
        self.x_qty = self.x_desc + self.w_desc
        self.x_unit = self.x_qty + self.w_qty
        self.x_total = self.x_unit + self.w_unit
        self.x_right = g.width - g.margin_right

    # -- primitives -------------------------------------------------------

    def _new_page(self) -> None:
        self.page = LayoutPage(number=len(self.pages) + 1)
        self.pages.append(self.page)
        self.y = self.geometry.height - self.geometry.margin_top

    def _text(self, text: str, x: float, y: float, size: float = BODY_SIZE,
              font: str = FONT, color: Color = BLACK) -> None:
        self.page.ops.append(TextOp(str(text or ""), x, y, size, font, color))

    def _right(self, text: str, x_right: float, y: float, size: float = BODY_SIZE,
               font: str = FONT, color: Color = BLACK) -> None:
        t = str(text or "")
        self._text(t, x_right - text_width(t, font, size), y, size, font, color)

    def _table_header(self) -> None:
        g = self.geometry
        self.page.ops.append(
            RectOp(g.margin_left, self.y - 4, g.usable_width, TABLE_HEADER_HEIGHT, BAND_GREY)
        )
        self._text("Description", self.x_desc + CELL_PAD, self.y, BODY_SIZE, FONT_BOLD, GREY)
        self._right("Qty", self.x_qty + self.w_qty - CELL_PAD, self.y, BODY_SIZE, FONT_BOLD, GREY)
        self._right("Unit Price", self.x_unit + self.w_unit - CELL_PAD, self.y, BODY_SIZE, FONT_BOLD, GREY)
        self._right("Total", self.x_total + self.w_total - CELL_PAD, self.y, BODY_SIZE, FONT_BOLD, GREY)

    def _start_table(self) -> None:
        self._table_header()
        self.y -= TABLE_HEADER_ADVANCE

    def _ensure(self, need: float, include_header: bool = False) -> bool:
        """Open a new page (table header redrawn) if `need` does not fit.

        Returns True when a page break happened.
        """
        extra = HEADER_RESERVE if include_header else 0
        if self.y - (need + extra) < self.geometry.margin_bottom:
            self._new_page()
            self._start_table()
            return True
        return False

    def _money(self, amount: float) -> str:
        return format_money(amount, self.settings.currency, self.settings.locale)

    # -- blocks -----------------------------------------------------------

    def _header_block(self, invoice: Invoice) -> None:
        s = self.settings
        left = self.geometry.margin_left

        self._text("INVOICE", left, self.y, 18, FONT_BOLD, BLACK)
        self._right(s.company_name, self.x_right, self.y, 11, FONT_BOLD, BLACK)
        self.y -= 16
        addr = " • ".join(p for p in (s.company_address, f"TAX: {s.company_tax_id}" if s.company_tax_id else "") if p)
        self._right(addr, self.x_right, self.y, 9, FONT, GREY)
        if s.company_email:
            self.y -= 12
            self._right(s.company_email, self.x_right, self.y, 9, FONT, GREY)
        self.y -= 28

        self._text("Billed To", left, self.y, 9, FONT, GREY)
        self._text(invoice.customer, left, self.y - 14, 11, FONT_BOLD, BLACK)
        meta_y = self.y
        self.y -= 32
        if invoice.email:
            self._text(invoice.email, left, self.y, 10, FONT, BLACK)
            self.y -= 14
        if invoice.group_label:
            self._text(f"Project/Group: {invoice.group_label}", left, self.y, 10, FONT, BLACK)
            self.y -= 14

        self._right("Invoice Number", self.x_right, meta_y, 9, FONT, GREY)
        self._right(invoice.invoice_number, self.x_right, meta_y - 14, 11, FONT_BOLD, BLACK)
        self._right("Date of Issue", self.x_right, meta_y - 32, 9, FONT, GREY)
        date_baseline = meta_y - 46
        self._right(format_issue_date(self.issue_date, s.locale), self.x_right, date_baseline, 11, FONT_BOLD, BLACK)

        meta_bottom = date_baseline - META_TEXT_HEIGHT
        self.y = min(self.y, meta_bottom - GAP_BEFORE_TABLE)

    def _lines_per_page(self) -> int:
        """Description lines that fit on a fresh page below the table header."""
        g = self.geometry
        room = (g.height - g.margin_top - TABLE_HEADER_ADVANCE - g.margin_bottom
                - HEADER_RESERVE - ROW_PAD_TOP - ROW_PAD_BOTTOM)
        return max(1, int(room // LINE_HEIGHT))

    def _row(self, line: InvoiceLine) -> None:
        desc_lines = wrap_text(line.description, self.w_desc - CELL_PAD * 2)
        per_page = self._lines_per_page()
        # a description taller than a page continues on the next one; amounts stay on the first part
        for start in range(0, len(desc_lines), per_page):
            self._row_part(line if start == 0 else None, desc_lines[start:start + per_page])

    def _row_part(self, line: InvoiceLine | None, desc_lines: list[str]) -> None:
        row_height = len(desc_lines) * LINE_HEIGHT + ROW_PAD_TOP + ROW_PAD_BOTTOM
        self._ensure(row_height, include_header=True)

        top = self.y
        content_y = top - ROW_PAD_TOP - (LINE_HEIGHT - 2)
        if line is not None:
            self._right(format_quantity(line.quantity), self.x_qty + self.w_qty - CELL_PAD, content_y)
            self._right(self._money(line.unit_price), self.x_unit + self.w_unit - CELL_PAD, content_y)
            self._right(self._money(line.line_total), self.x_total + self.w_total - CELL_PAD, content_y,
                        BODY_SIZE, FONT_BOLD)
        for i, text in enumerate(desc_lines):
            self._text(text, self.x_desc + CELL_PAD, content_y - i * LINE_HEIGHT)

        # separator sits on the row's bottom edge, computed after the advance
        self.y = top - row_height
        self.page.ops.append(
            LineOp(self.geometry.margin_left, self.y, self.x_right, self.y, 0.5, LIGHT_GREY)
        )

    def _totals(self, total: float) -> None:
        self.y -= TOTAL_GAP
        self._ensure(TOTAL_NEED)
        self._right("Grand Total", self.x_total - CELL_PAD, self.y, 12, FONT_BOLD, BLACK)
        self._right(self._money(total), self.x_right, self.y, 12, FONT_BOLD, BLACK)

    def _watermark(self) -> None:
        for page in self.pages:
            page.ops.append(
                TextOp(
                    self.settings.watermark_text,
                    WATERMARK_X,
                    WATERMARK_Y,
                    WATERMARK_SIZE,
                    FONT_BOLD,
                    BLACK,
                    opacity=WATERMARK_OPACITY,
                    angle=WATERMARK_ANGLE,
                )
            )

    def layout(self, invoice: Invoice) -> list[LayoutPage]:
        self.pages = []
        self._new_page()
        self._header_block(invoice)
        if not self._ensure(0):
            self._start_table()

        total = 0.0
        for line in invoice.lines:
            self._row(line)
            total += line.line_total
        self._totals(total)

        if self.settings.watermark:
            self._watermark()
        logger.debug("invoice=%s lines=%d pages=%d", invoice.invoice_number, len(invoice.lines), len(self.pages))
        return self.pages


def layout_invoice(
    invoice: Invoice,
    settings: Settings,
    *,
    issue_date: date | None = None,
    geometry: PageGeometry = A4,
) -> list[LayoutPage]:
    """Lay out one invoice into ordered pages."""
    engine = InvoiceLayout(settings, issue_date=issue_date or date.today(), geometry=geometry)
    return engine.layout(invoice)
