from __future__ import annotations

from io import BytesIO

from reportlab.pdfgen import canvas

from ..models.settings import A4, PageGeometry
from .engine import LayoutPage, LineOp, RectOp, TextOp

"""Render layout pages to PDF bytes with reportlab.

The canvas runs in invariant mode (fixed creation date and document id) so
identical pages always produce identical bytes.
"""

__all__ = [
    "render_pdf",
]


def _draw_text(c: canvas.Canvas, op: TextOp) -> None:
    c.saveState()
    c.setFillColorRGB(*op.color)
    if op.opacity < 1.0:
        c.setFillAlpha(op.opacity)
    c.setFont(op.font, op.size)
    if op.angle:
        c.translate(op.x, op.y)
        c.rotate(op.angle)
        c.drawString(0, 0, op.text)
    else:
        c.drawString(op.x, op.y, op.text)
    c.restoreState()


def _draw_rect(c: canvas.Canvas, op: RectOp) -> None:
    c.saveState()
    c.setFillColorRGB(*op.color)
    c.rect(op.x, op.y, op.width, op.height, stroke=0, fill=1)
    c.restoreState()


def _draw_line(c: canvas.Canvas, op: LineOp) -> None:
    c.saveState()
    c.setStrokeColorRGB(*op.color)
    c.setLineWidth(op.width)
    c.line(op.x1, op.y1, op.x2, op.y2)
    c.restoreState()


def render_pdf(
    pages: list[LayoutPage],
    geometry: PageGeometry = A4,
    *,
    title: str = "",
    author: str = "",
) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(geometry.width, geometry.height), invariant=1)
    if title:
        c.setTitle(title)
    if author:
        c.setAuthor(author)
    for page in pages:
        for op in page.ops:
            if isinstance(op, TextOp):
                _draw_text(c, op)
            elif isinstance(op, RectOp):
                _draw_rect(c, op)
            elif isinstance(op, LineOp):
                _draw_line(c, op)
        c.showPage()
    c.save()
    return buf.getvalue()
