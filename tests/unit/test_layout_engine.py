from __future__ import annotations

from datetime import date

from invoicer.layout.engine import (
    CELL_PAD,
    LINE_HEIGHT,
    ROW_PAD_BOTTOM,
    ROW_PAD_TOP,
    InvoiceLayout,
    LineOp,
    RectOp,
    TextOp,
    layout_invoice,
    text_width,
    wrap_text,
)
from invoicer.models.invoice import Invoice, InvoiceLine
from invoicer.models.settings import A4, Settings

ISSUE = date(2024, 5, 1)
SETTINGS = Settings(company_name="Acme Ltd", company_address="1 Main St", company_tax_id="T-1")


def _invoice(lines: list[InvoiceLine], **kw) -> Invoice:
    base = dict(customer="Alice", email="alice@example.com", group_label="", invoice_number="INV-1")
    base.update(kw)
    return Invoice(lines=tuple(lines), **base)


def _description_with_lines(engine: InvoiceLayout, n: int) -> str:
    words: list[str] = []
    width = engine.w_desc - CELL_PAD * 2
    while len(wrap_text(" ".join(words), width)) < n or not words:
        words.append("consulting")
    return " ".join(words)


def test_wrap_text_greedy():
    text = "alpha beta gamma delta epsilon zeta eta theta"
    lines = wrap_text(text, 80)
    assert len(lines) > 1
    assert " ".join(lines) == text
    for line in lines:
        assert text_width(line) <= 80 or " " not in line


def test_wrap_text_long_word_and_empty():
    assert wrap_text("Supercalifragilisticexpialidocious", 20) == ["Supercalifragilisticexpialidocious"]
    assert wrap_text("", 100) == [""]
    assert wrap_text("   ", 100) == [""]


def test_single_page_invoice_contents():
    inv = _invoice([InvoiceLine.create("Design", 2, 100), InvoiceLine.create("Hosting", 1, 50)], group_label="Web")
    pages = layout_invoice(inv, SETTINGS, issue_date=ISSUE)
    assert len(pages) == 1
    texts = pages[0].texts()
    for expected in ("INVOICE", "Acme Ltd", "1 Main St • TAX: T-1", "Billed To", "Alice", "alice@example.com",
                     "Project/Group: Web", "Invoice Number", "INV-1", "Date of Issue", "05/01/2024",
                     "Description", "Qty", "Unit Price", "Total", "Design", "$200.00", "Grand Total", "$250.00"):
        assert expected in texts
    assert texts.index("Description") < texts.index("Design") < texts.index("Grand Total")


def test_company_email_drawn_under_company_name():
    settings = Settings(company_name="Acme Ltd", company_email="billing@acme.test", company_address="1 Main St")
    pages = layout_invoice(_invoice([InvoiceLine.create("Design", 1, 1)]), settings, issue_date=ISSUE)
    ops = {op.text: op for op in pages[0].ops if isinstance(op, TextOp)}
    assert "billing@acme.test" in pages[0].texts()
    email = ops["billing@acme.test"]
    assert email.y < ops["1 Main St"].y < ops["Acme Ltd"].y
    assert abs(email.x + text_width(email.text, size=email.size) - (A4.width - A4.margin_right)) < 1e-6


def test_row_separator_sits_on_row_bottom():
    engine = InvoiceLayout(SETTINGS, issue_date=ISSUE)
    engine._new_page()
    engine.y = 500
    engine._row(InvoiceLine.create("Short", 1, 1))
    row_height = LINE_HEIGHT + ROW_PAD_TOP + ROW_PAD_BOTTOM
    assert engine.y == 500 - row_height
    lines = [op for op in engine.page.ops if isinstance(op, LineOp)]
    assert len(lines) == 1
    assert lines[0].y1 == lines[0].y2 == 500 - row_height
    desc = next(op for op in engine.page.ops if isinstance(op, TextOp) and op.text == "Short")
    assert desc.y == 500 - ROW_PAD_TOP - (LINE_HEIGHT - 2)


def test_row_that_does_not_fit_breaks_page_with_table_header_first():
    engine = InvoiceLayout(SETTINGS, issue_date=ISSUE)
    engine._new_page()
    engine._start_table()
    description = _description_with_lines(engine, 4)
    assert len(wrap_text(description, engine.w_desc - CELL_PAD * 2)) == 4
    # room for two text lines plus row padding
    engine.y = A4.margin_bottom + 2 * LINE_HEIGHT + ROW_PAD_TOP + ROW_PAD_BOTTOM

    engine._row(InvoiceLine.create(description, 1, 10))

    assert len(engine.pages) == 2
    first, second = engine.pages
    assert not any(isinstance(op, TextOp) and op.text.startswith("consulting") for op in first.ops)
    assert isinstance(second.ops[0], RectOp)
    texts = second.texts()
    assert texts[:4] == ["Description", "Qty", "Unit Price", "Total"]
    assert sum(1 for t in texts if t.startswith("consulting")) == 4


def test_long_invoice_paginates_and_repeats_table_header():
    lines = [InvoiceLine.create(f"Item {i}", 1, 1) for i in range(60)]
    pages = layout_invoice(_invoice(lines), SETTINGS, issue_date=ISSUE)
    assert len(pages) > 1
    for page in pages:
        assert "Description" in page.texts()
        for op in page.ops:
            if isinstance(op, TextOp) and op.opacity == 1.0:
                assert op.y >= A4.margin_bottom - LINE_HEIGHT
    assert "Grand Total" in pages[-1].texts()
    assert "$60.00" in pages[-1].texts()
    # every row appears exactly once
    all_texts = [t for p in pages for t in p.texts()]
    assert sum(1 for t in all_texts if t.startswith("Item ")) == 60


def test_watermark_on_every_page():
    settings = Settings(watermark=True, watermark_text="DRAFT")
    lines = [InvoiceLine.create(f"Item {i}", 1, 1) for i in range(60)]
    pages = layout_invoice(_invoice(lines), settings, issue_date=ISSUE)
    for page in pages:
        marks = [op for op in page.ops if isinstance(op, TextOp) and op.text == "DRAFT"]
        assert len(marks) == 1
        assert marks[0].opacity < 0.1
        assert marks[0].angle == -30


def test_no_watermark_by_default():
    pages = layout_invoice(_invoice([InvoiceLine.create("x", 1, 1)]), Settings(), issue_date=ISSUE)
    assert all(op.opacity == 1.0 for op in pages[0].ops if isinstance(op, TextOp))


def test_layout_is_deterministic():
    inv = _invoice([InvoiceLine.create("Design work " * 20, 3, 12.5)])
    assert layout_invoice(inv, SETTINGS, issue_date=ISSUE) == layout_invoice(inv, SETTINGS, issue_date=ISSUE)


def test_totals_only_break_redraws_table_header():
    engine = InvoiceLayout(SETTINGS, issue_date=ISSUE)
    engine._new_page()
    engine.y = A4.margin_bottom + 30
    engine._totals(10)
    assert len(engine.pages) == 2
    texts = engine.pages[1].texts()
    assert texts[0] == "Description"
    assert "Grand Total" in texts


def test_description_taller_than_a_page_continues_on_next_page():
    engine = InvoiceLayout(SETTINGS, issue_date=ISSUE)
    description = " ".join(f"w{i:04d}" for i in range(1000))
    wrapped = wrap_text(description, engine.w_desc - CELL_PAD * 2)
    assert len(wrapped) > 70

    pages = engine.layout(_invoice([InvoiceLine.create(description, 3, 7)]))

    assert len(pages) >= 3
    x_desc = A4.margin_left + CELL_PAD
    drawn = [op for p in pages for op in p.ops if isinstance(op, TextOp) and op.x == x_desc]
    assert [op.text for op in drawn if op.text != "Description"] == wrapped
    for page in pages:
        for op in page.ops:
            if isinstance(op, TextOp):
                assert op.y >= A4.margin_bottom
        assert "Description" in page.texts()
    all_texts = [t for p in pages for t in p.texts()]
    assert all_texts.count("3") == 1
    assert all_texts.count("$7.00") == 1
    assert "Grand Total" in pages[-1].texts()
