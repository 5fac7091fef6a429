# Shared pytest fixtures
from __future__ import annotations
import logging
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
from openpyxl import Workbook

from invoicer.logging.init import LOGGER_NAME, reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    # handlers hold the stdout of the finished test
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """mapping:
  customer: Customer
  email: Email
  description: Description
  quantity: Qty
  unit_price: Unit Price
  group_by: Project
  grouping_enabled: false
settings:
  company_name: Acme Ltd
  company_email: billing@acme.test
  company_address: 1 Main St
  company_tax_id: 12345
  currency: USD
  locale: en-US
output:
  directory: ./out
  archive: directory
  skip_invalid: true
issue_date: 2024-05-01
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "invoice.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_xlsx(tmp_path: Path) -> Callable[..., Path]:
    """Build an .xlsx from rows (A1-anchored unless `origin` is given) and merge ranges."""
    def _make(
        rows: Iterable[Iterable[object]],
        *,
        name: str = "book.xlsx",
        merges: Iterable[str] = (),
        origin: tuple[int, int] = (1, 1),
        directory: Path | None = None,
    ) -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = "Sheet1"
        r0, c0 = origin
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is not None and value != "":
                    ws.cell(row=r0 + r, column=c0 + c, value=value)
        for rng in merges:
            ws.merge_cells(rng)
        path = (directory or tmp_path) / name
        wb.save(path)
        return path
    return _make


@pytest.fixture()
def invoice_rows() -> list[list[object]]:
    return [
        ["Customer", "Email", "Description", "Qty", "Unit Price", "Project"],
        ["Alice", "alice@example.com", "Website design", 2, 100, "Web"],
        ["Bob", "bob@example.com", "Hosting", 12, 5.5, "Ops"],
        ["Carol", "", "Consulting", 3, 80, "Web"],
    ]
