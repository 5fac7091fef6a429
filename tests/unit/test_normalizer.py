from __future__ import annotations

import pytest

from invoicer.excel.grid import EmptySheetError, TableStructureError
from invoicer.excel.headers import infer_header
from invoicer.excel.normalizer import NoDataRowsError, load_sheet_data, normalize_rows
from invoicer.models.cell import Cell, CellValue, SheetCells


def test_normalize_rows_scenario():
    grid = [["Name", "Qty", "Price"], ["", "", ""], ["Alice", "2", "10"], ["Bob", "1", "5"]]
    rows = normalize_rows(grid, infer_header(grid))
    assert rows == [
        {"Name": "Alice", "Qty": "2", "Price": "10"},
        {"Name": "Bob", "Qty": "1", "Price": "5"},
    ]


def test_blank_data_rows_are_dropped():
    grid = [["Name", "Qty"], ["Alice", "2"], ["", " "], ["Bob", "1"]]
    rows = normalize_rows(grid, infer_header(grid))
    assert [r["Name"] for r in rows] == ["Alice", "Bob"]


def test_ragged_rows_are_padded_and_truncated():
    header = infer_header([["Name", "Qty"], ["Alice", "2"]])
    rows = normalize_rows([["Name", "Qty"], ["Alice"], ["Bob", "1", "extra"]], header)
    assert rows == [{"Name": "Alice", "Qty": ""}, {"Name": "Bob", "Qty": "1"}]


def test_header_only_raises_no_data_rows():
    grid = [["Name", "Qty"]]
    with pytest.raises(NoDataRowsError):
        normalize_rows(grid, infer_header(grid))
    assert issubclass(NoDataRowsError, TableStructureError)


def test_load_sheet_data_runs_all_stages():
    cells = {
        (0, 0): Cell(CellValue.text("Customer")),
        (0, 1): Cell(CellValue.text("Qty")),
        (1, 0): Cell(CellValue.text("Alice")),
        (1, 1): Cell(CellValue.number(3)),
    }
    data = load_sheet_data(SheetCells(name="S", cells=cells))
    assert data.sheet_name == "S"
    assert data.columns == ["Customer", "Qty"]
    assert data.rows == [{"Customer": "Alice", "Qty": "3"}]
    assert data.header_depth == 1


def test_load_sheet_data_empty_sheet():
    with pytest.raises(EmptySheetError):
        load_sheet_data(SheetCells(name="S"))
