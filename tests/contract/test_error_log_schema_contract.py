from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from invoicer.logging.error_log import ErrorLogBuffer, ErrorRecord

"""Error log JSON schema contract test (invoicer/contracts/error_log_schema.json)."""

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "invoicer" / "contracts" / "error_log_schema.json"


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_error_log_schema_valid_example(schema):
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "march.xlsx",
        "invoice": 2,
        "invoice_number": "INV-3",
        "error_type": "VALIDATION_ERROR",
        "message": "missing or invalid: Quantity",
    }
    jsonschema.validate(record, schema)


def test_error_log_schema_rejects_extra_key(schema):
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "march.xlsx",
        "invoice": 2,
        "invoice_number": "INV-3",
        "error_type": "VALIDATION_ERROR",
        "message": "x",
        "extra": "not allowed",
    }
    with pytest.raises(ValidationError):
        jsonschema.validate(record, schema)


@pytest.mark.parametrize("field,value", [("invoice", -2), ("error_type", "validation error"), ("timestamp", "yesterday")])
def test_error_log_schema_rejects_bad_values(schema, field, value):
    record = ErrorRecord.create("f.xlsx", 0, "INV-1", "VALIDATION_ERROR", "m")
    data = json.loads(record.to_json_line())
    data[field] = value
    with pytest.raises(ValidationError):
        jsonschema.validate(data, schema)


def test_flushed_records_match_schema(schema, tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(ErrorRecord.create("f.xlsx", -1, "", "WORKBOOK_ERROR", "sheet is empty"))
    buf.append(ErrorRecord.create("f.xlsx", 4, "INV-5", "RENDER_ERROR", "boom"))
    path = buf.flush()
    for line in path.read_text(encoding="utf-8").splitlines():
        jsonschema.validate(json.loads(line), schema)
