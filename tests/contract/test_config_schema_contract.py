from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from invoicer.config.loader import SCHEMA_PATH

"""Config schema contract test (invoicer/contracts/config_schema.json)."""

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft7(schema):
    jsonschema.Draft7Validator.check_schema(schema)


def test_shipped_example_config_is_valid(schema):
    data = yaml.safe_load((PROJECT_ROOT / "config" / "invoice.yml").read_text(encoding="utf-8"))
    jsonschema.validate(data, schema)


def test_minimal_config_is_valid(schema):
    jsonschema.validate({}, schema)
    jsonschema.validate({"mapping": None, "issue_date": None}, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"unknown": 1},
        {"mapping": {"customer": "Name", "colour": "red"}},
        {"mapping": {"grouping_enabled": "yes"}},
        {"settings": {"currency": ""}},
        {"settings": {"watermark": "on"}},
        {"output": {"archive": "tar"}},
        {"issue_date": "01/05/2024"},
    ],
)
def test_invalid_configs_are_rejected(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
