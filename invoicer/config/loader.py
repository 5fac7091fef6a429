from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.settings import Settings

"""Config loader.

Responsibilities:
- Load the YAML config (config/invoice.yml by default)
- Validate it against invoicer/contracts/config_schema.json
- Apply defaults and build frozen config objects

The mapping section is kept as a plain dict: it is resolved against the
columns of the workbook later (restore_mapping), since column names are only
known after the sheet has been read.
"""

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/invoice.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class OutputConfig:
    directory: str = "./out"
    archive: str = "directory"  # directory | zip
    skip_invalid: bool = True


@dataclass(frozen=True)
class AppConfig:
    settings: Settings
    output: OutputConfig
    mapping: dict[str, Any] | None = None  # None -> guess from headers
    issue_date: date | None = None
    source: Path | None = field(default=None, compare=False)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {location}: {e.message}") from e


def parse_issue_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigError(f"invalid issue_date: {value!r}") from e


def _build_settings(raw: dict[str, Any]) -> Settings:
    defaults = Settings()
    tax = raw.get("company_tax_id", defaults.company_tax_id)
    return Settings(
        company_name=raw.get("company_name", defaults.company_name),
        company_email=raw.get("company_email", defaults.company_email),
        company_address=raw.get("company_address", defaults.company_address),
        company_tax_id="" if tax is None else str(tax),
        currency=str(raw.get("currency", defaults.currency)).upper(),
        locale=raw.get("locale", defaults.locale),
        watermark=bool(raw.get("watermark", defaults.watermark)),
        watermark_text=raw.get("watermark_text", defaults.watermark_text),
        file_name_pattern=raw.get("file_name_pattern", defaults.file_name_pattern),
    )


def config_from_dict(data: dict[str, Any], source: Path | None = None) -> AppConfig:
    data = dict(data)
    # YAML turns 2024-05-01 into a date; the schema expects the ISO string
    if isinstance(data.get("issue_date"), date):
        data["issue_date"] = data["issue_date"].isoformat()

    _validate_config_schema(data)

    out_raw = data.get("output") or {}
    defaults = OutputConfig()
    output = OutputConfig(
        directory=out_raw.get("directory", defaults.directory),
        archive=out_raw.get("archive", defaults.archive),
        skip_invalid=bool(out_raw.get("skip_invalid", defaults.skip_invalid)),
    )
    mapping = data.get("mapping")
    return AppConfig(
        settings=_build_settings(data.get("settings") or {}),
        output=output,
        mapping=dict(mapping) if mapping else None,
        issue_date=parse_issue_date(data.get("issue_date")),
        source=source,
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return config_from_dict(data, source=path)
