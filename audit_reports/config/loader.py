from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from types import MappingProxyType
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from audit_reports.models.config_models import (
    AttendanceConfig,
    FlattenConfig,
    ReportsConfig,
    SmtpConfig,
    WeeklyAuditConfig,
)

"""Config loader.

Responsibilities:
- Load YAML (default config/reports.yml)
- Validate against config_schema.json (unknown keys rejected)
- Apply defaults for every omitted section / key
- Freeze lists into tuples so the config tree stays immutable
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/reports.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the config data
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


def _check_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"config validation failed: unknown timezone '{name}'") from e
    return name


def _build_section(cls: type, raw: dict[str, Any] | None) -> Any:
    if not raw:
        return cls()
    known = {f.name for f in fields(cls)}
    kwargs = {k: _freeze(v) for k, v in raw.items() if k in known and v is not None}
    return cls(**kwargs)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ReportsConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top-level mapping expected")

    _validate_config_schema(data)

    defaults = ReportsConfig(workbook=data["workbook"])
    return ReportsConfig(
        workbook=data["workbook"],
        timezone=_check_timezone(data.get("timezone", defaults.timezone)),
        state_file=data.get("state_file", defaults.state_file),
        logs_dir=data.get("logs_dir", defaults.logs_dir),
        flatten=_build_section(FlattenConfig, data.get("flatten")),
        weekly_audit=_build_section(WeeklyAuditConfig, data.get("weekly_audit")),
        attendance=_build_section(AttendanceConfig, data.get("attendance")),
        smtp=_build_section(SmtpConfig, data.get("smtp")),
    )
