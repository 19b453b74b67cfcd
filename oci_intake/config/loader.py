from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import IngestionSettings, IntakeConfig, SourceConfig, StorageConfig
from ..sheets.fetch import extract_spreadsheet_id

"""Config loader.

Responsibilities:
- Load YAML config (default config/intake.yml)
- Validate against config_schema.json (unknown keys rejected)
- Apply defaults for every optional section
- Apply environment overrides (OCI_SPREADSHEET_ID, OCI_SHEETS_API_KEY),
  which take precedence over the file
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/intake.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

ENV_SPREADSHEET_ID = "OCI_SPREADSHEET_ID"
ENV_API_KEY = "OCI_SHEETS_API_KEY"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails validation (missing keys, wrong types, unknown keys)
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


def _source(raw: Mapping[str, Any], env: Mapping[str, str]) -> SourceConfig:
    spreadsheet_id = raw.get("spreadsheet_id")
    if not spreadsheet_id and raw.get("spreadsheet_url"):
        spreadsheet_id = extract_spreadsheet_id(raw["spreadsheet_url"])
        if spreadsheet_id is None:
            raise ConfigError(f"cannot extract spreadsheet id from url: {raw['spreadsheet_url']}")
    defaults = SourceConfig(spreadsheet_id=None)
    return SourceConfig(
        spreadsheet_id=env.get(ENV_SPREADSHEET_ID) or spreadsheet_id,
        sheet_name=raw.get("sheet_name", defaults.sheet_name),
        api_key=env.get(ENV_API_KEY) or raw.get("api_key"),
        range=raw.get("range", defaults.range),
        timeout_seconds=float(raw.get("timeout_seconds", defaults.timeout_seconds)),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH, env: Mapping[str, str] | None = None) -> IntakeConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    env = os.environ if env is None else env
    ingestion = IngestionSettings(**data.get("ingestion", {}))
    storage = StorageConfig(**data.get("storage", {}))
    return IntakeConfig(
        source=_source(data["source"], env),
        ingestion=ingestion,
        storage=storage,
        logs_directory=data.get("logs_directory", "./logs"),
    )
