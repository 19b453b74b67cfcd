from __future__ import annotations

from pathlib import Path

import pytest

from oci_intake.config.loader import ConfigError, load_config


def test_load_config_ok(write_config: Path):
    cfg = load_config(write_config, env={})
    assert cfg.source.spreadsheet_id == "1AbCdEfGhIjKlMnOpQrStUvWxYz"
    assert cfg.source.sheet_name == "LIMOEIRO"
    assert cfg.source.range == "A1:K500"
    assert cfg.source.api_key is None
    assert cfg.ingestion.due_days == 30
    assert cfg.ingestion.header_scan_rows == 3
    assert cfg.storage.records_path == "./data/records.json"
    assert cfg.logs_directory == "./logs"


def test_minimal_config_gets_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text("source:\n  spreadsheet_id: abc\n", encoding="utf-8")
    cfg = load_config(p, env={})
    assert cfg.source.timeout_seconds == 30.0
    assert cfg.ingestion.retain_raw_category is False
    assert cfg.ingestion.min_visit_year == 2000


def test_env_overrides_file(write_config: Path):
    cfg = load_config(write_config, env={"OCI_SPREADSHEET_ID": "from-env", "OCI_SHEETS_API_KEY": "k"})
    assert cfg.source.spreadsheet_id == "from-env"
    assert cfg.source.api_key == "k"


def test_spreadsheet_url_is_converted(temp_workdir: Path):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text(
        "source:\n  spreadsheet_url: https://docs.google.com/spreadsheets/d/1XyZ-abc_9/edit#gid=0\n",
        encoding="utf-8",
    )
    assert load_config(p, env={}).source.spreadsheet_id == "1XyZ-abc_9"


def test_bad_spreadsheet_url(temp_workdir: Path):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text("source:\n  spreadsheet_url: https://example.com/sheet\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="cannot extract"):
        load_config(p, env={})


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml", env={})


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text("source: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p, env={})


def test_root_must_be_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p, env={})


@pytest.mark.parametrize(
    "text",
    [
        "ingestion:\n  due_days: 30\n",
        "source:\n  spreadsheet_id: a\n  unknown: 1\n",
        "source:\n  spreadsheet_id: a\n  range: 'a1-k9'\n",
        "source:\n  spreadsheet_id: a\ningestion:\n  due_days: -1\n",
        "source:\n  spreadsheet_id: a\nextra: true\n",
    ],
)
def test_schema_violations(temp_workdir: Path, text: str):
    p = temp_workdir / "config" / "intake.yml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="validation failed"):
        load_config(p, env={})
