from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the intake pipeline.

These are the typed settings consumed by the services; the YAML loader in
oci_intake/config/loader.py builds them after schema validation.
"""

__all__ = [
    "IngestionSettings",
    "SourceConfig",
    "StorageConfig",
    "IntakeConfig",
]


@dataclass(frozen=True)
class IngestionSettings:
    """Knobs of one ingestion run.

    retain_raw_category keeps the source category text on each record so the
    category aggregate groups by it instead of the normalized enum.
    """
    header_scan_rows: int = 3
    due_days: int = 30
    retain_raw_category: bool = False
    min_visit_year: int = 2000
    future_year_window: int = 10  # visit years accepted up to current year + window


@dataclass(frozen=True)
class SourceConfig:
    """Where the raw payload comes from (Google Sheets)."""
    spreadsheet_id: str | None
    sheet_name: str = "LIMOEIRO"
    api_key: str | None = None
    range: str = "A1:K1000"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class StorageConfig:
    records_path: str = "./data/records.json"


@dataclass(frozen=True)
class IntakeConfig:
    """Root configuration object."""
    source: SourceConfig
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logs_directory: str = "./logs"
