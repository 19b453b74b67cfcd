"""Domain models for the OCI patient intake pipeline.

This package contains the record, column mapping, configuration, diagnostic
and result models used throughout the application.
"""

from .column_map import FIELD_ORDER, ColumnLayout, ColumnMap
from .config_models import IngestionSettings, IntakeConfig, SourceConfig, StorageConfig
from .diagnostic_record import DiagnosticRecord
from .ingest_result import CategoryStat, IngestResult, MonthlyStat, StatusStat
from .record import Category, NormalizedRecord, Status

__all__ = [
    # Record models
    "Category",
    "Status",
    "NormalizedRecord",
    # Column models
    "FIELD_ORDER",
    "ColumnMap",
    "ColumnLayout",
    # Configuration models
    "IngestionSettings",
    "IntakeConfig",
    "SourceConfig",
    "StorageConfig",
    # Processing models
    "DiagnosticRecord",
    "IngestResult",
    "CategoryStat",
    "StatusStat",
    "MonthlyStat",
]
