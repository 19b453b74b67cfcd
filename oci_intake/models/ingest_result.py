from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .column_map import ColumnLayout
from .record import NormalizedRecord, Status

"""Result models for ingestion runs and aggregate statistics.

IngestResult carries the accepted records of one run together with the run
metrics used for the SUMMARY line. The *Stat classes are the aggregate
entities: derived, recomputed on every read, never persisted.
"""

__all__ = [
    "IngestResult",
    "CategoryStat",
    "StatusStat",
    "MonthlyStat",
]


@dataclass(frozen=True)
class IngestResult:
    """Records and metrics of a single ingestion run."""
    records: list[NormalizedRecord]
    total_rows: int  # rows in the payload, header rows included
    accepted_rows: int
    rejected_rows: int  # blank / sentinel / nameless rows after the header
    collisions: int  # ids disambiguated with a numeric suffix
    layout: ColumnLayout
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    diagnostics: int = 0  # diagnostic records written during the run
    diagnostic_kinds: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CategoryStat:
    category: str  # enum value, or retained raw text
    count: int
    percent: float  # against the full record count


@dataclass(frozen=True)
class StatusStat:
    status: Status
    count: int
    percent: float  # against the full record count


@dataclass(frozen=True)
class MonthlyStat:
    """Visits of one calendar month.

    visits_percent is against the total record count; completed_percent and
    pending_percent are against the totals of completed and pending records.
    """
    month: str  # "Janeiro 2025"
    visits: int
    completed: int
    pending: int  # neither completed nor cancelled
    outstanding: int  # pending and due today or later
    visits_percent: float
    completed_percent: float
    pending_percent: float
