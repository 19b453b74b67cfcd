from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from oci_intake.models.diagnostic_record import DiagnosticRecord

"""Diagnostics sink: buffering of data-quality observations.

The pipeline reports repairs and rejected rows here instead of raising.
Records are kept in memory, echoed to the logger at DEBUG level and written
as JSON Lines on flush(); the file is named once per buffer
(`diagnostics-YYYYMMDD-HHMMSS.log`, UTC) and appended to on later flushes.
Single-threaded use only.
"""

__all__ = [
    "DiagnosticRecord",
    "DiagnosticsBuffer",
    "ROW_REJECTED",
    "UNMATCHED_STATUS",
    "UNMATCHED_CATEGORY",
    "CATEGORY_COLUMN_FALLBACK",
    "DATE_FALLBACK",
    "AGE_FALLBACK",
    "ID_COLLISION",
]

ROW_REJECTED = "ROW_REJECTED"
UNMATCHED_STATUS = "UNMATCHED_STATUS"
UNMATCHED_CATEGORY = "UNMATCHED_CATEGORY"
CATEGORY_COLUMN_FALLBACK = "CATEGORY_COLUMN_FALLBACK"
DATE_FALLBACK = "DATE_FALLBACK"
AGE_FALLBACK = "AGE_FALLBACK"
ID_COLLISION = "ID_COLLISION"

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

logger = logging.getLogger(__name__)


class DiagnosticsBuffer:
    """In-memory buffer for diagnostic records. Flush writes JSON Lines."""

    def __init__(self, logs_dir: Path | str = Path("./logs")) -> None:
        self._logs_dir = Path(logs_dir)
        self._records: list[DiagnosticRecord] = []
        self._kinds: Counter[str] = Counter()
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"diagnostics-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> tuple[DiagnosticRecord, ...]:
        return tuple(self._records)

    def report(self, row: int, field: str, kind: str, message: str, value: str = "") -> DiagnosticRecord:
        """Create and append a record in one call."""
        record = DiagnosticRecord.create(row=row, field=field, kind=kind, message=message, value=value)
        self.append(record)
        return record

    def append(self, record: DiagnosticRecord) -> None:
        self._records.append(record)
        self._kinds[record.kind] += 1
        logger.debug("row=%d field=%s kind=%s %s", record.row, record.field or "-", record.kind, record.message)

    def counts_by_kind(self) -> dict[str, int]:
        """Counts of every kind reported since creation (flush does not reset them)."""
        return dict(self._kinds)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when there was nothing to write."""
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
