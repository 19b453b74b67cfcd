from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from ..logging.diagnostics import DiagnosticsBuffer
from ..models.config_models import IngestionSettings
from ..models.ingest_result import IngestResult
from ..models.record import NormalizedRecord
from .builder import build_record
from .columns import resolve_layout
from .identity import IdentityAssigner
from .progress import RowProgress

"""Ingestion orchestration: raw payload -> list of normalized records.

One run resolves the columns once, builds every data row, de-duplicates ids
and returns the complete record list. A run either completes or raises
IngestionError; no partial list is ever returned.
"""

__all__ = [
    "IngestionError",
    "validate_payload",
    "ingest_payload",
    "ingest",
]

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Run-level failure: the payload as a whole cannot be ingested."""


def validate_payload(raw_rows: Any) -> list[Sequence[Any] | None]:
    """Check the payload is a sequence of row sequences.

    None rows are tolerated (treated as blank). Strings are rejected both as
    payload and as rows since they would be iterated character by character.

    Raises:
        IngestionError: If the payload is malformed
    """
    if raw_rows is None:
        raise IngestionError("payload is empty (None)")
    if isinstance(raw_rows, (str, bytes)) or not isinstance(raw_rows, Sequence):
        raise IngestionError(f"payload must be a sequence of rows, got {type(raw_rows).__name__}")
    rows: list[Sequence[Any] | None] = []
    for position, row in enumerate(raw_rows):
        if row is not None and (isinstance(row, (str, bytes)) or not isinstance(row, Sequence)):
            raise IngestionError(f"row {position + 1} is not a sequence of cells: {type(row).__name__}")
        rows.append(row)
    return rows


def ingest_payload(
    raw_rows: Any,
    *,
    settings: IngestionSettings | None = None,
    diagnostics: DiagnosticsBuffer | None = None,
    today: date | None = None,
) -> IngestResult:
    """Run one ingestion pass and return records plus run metrics.

    Args:
        raw_rows: 2-D payload of text cells
        settings: Ingestion settings (defaults: IngestionSettings())
        diagnostics: Optional sink; a private buffer is used when omitted
        today: Reference date for fallbacks and due dates

    Returns:
        IngestResult with the accepted records in payload order

    Raises:
        IngestionError: If the payload is malformed
    """
    start_time = datetime.now(UTC)
    settings = settings or IngestionSettings()
    today = today or date.today()
    if diagnostics is None:
        diagnostics = DiagnosticsBuffer()
    kinds_before = diagnostics.counts_by_kind()

    rows = validate_payload(raw_rows)
    layout = resolve_layout(rows, scan_rows=settings.header_scan_rows)
    data_rows = rows[layout.data_start:]
    logger.info(
        "rows=%d header_row=%s data_rows=%d",
        len(rows),
        "none" if layout.header_index is None else layout.header_index + 1,
        len(data_rows),
    )

    assigner = IdentityAssigner(diagnostics)
    records: list[NormalizedRecord] = []
    with RowProgress(len(data_rows)) as progress:
        for offset, row in enumerate(data_rows):
            ordinal = layout.data_start + offset + 1
            record = build_record(
                row,
                layout.columns,
                ordinal,
                settings=settings,
                diagnostics=diagnostics,
                today=today,
            )
            progress.advance(record is not None)
            if record is None:
                logger.debug("row %d skipped", ordinal)
                continue
            records.append(assigner.assign(record))

    if not records and data_rows:
        logger.warning("no records built from %d data rows; check the sheet layout", len(data_rows))

    kinds_after = diagnostics.counts_by_kind()
    run_kinds = {
        kind: count - kinds_before.get(kind, 0)
        for kind, count in kinds_after.items()
        if count - kinds_before.get(kind, 0) > 0
    }
    end_time = datetime.now(UTC)
    return IngestResult(
        records=records,
        total_rows=len(rows),
        accepted_rows=len(records),
        rejected_rows=len(data_rows) - len(records),
        collisions=assigner.collisions,
        layout=layout,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        diagnostics=sum(run_kinds.values()),
        diagnostic_kinds=run_kinds,
    )


def ingest(
    raw_rows: Any,
    *,
    settings: IngestionSettings | None = None,
    diagnostics: DiagnosticsBuffer | None = None,
    today: date | None = None,
) -> list[NormalizedRecord]:
    """Normalized records of a raw payload (see ingest_payload)."""
    return ingest_payload(raw_rows, settings=settings, diagnostics=diagnostics, today=today).records
