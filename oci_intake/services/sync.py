from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from ..logging.diagnostics import DiagnosticsBuffer
from ..models.config_models import IngestionSettings
from ..models.ingest_result import IngestResult
from ..models.record import NormalizedRecord
from ..sheets.fetch import FetchError
from ..sheets.reader import PayloadError
from ..storage.record_store import RecordStore
from .ingest import IngestionError, ingest_payload

"""Sync service: fetch -> ingest -> replace the record list.

The current record list is replaced wholesale only by a successful run. A
failed fetch or ingestion leaves the previous list (and the store) untouched
and is reported through last_error. Re-entrant calls are refused with a busy
flag: the pipeline itself has no locking.
"""

__all__ = [
    "SyncStatus",
    "SyncOutcome",
    "SyncService",
]

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # another sync was in flight


@dataclass(frozen=True)
class SyncOutcome:
    status: SyncStatus
    result: IngestResult | None = None
    error: str | None = None


class SyncService:
    """Owns the current record list of the application."""

    def __init__(
        self,
        fetch: Callable[[], Sequence[Sequence[Any]]],
        store: RecordStore | None = None,
        settings: IngestionSettings | None = None,
        diagnostics: DiagnosticsBuffer | None = None,
    ) -> None:
        self._fetch = fetch
        self._store = store
        self._settings = settings or IngestionSettings()
        self._diagnostics = diagnostics
        self._busy = False
        self.records: list[NormalizedRecord] = store.load() if store is not None else []
        self.last_error: str | None = None
        self.last_synced_at: datetime | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    def sync(self, today: date | None = None) -> SyncOutcome:
        if self._busy:
            logger.info("sync already in progress; skipped")
            return SyncOutcome(status=SyncStatus.SKIPPED)
        self._busy = True
        try:
            raw_rows = self._fetch()
            result = ingest_payload(
                raw_rows,
                settings=self._settings,
                diagnostics=self._diagnostics,
                today=today,
            )
        except (FetchError, PayloadError, IngestionError) as e:
            self.last_error = str(e)
            logger.error("sync failed; keeping %d records: %s", len(self.records), e)
            return SyncOutcome(status=SyncStatus.FAILED, error=str(e))
        else:
            self.records = list(result.records)
            self.last_error = None
            self.last_synced_at = datetime.now(UTC)
            self._save()
            logger.info("sync ok: %d records", len(self.records))
            return SyncOutcome(status=SyncStatus.SUCCESS, result=result)
        finally:
            self._busy = False

    def _save(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self.records)
        except OSError as e:
            # In-memory list stays current; the store catches up on the next sync.
            self.last_error = f"store save failed: {e}"
            logger.error("record store save failed: %s", e)
