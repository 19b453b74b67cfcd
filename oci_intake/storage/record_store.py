from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from ..models.record import NormalizedRecord

"""Record store: key-value persistence of the last successful record list.

The ingestion core never touches the store; the sync service loads it at
start-up and saves after every successful run (whole list, no merge).
"""

__all__ = [
    "RecordStore",
    "JsonRecordStore",
]

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def load(self) -> list[NormalizedRecord]: ...

    def save(self, records: list[NormalizedRecord]) -> None: ...


class JsonRecordStore:
    """Record list persisted as a single JSON array file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> list[NormalizedRecord]:
        """Stored records; empty when the file is missing or unreadable."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("record store %s unreadable, starting empty: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.warning("record store %s does not hold a list, starting empty", self.path)
            return []
        records: list[NormalizedRecord] = []
        for item in data:
            try:
                records.append(NormalizedRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("record store %s: skipping invalid entry: %s", self.path, e)
        return records

    def save(self, records: list[NormalizedRecord]) -> None:
        """Replace the stored list (written to a temp file, then renamed)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = [r.to_dict() for r in records]
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)
