from __future__ import annotations

import logging
import re
from dataclasses import replace

from ..logging.diagnostics import ID_COLLISION, DiagnosticsBuffer
from ..models.record import NormalizedRecord

"""Deterministic record identifiers.

The id is derived from record content plus the origin row ordinal, so a
re-ingestion of unchanged data yields the same ids. IdentityAssigner holds
the per-run set of issued ids and disambiguates exact collisions with a
numeric suffix (-1, -2, ...).
"""

__all__ = [
    "MAX_ID_LENGTH",
    "compose_record_id",
    "IdentityAssigner",
]

MAX_ID_LENGTH = 100
NAME_PART_LENGTH = 30
PHONE_PART_LENGTH = 11

_WS_RE = re.compile(r"\s+")
_NON_ID_RE = re.compile(r"[^a-zA-Z0-9-]")
_HYPHENS_RE = re.compile(r"-+")
_NON_DIGIT_RE = re.compile(r"\D")

logger = logging.getLogger(__name__)


def compose_record_id(tax_id: str, name: str, birth_date: str, phone: str, ordinal: int) -> str:
    """Composite id before collision handling.

    With a tax id: {tax_id}-{name}-{birth}-{ordinal}
    Without:       paciente-{name}-{birth}-{phone digits}-{ordinal}
    """
    name_part = _WS_RE.sub("-", name.strip()).lower()[:NAME_PART_LENGTH]
    birth_part = birth_date.lower().replace("/", "-")
    tax_id = tax_id.strip()
    if tax_id:
        base = f"{tax_id}-{name_part}-{birth_part}-{ordinal}"
    else:
        phone_part = _NON_DIGIT_RE.sub("", phone)[:PHONE_PART_LENGTH]
        base = f"paciente-{name_part}-{birth_part}-{phone_part}-{ordinal}"
    cleaned = _HYPHENS_RE.sub("-", _NON_ID_RE.sub("-", base)).lower()
    return cleaned[:MAX_ID_LENGTH]


class IdentityAssigner:
    """Issues unique ids within one ingestion run."""

    def __init__(self, diagnostics: DiagnosticsBuffer | None = None) -> None:
        self._issued: set[str] = set()
        self._diagnostics = diagnostics
        self.collisions = 0

    def unique_id(self, candidate: str) -> str:
        if candidate not in self._issued:
            self._issued.add(candidate)
            return candidate
        counter = 1
        new_id = f"{candidate}-{counter}"
        while new_id in self._issued:
            counter += 1
            new_id = f"{candidate}-{counter}"
        self._issued.add(new_id)
        self.collisions += 1
        return new_id

    def assign(self, record: NormalizedRecord) -> NormalizedRecord:
        """Record with a run-unique id (the same object when no collision)."""
        new_id = self.unique_id(record.id)
        if new_id == record.id:
            return record
        logger.warning("duplicate id %s for row %d; renamed to %s", record.id, record.row_number, new_id)
        if self._diagnostics is not None:
            self._diagnostics.report(
                record.row_number, "id", ID_COLLISION, f"id renamed to {new_id}", value=record.id
            )
        return replace(record, id=new_id)
