from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.column_map import ColumnLayout, ColumnMap
from .canonicalize import normalize_text

"""Column resolution: header row detection and header cell classification.

The sheet keeps its fields in a stable logical schema but columns move and
headers are reworded between releases. Resolution starts from the positional
defaults of ColumnMap and lets a detected header row rebind fields.

Binding rules:
- rules are checked in table order, the first rule matching a cell classifies it
- tier 0 rules need two tokens, tier 1 rules are single-token fallbacks
- within a tier the last matching cell wins
- a field bound by a tier 0 match is never rebound by a tier 1 match
"""

__all__ = [
    "HEADER_SCAN_ROWS",
    "find_header_row",
    "classify_header_cell",
    "resolve_layout",
    "resolve_columns",
]

HEADER_SCAN_ROWS = 3

logger = logging.getLogger(__name__)

# (field, tier, tokens that must all be present, tokens that must be absent)
_HEADER_RULES: tuple[tuple[str, int, tuple[str, ...], tuple[str, ...]], ...] = (
    ("exams_done_flag", 0, ("exame", "realizad"), ()),
    ("current_status", 0, ("status", "atual"), ("exame",)),
    ("name", 0, ("nome", "paciente"), ()),
    ("mother_name", 0, ("nome", "mae"), ()),
    ("birth_date", 0, ("data", "nascimento"), ()),
    ("visit_date", 0, ("data", "consulta"), ()),
    ("category", 0, ("subgrupo", "oci"), ()),
    ("current_status", 1, ("status",), ("exame",)),
    ("attendance_flag", 1, ("comparec",), ()),
    ("category", 1, ("subgrupo",), ()),
    ("category", 1, ("motivo",), ()),
    ("tax_id", 1, ("cpf",), ()),
    ("phone", 1, ("telefone",), ()),
    ("phone", 1, ("celular",), ()),
    ("age", 1, ("idade",), ("cidade",)),
    ("birth_date", 1, ("nascimento",), ()),
    ("visit_date", 1, ("consulta",), ()),
    ("mother_name", 1, ("mae",), ()),
)


def _cell_text(row: Sequence[Any] | None, index: int) -> str:
    if row is None or index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _is_header_row(row: Sequence[Any] | None) -> bool:
    first = _cell_text(row, 0).lower()
    return "nome" in first and "paciente" in first


def find_header_row(rows: Sequence[Sequence[Any] | None], scan_rows: int = HEADER_SCAN_ROWS) -> int | None:
    """Index of the first header row within the first scan_rows rows."""
    return next(
        (i for i, row in enumerate(rows[:scan_rows]) if _is_header_row(row)),
        None,
    )


def classify_header_cell(cell: Any) -> tuple[str, int] | None:
    """(field, tier) of the first rule matching a header cell."""
    norm = normalize_text(None if cell is None else str(cell))
    if not norm:
        return None
    for field, tier, required, forbidden in _HEADER_RULES:
        if all(tok in norm for tok in required) and not any(tok in norm for tok in forbidden):
            return field, tier
    return None


def _header_overrides(header: Sequence[Any]) -> dict[str, int]:
    bound: dict[str, tuple[int, int]] = {}  # field -> (index, tier)
    for index, cell in enumerate(header):
        hit = classify_header_cell(cell)
        if hit is None:
            continue
        field, tier = hit
        previous = bound.get(field)
        if previous is not None and previous[1] < tier:
            continue
        bound[field] = (index, tier)
    return {field: index for field, (index, _tier) in bound.items()}


def resolve_layout(
    rows: Sequence[Sequence[Any] | None],
    scan_rows: int = HEADER_SCAN_ROWS,
    defaults: ColumnMap | None = None,
) -> ColumnLayout:
    """Resolve the column map and data start of a payload. Never raises."""
    defaults = defaults or ColumnMap()
    header_index = find_header_row(rows, scan_rows)
    if header_index is None:
        logger.debug("no header row in first %d rows; using positional columns", scan_rows)
        return ColumnLayout(columns=defaults, header_index=None, data_start=0)

    overrides = _header_overrides(rows[header_index] or ())
    columns = defaults.with_overrides(overrides)
    moved = {f: i for f, i in overrides.items() if defaults.index_of(f) != i}
    logger.debug("header row=%d bound=%d moved=%s", header_index, len(overrides), moved or "{}")
    return ColumnLayout(columns=columns, header_index=header_index, data_start=header_index + 1)


def resolve_columns(header_candidate_rows: Sequence[Sequence[Any] | None]) -> ColumnMap:
    """ColumnMap for the first rows of a payload (defaults when no header is found)."""
    return resolve_layout(header_candidate_rows).columns
