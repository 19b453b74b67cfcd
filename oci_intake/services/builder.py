from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

from ..logging.diagnostics import (
    AGE_FALLBACK,
    CATEGORY_COLUMN_FALLBACK,
    DATE_FALLBACK,
    ROW_REJECTED,
    UNMATCHED_CATEGORY,
    UNMATCHED_STATUS,
    DiagnosticsBuffer,
)
from ..models.column_map import ColumnMap
from ..models.config_models import IngestionSettings
from ..models.record import Category, NormalizedRecord
from .canonicalize import (
    canonicalize_date,
    canonicalize_flag,
    canonicalize_status,
    format_display_date,
    is_valid_date_text,
    looks_like_display_date,
    match_category,
    match_status,
    parse_age,
    parse_display_date,
)
from .identity import compose_record_id

"""Record builder: one raw row -> one NormalizedRecord, or None.

Rows are rejected (None) when blank, nameless, or when the name cell holds a
header / organizational banner. Everything else is repaired with defaults and
reported to the diagnostics sink; the builder never raises.
"""

__all__ = [
    "NAME_SENTINELS",
    "BANNER_PREFIXES",
    "is_blank_row",
    "cell",
    "rejection_reason",
    "resolve_category_text",
    "build_record",
]

NAME_SENTINELS = frozenset({"nome", "nome do paciente"})
BANNER_PREFIXES = ("secretaria", "prefeitura")

BIRTH_MIN_YEAR = 1900


def cell(row: Sequence[Any] | None, index: int) -> str:
    """Bounds-safe, trimmed cell text ('' for missing or None cells)."""
    if row is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    return str(value).strip()


def is_blank_row(row: Sequence[Any] | None) -> bool:
    return row is None or not any(cell(row, i) for i in range(len(row)))


def rejection_reason(row: Sequence[Any] | None, columns: ColumnMap) -> str | None:
    """Why a row is not a data row, or None when it should be built."""
    if is_blank_row(row):
        return "blank row"
    name = cell(row, columns.name)
    if not name:
        return "empty name"
    lowered = name.lower()
    if lowered in NAME_SENTINELS:
        return "header row"
    if lowered.startswith(BANNER_PREFIXES):
        return "organizational banner"
    return None


def resolve_category_text(
    row: Sequence[Any],
    columns: ColumnMap,
    ordinal: int = 0,
    diagnostics: DiagnosticsBuffer | None = None,
) -> str:
    """Raw category text of a row, repairing a category column bound to a date.

    When the mapped category cell looks like DD/MM/YYYY the header detection
    bound the wrong column: any cell carrying a category keyword is used
    instead, then the default category column, else "".
    """
    text = cell(row, columns.category)
    if not looks_like_display_date(text):
        return text

    found = next(
        (cell(row, i) for i in range(len(row)) if match_category(cell(row, i), keywords_only=True)),
        None,
    )
    if found is None:
        default_text = cell(row, ColumnMap().category)
        if default_text and not looks_like_display_date(default_text):
            found = default_text
    if diagnostics is not None:
        diagnostics.report(
            ordinal,
            "category",
            CATEGORY_COLUMN_FALLBACK,
            f"category column {columns.category} holds a date; using {found!r}",
            value=text,
        )
    return found or ""


def _date_field(
    raw: str,
    field: str,
    ordinal: int,
    today: date,
    diagnostics: DiagnosticsBuffer | None,
    **window: int,
) -> str:
    value = canonicalize_date(raw, today=today, **window)
    if diagnostics is not None and not is_valid_date_text(raw, today=today, **window):
        diagnostics.report(ordinal, field, DATE_FALLBACK, "unparseable or out-of-range date; using today", value=raw)
    return value


def build_record(
    row: Sequence[Any] | None,
    columns: ColumnMap,
    ordinal: int,
    *,
    settings: IngestionSettings | None = None,
    diagnostics: DiagnosticsBuffer | None = None,
    today: date | None = None,
) -> NormalizedRecord | None:
    """Build one normalized record from a raw row.

    Args:
        row: Raw cells (short rows allowed)
        columns: Resolved column map
        ordinal: 1-based origin row ordinal; part of the record id
        settings: Ingestion settings (due days, year window, raw category)
        diagnostics: Optional sink for data-quality observations
        today: Reference date for fallbacks (default: date.today())

    Returns:
        The record, or None when the row is rejected
    """
    settings = settings or IngestionSettings()
    today = today or date.today()

    reason = rejection_reason(row, columns)
    if reason is not None:
        if diagnostics is not None and reason != "blank row":
            diagnostics.report(ordinal, "name", ROW_REJECTED, reason, value=cell(row, columns.name))
        return None

    name = cell(row, columns.name)

    visit_window = {
        "min_year": settings.min_visit_year,
        "max_year": today.year + settings.future_year_window,
    }
    visit_date = _date_field(cell(row, columns.visit_date), "visit_date", ordinal, today, diagnostics, **visit_window)
    birth_raw = cell(row, columns.birth_date)
    birth_date = _date_field(
        birth_raw, "birth_date", ordinal, today, diagnostics, min_year=BIRTH_MIN_YEAR, max_year=today.year
    )
    # Ids use the sourced birth date; the today fallback never enters an id.
    birth_known = is_valid_date_text(birth_raw, today=today, min_year=BIRTH_MIN_YEAR, max_year=today.year)
    id_birth = birth_date if birth_known else birth_raw

    # Due date is always derived; an impossible visit date counts from today.
    visit_day = parse_display_date(visit_date, today=today, **visit_window) or today
    due_date = format_display_date(visit_day + timedelta(days=settings.due_days))

    age_raw = cell(row, columns.age)
    age = parse_age(age_raw)
    if age is None:
        if diagnostics is not None and age_raw:
            diagnostics.report(ordinal, "age", AGE_FALLBACK, "age is not a number; using 0", value=age_raw)
        age = 0

    category_text = resolve_category_text(row, columns, ordinal, diagnostics)
    category = match_category(category_text)
    if category is None:
        category = Category.OTHER
        if diagnostics is not None:
            diagnostics.report(ordinal, "category", UNMATCHED_CATEGORY, "category not recognized", value=category_text)

    status_text = cell(row, columns.current_status)
    if match_status(status_text) is None and diagnostics is not None:
        diagnostics.report(ordinal, "current_status", UNMATCHED_STATUS, "status not recognized", value=status_text)
    status = canonicalize_status(status_text)

    tax_id = cell(row, columns.tax_id)
    phone = cell(row, columns.phone)

    return NormalizedRecord(
        id=compose_record_id(tax_id, name, id_birth, phone, ordinal),
        name=name,
        birth_date=birth_date,
        age=age,
        mother_name=cell(row, columns.mother_name),
        tax_id=tax_id,
        phone=phone,
        category=category,
        visit_date=visit_date,
        due_date=due_date,
        attendance=canonicalize_flag(cell(row, columns.attendance_flag)),
        exams_done=canonicalize_flag(cell(row, columns.exams_done_flag)),
        status=status,
        row_number=ordinal,
        category_raw=(category_text or None) if settings.retain_raw_category else None,
    )
