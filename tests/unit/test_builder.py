from __future__ import annotations

from datetime import date, timedelta

import pytest

from oci_intake.logging.diagnostics import (
    AGE_FALLBACK,
    CATEGORY_COLUMN_FALLBACK,
    DATE_FALLBACK,
    ROW_REJECTED,
    UNMATCHED_STATUS,
    DiagnosticsBuffer,
)
from oci_intake.models.column_map import ColumnMap
from oci_intake.models.config_models import IngestionSettings
from oci_intake.models.record import Category, Status
from oci_intake.services.canonicalize import format_display_date, parse_display_date
from oci_intake.services.builder import build_record, is_blank_row, rejection_reason, resolve_category_text


def _row(**cells):
    """Eleven-cell row in default column order."""
    row = [""] * 11
    for field, value in cells.items():
        row[ColumnMap().index_of(field)] = value
    return row


def test_full_row_is_normalized():
    row = ["Name", "01/01/1980", "40", "Mother", "", "", "Glaucoma", "10/01/2025", "SIM", "NAO", "Em andamento"]
    rec = build_record(row, ColumnMap(), 1, today=date(2025, 1, 15))
    assert rec is not None
    assert rec.name == "Name"
    assert rec.birth_date == "01/01/1980"
    assert rec.age == 40
    assert rec.mother_name == "Mother"
    assert rec.category is Category.GLAUCOMA
    assert rec.visit_date == "10/01/2025"
    assert rec.due_date == "09/02/2025"
    assert rec.attendance is True
    assert rec.exams_done is False
    assert rec.status is Status.IN_PROGRESS
    assert rec.row_number == 1
    assert rec.id == "paciente-name-01-01-1980-1"


@pytest.mark.parametrize(
    "row",
    [
        _row(name="Nome do Paciente", birth_date="01/01/1980"),
        _row(name="NOME"),
        _row(name="Secretaria de Saúde"),
        _row(name="PREFEITURA MUNICIPAL DE LIMOEIRO"),
        _row(name="", birth_date="01/01/1980"),
        ["", "  ", None],
        [],
        None,
    ],
)
def test_rejected_rows(row):
    assert build_record(row, ColumnMap(), 3, today=date(2025, 1, 15)) is None


def test_rejection_reasons():
    cm = ColumnMap()
    assert rejection_reason([], cm) == "blank row"
    assert rejection_reason(["", "x"], cm) == "empty name"
    assert rejection_reason(["nome"], cm) == "header row"
    assert rejection_reason(["Secretaria"], cm) == "organizational banner"
    assert rejection_reason(["Maria"], cm) is None
    assert is_blank_row([" ", None])


def test_rejected_row_is_reported_except_blank():
    diag = DiagnosticsBuffer()
    build_record(["Nome do paciente"], ColumnMap(), 2, diagnostics=diag)
    build_record([], ColumnMap(), 3, diagnostics=diag)
    assert diag.counts_by_kind() == {ROW_REJECTED: 1}
    assert diag.records[0].row == 2


def test_short_row_gets_defaults():
    rec = build_record(["Maria"], ColumnMap(), 5, today=date(2025, 3, 1))
    assert rec is not None
    assert rec.birth_date == "01/03/2025"
    assert rec.visit_date == "01/03/2025"
    assert rec.due_date == "31/03/2025"
    assert rec.age == 0
    assert rec.category is Category.OTHER
    assert rec.status is Status.PENDING
    assert rec.attendance is False and rec.exams_done is False
    # the today fallback never enters the id
    assert rec.id == "paciente-maria-5"


def test_id_with_tax_id():
    row = _row(name="Maria da Silva", birth_date="02/03/1990", tax_id="123.456.789-00")
    rec = build_record(row, ColumnMap(), 4, today=date(2025, 1, 15))
    assert rec.id == "123-456-789-00-maria-da-silva-02-03-1990-4"


def test_due_date_crosses_leap_day():
    rec = build_record(_row(name="Ana", visit_date="28/02/2024"), ColumnMap(), 1, today=date(2025, 1, 1))
    assert rec.due_date == "29/03/2024"


def test_due_days_setting():
    settings = IngestionSettings(due_days=10)
    rec = build_record(_row(name="Ana", visit_date="10/01/2025"), ColumnMap(), 1, settings=settings, today=date(2025, 1, 15))
    assert rec.due_date == "20/01/2025"


def test_impossible_visit_date_is_kept_and_due_counts_from_today():
    rec = build_record(_row(name="Ana", visit_date="31/02/2025"), ColumnMap(), 1, today=date(2025, 3, 10))
    assert rec.visit_date == "31/02/2025"
    assert rec.due_date == "09/04/2025"


def test_iso_visit_date_is_converted():
    rec = build_record(_row(name="Ana", visit_date="2025-01-10 00:00:00"), ColumnMap(), 1, today=date(2025, 1, 15))
    assert rec.visit_date == "10/01/2025"
    assert rec.due_date == "09/02/2025"


def test_unparseable_dates_are_reported():
    diag = DiagnosticsBuffer()
    rec = build_record(_row(name="Ana", visit_date="amanhã"), ColumnMap(), 7, diagnostics=diag, today=date(2025, 1, 15))
    assert rec.visit_date == "15/01/2025"
    kinds = [(r.field, r.kind) for r in diag.records]
    assert ("visit_date", DATE_FALLBACK) in kinds
    assert ("birth_date", DATE_FALLBACK) in kinds


def test_age_fallback():
    diag = DiagnosticsBuffer()
    assert build_record(_row(name="Ana", age="45 anos"), ColumnMap(), 1).age == 45
    rec = build_record(_row(name="Ana", age="abc"), ColumnMap(), 1, diagnostics=diag)
    assert rec.age == 0
    assert diag.counts_by_kind().get(AGE_FALLBACK) == 1


def test_unmatched_status_is_reported_and_defaults_to_pending():
    diag = DiagnosticsBuffer()
    rec = build_record(_row(name="Ana", current_status="???"), ColumnMap(), 1, diagnostics=diag)
    assert rec.status is Status.PENDING
    assert diag.counts_by_kind().get(UNMATCHED_STATUS) == 1


def test_category_column_bound_to_date_scans_for_keyword():
    columns = ColumnMap().with_overrides({"category": 7})
    row = ["Ana", "01/01/1980", "45", "", "", "", "Catarata", "10/01/2025", "SIM", "SIM", "Concluída"]
    diag = DiagnosticsBuffer()
    rec = build_record(row, columns, 1, diagnostics=diag, today=date(2025, 1, 15))
    assert rec.category is Category.CATARACT
    assert diag.counts_by_kind().get(CATEGORY_COLUMN_FALLBACK) == 1


def test_category_fallback_uses_default_column_then_empty():
    columns = ColumnMap().with_overrides({"category": 7})
    row = ["Ana", "", "", "", "", "", "Consulta", "10/01/2025"]
    assert resolve_category_text(row, columns) == "Consulta"
    row = ["Ana", "", "", "", "", "", "11/01/2025", "10/01/2025"]
    assert resolve_category_text(row, columns) == ""
    rec = build_record(row, columns, 1, today=date(2025, 1, 15))
    assert rec.category is Category.OTHER


def test_raw_category_retained_only_when_enabled():
    row = _row(name="Ana", category="glaucoma (OD)")
    plain = build_record(row, ColumnMap(), 1)
    assert plain.category is Category.GLAUCOMA
    assert plain.category_raw is None
    kept = build_record(row, ColumnMap(), 1, settings=IngestionSettings(retain_raw_category=True))
    assert kept.category is Category.GLAUCOMA
    assert kept.category_raw == "glaucoma (OD)"
    assert kept.category_label == "glaucoma (OD)"


def test_builder_is_deterministic():
    row = _row(name="Ana", birth_date="01/01/1980", visit_date="10/01/2025", current_status="Pendente")
    today = date(2025, 1, 15)
    assert build_record(row, ColumnMap(), 9, today=today) == build_record(row, ColumnMap(), 9, today=today)


@pytest.mark.parametrize("visit", ["15/03/1999", "01/01/2040"])
def test_visit_year_outside_window_falls_back_to_today(visit):
    diag = DiagnosticsBuffer()
    rec = build_record(_row(name="Ana", visit_date=visit), ColumnMap(), 1, diagnostics=diag, today=date(2025, 1, 15))
    assert rec.visit_date == "15/01/2025"
    assert rec.due_date == "14/02/2025"
    assert ("visit_date", DATE_FALLBACK, visit) in [(r.field, r.kind, r.value) for r in diag.records]


def test_visit_window_follows_settings():
    settings = IngestionSettings(min_visit_year=1990)
    rec = build_record(_row(name="Ana", visit_date="15/03/1999"), ColumnMap(), 1, settings=settings, today=date(2025, 1, 15))
    assert rec.visit_date == "15/03/1999"
    assert rec.due_date == "14/04/1999"


@pytest.mark.parametrize(
    "visit",
    ["10/01/2025", "5/3/2024", "2025-01-10", "15/03/1999", "01/01/2040", "31/12/2035", "", "amanhã"],
)
def test_due_date_is_visit_date_plus_due_days(visit):
    today = date(2025, 1, 15)
    rec = build_record(_row(name="Ana", visit_date=visit), ColumnMap(), 1, today=today)
    visit_day = parse_display_date(rec.visit_date, today=today)
    assert visit_day is not None
    assert rec.due_date == format_display_date(visit_day + timedelta(days=30))
