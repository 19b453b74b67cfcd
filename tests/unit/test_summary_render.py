from __future__ import annotations

from datetime import UTC, datetime

from oci_intake.models.column_map import ColumnLayout, ColumnMap
from oci_intake.models.ingest_result import CategoryStat, IngestResult, MonthlyStat, StatusStat
from oci_intake.models.record import Status
from oci_intake.services.deadline import DeadlineStatus
from oci_intake.services.summary import (
    format_seconds,
    render_category_lines,
    render_deadline_lines,
    render_monthly_lines,
    render_status_lines,
    render_summary_line,
)


def _result(**overrides) -> IngestResult:
    t = datetime(2025, 1, 1, tzinfo=UTC)
    values = dict(
        records=[],
        total_rows=10,
        accepted_rows=7,
        rejected_rows=2,
        collisions=1,
        layout=ColumnLayout(ColumnMap(), 0, 1),
        start_time=t,
        end_time=t,
        elapsed_seconds=1.23456,
        diagnostics=5,
    )
    values.update(overrides)
    return IngestResult(**values)


def test_render_summary_line():
    assert render_summary_line(_result()) == (
        "SUMMARY rows=10 accepted=7 rejected=2 collisions=1 diagnostics=5 elapsed_sec=1.235"
    )


def test_format_seconds():
    assert format_seconds(0) == "0"
    assert format_seconds(2.0) == "2"
    assert format_seconds(0.000123) == "0.000123"
    assert format_seconds(12.5) == "12.5"


def test_render_tables():
    assert render_category_lines([CategoryStat("Avaliação de glaucoma", 3, 75.0)]) == ["Avaliação de glaucoma: 3 (75.0%)"]
    assert render_status_lines([StatusStat(Status.PENDING, 2, 66.67)]) == ["Pendente: 2 (66.67%)"]
    line = render_monthly_lines([MonthlyStat("Janeiro 2025", 3, 1, 1, 1, 60.0, 100.0, 33.33)])[0]
    assert line == "Janeiro 2025: visits=3 (60.0%) completed=1 (100.0%) pending=1 (33.33%) outstanding=1"


def test_render_deadline_lines():
    counts = {DeadlineStatus.ON_TRACK: 2, DeadlineStatus.DUE_SOON: 0, DeadlineStatus.OVERDUE: 1}
    assert render_deadline_lines(counts) == ["on_track: 2", "due_soon: 0", "overdue: 1"]
