from __future__ import annotations

from ..models.ingest_result import CategoryStat, IngestResult, MonthlyStat, StatusStat
from .deadline import DeadlineStatus

"""SUMMARY line and aggregate table rendering for the CLI.

SUMMARY line format:
SUMMARY rows={total} accepted={accepted} rejected={rejected}
collisions={collisions} diagnostics={diagnostics} elapsed_sec={elapsed}
(one line, single spaces)
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
    "render_category_lines",
    "render_status_lines",
    "render_monthly_lines",
    "render_deadline_lines",
]


def format_seconds(value: float) -> str:
    """Seconds without scientific notation; integers without a fraction."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: IngestResult) -> str:
    """Render the SUMMARY line of one ingestion run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from oci_intake.models.column_map import ColumnLayout, ColumnMap
        >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
        >>> result = IngestResult(
        ...     records=[], total_rows=4, accepted_rows=2, rejected_rows=1, collisions=0,
        ...     layout=ColumnLayout(ColumnMap(), 0, 1), start_time=t, end_time=t,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY rows=4 accepted=2 rejected=1 collisions=0 diagnostics=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"accepted={result.accepted_rows} "
        f"rejected={result.rejected_rows} "
        f"collisions={result.collisions} "
        f"diagnostics={result.diagnostics} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )


def render_category_lines(stats: list[CategoryStat]) -> list[str]:
    return [f"{s.category}: {s.count} ({s.percent}%)" for s in stats]


def render_status_lines(stats: list[StatusStat]) -> list[str]:
    return [f"{s.status.value}: {s.count} ({s.percent}%)" for s in stats]


def render_monthly_lines(stats: list[MonthlyStat]) -> list[str]:
    return [
        f"{s.month}: visits={s.visits} ({s.visits_percent}%) "
        f"completed={s.completed} ({s.completed_percent}%) "
        f"pending={s.pending} ({s.pending_percent}%) outstanding={s.outstanding}"
        for s in stats
    ]


def render_deadline_lines(counts: dict[DeadlineStatus, int]) -> list[str]:
    return [f"{status.value}: {count}" for status, count in counts.items()]
