from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from ..models.config_models import IngestionSettings
from ..models.ingest_result import CategoryStat, MonthlyStat, StatusStat
from ..models.record import Category, NormalizedRecord, Status
from .canonicalize import parse_display_date

"""Aggregate statistics over the current record list.

Three independent grouping passes (category, status, calendar month of the
visit). They are pure functions of the record list and of `today`; callers
recompute them on every read. The outstanding count of the monthly pass
depends on today's date and must not be cached.

Percentages are rounded to 2 decimals and are 0 when the denominator is 0.
"""

__all__ = [
    "MONTH_NAMES",
    "percent",
    "month_key",
    "parse_month_key",
    "aggregate_by_category",
    "aggregate_by_status",
    "aggregate_by_month",
]

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)
_MONTH_NUMBERS = {name: number for number, name in enumerate(MONTH_NAMES, start=1)}

_OPEN_EXCLUDED = (Status.COMPLETED, Status.CANCELLED)


def percent(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(count / total * 100, 2)


def month_key(day: date) -> str:
    """Display key of a calendar month: 'Janeiro 2025'."""
    return f"{MONTH_NAMES[day.month - 1].capitalize()} {day.year}"


def parse_month_key(key: str) -> tuple[int, int] | None:
    """(year, month) of a month key, case-insensitive; None if unknown."""
    parts = key.strip().lower().rsplit(" ", 1)
    if len(parts) != 2 or not parts[1].isdigit():
        return None
    month = _MONTH_NUMBERS.get(parts[0])
    if month is None:
        return None
    return int(parts[1]), month


def _is_pending(record: NormalizedRecord) -> bool:
    return record.status not in _OPEN_EXCLUDED


def aggregate_by_category(records: Sequence[NormalizedRecord]) -> list[CategoryStat]:
    """Counts per category, most frequent first.

    Records that retained their raw category text are grouped by it; the
    others by the normalized enum value. Ties keep enumeration order, raw
    labels follow in first-seen order.
    """
    counts: dict[str, int] = {c.value: 0 for c in Category}
    for record in records:
        label = record.category_label
        counts[label] = counts.get(label, 0) + 1
    total = len(records)
    stats = [
        CategoryStat(category=label, count=count, percent=percent(count, total))
        for label, count in counts.items()
        if count > 0
    ]
    stats.sort(key=lambda s: s.count, reverse=True)
    return stats


def aggregate_by_status(records: Sequence[NormalizedRecord]) -> list[StatusStat]:
    """Counts per status over the fixed 5-value domain, most frequent first."""
    counts: dict[Status, int] = {s: 0 for s in Status}
    for record in records:
        counts[record.status] += 1
    total = len(records)
    stats = [
        StatusStat(status=status, count=count, percent=percent(count, total))
        for status, count in counts.items()
        if count > 0
    ]
    stats.sort(key=lambda s: s.count, reverse=True)
    return stats


def _count(records: Iterable[NormalizedRecord], predicate) -> int:
    return sum(1 for r in records if predicate(r))


def aggregate_by_month(
    records: Sequence[NormalizedRecord],
    today: date | None = None,
    settings: IngestionSettings | None = None,
) -> list[MonthlyStat]:
    """Visits per calendar month of visit_date, in chronological order.

    Records whose visit date does not parse (impossible calendar date, year
    outside the window) are left out of the grouping but still count in the
    percentage denominators, which span the whole record list.

    The year window is the one records were built with (settings); due dates
    may run one year past it.
    """
    today = today or date.today()
    settings = settings or IngestionSettings()
    window = {"min_year": settings.min_visit_year, "max_year": today.year + settings.future_year_window}
    buckets: dict[str, dict[str, int]] = {}
    for record in records:
        visit = parse_display_date(record.visit_date, today=today, **window)
        if visit is None:
            continue
        bucket = buckets.setdefault(
            month_key(visit), {"visits": 0, "completed": 0, "pending": 0, "outstanding": 0}
        )
        bucket["visits"] += 1
        if record.status == Status.COMPLETED:
            bucket["completed"] += 1
        elif record.status != Status.CANCELLED:
            bucket["pending"] += 1
            due = parse_display_date(record.due_date, today=today, min_year=window["min_year"], max_year=window["max_year"] + 1)
            if due is not None and due >= today:
                bucket["outstanding"] += 1

    total = len(records)
    total_completed = _count(records, lambda r: r.status == Status.COMPLETED)
    total_pending = _count(records, _is_pending)

    stats = [
        MonthlyStat(
            month=key,
            visits=b["visits"],
            completed=b["completed"],
            pending=b["pending"],
            outstanding=b["outstanding"],
            visits_percent=percent(b["visits"], total),
            completed_percent=percent(b["completed"], total_completed),
            pending_percent=percent(b["pending"], total_pending),
        )
        for key, b in buckets.items()
    ]
    stats.sort(key=lambda s: parse_month_key(s.month) or (0, 0))
    return stats
