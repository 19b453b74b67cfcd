from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from enum import Enum

from ..models.record import NormalizedRecord, Status
from .canonicalize import parse_display_date

"""Deadline helpers for the derived due date of a record."""

__all__ = [
    "DUE_SOON_DAYS",
    "DeadlineStatus",
    "days_remaining",
    "deadline_status",
    "count_by_deadline",
]

DUE_SOON_DAYS = 7


class DeadlineStatus(Enum):
    ON_TRACK = "on_track"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


def days_remaining(due_date: str, today: date | None = None) -> int | None:
    """Days from today until due_date (negative when past), None if unparseable."""
    today = today or date.today()
    due = parse_display_date(due_date, today=today)
    if due is None:
        return None
    return (due - today).days


def deadline_status(due_date: str, today: date | None = None) -> DeadlineStatus:
    remaining = days_remaining(due_date, today)
    if remaining is None or remaining < 0:
        return DeadlineStatus.OVERDUE
    if remaining <= DUE_SOON_DAYS:
        return DeadlineStatus.DUE_SOON
    return DeadlineStatus.ON_TRACK


def count_by_deadline(records: Iterable[NormalizedRecord], today: date | None = None) -> dict[DeadlineStatus, int]:
    """Open records (not completed, not cancelled) per deadline status, all statuses present."""
    today = today or date.today()
    counts = {s: 0 for s in DeadlineStatus}
    for record in records:
        if record.status in (Status.COMPLETED, Status.CANCELLED):
            continue
        counts[deadline_status(record.due_date, today)] += 1
    return counts
