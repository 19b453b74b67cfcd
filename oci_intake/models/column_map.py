from __future__ import annotations

from dataclasses import asdict, dataclass, replace

"""Column mapping models for the intake sheet.

ColumnMap binds every logical field of the intake record to a column index.
Every field always has an index: header detection may move a field to another
column but never removes the binding.
"""

__all__ = [
    "FIELD_ORDER",
    "ColumnMap",
    "ColumnLayout",
]

# Declared field order; the default index of a field is its position here.
FIELD_ORDER: tuple[str, ...] = (
    "name",
    "birth_date",
    "age",
    "mother_name",
    "tax_id",
    "phone",
    "category",
    "visit_date",
    "attendance_flag",
    "exams_done_flag",
    "current_status",
)


@dataclass(frozen=True)
class ColumnMap:
    """Logical field -> 0-based column index.

    Defaults follow the sheet layout A..K; the flag/status pair occupies the
    two highest default columns (J, K).
    """
    name: int = 0
    birth_date: int = 1
    age: int = 2
    mother_name: int = 3
    tax_id: int = 4
    phone: int = 5
    category: int = 6
    visit_date: int = 7
    attendance_flag: int = 8
    exams_done_flag: int = 9
    current_status: int = 10

    def index_of(self, field: str) -> int:
        return getattr(self, field)

    def with_overrides(self, overrides: dict[str, int]) -> ColumnMap:
        unknown = set(overrides) - set(FIELD_ORDER)
        if unknown:
            raise KeyError(f"unknown fields: {sorted(unknown)}")
        return replace(self, **overrides)

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ColumnLayout:
    """Result of column resolution over the first rows of a payload."""
    columns: ColumnMap
    header_index: int | None  # row index of the detected header, None if absent
    data_start: int  # first row index holding data
