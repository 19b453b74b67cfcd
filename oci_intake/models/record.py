from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

"""Patient intake record model and its closed enumerations.

A NormalizedRecord is built once per accepted spreadsheet row and never
mutated afterwards. The record list as a whole is replaced on every
successful ingestion run.
"""

__all__ = [
    "Category",
    "Status",
    "NormalizedRecord",
]


class Category(Enum):
    """OCI subgroup (clinical classification bucket). OTHER is the catch-all."""
    DIABETIC_RETINOPATHY = "Avaliação de retinopatia diabética"
    GLAUCOMA = "Avaliação de glaucoma"
    CATARACT = "Avaliação de catarata"
    STRABISMUS = "Avaliação de estrabismo"
    PTERYGIUM = "Avaliação de pterígio"
    OTHER = "Outros"


class Status(Enum):
    """Workflow state of an OCI record.

    State flow in the source sheet: PENDING -> IN_PROGRESS / AWAITING_EXAMS
    -> (COMPLETED | CANCELLED)
    """
    PENDING = "Pendente"
    IN_PROGRESS = "Em andamento"
    AWAITING_EXAMS = "Aguardando exames"
    COMPLETED = "Concluída"
    CANCELLED = "Cancelada"


@dataclass(frozen=True)
class NormalizedRecord:
    """One normalized intake entry derived from one spreadsheet row."""
    id: str
    name: str
    birth_date: str  # DD/MM/YYYY
    age: int
    mother_name: str
    tax_id: str  # CPF, free text
    phone: str
    category: Category
    visit_date: str  # DD/MM/YYYY
    due_date: str  # visit_date + due_days, never sourced
    attendance: bool = False
    exams_done: bool = False
    status: Status = Status.PENDING
    row_number: int = 0  # origin row ordinal (1-based)
    category_raw: str | None = None  # source text, only when retained

    @property
    def category_label(self) -> str:
        """Label used for category grouping: retained raw text or the enum value."""
        return self.category_raw or self.category.value

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["status"] = self.status.value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> NormalizedRecord:
        """Rebuild a record from a stored dict, completing missing workflow fields.

        Unknown enum values fall back to OTHER / PENDING so a stale store never
        breaks the closed-set guarantee.
        """
        try:
            category = Category(data.get("category"))
        except ValueError:
            category = Category.OTHER
        try:
            status = Status(data.get("status"))
        except ValueError:
            status = Status.PENDING
        return NormalizedRecord(
            id=str(data["id"]),
            name=str(data["name"]),
            birth_date=str(data.get("birth_date", "")),
            age=int(data.get("age") or 0),
            mother_name=str(data.get("mother_name", "")),
            tax_id=str(data.get("tax_id", "")),
            phone=str(data.get("phone", "")),
            category=category,
            visit_date=str(data.get("visit_date", "")),
            due_date=str(data.get("due_date", "")),
            attendance=bool(data.get("attendance", False)),
            exams_done=bool(data.get("exams_done", False)),
            status=status,
            row_number=int(data.get("row_number") or 0),
            category_raw=data.get("category_raw"),
        )
