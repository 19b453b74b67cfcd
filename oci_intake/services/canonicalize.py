from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime

from ..models.record import Category, Status

"""Field canonicalizers: raw cell text -> typed values.

Every function here is pure and total. Unparseable input never raises; it
maps to a documented default (today's date, False, Status.PENDING,
Category.OTHER, age 0). The match_* variants return None instead of the
default so callers can report the miss as a diagnostic.
"""

__all__ = [
    "DISPLAY_DATE_FMT",
    "strip_accents",
    "normalize_text",
    "looks_like_display_date",
    "parse_display_date",
    "canonicalize_date",
    "is_valid_date_text",
    "format_display_date",
    "canonicalize_flag",
    "parse_age",
    "match_status",
    "canonicalize_status",
    "match_category",
    "canonicalize_category",
]

DISPLAY_DATE_FMT = "%d/%m/%Y"

_DISPLAY_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?(?:Z|[+-]\d{2}:?\d{2})?$")
_WS_RE = re.compile(r"\s+")
_AGE_RE = re.compile(r"^\s*(\d+)")

TRUE_TOKENS = frozenset({"sim", "s", "yes", "y", "true", "1", "x", "✓"})

MIN_VISIT_YEAR = 2000
FUTURE_YEAR_WINDOW = 10


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str | None) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""
    if not text:
        return ""
    return _WS_RE.sub(" ", strip_accents(str(text)).lower()).strip()


# -- dates -------------------------------------------------------------------

def _year_window(today: date, min_year: int | None, max_year: int | None) -> tuple[int, int]:
    low = MIN_VISIT_YEAR if min_year is None else min_year
    high = today.year + FUTURE_YEAR_WINDOW if max_year is None else max_year
    return low, high


def looks_like_display_date(text: str | None) -> bool:
    """Structural DD/MM/YYYY check (calendar validity is not checked)."""
    return bool(text) and _DISPLAY_DATE_RE.match(str(text).strip()) is not None


def format_display_date(value: date) -> str:
    return value.strftime(DISPLAY_DATE_FMT)


def parse_display_date(
    text: str | None,
    *,
    today: date | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
) -> date | None:
    """Strict DD/MM/YYYY parser.

    Returns None for structurally wrong text, impossible calendar dates
    (31/02/2025) and years outside [min_year, max_year] (default
    [2000, current year + 10]).
    """
    if not text:
        return None
    m = _DISPLAY_DATE_RE.match(str(text).strip())
    if m is None:
        return None
    day, month, year = (int(g) for g in m.groups())
    low, high = _year_window(today or date.today(), min_year, max_year)
    if not low <= year <= high:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_iso(text: str) -> date | None:
    if _ISO_DATE_RE.match(text) is None:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None


def is_valid_date_text(
    text: str | None,
    *,
    today: date | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
) -> bool:
    """True when canonicalize_date would keep or convert the text instead of falling back."""
    if not text or not str(text).strip():
        return False
    raw = str(text).strip()
    low, high = _year_window(today or date.today(), min_year, max_year)
    m = _DISPLAY_DATE_RE.match(raw)
    if m is not None:
        return low <= int(m.group(3)) <= high
    parsed = _parse_iso(raw)
    if parsed is None:
        return False
    return low <= parsed.year <= high


def canonicalize_date(
    text: str | None,
    *,
    today: date | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
) -> str:
    """Canonical DD/MM/YYYY display form of a date cell.

    - DD/MM/YYYY text with a year inside the window is kept as the display
      value (zero padded). Calendar validity is left to parse_display_date, so
      an impossible date such as 31/02/2025 survives here and is excluded later
      by the monthly aggregate.
    - ISO text (date or datetime, as exported from Excel) is reformatted when
      its year is inside the window.
    - Anything else yields today's date.
    """
    today = today or date.today()
    raw = "" if text is None else str(text).strip()
    if not is_valid_date_text(raw, today=today, min_year=min_year, max_year=max_year):
        return format_display_date(today)
    m = _DISPLAY_DATE_RE.match(raw)
    if m is not None:
        day, month, year = m.groups()
        return f"{int(day):02d}/{int(month):02d}/{year}"
    parsed = _parse_iso(raw)
    return format_display_date(parsed or today)


# -- flags and numbers ---------------------------------------------------------

def canonicalize_flag(text: str | None) -> bool:
    """Checkbox-like cells: SIM / S / YES / Y / TRUE / 1 / X / ✓ are true."""
    if text is None:
        return False
    return str(text).strip().lower() in TRUE_TOKENS


def parse_age(text: str | None) -> int | None:
    """Leading integer of the cell ("45 anos" -> 45), None when absent."""
    if text is None:
        return None
    m = _AGE_RE.match(str(text))
    return int(m.group(1)) if m else None


# -- status --------------------------------------------------------------------

_STATUS_EXACT = {normalize_text(s.value): s for s in Status}


def match_status(text: str | None) -> Status | None:
    """Closed-set status for free text, or None when nothing matches.

    Precedence after the exact match: awaiting+exams, pending, in progress,
    completed, cancelled, then a bare mention of exams.
    """
    norm = normalize_text(text)
    if not norm:
        return None
    exact = _STATUS_EXACT.get(norm)
    if exact is not None:
        return exact
    mentions_exams = "exame" in norm
    if "aguardando" in norm and mentions_exams:
        return Status.AWAITING_EXAMS
    if "pendente" in norm:
        return Status.PENDING
    if "andamento" in norm:
        return Status.IN_PROGRESS
    if "conclu" in norm:
        return Status.COMPLETED
    if "cancel" in norm:
        return Status.CANCELLED
    if mentions_exams:
        return Status.AWAITING_EXAMS
    return None


def canonicalize_status(text: str | None) -> Status:
    return match_status(text) or Status.PENDING


# -- category ------------------------------------------------------------------

_CATEGORY_EXACT = {normalize_text(c.value): c for c in Category}

# Checked in order; first hit wins.
_CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], Category], ...] = (
    (("retinopatia", "diabetic"), Category.DIABETIC_RETINOPATHY),
    (("glaucoma",), Category.GLAUCOMA),
    (("catarata",), Category.CATARACT),
    (("estrabismo",), Category.STRABISMUS),
    (("pterigio",), Category.PTERYGIUM),
)


def match_category(text: str | None, *, keywords_only: bool = False) -> Category | None:
    """Closed-set category for free text, or None when nothing matches.

    keywords_only skips the exact match, so "Outros" itself does not count as a
    hit; used when scanning arbitrary cells for a category.
    """
    norm = normalize_text(text)
    if not norm:
        return None
    if not keywords_only:
        exact = _CATEGORY_EXACT.get(norm)
        if exact is not None:
            return exact
    for tokens, category in _CATEGORY_KEYWORDS:
        if any(tok in norm for tok in tokens):
            return category
    return None


def canonicalize_category(text: str | None) -> Category:
    return match_category(text) or Category.OTHER
