from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""DiagnosticRecord model for data-quality observations.

Diagnostics are never errors: they describe how a row was repaired or why it
was skipped. The JSON Lines key set is fixed by
oci_intake/logging/diagnostic_schema.json.
"""

__all__ = [
    "DiagnosticRecord",
]


@dataclass(frozen=True)
class DiagnosticRecord:
    """Structured data-quality observation.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        row: Origin row ordinal (1-based). -1 for payload-level observations
        field: Logical field the observation is about ("" when row-wide)
        kind: Classification in UPPER_SNAKE_CASE
        message: Human readable description
        value: Offending raw cell text ("" when not applicable)
    """
    timestamp: str
    row: int
    field: str
    kind: str
    message: str
    value: str = ""

    @staticmethod
    def create(row: int, field: str, kind: str, message: str, value: str = "") -> DiagnosticRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return DiagnosticRecord(
            timestamp=ts,
            row=row,
            field=field,
            kind=kind,
            message=message,
            value=value,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
