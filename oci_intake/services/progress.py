from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress for ingestion runs (tqdm, TTY only).

Off a TTY (CI, pipes, cron) the bar is never created and RowProgress only
counts, so log files stay free of carriage returns and ANSI sequences.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]

POSTFIX_EVERY = 50

_BAR_OPTIONS: dict[str, Any] = {
    "unit": "row",
    "disable": False,
    "leave": False,
    "position": 0,
    "ncols": 80,
    "ascii": True,
}


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Accepted / rejected counters with an optional bar over the data rows."""

    def __init__(self, total_rows: int, *, description: str = "Ingesting rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.accepted = 0
        self.rejected = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = (
            tqdm(total=total_rows, desc=description, **_BAR_OPTIONS) if self.enabled else None
        )

    def advance(self, accepted: bool) -> None:
        self.processed += 1
        if accepted:
            self.accepted += 1
        else:
            self.rejected += 1
        if self.pbar is None:
            return
        self.pbar.update(1)
        if self.processed % POSTFIX_EVERY == 0 or self.processed == self.total_rows:
            self.pbar.set_postfix(accepted=self.accepted, rejected=self.rejected)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
