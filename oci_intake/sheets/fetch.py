from __future__ import annotations

import logging
import re
from typing import Any

import requests

from ..models.config_models import SourceConfig
from .reader import PayloadError, rows_from_csv_text, rows_from_values

"""Google Sheets payload fetcher.

With an API key the Sheets Values API is tried first; any failure there is
logged and the public CSV export (gviz endpoint) is used instead. The CSV
export works for sheets shared as "anyone with the link can view".
"""

__all__ = [
    "FetchError",
    "VALUES_API_URL",
    "CSV_EXPORT_URL",
    "extract_spreadsheet_id",
    "fetch_rows",
]

VALUES_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{range}"
CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/gviz/tq"

_SPREADSHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Transport failure while fetching the raw payload."""


def extract_spreadsheet_id(url: str) -> str | None:
    """Spreadsheet id of a docs.google.com/spreadsheets/d/<id>/... URL."""
    m = _SPREADSHEET_ID_RE.search(url or "")
    return m.group(1) if m else None


def _fetch_values(session: Any, source: SourceConfig) -> list[list[str]] | None:
    sheet = source.sheet_name.split("!")[0]
    url = VALUES_API_URL.format(spreadsheet_id=source.spreadsheet_id, range=f"{sheet}!{source.range}")
    try:
        response = session.get(url, params={"key": source.api_key}, timeout=source.timeout_seconds)
    except requests.RequestException as e:
        logger.warning("sheets api request failed, falling back to csv export: %s", e)
        return None
    if not response.ok:
        logger.warning("sheets api returned %s, falling back to csv export", response.status_code)
        return None
    try:
        values = response.json().get("values")
        rows = rows_from_values(values) if isinstance(values, list) else None
    except (ValueError, AttributeError, PayloadError) as e:
        logger.warning("sheets api payload unusable, falling back to csv export: %s", e)
        return None
    if rows is None:
        logger.warning("sheets api response has no values, falling back to csv export")
        return None
    logger.info("sheets api rows=%d", len(rows))
    return rows


def _fetch_csv(session: Any, source: SourceConfig) -> list[list[str]]:
    url = CSV_EXPORT_URL.format(spreadsheet_id=source.spreadsheet_id)
    params = {"tqx": "out:csv", "sheet": source.sheet_name.split("!")[0]}
    try:
        response = session.get(url, params=params, timeout=source.timeout_seconds)
    except requests.RequestException as e:
        raise FetchError(f"cannot reach Google Sheets: {e}") from e
    if not response.ok:
        raise FetchError(
            f"csv export failed ({response.status_code}): {response.reason}. "
            "Make sure the sheet is shared as 'anyone with the link can view' "
            "or configure a valid API key."
        )
    response.encoding = response.encoding or "utf-8"
    rows = rows_from_csv_text(response.text)
    logger.info("csv export rows=%d", len(rows))
    return rows


def fetch_rows(source: SourceConfig, session: Any = None) -> list[list[str]]:
    """Raw rows of the configured sheet.

    Raises:
        FetchError: If no spreadsheet is configured or the CSV export fails
        PayloadError: If the CSV export cannot be tokenized
    """
    if not source.spreadsheet_id:
        raise FetchError("no spreadsheet_id configured")
    session = session or requests.Session()
    if source.api_key:
        rows = _fetch_values(session, source)
        if rows is not None:
            return rows
    return _fetch_csv(session, source)
