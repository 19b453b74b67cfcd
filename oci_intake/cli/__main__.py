from __future__ import annotations

import argparse
import os
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from oci_intake.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from oci_intake.logging.diagnostics import DiagnosticsBuffer
from oci_intake.logging.init import log_summary, set_debug, setup_logging
from oci_intake.services.aggregate import aggregate_by_category, aggregate_by_month, aggregate_by_status
from oci_intake.services.deadline import count_by_deadline, days_remaining
from oci_intake.services.summary import (
    render_category_lines,
    render_deadline_lines,
    render_monthly_lines,
    render_status_lines,
    render_summary_line,
)
from oci_intake.services.sync import SyncService, SyncStatus
from oci_intake.sheets.fetch import FetchError, fetch_rows
from oci_intake.sheets.reader import PayloadError, read_csv_file, read_excel_rows
from oci_intake.storage.record_store import JsonRecordStore

"""CLI entrypoint.

Runs one sync (local file or Google Sheets -> ingest -> record store) and
prints the SUMMARY line followed by the category, status and monthly tables.
Scheduling repeated syncs is left to the caller (cron, systemd timers).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_NO_RECORDS = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its values win over the YAML config."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="oci-intake", description="OCI patient intake sync and statistics")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--csv", type=Path, help="Ingest a local CSV export instead of Google Sheets")
    src.add_argument("--excel", type=Path, help="Ingest a local Excel workbook instead of Google Sheets")
    p.add_argument("--sheet", help="Sheet name inside --excel (default: first sheet)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print resolved columns & first records then exit")
    return p.parse_args(argv)


def _fetcher(args: argparse.Namespace, cfg):
    if args.csv is not None:
        return lambda: read_csv_file(args.csv)
    if args.excel is not None:
        return lambda: read_excel_rows(args.excel, args.sheet)
    return lambda: fetch_rows(cfg.source)


def _inspect_data(fetch, cfg) -> int:
    from oci_intake.services.ingest import IngestionError, ingest_payload

    try:
        result = ingest_payload(fetch(), settings=cfg.ingestion)
    except (FetchError, PayloadError, IngestionError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    layout = result.layout
    header = "none" if layout.header_index is None else layout.header_index + 1
    print(f"header_row={header} data_start={layout.data_start + 1}")
    print(f"columns={layout.columns.as_dict()}")
    for record in result.records[:3]:
        print("  record=", record.to_dict(), f"days_remaining={days_remaining(record.due_date)}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config, env=os.environ)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.csv is None and args.excel is None and not cfg.source.spreadsheet_id:
        logger.error("no source: set source.spreadsheet_id, OCI_SPREADSHEET_ID, --csv or --excel")
        return EXIT_FATAL

    fetch = _fetcher(args, cfg)
    if args.inspect_data:
        return _inspect_data(fetch, cfg)

    diagnostics = DiagnosticsBuffer(cfg.logs_directory)
    service = SyncService(
        fetch,
        store=JsonRecordStore(cfg.storage.records_path),
        settings=cfg.ingestion,
        diagnostics=diagnostics,
    )
    outcome = service.sync()

    try:
        path = diagnostics.flush()
        if path is not None:
            logger.debug(f"diagnostics written to {path}")
    except OSError as e:
        logger.warning(f"diagnostics flush failed: {e}")

    if outcome.status is not SyncStatus.SUCCESS or outcome.result is None:
        logger.error(f"sync: {outcome.error}")
        return EXIT_FATAL

    result = outcome.result
    records = service.records
    today = date.today()
    logger.info(f"records={len(records)} header_row={result.layout.header_index}")
    for title, lines in (
        ("by category", render_category_lines(aggregate_by_category(records))),
        ("by status", render_status_lines(aggregate_by_status(records))),
        ("by month", render_monthly_lines(aggregate_by_month(records, today, cfg.ingestion))),
        ("by deadline", render_deadline_lines(count_by_deadline(records, today))),
    ):
        logger.info(title)
        for line in lines:
            logger.info(f"  {line}")

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if not records and result.total_rows > 0:
        return EXIT_NO_RECORDS
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
