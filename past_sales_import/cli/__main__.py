from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.store import (
    InMemoryPastSaleStore,
    InMemoryTaskStore,
    PastSaleStore,
    PostgresPastSaleStore,
    PostgresTaskStore,
    TaskStore,
)
from ..errors import FetchError, ParseError
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.aftercare import AftercareImportOptions, HistoricalMode
from ..models.config_models import ImportConfig
from ..services.commit import ImportOutcome
from ..services.review import FilterMode
from ..services.session import ImportSession
from ..services.summary import render_aftercare_line, render_summary_line
from ..services.template import write_template
from ..sources.google_sheets import GoogleSheetsFetcher

"""CLI entrypoint: drives one ImportSession from the command line.

Flow:
- Load .env (overrides the environment) and config/import.yml
- Acquire rows from --file or --sheet-url and validate them
- Print the review counts (and the --filter view)
- Commit valid rows (live database, or the in-memory mock store)
- Optionally activate aftercare plans
- Print the SUMMARY line and flush the error log
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string, in order of precedence:

    1. DATABASE_URL / PGDSN (whole DSN)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the database section of config/import.yml
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _connect(cfg: ImportConfig):  # pragma: no cover (thin wrapper)
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = False
    return conn


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; override=True lets .env win over variables already set."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Past sales CSV / Google Sheets importer")
    source = p.add_mutually_exclusive_group()
    source.add_argument("--file", type=Path, help="CSV file to import")
    source.add_argument("--sheet-url", help="Publicly shared Google Sheets URL")
    p.add_argument("--team-id", help="Team that owns the imported records")
    p.add_argument("--user-id", help="User recorded as creator; assignee for aftercare tasks of sales without an agent")
    p.add_argument("--activate-aftercare", action="store_true", help="Start aftercare plans for imported sales")
    p.add_argument(
        "--historical-mode",
        choices=[m.value for m in HistoricalMode],
        default=HistoricalMode.SKIP.value,
        help="How to treat aftercare tasks already past due",
    )
    p.add_argument(
        "--filter",
        choices=[m.value for m in FilterMode],
        default=None,
        help="Print the review rows in this view",
    )
    p.add_argument("--dry-run", action="store_true", help="Stop after the review stage")
    p.add_argument("--write-template", type=Path, metavar="PATH", help="Write the CSV template and exit")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _print_review(session: ImportSession, mode: str | None, logger: logging.Logger) -> None:
    counts = session.counts
    logger.info(
        f"review total={counts.total} valid={counts.valid} "
        f"warnings={counts.warnings} errors={counts.errors}"
    )
    if mode is None:
        return
    session.toggle_filter(FilterMode(mode))
    for row in session.visible_rows:
        address = row.record.address
        logger.info(f"row {row.row_number}: {row.bucket.value} {address}".rstrip())
        for message in row.errors:
            logger.error(message)
        for message in row.warnings:
            logger.warning(message)


def _run(
    session: ImportSession,
    cfg: ImportConfig,
    store: PastSaleStore,
    task_store: TaskStore,
    error_log: ErrorLogBuffer,
) -> ImportOutcome:
    return session.start_import(
        store,
        task_store=task_store,
        template=cfg.aftercare.template,
        evergreen_template=cfg.aftercare.evergreen_template,
        error_log=error_log,
    )


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # argv=[] must not fall back to sys.argv (pytest flags would leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.write_template is not None:
        path = write_template(args.write_template)
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS_ALL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.file is None and args.sheet_url is None:
        logger.error("no source: pass --file or --sheet-url")
        return EXIT_FATAL
    if not args.team_id:
        logger.error("--team-id is required")
        return EXIT_FATAL
    if args.activate_aftercare and not args.user_id:
        logger.error("--user-id is required with --activate-aftercare")
        return EXIT_FATAL

    session = ImportSession(
        args.team_id,
        user_id=args.user_id,
        date_formats=cfg.date_formats,
        fetcher=GoogleSheetsFetcher(timeout_seconds=cfg.google_sheets.timeout_seconds),
    )
    try:
        if args.file is not None:
            session.load_csv(args.file)
        else:
            session.load_google_sheet(args.sheet_url)
    except (ParseError, FetchError):
        # already logged and recorded as a notice by the session
        return EXIT_FATAL

    _print_review(session, args.filter, logger)
    if session.counts.valid == 0:
        logger.error("no valid rows to import")
        return EXIT_FATAL
    if args.dry_run:
        logger.info("dry run: nothing committed")
        return EXIT_SUCCESS_ALL

    session.continue_to_aftercare()
    session.set_aftercare_options(
        AftercareImportOptions(
            activate_aftercare=args.activate_aftercare,
            historical_mode=HistoricalMode(args.historical_mode),
        )
    )
    if args.activate_aftercare:
        breakdown = session.age_breakdown()
        logger.info(" ".join(f"{c.value}={n}" for c, n in breakdown.items()))

    error_log = ErrorLogBuffer()
    db_mode = "mock"
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        outcome = _run(session, cfg, InMemoryPastSaleStore(), InMemoryTaskStore(), error_log)
    else:
        try:
            conn = _connect(cfg)
        except psycopg2.Error as e:
            logger.info(f"DB connection failed -> fallback to mock mode: {e}")
            outcome = _run(session, cfg, InMemoryPastSaleStore(), InMemoryTaskStore(), error_log)
        else:
            db_mode = "live"
            try:
                # commits on success, rolls back if the run raises
                with conn, conn.cursor() as cur:
                    outcome = _run(
                        session,
                        cfg,
                        PostgresPastSaleStore(cur, cfg.tables.past_sales),
                        PostgresTaskStore(cur, cfg.tables.tasks, cfg.tables.past_sales),
                        error_log,
                    )
            finally:
                conn.close()
    logger.info(f"mode={db_mode}")

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    log_summary(render_summary_line(outcome.summary, outcome.commit.elapsed_seconds)[len("SUMMARY "):])
    if outcome.aftercare is not None:
        logger.info(render_aftercare_line(outcome.aftercare))

    if outcome.summary.failed > 0 or outcome.aftercare_error:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
