"""
Admin CLI for staging uploads and managing import jobs.

Usage:
    python -m stockflow.cli.admin_cli init-db
    python -m stockflow.cli.admin_cli ingest <file> [--filename <name>]
    python -m stockflow.cli.admin_cli promote --job-id <uuid>
    python -m stockflow.cli.admin_cli list-jobs [--limit N] [--json]
    python -m stockflow.cli.admin_cli show-job --job-id <uuid>
    python -m stockflow.cli.admin_cli invalid-rows --job-id <uuid> [--json]
    python -m stockflow.cli.admin_cli delete-job --job-id <uuid>
    python -m stockflow.cli.admin_cli delete-all-jobs --yes
    python -m stockflow.cli.admin_cli --metrics-port 9108 ingest <file>
"""

import argparse
import json
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from dotenv import load_dotenv

from stockflow.config import Settings, load_settings
from stockflow.core.errors import ImportErrorKind, ImportPipelineError
from stockflow.ingest import IngestionPipeline, PromotionEngine
from stockflow.observability import metrics
from stockflow.observability.logger import get_logger, setup_logger
from stockflow.store import DatabaseConnectionPool, StagingStore, create_schema
from stockflow.utils.validation import (
    InputValidationError,
    sanitize_filename,
    validate_job_id,
    validate_limit,
)

logger = get_logger(__name__)

EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def format_timestamp(ts: datetime | None) -> str:
    """Format timestamp for display."""
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "N/A"


@contextmanager
def open_pool(args, settings: Settings):
    """Open a pool from settings, letting --db-* flags win."""
    pool = DatabaseConnectionPool.from_settings(
        settings.database,
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )
    pool.open()
    try:
        yield pool
    finally:
        pool.close()


def init_db_command(args, settings: Settings):
    with open_pool(args, settings) as pool:
        create_schema(pool)
    print("Schema ready.")


def ingest_command(args, settings: Settings):
    """
    Stage a file from disk as a new import job.

    Args:
        args: Command line arguments
        settings: Loaded settings
    """
    path = Path(args.file)
    if not path.is_file():
        raise InputValidationError(f"File not found: {path}")

    filename = sanitize_filename(args.filename or path.name)
    data = path.read_bytes()

    logger.info(f"Ingesting {path} as {filename}")

    with open_pool(args, settings) as pool:
        pipeline = IngestionPipeline(StagingStore(pool), source=settings.ingestion.source)
        result = pipeline.ingest(data, filename)

    print(f"\n{'=' * 60}")
    print("ROWS STAGED")
    print(f"{'=' * 60}\n")
    print(f"  Job ID:       {result.job_id}")
    print(f"  Total rows:   {result.total_rows}")
    print(f"  Valid rows:   {result.valid_rows}")
    print(f"  Invalid rows: {result.invalid_rows}")
    print(f"\n{'=' * 60}\n")


def promote_command(args, settings: Settings):
    job_id = validate_job_id(args.job_id)

    with open_pool(args, settings) as pool:
        result = PromotionEngine(pool).promote(job_id)

    print(f"\n{'=' * 60}")
    print("PROMOTION RESULTS")
    print(f"{'=' * 60}\n")
    print(f"  Job ID:    {result.job_id}")
    print(f"  Created:   {result.created}")
    print(f"  Updated:   {result.updated}")
    print(f"  Snapshots: {result.snapshots}")
    print(f"\n{'=' * 60}\n")


def list_jobs_command(args, settings: Settings):
    limit = validate_limit(args.limit or settings.ingestion.list_jobs_limit)

    with open_pool(args, settings) as pool:
        jobs = StagingStore(pool).list_jobs(limit=limit)

    if args.json:
        print(json.dumps([job.summary() for job in jobs], indent=2))
        return

    if not jobs:
        print("\nNo import jobs found.")
        return

    print(f"\n{'=' * 110}")
    print("IMPORT JOBS")
    print(f"{'=' * 110}\n")
    print(
        f"{'Job ID':<38} {'File':<24} {'Status':<11} "
        f"{'Total':>6} {'Valid':>6} {'Invalid':>8} {'Done':>6}  {'Created'}"
    )
    print(f"{'-' * 110}")

    for job in jobs:
        print(
            f"{str(job.id):<38} {job.filename[:24]:<24} {job.status.value:<11} "
            f"{job.total_rows:>6} {job.valid_rows:>6} {job.invalid_rows:>8} "
            f"{job.processed_rows:>6}  {format_timestamp(job.created_at)}"
        )

    print(f"\n{'=' * 110}\n")


def show_job_command(args, settings: Settings):
    job_id = validate_job_id(args.job_id)

    with open_pool(args, settings) as pool:
        store = StagingStore(pool)
        job = store.require_job(job_id)
        by_status = store.count_rows_by_status(job_id)

    print(json.dumps({**job.summary(), "rows_by_status": by_status}, indent=2))


def invalid_rows_command(args, settings: Settings):
    job_id = validate_job_id(args.job_id)

    with open_pool(args, settings) as pool:
        rows = StagingStore(pool).list_invalid_rows(job_id)

    if args.json:
        print(json.dumps(
            [{"id": str(r.id), "error": r.error, "raw_text": r.raw_text} for r in rows],
            indent=2,
            ensure_ascii=False,
        ))
        return

    if not rows:
        print(f"\nNo invalid rows for job {job_id}.")
        return

    print(f"\n{'=' * 100}")
    print(f"INVALID ROWS - Job: {job_id}")
    print(f"{'=' * 100}\n")
    print(f"Total invalid: {len(rows)}\n")

    for row in rows:
        print(f"Error: {row.error}")
        print(f"  Raw: {row.raw_text}")
        print()


def delete_job_command(args, settings: Settings):
    job_id = validate_job_id(args.job_id)

    with open_pool(args, settings) as pool:
        result = StagingStore(pool).delete_job(job_id)

    print(f"Deleted {result.deleted} job(s).")


def delete_all_jobs_command(args, settings: Settings):
    if not args.yes:
        raise InputValidationError("Refusing to delete every job without --yes")

    with open_pool(args, settings) as pool:
        result = StagingStore(pool).delete_all_jobs()

    print(f"Deleted {result.deleted} job(s).")


COMMANDS = {
    "init-db": init_db_command,
    "ingest": ingest_command,
    "promote": promote_command,
    "list-jobs": list_jobs_command,
    "show-job": show_job_command,
    "invalid-rows": invalid_rows_command,
    "delete-job": delete_job_command,
    "delete-all-jobs": delete_all_jobs_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stage product uploads and manage import jobs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", help="Path to YAML settings (default: config/stockflow.yaml)")
    parser.add_argument("--db-host", help="Database host")
    parser.add_argument("--db-port", type=int, help="Database port")
    parser.add_argument("--db-name", help="Database name")
    parser.add_argument("--db-user", help="Database user")
    parser.add_argument("--db-password", help="Database password")
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Serve Prometheus metrics on this port while the command runs",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create staging and catalog tables")

    ingest_parser = subparsers.add_parser("ingest", help="Stage a CSV/TSV file")
    ingest_parser.add_argument("file", help="Path to the file to stage")
    ingest_parser.add_argument("--filename", help="Name to record on the job (default: file name)")

    promote_parser = subparsers.add_parser("promote", help="Promote a job's valid rows into the catalog")
    promote_parser.add_argument("--job-id", required=True, help="Import job ID")

    list_parser = subparsers.add_parser("list-jobs", help="List recent import jobs")
    list_parser.add_argument("--limit", type=int, help="Maximum number of jobs to show")
    list_parser.add_argument("--json", action="store_true", help="Print JSON")

    show_parser = subparsers.add_parser("show-job", help="Show one import job")
    show_parser.add_argument("--job-id", required=True, help="Import job ID")

    invalid_parser = subparsers.add_parser("invalid-rows", help="List rejected rows of a job")
    invalid_parser.add_argument("--job-id", required=True, help="Import job ID")
    invalid_parser.add_argument("--json", action="store_true", help="Print JSON")

    delete_parser = subparsers.add_parser("delete-job", help="Delete a job and its rows")
    delete_parser.add_argument("--job-id", required=True, help="Import job ID")

    delete_all_parser = subparsers.add_parser("delete-all-jobs", help="Delete every job and row")
    delete_all_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for admin CLI."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    settings = load_settings(args.config)
    setup_logger("stockflow", level=settings.logging.level, format_type=settings.logging.format)

    try:
        if args.metrics_port:
            metrics.start_metrics_server(args.metrics_port)
            logger.info(f"Metrics server listening on port {args.metrics_port}")

        COMMANDS[args.command](args, settings)
    except ImportPipelineError as e:
        if e.kind is ImportErrorKind.NOT_FOUND:
            print(f"\nNot found: {e.message}")
            return EXIT_NOT_FOUND
        print(f"\nError ({e.reason}): {e.message}")
        if e.job_id:
            print(f"  Job ID: {e.job_id}")
        return EXIT_ERROR
    except InputValidationError as e:
        print(f"\nError: {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except (psycopg.Error, OSError, ValueError) as e:
        logger.error(f"Command {args.command} failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        return EXIT_ERROR

    return 0


if __name__ == "__main__":
    sys.exit(main())
