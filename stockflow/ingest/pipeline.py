"""
Staging orchestration for uploaded product files.

Coordinates the flow: decode → sniff → tokenize → check header → validate →
stage rows → complete job
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import psycopg

from stockflow.core.errors import ImportErrorKind, ImportPipelineError
from stockflow.core.models import IngestResult, JobStatus, RowStatus, RowVerdict, StagingRow
from stockflow.core.validators import RowValidator, find_missing_column
from stockflow.observability import metrics
from stockflow.observability.logger import get_logger, log_operation
from stockflow.store import StagingStore

from .csv_reader import CSVReader, ParsedTable
from .delimiter import first_line, sniff_delimiter
from .encoding import normalize_encoding

logger = get_logger(__name__)

EMPTY_MESSAGE = "Uploaded file is empty."
UNPARSEABLE_MESSAGE = (
    "CSV appears empty or could not be parsed. "
    "Ensure it's comma/semicolon/tab-delimited with a header row."
)
PERSISTENCE_MESSAGE = "Failed to import CSV"


def serialize_raw(row: dict[str, Any]) -> str:
    """Verbatim JSON copy of a parsed row for the audit trail."""
    return json.dumps(row, ensure_ascii=False)


def build_staging_row(job_id: UUID, raw: dict[str, Any], verdict: RowVerdict, created_at: datetime) -> StagingRow:
    if verdict.passed:
        return StagingRow(
            job_id=job_id,
            raw_text=serialize_raw(raw),
            sku=verdict.sku,
            name=verdict.name,
            quantity=verdict.quantity,
            threshold=verdict.threshold,
            status=RowStatus.VALID,
            created_at=created_at,
        )
    return StagingRow(
        job_id=job_id,
        raw_text=serialize_raw(raw),
        status=RowStatus.INVALID,
        error=verdict.error,
        created_at=created_at,
    )


class IngestionPipeline:
    """
    Stages one uploaded file as an ImportJob plus one StagingRow per input row.

    Flow:
    1. Create the job (PROCESSING)
    2. Normalize encoding, sniff the delimiter, tokenize with fallback
    3. Fail the job if nothing parsed or a required column is missing
    4. Validate every row and insert all rows in one transaction
    5. Complete the job with its counts
    """

    def __init__(
        self,
        store: StagingStore,
        reader: CSVReader | None = None,
        validator: RowValidator | None = None,
        source: str = "csv",
    ):
        """
        Initialize ingestion pipeline.

        Args:
            store: Staging persistence
            reader: Tokenizer (defaults to CSVReader)
            validator: Row rules (defaults to RowValidator)
            source: Origin tag recorded on each job
        """
        self.store = store
        self.reader = reader or CSVReader()
        self.validator = validator or RowValidator()
        self.source = source

    def parse(self, data: bytes) -> ParsedTable:
        """Decode and tokenize an upload without touching the database."""
        return self._tokenize(normalize_encoding(data))

    def _tokenize(self, text: str) -> ParsedTable:
        guessed = sniff_delimiter(first_line(text))
        table = self.reader.read_with_fallback(text, guessed)

        if not table.rows:
            logger.warning(
                "CSV parse produced no rows",
                extra={"length": len(text), "guessed": guessed, "sample": text[:200]},
            )
        return table

    def ingest(self, data: bytes, filename: str) -> IngestResult:
        """
        Stage an uploaded file.

        Args:
            data: Raw upload bytes
            filename: Original file name

        Returns:
            IngestResult with the job id and row counts

        Raises:
            ImportPipelineError: EMPTY, UNPARSEABLE or MISSING_COLUMN for bad
                input, PERSISTENCE if the job or its rows could not be stored
        """
        with log_operation("Staging upload", logger=logger, upload_filename=filename) as op:
            try:
                job = self.store.create_job(filename=filename, source=self.source)
                result = self._stage(job.id, data)
            except psycopg.DatabaseError as e:
                metrics.record_ingestion(
                    self.source, JobStatus.FAILED.value, ImportErrorKind.PERSISTENCE.value, 0, 0, op.elapsed
                )
                raise ImportPipelineError(ImportErrorKind.PERSISTENCE, PERSISTENCE_MESSAGE) from e
            except ImportPipelineError as e:
                metrics.record_ingestion(
                    self.source, JobStatus.FAILED.value, e.kind.value, 0, 0, op.elapsed
                )
                raise

            metrics.record_ingestion(
                self.source,
                JobStatus.COMPLETED.value,
                "ok",
                result.valid_rows,
                result.invalid_rows,
                op.elapsed,
            )
            return result

    def _stage(self, job_id: UUID, data: bytes) -> IngestResult:
        text = normalize_encoding(data)

        if not text.strip():
            self.store.fail_job(job_id, total_rows=0)
            raise ImportPipelineError(ImportErrorKind.EMPTY, EMPTY_MESSAGE, job_id=job_id)

        table = self._tokenize(text)
        if not table.rows:
            self.store.fail_job(job_id, total_rows=0)
            raise ImportPipelineError(ImportErrorKind.UNPARSEABLE, UNPARSEABLE_MESSAGE, job_id=job_id)

        total = len(table.rows)

        missing = find_missing_column(table.columns)
        if missing is not None:
            self.store.fail_job(job_id, total_rows=total)
            raise ImportPipelineError(
                ImportErrorKind.MISSING_COLUMN,
                f"Missing required column '{missing}'",
                job_id=job_id,
                column=missing,
            )

        # Monotonic created_at keeps rows listed in upload order.
        started = datetime.now(timezone.utc)
        rows = [
            build_staging_row(job_id, raw, self.validator.validate(raw), started + timedelta(microseconds=i))
            for i, raw in enumerate(table.rows)
        ]
        valid = sum(1 for r in rows if r.status is RowStatus.VALID)
        invalid = total - valid

        try:
            self.store.stage_rows(rows)
        except psycopg.DatabaseError as e:
            logger.error(
                f"Staging transaction failed for job {job_id}: {e}",
                extra={"job_id": str(job_id)},
                exc_info=True,
            )
            self.store.fail_job(job_id, total_rows=total)
            raise ImportPipelineError(
                ImportErrorKind.PERSISTENCE, PERSISTENCE_MESSAGE, job_id=job_id
            ) from e

        self.store.complete_job(job_id, total_rows=total, valid_rows=valid, invalid_rows=invalid)

        logger.info(
            f"Staged {total} rows ({valid} valid, {invalid} invalid)",
            extra={
                "job_id": str(job_id),
                "delimiter": table.delimiter,
                "total_rows": total,
                "valid_rows": valid,
                "invalid_rows": invalid,
            },
        )

        return IngestResult(job_id=job_id, total_rows=total, valid_rows=valid, invalid_rows=invalid)
