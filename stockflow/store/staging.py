"""
Staging persistence: import jobs and their rows.

Job status updates are guarded by ``status = 'PROCESSING'`` so a job never
moves backwards once it reaches COMPLETED or FAILED.
"""

from typing import Any
from uuid import UUID

import psycopg

from stockflow.core.errors import ImportPipelineError
from stockflow.core.models import DeleteResult, ImportJob, JobStatus, RowStatus, StagingRow
from stockflow.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

JOB_COLUMNS = """
    id, source, filename, status, total_rows, valid_rows, invalid_rows,
    processed_rows, created_at, completed_at
"""

ROW_COLUMNS = """
    id, job_id, raw_text, sku, name, quantity, threshold, status, error,
    created_at, processed_at
"""


class StagingStore:
    """
    Reads and writes import_job and staging_row.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize staging store.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    # =======================
    # JOB LIFECYCLE
    # =======================

    def create_job(self, filename: str, source: str = "csv") -> ImportJob:
        """
        Insert a new job in PROCESSING state.

        Args:
            filename: Uploaded file name
            source: Origin tag

        Returns:
            The persisted ImportJob
        """
        job = ImportJob(filename=filename, source=source, status=JobStatus.PROCESSING)
        result = self.pool.execute_query(
            f"""
            INSERT INTO import_job (id, source, filename, status, created_at)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {JOB_COLUMNS}
            """,
            (job.id, job.source, job.filename, job.status.value, job.created_at),
        )
        return ImportJob.model_validate(result[0])

    def fail_job(self, job_id: UUID, total_rows: int = 0) -> int:
        """
        Move a PROCESSING job to FAILED.

        Every parsed row is counted as invalid so the row counters still add up.

        Args:
            job_id: Job to fail
            total_rows: Rows parsed before the failure

        Returns:
            Number of jobs updated (0 if the job was already terminal or missing)
        """
        return self.pool.execute_command(
            """
            UPDATE import_job
            SET status = %s, total_rows = %s, valid_rows = 0, invalid_rows = %s,
                completed_at = now()
            WHERE id = %s AND status = %s
            """,
            (JobStatus.FAILED.value, total_rows, total_rows, job_id, JobStatus.PROCESSING.value),
        )

    def complete_job(
        self, job_id: UUID, total_rows: int, valid_rows: int, invalid_rows: int
    ) -> ImportJob | None:
        """
        Move a PROCESSING job to COMPLETED with its final counts.

        Returns:
            The updated job, or None if it was not PROCESSING
        """
        result = self.pool.execute_query(
            f"""
            UPDATE import_job
            SET status = %s, total_rows = %s, valid_rows = %s, invalid_rows = %s,
                completed_at = now()
            WHERE id = %s AND status = %s
            RETURNING {JOB_COLUMNS}
            """,
            (
                JobStatus.COMPLETED.value,
                total_rows,
                valid_rows,
                invalid_rows,
                job_id,
                JobStatus.PROCESSING.value,
            ),
        )
        return ImportJob.model_validate(result[0]) if result else None

    def stage_rows(self, rows: list[StagingRow]) -> int:
        """
        Insert all rows of a job in a single transaction.

        Args:
            rows: StagingRow instances

        Returns:
            Number of rows inserted

        Raises:
            psycopg.DatabaseError: If any insert fails; nothing is committed
        """
        if not rows:
            return 0

        params = [
            (
                r.id,
                r.job_id,
                r.raw_text,
                r.sku,
                r.name,
                r.quantity,
                r.threshold,
                r.status.value,
                r.error,
                r.created_at,
            )
            for r in rows
        ]

        try:
            with self.pool.transaction() as cur:
                cur.executemany(
                    """
                    INSERT INTO staging_row (
                        id, job_id, raw_text, sku, name, quantity, threshold,
                        status, error, created_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    params,
                )
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to stage {len(rows)} rows: {e}")
            raise

        logger.debug(f"Staged {len(rows)} rows", extra={"job_id": str(rows[0].job_id)})
        return len(rows)

    # =======================
    # QUERIES
    # =======================

    def get_job(self, job_id: UUID) -> ImportJob | None:
        result = self.pool.execute_query(
            f"SELECT {JOB_COLUMNS} FROM import_job WHERE id = %s",
            (job_id,),
        )
        return ImportJob.model_validate(result[0]) if result else None

    def require_job(self, job_id: UUID) -> ImportJob:
        job = self.get_job(job_id)
        if job is None:
            raise ImportPipelineError.not_found(job_id)
        return job

    def list_jobs(self, limit: int = 50) -> list[ImportJob]:
        """
        List jobs, most recent first.

        Args:
            limit: Maximum number of jobs to return
        """
        result = self.pool.execute_query(
            f"""
            SELECT {JOB_COLUMNS}
            FROM import_job
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [ImportJob.model_validate(r) for r in result]

    def list_rows(self, job_id: UUID, status: RowStatus | None = None) -> list[StagingRow]:
        """
        List a job's rows in insertion order, optionally filtered by status.
        """
        query = f"SELECT {ROW_COLUMNS} FROM staging_row WHERE job_id = %s"
        params: list[Any] = [job_id]

        if status is not None:
            query += " AND status = %s"
            params.append(status.value)

        query += " ORDER BY created_at, id"

        return [StagingRow.model_validate(r) for r in self.pool.execute_query(query, tuple(params))]

    def list_invalid_rows(self, job_id: UUID) -> list[StagingRow]:
        """
        INVALID rows of a job with their error and raw content.

        Raises:
            ImportPipelineError: NOT_FOUND if the job does not exist
        """
        self.require_job(job_id)
        return self.list_rows(job_id, RowStatus.INVALID)

    def count_rows_by_status(self, job_id: UUID) -> dict[str, int]:
        result = self.pool.execute_query(
            """
            SELECT status, COUNT(*) AS count
            FROM staging_row
            WHERE job_id = %s
            GROUP BY status
            """,
            (job_id,),
        )
        return {r["status"]: r["count"] for r in result}

    # =======================
    # DELETES
    # =======================

    def delete_job(self, job_id: UUID) -> DeleteResult:
        """
        Delete a job and, by cascade, its rows.

        Raises:
            ImportPipelineError: NOT_FOUND if the job does not exist
        """
        deleted = self.pool.execute_command("DELETE FROM import_job WHERE id = %s", (job_id,))
        if deleted == 0:
            raise ImportPipelineError.not_found(job_id)

        logger.info(f"Deleted import job {job_id}", extra={"job_id": str(job_id)})
        return DeleteResult(deleted=deleted)

    def delete_all_jobs(self) -> DeleteResult:
        deleted = self.pool.execute_command("DELETE FROM import_job")
        logger.info(f"Deleted {deleted} import jobs")
        return DeleteResult(deleted=deleted)

    # =======================
    # PROMOTION HELPERS (caller owns the transaction)
    # =======================

    def lock_job(self, cur: psycopg.Cursor, job_id: UUID) -> ImportJob | None:
        """Fetch a job with a row lock held until the caller's transaction ends."""
        cur.execute(f"SELECT {JOB_COLUMNS} FROM import_job WHERE id = %s FOR UPDATE", (job_id,))
        row = cur.fetchone()
        return ImportJob.model_validate(row) if row else None

    def fetch_valid_rows(self, cur: psycopg.Cursor, job_id: UUID) -> list[StagingRow]:
        cur.execute(
            f"""
            SELECT {ROW_COLUMNS}
            FROM staging_row
            WHERE job_id = %s AND status = %s
            ORDER BY created_at, id
            """,
            (job_id, RowStatus.VALID.value),
        )
        return [StagingRow.model_validate(r) for r in cur.fetchall()]

    def mark_processed(self, cur: psycopg.Cursor, row_ids: list[UUID]) -> int:
        """Flip the given VALID rows to PROCESSED."""
        if not row_ids:
            return 0
        cur.execute(
            """
            UPDATE staging_row
            SET status = %s, processed_at = now()
            WHERE id = ANY(%s) AND status = %s
            """,
            (RowStatus.PROCESSED.value, row_ids, RowStatus.VALID.value),
        )
        return cur.rowcount

    def add_processed_rows(self, cur: psycopg.Cursor, job_id: UUID, count: int) -> None:
        cur.execute(
            "UPDATE import_job SET processed_rows = processed_rows + %s WHERE id = %s",
            (count, job_id),
        )
