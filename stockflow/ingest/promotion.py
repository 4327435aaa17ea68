"""
Promotion of staged rows into the product catalog.

Upserts, snapshots, row status flips and the job counter update share one
transaction, so the catalog is never ahead of its inventory audit trail.
"""

from uuid import UUID

import psycopg

from stockflow.core.errors import ImportErrorKind, ImportPipelineError
from stockflow.core.models import Product, PromotionResult
from stockflow.observability import metrics
from stockflow.observability.logger import get_logger, log_operation
from stockflow.store import CatalogWriter, DatabaseConnectionPool, StagingStore

logger = get_logger(__name__)

PROMOTION_FAILED_MESSAGE = "Failed to normalize staged rows"


class PromotionEngine:
    """
    Turns a job's VALID staging rows into products and inventory snapshots.

    The job row is locked FOR UPDATE for the duration of the transaction, so
    concurrent promotions of the same job run one after the other and the
    second finds no VALID rows left.
    """

    def __init__(
        self,
        pool: DatabaseConnectionPool,
        store: StagingStore | None = None,
        catalog: CatalogWriter | None = None,
    ):
        """
        Initialize promotion engine.

        Args:
            pool: Database connection pool
            store: Staging persistence (defaults to one on the same pool)
            catalog: Catalog writer (defaults to one on the same pool)
        """
        self.pool = pool
        self.store = store or StagingStore(pool)
        self.catalog = catalog or CatalogWriter(pool)

    def promote(self, job_id: UUID) -> PromotionResult:
        """
        Promote every VALID row of a job.

        Args:
            job_id: Job to promote

        Returns:
            PromotionResult with created/updated/snapshot counts

        Raises:
            ImportPipelineError: NOT_FOUND for an unknown job, PERSISTENCE if
                the transaction fails (nothing is committed)
        """
        with log_operation("Promoting staged rows", logger=logger, job_id=str(job_id)) as op:
            try:
                result = self._promote(job_id)
            except psycopg.DatabaseError as e:
                logger.error(
                    f"Promotion transaction failed for job {job_id}: {e}",
                    extra={"job_id": str(job_id)},
                )
                raise ImportPipelineError(
                    ImportErrorKind.PERSISTENCE, PROMOTION_FAILED_MESSAGE, job_id=job_id
                ) from e

            metrics.record_promotion(result.created, result.updated, result.snapshots, op.elapsed)
            return result

    def _promote(self, job_id: UUID) -> PromotionResult:
        created = 0
        updated = 0

        with self.pool.transaction() as cur:
            job = self.store.lock_job(cur, job_id)
            if job is None:
                raise ImportPipelineError.not_found(job_id)

            # Last upsert wins when a job repeats a SKU; one snapshot per product.
            touched: dict[UUID, Product] = {}
            promoted_ids: list[UUID] = []

            for row in self.store.fetch_valid_rows(cur, job_id):
                if not row.is_promotable:
                    logger.warning(
                        f"Skipping VALID row {row.id} with missing typed fields",
                        extra={"job_id": str(job_id), "row_id": str(row.id)},
                    )
                    continue

                product = self.catalog.upsert_product(
                    cur, row.sku, row.name, row.quantity, row.threshold
                )
                if product.was_created:
                    created += 1
                else:
                    updated += 1

                touched[product.id] = product
                promoted_ids.append(row.id)

            snapshots = self.catalog.insert_snapshots(cur, list(touched.values()))
            self.store.mark_processed(cur, promoted_ids)
            if touched:
                self.store.add_processed_rows(cur, job_id, len(touched))

        logger.info(
            f"Promoted {len(promoted_ids)} rows: {created} created, {updated} updated",
            extra={
                "job_id": str(job_id),
                "products_created": created,
                "products_updated": updated,
                "snapshots": snapshots,
            },
        )

        return PromotionResult(job_id=job_id, created=created, updated=updated, snapshots=snapshots)
