"""
Core data models for the inventory ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .catalog import InventoryLevel, Product
from .import_job import ImportJob, JobStatus
from .results import DeleteResult, IngestResult, PromotionResult, RowVerdict
from .staging_row import RowStatus, StagingRow

__all__ = [
    "ImportJob",
    "JobStatus",
    "StagingRow",
    "RowStatus",
    "Product",
    "InventoryLevel",
    "RowVerdict",
    "IngestResult",
    "PromotionResult",
    "DeleteResult",
]
