"""
StagingRow model: one input row's validation verdict and promotion outcome.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

from .import_job import utcnow


class RowStatus(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"
    PROCESSED = "PROCESSED"


TYPED_FIELDS = ("sku", "name", "quantity", "threshold")


class StagingRow(BaseModel):
    """
    A staged input row.

    Typed fields are populated only for VALID/PROCESSED rows; INVALID rows
    carry the rejection reason in ``error`` and their verbatim content in
    ``raw_text``.
    """

    id: UUID = Field(default_factory=uuid4)
    job_id: UUID
    raw_text: str
    sku: str | None = None
    name: str | None = None
    quantity: int | None = Field(None, ge=0)
    threshold: int | None = Field(None, ge=0)
    status: RowStatus
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    processed_at: datetime | None = None

    @model_validator(mode="after")
    def check_status_consistency(self) -> "StagingRow":
        populated = [getattr(self, f) is not None for f in TYPED_FIELDS]

        if self.status is RowStatus.INVALID:
            if any(populated):
                raise ValueError("INVALID rows must not carry typed fields")
            if not self.error:
                raise ValueError("INVALID rows require an error reason")
        else:
            if self.error is not None:
                raise ValueError(f"{self.status.value} rows must not carry an error")
            if self.status is RowStatus.PROCESSED and not all(populated):
                raise ValueError("PROCESSED rows require sku, name, quantity and threshold")

        return self

    @property
    def is_promotable(self) -> bool:
        """VALID with every typed field present."""
        return self.status is RowStatus.VALID and all(
            getattr(self, f) is not None for f in TYPED_FIELDS
        )
