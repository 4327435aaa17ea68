"""
ImportJob model representing one upload attempt and its aggregate counters.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator


class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImportJob(BaseModel):
    """
    One upload attempt.

    Attributes:
        id: Opaque unique identifier
        source: Origin tag (e.g. "csv")
        filename: Name of the uploaded file
        status: PENDING, PROCESSING, COMPLETED or FAILED
        total_rows: Rows parsed from the upload
        valid_rows: Rows staged VALID
        invalid_rows: Rows staged INVALID (or rejected wholesale on failure)
        processed_rows: Products touched by promotion
        created_at: When the upload started
        completed_at: When the job reached a terminal status
    """

    id: UUID = Field(default_factory=uuid4)
    source: str = Field("csv", min_length=1)
    filename: str
    status: JobStatus = JobStatus.PROCESSING
    total_rows: int = Field(0, ge=0)
    valid_rows: int = Field(0, ge=0)
    invalid_rows: int = Field(0, ge=0)
    processed_rows: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def check_counters(self) -> "ImportJob":
        """Terminal jobs must account for every row; promotion never exceeds valid rows."""
        if self.status.is_terminal and self.valid_rows + self.invalid_rows != self.total_rows:
            raise ValueError(
                f"valid_rows ({self.valid_rows}) + invalid_rows ({self.invalid_rows}) "
                f"must equal total_rows ({self.total_rows}) for a {self.status.value} job"
            )
        if self.processed_rows > self.valid_rows:
            raise ValueError(
                f"processed_rows ({self.processed_rows}) cannot exceed valid_rows ({self.valid_rows})"
            )
        return self

    def summary(self) -> dict:
        """Flat JSON-friendly view used by list/inspect output."""
        return {
            "id": str(self.id),
            "filename": self.filename,
            "status": self.status.value,
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "processed_rows": self.processed_rows,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    class Config:
        json_schema_extra = {
            "example": {
                "id": "7f1c6a2e-4c1b-4f7e-9d0a-1b2c3d4e5f60",
                "source": "csv",
                "filename": "products.csv",
                "status": "COMPLETED",
                "total_rows": 3,
                "valid_rows": 2,
                "invalid_rows": 1,
                "processed_rows": 0
            }
        }
