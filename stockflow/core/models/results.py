"""
Result payloads returned by the ingestion, promotion and admin operations.
"""

from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class RowVerdict(BaseModel):
    """
    Outcome of validating one row (ephemeral, not persisted as such).

    Either all four normalized fields are set and ``error`` is None, or the
    row is rejected with ``error`` and the name of the rule that failed.
    """

    passed: bool
    sku: str | None = None
    name: str | None = None
    quantity: int | None = None
    threshold: int | None = None
    error: str | None = None
    failed_rule: str | None = None
    failed_field: str | None = None

    @model_validator(mode="after")
    def check_passed_consistency(self) -> "RowVerdict":
        if self.passed and self.error is not None:
            raise ValueError("passed=True but error is set")
        if not self.passed and not self.error:
            raise ValueError("passed=False requires an error")
        return self


class IngestResult(BaseModel):
    job_id: UUID
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    invalid_rows: int = Field(..., ge=0)


class PromotionResult(BaseModel):
    job_id: UUID
    created: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    snapshots: int = Field(0, ge=0)


class DeleteResult(BaseModel):
    deleted: int = Field(..., ge=0)
