"""
Error taxonomy for staging and promotion.

Callers branch on ImportPipelineError.kind rather than on message text or
database error codes.
"""

from enum import Enum
from uuid import UUID


class ImportErrorKind(str, Enum):
    """Kinds of job-level failure."""

    EMPTY = "empty"
    UNPARSEABLE = "unparseable"
    MISSING_COLUMN = "missing-column"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not-found"

    @property
    def is_input_error(self) -> bool:
        return self in (
            ImportErrorKind.EMPTY,
            ImportErrorKind.UNPARSEABLE,
            ImportErrorKind.MISSING_COLUMN,
        )


class ImportPipelineError(Exception):
    """Raised when an upload cannot be staged or a job cannot be promoted."""

    def __init__(
        self,
        kind: ImportErrorKind,
        message: str,
        job_id: UUID | None = None,
        column: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.job_id = job_id
        self.column = column
        super().__init__(message)

    @property
    def reason(self) -> str:
        """Short machine-readable reason, e.g. ``missing-column:threshold``."""
        if self.kind is ImportErrorKind.MISSING_COLUMN and self.column:
            return f"{self.kind.value}:{self.column}"
        return self.kind.value

    def to_dict(self) -> dict[str, str | None]:
        return {
            "reason": self.reason,
            "error": self.message,
            "job_id": str(self.job_id) if self.job_id else None,
        }

    @classmethod
    def not_found(cls, job_id: UUID) -> "ImportPipelineError":
        return cls(ImportErrorKind.NOT_FOUND, f"Import job {job_id} not found", job_id=job_id)

    def __repr__(self) -> str:
        return f"ImportPipelineError(kind={self.kind.value}, message={self.message!r}, job_id={self.job_id})"
