"""
Catalog entities touched by promotion: Product and InventoryLevel.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class Product(BaseModel):
    """Catalog product keyed by unique SKU."""

    id: UUID
    sku: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    threshold: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime

    @property
    def was_created(self) -> bool:
        """An upsert that inserted leaves both timestamps equal."""
        return self.created_at == self.updated_at


class InventoryLevel(BaseModel):
    """Append-only quantity snapshot for a product."""

    id: UUID | None = None
    product_id: UUID
    quantity: int = Field(..., ge=0)
    taken_at: datetime | None = None
