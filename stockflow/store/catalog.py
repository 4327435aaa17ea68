"""
Idempotent product upserts and inventory snapshots.

Implements INSERT ... ON CONFLICT (sku) DO UPDATE. created_at and updated_at
come from a single clock_timestamp() per statement, so they are equal only
for a row that statement inserted.
"""

from uuid import UUID

import psycopg

from stockflow.core.models import InventoryLevel, Product

from .connection import DatabaseConnectionPool

PRODUCT_COLUMNS = "id, sku, name, quantity, threshold, created_at, updated_at"

UPSERT_PRODUCT_SQL = f"""
    WITH ts AS (SELECT clock_timestamp() AS now)
    INSERT INTO product (sku, name, quantity, threshold, created_at, updated_at)
    SELECT %s, %s, %s, %s, ts.now, ts.now FROM ts
    ON CONFLICT (sku) DO UPDATE SET
        name = EXCLUDED.name,
        quantity = EXCLUDED.quantity,
        threshold = EXCLUDED.threshold,
        updated_at = EXCLUDED.updated_at
    RETURNING {PRODUCT_COLUMNS}
"""


class CatalogWriter:
    """
    Writes to product and inventory_level inside a caller-owned transaction.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def upsert_product(
        self, cur: psycopg.Cursor, sku: str, name: str, quantity: int, threshold: int
    ) -> Product:
        """
        Create the product for ``sku`` or overwrite its name, quantity and threshold.

        Returns:
            The product as stored after the upsert
        """
        cur.execute(UPSERT_PRODUCT_SQL, (sku, name, quantity, threshold))
        return Product.model_validate(cur.fetchone())

    def insert_snapshots(self, cur: psycopg.Cursor, products: list[Product]) -> int:
        """
        Append one inventory_level row per product with its current quantity.

        Returns:
            Number of snapshots written
        """
        if not products:
            return 0

        cur.executemany(
            "INSERT INTO inventory_level (product_id, quantity) VALUES (%s, %s)",
            [(p.id, p.quantity) for p in products],
        )
        return len(products)

    # =======================
    # READS
    # =======================

    def get_product(self, sku: str) -> Product | None:
        result = self.pool.execute_query(
            f"SELECT {PRODUCT_COLUMNS} FROM product WHERE sku = %s",
            (sku,),
        )
        return Product.model_validate(result[0]) if result else None

    def list_snapshots(self, product_id: UUID) -> list[InventoryLevel]:
        result = self.pool.execute_query(
            """
            SELECT id, product_id, quantity, taken_at
            FROM inventory_level
            WHERE product_id = %s
            ORDER BY taken_at DESC
            """,
            (product_id,),
        )
        return [InventoryLevel.model_validate(r) for r in result]
