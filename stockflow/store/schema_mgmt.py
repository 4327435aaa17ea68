"""
DDL for the staging and catalog tables.

create_schema() is idempotent and intended for local databases and test
containers; production databases are expected to be provisioned already.
"""

from .connection import DatabaseConnectionPool

STAGING_DDL = """
CREATE TABLE IF NOT EXISTS import_job (
    id             UUID PRIMARY KEY,
    source         TEXT NOT NULL DEFAULT 'csv',
    filename       TEXT NOT NULL,
    status         TEXT NOT NULL
                   CHECK (status IN ('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED')),
    total_rows     INTEGER NOT NULL DEFAULT 0 CHECK (total_rows >= 0),
    valid_rows     INTEGER NOT NULL DEFAULT 0 CHECK (valid_rows >= 0),
    invalid_rows   INTEGER NOT NULL DEFAULT 0 CHECK (invalid_rows >= 0),
    processed_rows INTEGER NOT NULL DEFAULT 0 CHECK (processed_rows >= 0),
    created_at     TIMESTAMPTZ NOT NULL DEFAULT now(),
    completed_at   TIMESTAMPTZ,
    CONSTRAINT import_job_processed_le_valid CHECK (processed_rows <= valid_rows)
);

CREATE INDEX IF NOT EXISTS idx_import_job_created_at ON import_job (created_at DESC);

CREATE TABLE IF NOT EXISTS staging_row (
    id           UUID PRIMARY KEY,
    job_id       UUID NOT NULL REFERENCES import_job (id) ON DELETE CASCADE,
    raw_text     TEXT NOT NULL,
    sku          TEXT,
    name         TEXT,
    quantity     INTEGER CHECK (quantity >= 0),
    threshold    INTEGER CHECK (threshold >= 0),
    status       TEXT NOT NULL CHECK (status IN ('VALID', 'INVALID', 'PROCESSED')),
    error        TEXT,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    processed_at TIMESTAMPTZ,
    CONSTRAINT staging_row_invalid_shape CHECK (
        status <> 'INVALID' OR (
            sku IS NULL AND name IS NULL AND quantity IS NULL AND threshold IS NULL
            AND error IS NOT NULL AND error <> ''
        )
    ),
    CONSTRAINT staging_row_typed_shape CHECK (
        status = 'INVALID' OR (
            sku IS NOT NULL AND name IS NOT NULL AND quantity IS NOT NULL
            AND threshold IS NOT NULL AND error IS NULL
        )
    )
);

CREATE INDEX IF NOT EXISTS idx_staging_row_job_status ON staging_row (job_id, status);
"""

CATALOG_DDL = """
CREATE TABLE IF NOT EXISTS product (
    id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    sku        TEXT NOT NULL UNIQUE,
    name       TEXT NOT NULL,
    quantity   INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
    threshold  INTEGER NOT NULL DEFAULT 0 CHECK (threshold >= 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS inventory_level (
    id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    product_id UUID NOT NULL REFERENCES product (id) ON DELETE CASCADE,
    quantity   INTEGER NOT NULL CHECK (quantity >= 0),
    taken_at   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_inventory_level_product ON inventory_level (product_id, taken_at DESC);
"""

TABLES = ("inventory_level", "product", "staging_row", "import_job")


def create_schema(pool: DatabaseConnectionPool) -> None:
    """
    Create the staging and catalog tables if they do not exist.

    Args:
        pool: Open database connection pool
    """
    with pool.transaction() as cur:
        cur.execute(STAGING_DDL)
        cur.execute(CATALOG_DDL)


def truncate_all(pool: DatabaseConnectionPool) -> None:
    """Remove every row from the pipeline tables (tests and local resets)."""
    with pool.transaction() as cur:
        cur.execute(f"TRUNCATE TABLE {', '.join(TABLES)} CASCADE")
