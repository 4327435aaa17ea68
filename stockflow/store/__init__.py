"""
PostgreSQL persistence for staging and catalog tables.
"""

from .catalog import CatalogWriter
from .connection import DatabaseConnectionPool
from .schema_mgmt import create_schema, truncate_all
from .staging import StagingStore

__all__ = [
    "DatabaseConnectionPool",
    "StagingStore",
    "CatalogWriter",
    "create_schema",
    "truncate_all",
]
