"""
Pytest configuration and fixtures for stockflow tests

This module provides shared fixtures for unit, integration, and E2E tests.
Database fixtures start PostgreSQL with testcontainers and are skipped when
Docker is not reachable.
"""
import logging
import os
from typing import Generator

import pytest

from stockflow.store import DatabaseConnectionPool, StagingStore, CatalogWriter, create_schema, truncate_all


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )


# =======================
# LOGGING
# =======================

@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo logger reconfiguration done by a test (handlers may point at capsys)"""
    logger = logging.getLogger("stockflow")
    saved = (list(logger.handlers), logger.level, logger.propagate)

    yield

    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    try:
        from testcontainers.postgres import PostgresContainer

        container = PostgresContainer(
            image="postgres:16.2-alpine",
            username="test_stockflow",
            password="test_password",
            dbname="test_inventory",
        )
        container.start()
    except Exception as e:  # docker missing or daemon unreachable
        pytest.skip(f"PostgreSQL container unavailable: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Session-wide connection pool with the schema created

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_inventory",
        user="test_stockflow",
        password="test_password",
        min_size=1,
        max_size=5,
    )
    pool.open()
    create_schema(pool)

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Provide the pool with every pipeline table truncated

    Returns:
        Open DatabaseConnectionPool over empty tables
    """
    truncate_all(db_pool)
    return db_pool


@pytest.fixture
def staging_store(clean_db) -> StagingStore:
    return StagingStore(clean_db)


@pytest.fixture
def catalog(clean_db) -> CatalogWriter:
    return CatalogWriter(clean_db)


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def read_fixture(test_data_dir):
    """Return a loader for fixture files as raw bytes."""
    def _read(name: str) -> bytes:
        with open(os.path.join(test_data_dir, name), "rb") as f:
            return f.read()
    return _read
