"""
Tests for the database connection pool

Construction checks run without a database; the rest use testcontainers.
"""
import psycopg
import pytest

from stockflow.config import DatabaseSettings
from stockflow.store import DatabaseConnectionPool


@pytest.fixture
def container_pool_kwargs(postgres_container) -> dict:
    return {
        "host": postgres_container.get_container_host_ip(),
        "port": int(postgres_container.get_exposed_port(5432)),
        "database": "test_inventory",
        "user": "test_stockflow",
        "password": "test_password",
    }


@pytest.mark.unit
def test_password_required(monkeypatch):
    """Test that a pool cannot be built without a password"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(host="localhost")


@pytest.mark.unit
def test_settings_from_environment(monkeypatch):
    """Test that unset arguments fall back to DB_* variables"""
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("DB_NAME", "stock")
    monkeypatch.setenv("DB_USER", "reader")
    monkeypatch.setenv("DB_PASSWORD", "secret")

    pool = DatabaseConnectionPool()

    assert (pool.host, pool.port, pool.database, pool.user) == ("db.internal", 6543, "stock", "reader")
    assert "dbname=stock" in pool.conninfo


@pytest.mark.unit
def test_from_settings_with_overrides():
    """Test that non-None overrides win over settings"""
    settings = DatabaseSettings(host="db.internal", password="secret", max_pool_size=4)

    pool = DatabaseConnectionPool.from_settings(settings, host=None, port=6543)

    assert pool.host == "db.internal"
    assert pool.port == 6543
    assert pool.max_size == 4
    assert not pool.is_open


@pytest.mark.unit
def test_password_with_spaces_is_quoted():
    pool = DatabaseConnectionPool(password="two words")
    assert "password='two words'" in pool.conninfo


@pytest.mark.unit
def test_use_before_open_raises():
    """Test that the pool refuses work before open()"""
    pool = DatabaseConnectionPool(password="secret")

    with pytest.raises(RuntimeError):
        pool.execute_query("SELECT 1")


@pytest.mark.integration
def test_open_and_query(container_pool_kwargs):
    """Test opening the pool and reading dict rows"""
    with DatabaseConnectionPool(min_size=1, max_size=3, **container_pool_kwargs) as pool:
        assert pool._pool.min_size == 1
        assert pool._pool.max_size == 3

        result = pool.execute_query("SELECT 42 AS answer")
        assert result == [{"answer": 42}]


@pytest.mark.integration
def test_transaction_rolls_back_on_error(container_pool_kwargs):
    """Test that a failing block leaves nothing behind"""
    with DatabaseConnectionPool(**container_pool_kwargs) as pool:
        pool.execute_command("CREATE TABLE IF NOT EXISTS pool_probe (n INTEGER PRIMARY KEY)")
        pool.execute_command("TRUNCATE pool_probe")

        with pytest.raises(psycopg.errors.UniqueViolation):
            with pool.transaction() as cur:
                cur.execute("INSERT INTO pool_probe VALUES (1)")
                cur.execute("INSERT INTO pool_probe VALUES (1)")

        assert pool.execute_query("SELECT COUNT(*) AS n FROM pool_probe") == [{"n": 0}]
        pool.execute_command("DROP TABLE pool_probe")


@pytest.mark.integration
def test_close_is_idempotent(container_pool_kwargs):
    pool = DatabaseConnectionPool(**container_pool_kwargs)
    pool.open()
    pool.close()
    pool.close()

    assert pool._pool is None
