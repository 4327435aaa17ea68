"""
PostgreSQL connection pool for the staging and catalog tables (psycopg3)

Rows come back as dicts (dict_row) so stores can hand them straight to
pydantic's model_validate.
"""
import os
import time
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from stockflow.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    Thin wrapper over psycopg_pool.ConnectionPool

    Arguments left as None fall back to the DB_* environment variables.
    Work is done either through the one-shot helpers (execute_query,
    execute_command) or inside transaction(), which the pipeline uses for
    every all-or-nothing batch.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 2,
        max_size: int = 10,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host: Database host (DB_HOST, default localhost)
            port: Database port (DB_PORT, default 5432)
            database: Database name (DB_NAME, default inventory)
            user: Database user (DB_USER, default stockflow)
            password: Database password (DB_PASSWORD, required)
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Seconds to wait for a connection

        Raises:
            ValueError: If no password is available
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "inventory")
        self.user = user or os.getenv("DB_USER", "stockflow")
        self.password = password or os.getenv("DB_PASSWORD")

        if not self.password:
            raise ValueError(
                "Database password must be provided. "
                "Set DB_PASSWORD environment variable or pass to constructor."
            )

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        # make_conninfo quotes values containing spaces or quotes
        self.conninfo = make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=int(self.timeout),
        )

        self._pool: ConnectionPool | None = None

    @classmethod
    def from_settings(cls, settings: Any, **overrides) -> "DatabaseConnectionPool":
        """
        Build a pool from DatabaseSettings, letting non-None overrides win.

        Args:
            settings: stockflow.config.DatabaseSettings
            **overrides: Constructor arguments (e.g. from CLI flags)
        """
        kwargs = settings.pool_kwargs()
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is unreachable.

        Each attempt builds a fresh ConnectionPool so a failed one never
        lingers with background workers.

        Args:
            max_retries: Maximum number of connection attempts
            retry_delay: Seconds between attempts

        Raises:
            OperationalError: If every attempt fails
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            pool = ConnectionPool(
                conninfo=self.conninfo,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.timeout,
                kwargs={"row_factory": dict_row},
                open=False,
            )
            try:
                pool.open(wait=True, timeout=self.timeout)
            except OperationalError as e:  # PoolTimeout is a subclass
                pool.close()
                if attempt == max_retries:
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e
                logger.warning(
                    f"Database not reachable (attempt {attempt}/{max_retries}), retrying",
                    extra={"host": self.host, "port": self.port, "database": self.database},
                )
                time.sleep(retry_delay)
            else:
                self._pool = pool
                logger.debug(
                    "Connection pool open",
                    extra={"host": self.host, "database": self.database, "max_size": self.max_size},
                )
                return

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self) -> Iterator[psycopg.Connection]:
        """
        Borrow a connection; it commits on clean exit and rolls back on error.

        Raises:
            RuntimeError: If the pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[psycopg.Cursor]:
        """
        Run a block as one all-or-nothing transaction

        Yields:
            Cursor bound to the open transaction
        """
        with self.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    yield cur

    def execute_query(self, query: str, params: tuple | None = None) -> list[dict]:
        """
        Run a SELECT (or a command with RETURNING) and fetch every row.

        Returns:
            One dict per row
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchall()

    def execute_command(self, command: str, params: tuple | None = None) -> int:
        """
        Run an INSERT/UPDATE/DELETE and commit it.

        Returns:
            Number of rows affected
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(command, params)
                return cur.rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
