"""Async SQLite database adapter.

Provides ``AsyncSQLiteAdapter``, an async implementation of the
``DatabaseHandle`` protocol using SQLAlchemy's async engine with the
``aiosqlite`` driver.

Statements are sent to the driver as-is (``exec_driver_sql``) so that
literal DDL captured from ``sqlite_master`` is never re-parsed for bind
parameters.  Named ``:param`` placeholders are handled by SQLite itself.

Usage:
    from db_sync.adapters.sqlite import AsyncSQLiteAdapter

    adapter = AsyncSQLiteAdapter("data/working.db", dry_run=True)
    rows = await adapter.fetch_all("SELECT * FROM [tbl_Genre]")
    await adapter.close()
"""

import logging
from pathlib import Path
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from db_sync.errors import QueryExecutionError

logger = logging.getLogger(__name__)


def create_sqlite_engine(database_path: str | Path, **kwargs: Any) -> AsyncEngine:
    """Create an async SQLAlchemy engine for a SQLite file.

    The URL is built with ``URL.create`` so paths containing spaces or
    URL-reserved characters need no quoting.

    Args:
        database_path: Path to the SQLite database file.
        **kwargs: Additional keyword arguments forwarded to
            ``create_async_engine``.

    Returns:
        Configured ``AsyncEngine``.
    """
    url = URL.create("sqlite+aiosqlite", database=str(database_path))

    defaults: dict[str, Any] = {"echo": False}
    # Caller kwargs override defaults
    merged = {**defaults, **kwargs}

    return create_async_engine(url, **merged)


class AsyncSQLiteAdapter:
    """Async SQLite implementation of the ``DatabaseHandle`` protocol.

    Every mutating call to ``execute()`` is appended to ``statements``,
    whether it ran or was suppressed.

    Args:
        database_path: Path to the SQLite database file.
        dry_run: If ``True``, ``execute()`` logs and records statements
            without running them.  Reads still hit the database.
        read_only: If ``True``, ``execute()`` raises
            ``QueryExecutionError``.  Used for the template database.
        **engine_kwargs: Additional keyword arguments forwarded to
            ``create_sqlite_engine``.

    Example:
        adapter = AsyncSQLiteAdapter("template.db", read_only=True)
        tables = await adapter.fetch_all("SELECT tbl_name FROM sqlite_master")
        await adapter.close()
    """

    def __init__(
        self,
        database_path: str | Path,
        dry_run: bool = False,
        read_only: bool = False,
        **engine_kwargs: Any,
    ) -> None:
        self.database_path = str(database_path)
        self.dry_run = dry_run
        self.read_only = read_only
        self.statements: list[str] = []
        self._engine: AsyncEngine | None = create_sqlite_engine(
            database_path, **engine_kwargs
        )

    # ------------------------------------------------------------------
    # Statement Methods
    # ------------------------------------------------------------------

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> None:
        """Execute a mutating statement.

        Uses ``engine.begin()`` for automatic commit on success, rollback
        on error.
        """
        if self.read_only:
            raise QueryExecutionError(
                f"Refusing to modify read-only database {self.database_path}",
                details={"sql": sql},
            )

        self.statements.append(sql)

        if self.dry_run:
            logger.info(f"SQL suppressed due to dry run: {sql}")
            return

        logger.debug(f"Executing on {self.database_path}: {sql}")
        try:
            async with self._get_engine().begin() as conn:
                await self._run(conn, sql, params)
        except SQLAlchemyError as e:
            logger.debug(f"Statement failed: {sql} params={params}")
            raise QueryExecutionError(
                f"Statement failed on {self.database_path}: {e}",
                details={"sql": sql, "params": params},
            ) from e

    async def fetch_all(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run a query and return all rows as dicts."""
        try:
            async with self._get_engine().connect() as conn:
                result = await self._run(conn, sql, params)
                col_names = list(result.keys())
                rows = result.fetchall()
        except SQLAlchemyError as e:
            raise QueryExecutionError(
                f"Query failed on {self.database_path}: {e}",
                details={"sql": sql, "params": params},
            ) from e
        return [dict(zip(col_names, row)) for row in rows]

    async def fetch_one(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Run a query and return the first row, or ``None``."""
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    async def fetch_scalar(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Run a query and return the first column of the first row."""
        row = await self.fetch_one(sql, params)
        if row is None:
            return None
        return next(iter(row.values()), None)

    async def close(self) -> None:
        """Close the async engine and dispose of the connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None

    # ------------------------------------------------------------------
    # Connection Test
    # ------------------------------------------------------------------

    async def test_connection(self) -> bool:
        """Test database connection health.

        Counts ``sqlite_master`` rows, which forces the connection open
        and the file header to be read (a non-database file fails here).

        Returns:
            ``True`` if the database connection succeeds.

        Raises:
            QueryExecutionError: If the database cannot be reached.
        """
        return await self.fetch_scalar("SELECT count(*) FROM sqlite_master") is not None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(f"Adapter for {self.database_path} is closed")
        return self._engine

    @staticmethod
    async def _run(conn: Any, sql: str, params: dict[str, Any] | None) -> Any:
        if params:
            return await conn.exec_driver_sql(sql, params)
        return await conn.exec_driver_sql(sql)
