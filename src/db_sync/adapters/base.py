"""Database handle protocol definition.

Defines the ``DatabaseHandle`` Protocol that the sync engine talks to.
All methods are ``async def`` -- every database operation suspends the
caller until its result is available.

Usage:
    from db_sync.adapters.base import DatabaseHandle

    async def do_work(handle: DatabaseHandle) -> None:
        rows = await handle.fetch_all("SELECT * FROM [tbl_Genre]")
        await handle.execute(
            "UPDATE [tbl_Genre] SET [Name] = :p_0 WHERE [id_Genre] IS :pk",
            {"p_0": "Action", "pk": 1},
        )
        await handle.close()
"""

from typing import Any, Protocol

# Values SQLite hands back and accepts: NULL, INTEGER, REAL, TEXT, BLOB
SqlValue = int | float | str | bytes | None


class DatabaseHandle(Protocol):
    """Handle interface that the synchronizers and inspector depend on.

    Statements use named ``:param`` placeholders and a dict of values.
    Storage failures are raised as ``QueryExecutionError``.
    """

    # Mutating statements passed to execute(), in call order
    statements: list[str]

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> None:
        """Execute a statement that produces no result (DDL or DML).

        Args:
            sql: SQL statement text.
            params: Optional dict of named parameters.

        Example:
            await handle.execute(
                "ALTER TABLE [tbl_Genre] ADD COLUMN [Rank] INTEGER"
            )
        """
        ...

    async def fetch_one(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Return the first row of a query as a dict, or ``None``."""
        ...

    async def fetch_all(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Return every row of a query as a list of dicts (column order kept)."""
        ...

    async def fetch_scalar(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Return the first column of the first row, or ``None``."""
        ...

    async def close(self) -> None:
        """Release the underlying connection resources."""
        ...
