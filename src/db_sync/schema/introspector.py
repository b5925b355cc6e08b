"""SQLite schema introspection via sqlite_master and pragma_table_info.

This module queries a live database through a ``DatabaseHandle`` to
extract:
- User tables and the literal CREATE TABLE statement of each
- Columns: name, declared type, nullability, default literal, PK flag

System tables (``sqlite_*``) and the internal properties table are
never reported.
"""

import logging

from db_sync.adapters.base import DatabaseHandle
from db_sync.schema.models import ColumnDescriptor, TableDescriptor

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = "sqlite"
PROPERTIES_TABLE = "xtb_Database_Properties"


class SchemaInspector:
    """Introspects SQLite database schema.

    The inspector is stateless apart from its exclusion rules, so one
    instance can be shared between the template and working handles.

    Usage:
        inspector = SchemaInspector()
        tables = await inspector.list_tables(handle)
        columns = await inspector.list_columns(handle, "tbl_Genre")
    """

    def __init__(
        self,
        system_prefix: str = SYSTEM_PREFIX,
        excluded_tables: set[str] | frozenset[str] | None = None,
    ):
        """Initialize with exclusion rules.

        Args:
            system_prefix: Tables whose name starts with this prefix
                (case-insensitive) are skipped.
            excluded_tables: Exact table names to skip.  Defaults to the
                internal properties table.
        """
        self.system_prefix = system_prefix.lower()
        self.excluded_tables = frozenset(
            {PROPERTIES_TABLE} if excluded_tables is None else excluded_tables
        )

    def is_excluded(self, table_name: str) -> bool:
        """True if *table_name* is a system or internal table."""
        if self.system_prefix and table_name.lower().startswith(self.system_prefix):
            return True
        return table_name in self.excluded_tables

    async def list_tables(self, handle: DatabaseHandle) -> list[TableDescriptor]:
        """Get user tables in ``sqlite_master`` order.

        Raises:
            QueryExecutionError: If the catalog query fails.
        """
        query = """
            SELECT tbl_name, sql
            FROM sqlite_master
            WHERE type = 'table'
            ORDER BY rowid
        """
        rows = await handle.fetch_all(query)
        tables = [
            TableDescriptor(name=row["tbl_name"], create_sql=row["sql"])
            for row in rows
            if not self.is_excluded(row["tbl_name"])
        ]
        logger.debug(f"Found {len(tables)} user tables")
        return tables

    async def list_table_names(self, handle: DatabaseHandle) -> list[str]:
        """Get user table names only (lightweight helper)."""
        return [table.name for table in await self.list_tables(handle)]

    async def list_columns(
        self, handle: DatabaseHandle, table_name: str
    ) -> list[ColumnDescriptor]:
        """Get columns for a table in declaration order.

        Uses the table-valued ``pragma_table_info()`` function so the
        table name is passed as a parameter.

        Raises:
            QueryExecutionError: If the pragma query fails.
        """
        query = """
            SELECT name, type, "notnull", dflt_value, pk
            FROM pragma_table_info(:table_name)
            ORDER BY cid
        """
        rows = await handle.fetch_all(query, {"table_name": table_name})
        return [
            ColumnDescriptor(
                name=row["name"],
                declared_type=row["type"] or "",
                not_null=bool(row["notnull"]),
                default_value=row["dflt_value"],
                # pk holds the 1-based position inside the key, 0 otherwise
                is_primary_key=bool(row["pk"]),
            )
            for row in rows
        ]
