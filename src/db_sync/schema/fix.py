"""Schema fix module -- bring working tables and columns up to template.

Phase 1 (``sync_tables``) creates template tables missing from working
using the template's literal CREATE TABLE text.  Phase 2
(``sync_columns``) adds template columns missing from shared tables via
``ALTER TABLE ... ADD COLUMN``.  Neither phase drops or alters anything
that already exists.

Usage:
    from db_sync.schema.fix import sync_tables, sync_columns

    created = await sync_tables(pair, options)
    added = await sync_columns(pair, options)
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from db_sync.schema.comparator import missing_columns, missing_tables, shared_tables
from db_sync.schema.models import ColumnDescriptor, SyncOptions

if TYPE_CHECKING:
    from db_sync.factory import DatabasePair

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote an identifier for SQLite.

    Names are bracket-quoted (``[name]``).  Brackets have no escape, so a
    name containing ``]`` is double-quoted instead with ``"`` doubled.

    Examples:
        >>> quote_identifier("tbl_Genre")
        '[tbl_Genre]'
        >>> quote_identifier('a]b"c')
        '"a]b""c"'
    """
    if "]" in name:
        return '"' + name.replace('"', '""') + '"'
    return f"[{name}]"


# ------------------------------------------------------------------
# Fix data classes
# ------------------------------------------------------------------


@dataclass
class TableFix:
    """A table to be created from its template DDL.

    Example:
        fix = TableFix(table="tbl_Genre", create_sql="CREATE TABLE tbl_Genre (...)")
        fix.to_sql()
        # 'CREATE TABLE tbl_Genre (...)'
    """

    table: str
    create_sql: str

    def to_sql(self) -> str:
        """Return the CREATE TABLE statement exactly as captured."""
        return self.create_sql


@dataclass
class ColumnFix:
    """A column to be added via ALTER TABLE.

    Example:
        fix = ColumnFix(table="tbl_Genre", column=ColumnDescriptor(
            name="Rank", declared_type="INTEGER", not_null=True, default_value="0"))
        fix.to_sql()
        # 'ALTER TABLE [tbl_Genre] ADD COLUMN [Rank] INTEGER NOT NULL DEFAULT 0'
    """

    table: str
    column: ColumnDescriptor

    def to_sql(self) -> str:
        """Generate ALTER TABLE ADD COLUMN statement.

        Type, NOT NULL and DEFAULT are copied from the template column.
        The primary-key flag is not carried (SQLite cannot add a PK
        column via ALTER).
        """
        col = self.column
        sql = (
            f"ALTER TABLE {quote_identifier(self.table)} "
            f"ADD COLUMN {quote_identifier(col.name)}"
        )
        if col.declared_type:
            sql += f" {col.declared_type}"
        if col.not_null:
            sql += " NOT NULL"
        if col.default_value is not None:
            sql += f" DEFAULT {col.default_value}"
        return sql


# ------------------------------------------------------------------
# Phases
# ------------------------------------------------------------------


async def sync_tables(pair: "DatabasePair", options: SyncOptions) -> list[TableFix]:
    """Create template tables that are missing from working.

    Args:
        pair: Open template/working handles and the inspector.
        options: Run options; nothing happens unless ``create_tables``.

    Returns:
        The ``TableFix`` entries executed (or suppressed in dry run), in
        template order.

    Raises:
        QueryExecutionError: On the first failing query or statement.
    """
    if not options.create_tables:
        logger.debug("Skipping table sync due to configuration")
        return []

    template_tables = await pair.inspector.list_tables(pair.template)
    working_names = await pair.inspector.list_table_names(pair.working)

    by_name = {table.name: table for table in template_tables}
    absent = missing_tables([t.name for t in template_tables], working_names)
    logger.info(f"Table sync: {len(absent)} new table(s)")

    fixes: list[TableFix] = []
    for name in absent:
        create_sql = by_name[name].create_sql
        if not create_sql:
            logger.warning(f"Template table '{name}' has no CREATE statement, skipped")
            continue
        fix = TableFix(table=name, create_sql=create_sql)
        await pair.working.execute(fix.to_sql())
        fixes.append(fix)

    return fixes


async def sync_columns(pair: "DatabasePair", options: SyncOptions) -> list[ColumnFix]:
    """Add template columns that are missing from shared working tables.

    Table lists are re-read here, so tables created by ``sync_tables``
    in the same run are included.

    Args:
        pair: Open template/working handles and the inspector.
        options: Run options; nothing happens unless ``create_columns``.

    Returns:
        The ``ColumnFix`` entries executed, tables in template order and
        columns in declaration order.

    Raises:
        QueryExecutionError: On the first failing query or statement.
    """
    if not options.create_columns:
        logger.debug("Skipping column sync due to configuration")
        return []

    template_names = await pair.inspector.list_table_names(pair.template)
    working_names = await pair.inspector.list_table_names(pair.working)
    tables = shared_tables(template_names, working_names)
    logger.info(f"Column sync: analyzing {len(tables)} table(s)")

    fixes: list[ColumnFix] = []
    for table in tables:
        template_cols = await pair.inspector.list_columns(pair.template, table)
        working_cols = await pair.inspector.list_columns(pair.working, table)

        absent = missing_columns(template_cols, working_cols)
        if absent:
            logger.debug(f"  {table}: {len(absent)} missing column(s)")

        for col in absent:
            fix = ColumnFix(table=table, column=col)
            await pair.working.execute(fix.to_sql())
            fixes.append(fix)

    return fixes
