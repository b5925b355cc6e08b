"""Content sync from the template database into the working database.

Rows are matched by the table's single primary-key column.  Template
rows missing from working are inserted; rows present on both sides are
overwritten with the template's values (template wins).  Only syncable
columns -- those present in both databases -- are written, so columns
that exist only in working keep their values.  Rows are never deleted.

Every value, including the key used by the existence lookup, is passed
as a bound parameter.

Usage:
    from db_sync.schema.sync import sync_content

    stats = await sync_content(pair, options)
    print(stats.inserted, stats.updated)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from db_sync.errors import SchemaIntegrityError
from db_sync.schema.comparator import shared_tables, syncable_columns
from db_sync.schema.fix import quote_identifier
from db_sync.schema.models import ColumnDescriptor, RowRecord, SyncOptions

if TYPE_CHECKING:
    from db_sync.adapters.base import DatabaseHandle
    from db_sync.factory import DatabasePair

logger = logging.getLogger(__name__)

PK_PARAM = "pk"
CURRENT_FLAG = "is_current"


@dataclass
class ContentStats:
    """Row counters for one content phase."""

    inserted: int = 0
    updated: int = 0
    unchanged: int = 0

    def add(self, other: ContentStats) -> None:
        self.inserted += other.inserted
        self.updated += other.updated
        self.unchanged += other.unchanged


# ---------------------------------------------------------------------------
# Statement builders
# ---------------------------------------------------------------------------


def _key_clause(record: RowRecord) -> str:
    # IS is null-safe: a NULL key matches a NULL key
    return f"{quote_identifier(record.pk_column)} IS :{PK_PARAM}"


def _value_columns(record: RowRecord) -> list[str]:
    return [col for col in record.syncable_columns if col != record.pk_column]


def build_lookup(record: RowRecord) -> tuple[str, dict[str, Any]]:
    """Build the existence lookup for a template row.

    Returns one row per working row sharing the key.  Each row carries
    an ``is_current`` flag that is true when every syncable non-key
    column already holds the template value.  The comparison runs in
    SQLite, so the working column's type affinity applies to the bound
    template value.

    Example:
        >>> rec = RowRecord("tbl_Genre", "id_Genre", ("id_Genre", "Name"), {"id_Genre": 1, "Name": "Action"})
        >>> build_lookup(rec)
        ('SELECT ([Name] IS :p_0) AS is_current FROM [tbl_Genre] WHERE [id_Genre] IS :pk', {'p_0': 'Action', 'pk': 1})
    """
    checks: list[str] = []
    params: dict[str, Any] = {}

    for i, col in enumerate(_value_columns(record)):
        param_name = f"p_{i}"
        checks.append(f"{quote_identifier(col)} IS :{param_name}")
        params[param_name] = record.values.get(col)

    flag = f"({' AND '.join(checks)})" if checks else "1"
    params[PK_PARAM] = record.pk_value
    sql = (
        f"SELECT {flag} AS {CURRENT_FLAG} FROM {quote_identifier(record.table)} "
        f"WHERE {_key_clause(record)}"
    )
    return sql, params


def build_insert(record: RowRecord) -> tuple[str, dict[str, Any]]:
    """Build a parameterized INSERT over all syncable columns.

    Example:
        >>> rec = RowRecord("tbl_Genre", "id_Genre", ("id_Genre", "Name"), {"id_Genre": 1, "Name": "Action"})
        >>> build_insert(rec)
        ('INSERT INTO [tbl_Genre] ([id_Genre], [Name]) VALUES (:p_0, :p_1)', {'p_0': 1, 'p_1': 'Action'})
    """
    names: list[str] = []
    placeholders: list[str] = []
    params: dict[str, Any] = {}

    for i, col in enumerate(record.syncable_columns):
        param_name = f"p_{i}"
        names.append(quote_identifier(col))
        placeholders.append(f":{param_name}")
        params[param_name] = record.values.get(col)

    sql = (
        f"INSERT INTO {quote_identifier(record.table)} "
        f"({', '.join(names)}) VALUES ({', '.join(placeholders)})"
    )
    return sql, params


def build_update(record: RowRecord) -> tuple[str, dict[str, Any]] | None:
    """Build a parameterized UPDATE over syncable non-key columns.

    Returns ``None`` when the key is the only syncable column (nothing
    to set).

    Example:
        >>> rec = RowRecord("tbl_Genre", "id_Genre", ("id_Genre", "Name"), {"id_Genre": 1, "Name": "Action"})
        >>> build_update(rec)
        ('UPDATE [tbl_Genre] SET [Name] = :p_0 WHERE [id_Genre] IS :pk', {'p_0': 'Action', 'pk': 1})
    """
    set_parts: list[str] = []
    params: dict[str, Any] = {}

    for i, col in enumerate(_value_columns(record)):
        param_name = f"p_{i}"
        set_parts.append(f"{quote_identifier(col)} = :{param_name}")
        params[param_name] = record.values.get(col)

    if not set_parts:
        return None

    params[PK_PARAM] = record.pk_value
    sql = (
        f"UPDATE {quote_identifier(record.table)} SET {', '.join(set_parts)} "
        f"WHERE {_key_clause(record)}"
    )
    return sql, params


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _primary_key_column(
    table: str,
    template_cols: list[ColumnDescriptor],
    working_cols: list[ColumnDescriptor],
) -> str:
    """Resolve the single PK column, checking it exists in working.

    Raises:
        SchemaIntegrityError: Zero or several template PK columns, or the
            PK column is missing from working.
    """
    pk_columns = [col.name for col in template_cols if col.is_primary_key]

    if not pk_columns:
        raise SchemaIntegrityError(
            f"No primary key column found in template table '{table}'",
            details={"table": table},
        )
    if len(pk_columns) > 1:
        raise SchemaIntegrityError(
            f"Multiple primary key columns found in template table '{table}'",
            details={"table": table, "pk_columns": pk_columns},
        )

    pk_column = pk_columns[0]
    if pk_column not in {col.name for col in working_cols}:
        raise SchemaIntegrityError(
            f"Primary key column '{pk_column}' not found in working table '{table}'",
            details={"table": table, "pk_column": pk_column},
        )
    return pk_column


async def _sync_row(working: DatabaseHandle, record: RowRecord) -> str:
    """Insert or update one template row in working.

    Returns:
        ``"inserted"``, ``"updated"`` or ``"unchanged"``.

    Raises:
        SchemaIntegrityError: More than one working row shares the key.
        QueryExecutionError: The lookup or the write failed.
    """
    lookup_sql, lookup_params = build_lookup(record)
    matches = await working.fetch_all(lookup_sql, lookup_params)

    if not matches:
        sql, params = build_insert(record)
        await working.execute(sql, params)
        return "inserted"

    if len(matches) > 1:
        raise SchemaIntegrityError(
            f"{len(matches)} working rows in '{record.table}' share "
            f"{record.pk_column}={record.pk_value!r}",
            details={
                "table": record.table,
                "pk_column": record.pk_column,
                "count": len(matches),
            },
        )

    update = build_update(record)
    if update is None or matches[0][CURRENT_FLAG]:
        return "unchanged"
    sql, params = update
    await working.execute(sql, params)
    return "updated"


async def _sync_table_content(pair: DatabasePair, table: str) -> ContentStats:
    """Reconcile the rows of one shared table."""
    stats = ContentStats()
    logger.debug(f"  analyzing table {table}")

    template_rows = await pair.template.fetch_all(
        f"SELECT * FROM {quote_identifier(table)}"
    )
    if not template_rows:
        return stats

    template_cols = await pair.inspector.list_columns(pair.template, table)
    working_cols = await pair.inspector.list_columns(pair.working, table)

    pk_column = _primary_key_column(table, template_cols, working_cols)
    columns = syncable_columns(template_cols, working_cols)
    logger.debug(f"    PK column: {pk_column}, {len(columns)} syncable column(s)")

    for row in template_rows:
        record = RowRecord(
            table=table,
            pk_column=pk_column,
            syncable_columns=columns,
            values=row,
        )
        outcome = await _sync_row(pair.working, record)
        setattr(stats, outcome, getattr(stats, outcome) + 1)

    logger.debug(
        f"    {stats.inserted} inserted, {stats.updated} updated, "
        f"{stats.unchanged} unchanged"
    )
    return stats


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def sync_content(pair: DatabasePair, options: SyncOptions) -> ContentStats:
    """Copy template row content into every shared working table.

    Tables are processed in template order and rows in fetch order,
    strictly one at a time.  The first failure stops the phase; rows
    already written stay written.

    Args:
        pair: Open template/working handles and the inspector.
        options: Run options; nothing happens unless ``copy_content``.

    Returns:
        ``ContentStats`` totals across all tables.

    Raises:
        SchemaIntegrityError: A table has zero or several template PK
            columns, its PK is missing in working, or a key matches more
            than one working row.
        QueryExecutionError: Any query or statement failure.
    """
    totals = ContentStats()

    if not options.copy_content:
        logger.debug("Skipping content sync due to configuration")
        return totals

    template_names = await pair.inspector.list_table_names(pair.template)
    working_names = await pair.inspector.list_table_names(pair.working)
    tables = shared_tables(template_names, working_names)
    logger.info(f"Content sync: analyzing {len(tables)} table(s)")

    for table in tables:
        totals.add(await _sync_table_content(pair, table))

    return totals
