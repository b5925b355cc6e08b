"""Schema introspection, comparison, and synchronization phases.

Provides live database introspection (``SchemaInspector``), schema
comparison (``compare_schemas``), the table and column phases
(``sync_tables``, ``sync_columns``) and the content phase
(``sync_content``).

Usage:
    from db_sync.schema import SchemaInspector, compare_schemas
    from db_sync.schema import sync_tables, sync_columns, sync_content
"""

from db_sync.schema.comparator import compare_schemas
from db_sync.schema.fix import ColumnFix, TableFix, sync_columns, sync_tables
from db_sync.schema.introspector import SchemaInspector
from db_sync.schema.models import (
    ColumnDescriptor,
    ColumnDiff,
    RowRecord,
    SchemaDiff,
    SyncOptions,
    SyncResult,
    SyncState,
    TableDescriptor,
)
from db_sync.schema.sync import (
    ContentStats,
    build_insert,
    build_update,
    sync_content,
)

__all__ = [
    "compare_schemas",
    "SchemaInspector",
    "TableDescriptor",
    "ColumnDescriptor",
    "ColumnDiff",
    "SchemaDiff",
    "RowRecord",
    "SyncOptions",
    "SyncResult",
    "SyncState",
    "sync_tables",
    "sync_columns",
    "TableFix",
    "ColumnFix",
    "sync_content",
    "ContentStats",
    "build_insert",
    "build_update",
]
