"""Models for schema introspection and synchronization.

This module contains sync-domain models:
- Introspection models: TableDescriptor, ColumnDescriptor
- Row model: RowRecord
- Run models: SyncOptions, SyncState, SyncResult
- Comparison models: ColumnDiff, SchemaDiff

Configuration models live in db_sync.config.models; the error value
(SyncErrorInfo) lives in db_sync.errors.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from db_sync.errors import SyncErrorInfo


# ============================================================================
# Schema Introspection Models
# ============================================================================


class TableDescriptor(BaseModel):
    """A user table and the literal DDL needed to recreate it.

    Example:
        >>> t = TableDescriptor(name="tbl_Genre", create_sql="CREATE TABLE tbl_Genre (id INTEGER)")
        >>> t.name
        'tbl_Genre'
    """

    name: str
    create_sql: str | None = None


class ColumnDescriptor(BaseModel):
    """A column as reported by ``pragma_table_info``.

    ``default_value`` is the default *literal* exactly as declared
    (e.g. ``'n/a'`` with quotes, or ``0``), ready to be embedded in DDL.

    Example:
        >>> col = ColumnDescriptor(name="Name", declared_type="TEXT")
        >>> col.not_null, col.is_primary_key
        (False, False)
    """

    name: str
    declared_type: str = ""
    not_null: bool = False
    default_value: str | None = None
    is_primary_key: bool = False


# ============================================================================
# Row Model
# ============================================================================


@dataclass
class RowRecord:
    """A template row annotated for content synchronization.

    Attributes:
        table: Owning table name.
        pk_column: The single primary-key column name.
        syncable_columns: Template columns that also exist in working,
            in template declaration order.
        values: Column name to value, as fetched from the template.
    """

    table: str
    pk_column: str
    syncable_columns: tuple[str, ...]
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def pk_value(self) -> Any:
        return self.values.get(self.pk_column)


# ============================================================================
# Run Models
# ============================================================================


class SyncOptions(BaseModel):
    """Per-phase switches.  A disabled phase is skipped entirely."""

    create_tables: bool = True
    create_columns: bool = True
    copy_content: bool = True


class SyncState(str, Enum):
    """Orchestrator states.  ``FAILED`` is absorbing."""

    IDLE = "idle"
    VALIDATING_PATHS = "validating_paths"
    SYNCING_TABLES = "syncing_tables"
    SYNCING_COLUMNS = "syncing_columns"
    SYNCING_CONTENT = "syncing_content"
    DONE = "done"
    FAILED = "failed"


class SyncResult(BaseModel):
    """Result of a synchronization run.

    Attributes:
        success: Whether the run reached ``DONE``.
        state: Final orchestrator state (``DONE`` or ``FAILED``).
        failed_phase: State the run was in when it failed.
        dry_run: Whether mutating statements were suppressed.
        tables_created: Tables created in the working database.
        columns_added: Columns added to working tables.
        rows_inserted: Template rows inserted into working.
        rows_updated: Working rows overwritten with template values.
        rows_unchanged: Working rows that already matched the template.
        statements: Mutating statements issued (or suppressed) against
            working, in order.
        error: First error of the run, if any.
    """

    success: bool = False
    state: SyncState = SyncState.IDLE
    failed_phase: SyncState | None = None
    dry_run: bool = False
    tables_created: int = 0
    columns_added: int = 0
    rows_inserted: int = 0
    rows_updated: int = 0
    rows_unchanged: int = 0
    statements: list[str] = Field(default_factory=list)
    error: SyncErrorInfo | None = None


# ============================================================================
# Comparison Models
# ============================================================================


class ColumnDiff(BaseModel):
    """A template column missing from a working table."""

    table: str
    column: str
    declared_type: str = ""
    message: str = ""


class SchemaDiff(BaseModel):
    """Schema differences between template and working.

    Example:
        >>> diff = SchemaDiff(in_sync=True)
        >>> diff.format_report()
        'Schemas in sync'
    """

    in_sync: bool
    missing_tables: list[str] = Field(default_factory=list)
    missing_columns: list[ColumnDiff] = Field(default_factory=list)
    extra_tables: list[str] = Field(default_factory=list)  # Working-only, never touched

    @property
    def difference_count(self) -> int:
        """Count of differences a sync would fix (tables + columns)."""
        return len(self.missing_tables) + len(self.missing_columns)

    def format_report(self) -> str:
        """Format comparison as human-readable report."""
        if self.in_sync:
            return "Schemas in sync"

        lines = ["Working schema differs from template:"]

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in self.missing_tables:
                lines.append(f"    - {table}")

        if self.missing_columns:
            lines.append(f"\n  Missing columns ({len(self.missing_columns)}):")
            for diff in self.missing_columns:
                lines.append(f"    - {diff.table}.{diff.column}")

        if self.extra_tables:
            lines.append(f"\n  Working-only tables (kept): {', '.join(self.extra_tables)}")

        return "\n".join(lines)
