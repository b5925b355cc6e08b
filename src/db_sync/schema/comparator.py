"""Schema comparison using set operations.

Compares template descriptors against working descriptors.  Pure logic
-- no I/O, no database connections.  Every helper preserves template
order, since the synchronizers process tables and columns in that order.

Usage:
    from db_sync.schema.comparator import compare_schemas

    diff = compare_schemas(
        template_tables=["tbl_Genre", "tbl_Movies"],
        working_tables=["tbl_Movies"],
        template_columns={"tbl_Movies": template_movie_cols},
        working_columns={"tbl_Movies": working_movie_cols},
    )
    print(diff.format_report())
"""

from collections.abc import Iterable, Sequence

from db_sync.schema.models import ColumnDescriptor, ColumnDiff, SchemaDiff


def missing_tables(
    template_tables: Iterable[str], working_tables: Iterable[str]
) -> list[str]:
    """Template table names absent from working (exact, case-sensitive)."""
    working = set(working_tables)
    return [name for name in template_tables if name not in working]


def shared_tables(
    template_tables: Iterable[str], working_tables: Iterable[str]
) -> list[str]:
    """Table names present in both databases, in template order."""
    working = set(working_tables)
    return [name for name in template_tables if name in working]


def missing_columns(
    template_columns: Sequence[ColumnDescriptor],
    working_columns: Sequence[ColumnDescriptor],
) -> list[ColumnDescriptor]:
    """Template columns absent from working, in declaration order."""
    working = {col.name for col in working_columns}
    return [col for col in template_columns if col.name not in working]


def syncable_columns(
    template_columns: Sequence[ColumnDescriptor],
    working_columns: Sequence[ColumnDescriptor],
) -> tuple[str, ...]:
    """Column names present on both sides, in template order.

    Working-only columns are never part of the result, so content sync
    leaves them untouched.

    Examples:
        >>> t = [ColumnDescriptor(name="id"), ColumnDescriptor(name="Name")]
        >>> w = [ColumnDescriptor(name="Name"), ColumnDescriptor(name="Note"), ColumnDescriptor(name="id")]
        >>> syncable_columns(t, w)
        ('id', 'Name')
    """
    working = {col.name for col in working_columns}
    return tuple(col.name for col in template_columns if col.name in working)


def compare_schemas(
    template_tables: Sequence[str],
    working_tables: Sequence[str],
    template_columns: dict[str, Sequence[ColumnDescriptor]],
    working_columns: dict[str, Sequence[ColumnDescriptor]],
) -> SchemaDiff:
    """Compare template schema against working schema.

    Finds:
    - Missing tables: in template, not in working
    - Missing columns: in a shared table's template definition only
    - Extra tables: working-only (reported, never touched)

    Args:
        template_tables: Template table names, in template order.
        working_tables: Working table names.
        template_columns: Column descriptors per shared template table.
        working_columns: Column descriptors per shared working table.

    Returns:
        ``SchemaDiff`` with ``in_sync`` set when nothing is missing.

    Examples:
        >>> diff = compare_schemas(["a", "b"], ["b", "c"], {}, {})
        >>> diff.missing_tables, diff.extra_tables
        (['a'], ['c'])
    """
    diffs: list[ColumnDiff] = []
    for table in shared_tables(template_tables, working_tables):
        for col in missing_columns(
            template_columns.get(table, []), working_columns.get(table, [])
        ):
            diffs.append(
                ColumnDiff(
                    table=table,
                    column=col.name,
                    declared_type=col.declared_type,
                    message=f"Column '{col.name}' missing from table '{table}'",
                )
            )

    absent = missing_tables(template_tables, working_tables)
    extra = missing_tables(working_tables, template_tables)

    return SchemaDiff(
        in_sync=not absent and not diffs,
        missing_tables=absent,
        missing_columns=diffs,
        extra_tables=extra,
    )
