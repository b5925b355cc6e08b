"""Tests for the table and column phases.

Verifies the generated ALTER TABLE shape, that disabled phases do not
touch either database, and that missing tables/columns are created in
template order against real SQLite files.
"""

from unittest.mock import AsyncMock

import pytest

from db_helpers import GENRE_DDL, column_info, make_db, read_rows, table_names

from db_sync.errors import QueryExecutionError
from db_sync.factory import DatabasePair, open_database_pair
from db_sync.schema.fix import ColumnFix, TableFix, quote_identifier, sync_columns, sync_tables
from db_sync.schema.introspector import SchemaInspector
from db_sync.schema.models import ColumnDescriptor, SyncOptions


# ------------------------------------------------------------------
# Statement shapes
# ------------------------------------------------------------------


class TestStatementShapes:
    """ColumnFix / TableFix SQL."""

    def test_plain_column(self) -> None:
        fix = ColumnFix("tbl_Genre", ColumnDescriptor(name="Note", declared_type="TEXT"))
        assert fix.to_sql() == "ALTER TABLE [tbl_Genre] ADD COLUMN [Note] TEXT"

    def test_not_null_and_default(self) -> None:
        fix = ColumnFix(
            "tbl_Genre",
            ColumnDescriptor(
                name="Rank", declared_type="INTEGER", not_null=True, default_value="0"
            ),
        )
        assert fix.to_sql() == (
            "ALTER TABLE [tbl_Genre] ADD COLUMN [Rank] INTEGER NOT NULL DEFAULT 0"
        )

    def test_default_literal_copied_verbatim(self) -> None:
        fix = ColumnFix(
            "t", ColumnDescriptor(name="Path", declared_type="TEXT", default_value="'n/a'")
        )
        assert fix.to_sql().endswith("DEFAULT 'n/a'")

    def test_primary_key_flag_not_carried(self) -> None:
        fix = ColumnFix(
            "t", ColumnDescriptor(name="id", declared_type="INTEGER", is_primary_key=True)
        )
        assert "PRIMARY" not in fix.to_sql()

    def test_table_fix_returns_literal_ddl(self) -> None:
        assert TableFix("tbl_Genre", GENRE_DDL).to_sql() == GENRE_DDL

    def test_plain_identifier_bracketed(self) -> None:
        assert quote_identifier("x y") == "[x y]"

    def test_bracket_in_identifier_switches_to_double_quotes(self) -> None:
        assert quote_identifier('a]b"c') == '"a]b""c"'

    @pytest.mark.asyncio
    async def test_odd_names_run_against_sqlite(self, template_path, working_path) -> None:
        """Quoted names containing ], quotes and spaces are valid SQL."""
        make_db(
            template_path,
            'CREATE TABLE "a]b" ("i]d" INTEGER PRIMARY KEY, "x y" TEXT DEFAULT \'q\', '
            '"say ""hi""" TEXT)',
        )
        make_db(working_path, 'CREATE TABLE "a]b" ("i]d" INTEGER PRIMARY KEY)')

        pair = await open_database_pair(template_path, working_path)
        try:
            fixes = await sync_columns(pair, SyncOptions())
        finally:
            await pair.close()

        assert [f.column.name for f in fixes] == ["x y", 'say "hi"']
        assert [c[0] for c in column_info(working_path, "a]b")] == [
            "i]d", "x y", 'say "hi"',
        ]


# ------------------------------------------------------------------
# Disabled phases
# ------------------------------------------------------------------


def _mock_pair() -> DatabasePair:
    return DatabasePair(template=AsyncMock(), working=AsyncMock(), inspector=SchemaInspector())


class TestDisabledPhases:
    """A disabled phase never queries either database."""

    @pytest.mark.asyncio
    async def test_tables_disabled(self) -> None:
        pair = _mock_pair()
        result = await sync_tables(pair, SyncOptions(create_tables=False))

        assert result == []
        pair.template.fetch_all.assert_not_called()
        pair.working.fetch_all.assert_not_called()
        pair.working.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_columns_disabled(self) -> None:
        pair = _mock_pair()
        result = await sync_columns(pair, SyncOptions(create_columns=False))

        assert result == []
        pair.template.fetch_all.assert_not_called()
        pair.working.execute.assert_not_called()


# ------------------------------------------------------------------
# Table phase
# ------------------------------------------------------------------


class TestSyncTables:
    """sync_tables against real files."""

    @pytest.mark.asyncio
    async def test_creates_missing_tables_in_template_order(
        self, template_path, working_path
    ) -> None:
        make_db(
            template_path,
            "CREATE TABLE tbl_B (id INTEGER PRIMARY KEY)",
            GENRE_DDL,
            "CREATE TABLE tbl_A (id INTEGER PRIMARY KEY, Label TEXT)",
        )
        make_db(working_path, "CREATE TABLE tbl_B (id INTEGER PRIMARY KEY)")

        pair = await open_database_pair(template_path, working_path)
        try:
            fixes = await sync_tables(pair, SyncOptions())
        finally:
            await pair.close()

        assert [f.table for f in fixes] == ["tbl_Genre", "tbl_A"]
        assert table_names(working_path) == ["tbl_B", "tbl_Genre", "tbl_A"]
        assert read_rows(
            working_path, "SELECT sql FROM sqlite_master WHERE name = 'tbl_Genre'"
        ) == [(GENRE_DDL,)]

    @pytest.mark.asyncio
    async def test_existing_tables_untouched(self, template_path, working_path) -> None:
        make_db(template_path, GENRE_DDL)
        make_db(
            working_path,
            "CREATE TABLE tbl_Genre (id_Genre INTEGER PRIMARY KEY)",
            "CREATE TABLE tbl_Mine (x TEXT)",
        )

        pair = await open_database_pair(template_path, working_path)
        try:
            fixes = await sync_tables(pair, SyncOptions())
        finally:
            await pair.close()

        assert fixes == []
        assert pair.working.statements == []
        assert table_names(working_path) == ["tbl_Genre", "tbl_Mine"]

    @pytest.mark.asyncio
    async def test_name_match_is_case_sensitive(self, template_path, working_path) -> None:
        """A differently-cased working table counts as absent; SQLite then
        rejects the CREATE and the phase fails."""
        make_db(template_path, GENRE_DDL)
        make_db(working_path, "CREATE TABLE TBL_GENRE (id INTEGER PRIMARY KEY)")

        pair = await open_database_pair(template_path, working_path)
        try:
            with pytest.raises(QueryExecutionError):
                await sync_tables(pair, SyncOptions())
        finally:
            await pair.close()

    @pytest.mark.asyncio
    async def test_failure_stops_remaining_tables(self) -> None:
        pair = _mock_pair()
        pair.template.fetch_all = AsyncMock(
            return_value=[
                {"tbl_name": "tbl_A", "sql": "CREATE TABLE tbl_A (id)"},
                {"tbl_name": "tbl_B", "sql": "CREATE TABLE tbl_B (id)"},
            ]
        )
        pair.working.fetch_all = AsyncMock(return_value=[])
        pair.working.execute = AsyncMock(side_effect=QueryExecutionError("disk full"))

        with pytest.raises(QueryExecutionError):
            await sync_tables(pair, SyncOptions())

        assert pair.working.execute.await_count == 1


# ------------------------------------------------------------------
# Column phase
# ------------------------------------------------------------------


class TestSyncColumns:
    """sync_columns against real files."""

    @pytest.mark.asyncio
    async def test_adds_missing_columns_with_attributes(
        self, template_path, working_path
    ) -> None:
        make_db(
            template_path,
            "CREATE TABLE tbl_Genre ("
            "id_Genre INTEGER PRIMARY KEY, Name TEXT, "
            "Rank INTEGER NOT NULL DEFAULT 5, Path TEXT DEFAULT 'n/a')",
        )
        make_db(
            working_path,
            "CREATE TABLE tbl_Genre (id_Genre INTEGER PRIMARY KEY, Name TEXT, Mine TEXT)",
            "INSERT INTO tbl_Genre VALUES (1, 'Action', 'keep me')",
        )

        pair = await open_database_pair(template_path, working_path)
        try:
            fixes = await sync_columns(pair, SyncOptions())
        finally:
            await pair.close()

        assert [f.column.name for f in fixes] == ["Rank", "Path"]
        assert column_info(working_path, "tbl_Genre") == [
            ("id_Genre", "INTEGER", 0, None, 1),
            ("Name", "TEXT", 0, None, 0),
            ("Mine", "TEXT", 0, None, 0),
            ("Rank", "INTEGER", 1, "5", 0),
            ("Path", "TEXT", 0, "'n/a'", 0),
        ]
        # Existing data and working-only columns survive
        assert read_rows(working_path, "SELECT * FROM tbl_Genre") == [
            (1, "Action", "keep me", 5, "n/a")
        ]

    @pytest.mark.asyncio
    async def test_template_only_tables_skipped(self, template_path, working_path) -> None:
        make_db(template_path, GENRE_DDL, "CREATE TABLE tbl_Other (id INTEGER PRIMARY KEY, x)")
        make_db(working_path, "CREATE TABLE tbl_Genre (id_Genre INTEGER PRIMARY KEY)")

        pair = await open_database_pair(template_path, working_path)
        try:
            fixes = await sync_columns(pair, SyncOptions())
        finally:
            await pair.close()

        assert [(f.table, f.column.name) for f in fixes] == [("tbl_Genre", "Name")]
        assert table_names(working_path) == ["tbl_Genre"]

    @pytest.mark.asyncio
    async def test_sees_tables_created_earlier(self, template_path, working_path) -> None:
        """Tables created by the table phase are re-read by the column phase."""
        make_db(template_path, GENRE_DDL)
        make_db(working_path, "CREATE TABLE tbl_Mine (x TEXT)")

        pair = await open_database_pair(template_path, working_path)
        try:
            await sync_tables(pair, SyncOptions())
            fixes = await sync_columns(pair, SyncOptions())
        finally:
            await pair.close()

        # Freshly created from the template DDL, so nothing is missing
        assert fixes == []
        assert len(pair.working.statements) == 1
