"""Tests for path checks, working-database provisioning and handle opening."""

from pathlib import Path

import pytest

from db_helpers import GENRE_DDL, make_db, read_rows

from db_sync.errors import (
    CONNECTION_FAILED,
    TEMPLATE_MISSING,
    WORKING_MISSING,
    DatabaseConnectionError,
    PathNotFoundError,
    QueryExecutionError,
)
from db_sync.factory import (
    open_database,
    open_database_pair,
    provision_working_database,
    validate_paths,
)


class TestValidatePaths:
    """validate_paths() error codes."""

    def test_both_present(self, template_path, working_path) -> None:
        make_db(template_path)
        make_db(working_path)
        validate_paths(template_path, working_path)

    def test_template_missing_reported_first(self, template_path, working_path) -> None:
        with pytest.raises(PathNotFoundError) as exc_info:
            validate_paths(template_path, working_path)
        assert exc_info.value.error_code == TEMPLATE_MISSING
        assert exc_info.value.details["role"] == "template"

    def test_working_missing(self, template_path, working_path) -> None:
        make_db(template_path)
        with pytest.raises(PathNotFoundError) as exc_info:
            validate_paths(template_path, working_path)
        assert exc_info.value.error_code == WORKING_MISSING
        assert exc_info.value.status_code == 404

    def test_directory_is_not_a_database(self, template_path, tmp_path: Path) -> None:
        make_db(template_path)
        with pytest.raises(PathNotFoundError):
            validate_paths(template_path, tmp_path)


class TestProvisionWorkingDatabase:
    """First-start copy of the template."""

    def test_copies_template(self, template_path, tmp_path: Path) -> None:
        make_db(template_path, GENRE_DDL, "INSERT INTO tbl_Genre VALUES (1, 'Action')")
        working = tmp_path / "sub" / "working.db"

        assert provision_working_database(template_path, working) is True
        assert read_rows(working, "SELECT * FROM tbl_Genre") == [(1, "Action")]

    def test_existing_working_untouched(self, template_path, working_path) -> None:
        make_db(template_path, GENRE_DDL)
        make_db(working_path, "CREATE TABLE tbl_Mine (x TEXT)")
        before = working_path.read_bytes()

        assert provision_working_database(template_path, working_path) is False
        assert working_path.read_bytes() == before

    def test_missing_template(self, template_path, working_path) -> None:
        with pytest.raises(PathNotFoundError) as exc_info:
            provision_working_database(template_path, working_path)
        assert exc_info.value.error_code == TEMPLATE_MISSING
        assert not working_path.exists()


class TestOpenDatabase:
    """open_database() / open_database_pair()."""

    @pytest.mark.asyncio
    async def test_open_garbage_file(self, tmp_path: Path) -> None:
        path = tmp_path / "junk.db"
        path.write_bytes(b"definitely not sqlite" * 100)

        with pytest.raises(DatabaseConnectionError) as exc_info:
            await open_database(path)

        assert exc_info.value.error_code == CONNECTION_FAILED
        assert exc_info.value.status_code == 503
        assert exc_info.value.details == {"path": str(path)}

    @pytest.mark.asyncio
    async def test_pair_template_is_read_only(self, template_path, working_path) -> None:
        make_db(template_path, GENRE_DDL)
        make_db(working_path)

        pair = await open_database_pair(template_path, working_path, dry_run=True)
        try:
            with pytest.raises(QueryExecutionError, match="read-only"):
                await pair.template.execute("DROP TABLE tbl_Genre")
            await pair.working.execute(GENRE_DDL)
        finally:
            await pair.close()

        # dry run applies to working only, so nothing was created
        assert read_rows(working_path, "SELECT name FROM sqlite_master") == []
        assert pair.working.statements == [GENRE_DDL]

    @pytest.mark.asyncio
    async def test_pair_fails_on_bad_working(self, template_path, working_path) -> None:
        make_db(template_path, GENRE_DDL)
        working_path.write_bytes(b"garbage" * 200)

        with pytest.raises(DatabaseConnectionError, match="working.db"):
            await open_database_pair(template_path, working_path)
