"""Database handle factory.

Opens the template and working databases for one synchronization run
and bundles them in a ``DatabasePair`` that is passed explicitly to
every phase.  Nothing here is cached at module level, so any number of
pairs can be open at once (e.g. in tests).
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from db_sync.adapters.base import DatabaseHandle
from db_sync.adapters.sqlite import AsyncSQLiteAdapter
from db_sync.errors import DatabaseConnectionError, PathNotFoundError, SyncError
from db_sync.schema.introspector import SchemaInspector

logger = logging.getLogger(__name__)


@dataclass
class DatabasePair:
    """Template and working handles for the lifetime of one run.

    Attributes:
        template: Read-only handle on the template database.
        working: Handle on the working database (mutation target).
        inspector: Introspection rules shared by both sides.
    """

    template: DatabaseHandle
    working: DatabaseHandle
    inspector: SchemaInspector = field(default_factory=SchemaInspector)

    async def close(self) -> None:
        """Close both handles (template first)."""
        await self.template.close()
        await self.working.close()


# ============================================================================
# Path checks
# ============================================================================


def validate_paths(template_path: str | Path, working_path: str | Path) -> None:
    """Check both database files exist, template first.

    Raises:
        PathNotFoundError: ``SYNCERR`` for the template, ``SYNCWARN`` for
            the working database.
    """
    if not Path(template_path).is_file():
        raise PathNotFoundError.for_template(str(template_path))
    if not Path(working_path).is_file():
        raise PathNotFoundError.for_working(str(working_path))


def provision_working_database(
    template_path: str | Path, working_path: str | Path
) -> bool:
    """Create the working database as a copy of the template.

    Used on first start, before any sync has run.  An existing working
    file is never overwritten.

    Args:
        template_path: Template database file.
        working_path: Working database file to create.

    Returns:
        ``True`` if the file was copied, ``False`` if it already existed.

    Raises:
        PathNotFoundError: If the template does not exist.
    """
    template = Path(template_path)
    working = Path(working_path)

    if not template.is_file():
        raise PathNotFoundError.for_template(str(template))

    if working.exists():
        logger.debug(f"Working database already present: {working}")
        return False

    working.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(template, working)
    logger.info(f"Created working database {working} from template {template}")
    return True


# ============================================================================
# Handle opening
# ============================================================================


async def open_database(
    path: str | Path,
    dry_run: bool = False,
    read_only: bool = False,
) -> AsyncSQLiteAdapter:
    """Open a handle and verify the connection.

    Args:
        path: SQLite database file.
        dry_run: Suppress mutating statements on this handle.
        read_only: Reject mutating statements on this handle.

    Returns:
        A connected ``AsyncSQLiteAdapter``.

    Raises:
        DatabaseConnectionError: If the database cannot be opened.
    """
    adapter = AsyncSQLiteAdapter(path, dry_run=dry_run, read_only=read_only)
    try:
        await adapter.test_connection()
    except SyncError as e:
        await adapter.close()
        raise DatabaseConnectionError(
            f"Failed to open database {path}: {e.message}",
            details={"path": str(path)},
        ) from e
    return adapter


async def open_database_pair(
    template_path: str | Path,
    working_path: str | Path,
    dry_run: bool = False,
    inspector: SchemaInspector | None = None,
) -> DatabasePair:
    """Open template then working.

    The template handle is always read-only; ``dry_run`` applies to the
    working handle.  If working fails to open, the template handle is
    closed before the error propagates.

    Raises:
        DatabaseConnectionError: If either database cannot be opened.
    """
    template = await open_database(template_path, read_only=True)
    try:
        working = await open_database(working_path, dry_run=dry_run)
    except SyncError:
        await template.close()
        raise

    return DatabasePair(
        template=template,
        working=working,
        inspector=inspector or SchemaInspector(),
    )
