"""Synchronization run orchestration (async).

Runs the three phases against one template/working pair in fixed order:

1. **Tables**: create template tables missing from working.
2. **Columns**: add template columns missing from shared tables.
3. **Content**: insert/update template rows into shared tables.

A run stops at its first error.  Nothing is rolled back; every phase is
idempotent, so the recovery for any failure is to fix the cause and run
the whole sync again.

Usage:
    from db_sync.orchestrator import run_sync
    from db_sync.schema.models import SyncOptions

    result = await run_sync(
        "data/template.db",
        "data/working.db",
        options=SyncOptions(copy_content=False),
        dry_run=True,
    )
    if not result.success:
        print(result.error.error_code, result.error.message)
"""

import asyncio
import logging
from pathlib import Path

from db_sync.errors import SyncError
from db_sync.factory import DatabasePair, open_database_pair, validate_paths
from db_sync.schema.fix import sync_columns, sync_tables
from db_sync.schema.introspector import SchemaInspector
from db_sync.schema.models import SyncOptions, SyncResult, SyncState
from db_sync.schema.sync import sync_content

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Runs synchronizations one at a time.

    The engine is not reentrant: two runs against the same working
    database must never overlap.  Calls to ``run()`` on one orchestrator
    are serialized with an ``asyncio.Lock``, so callers that share an
    instance get a run-one-at-a-time queue for free.

    Args:
        inspector: Introspection rules (system prefix, excluded tables).
            Defaults to ``SchemaInspector()``.

    Example:
        orchestrator = SyncOrchestrator()
        result = await orchestrator.run("template.db", "working.db")
    """

    def __init__(self, inspector: SchemaInspector | None = None) -> None:
        self.inspector = inspector or SchemaInspector()
        self.state = SyncState.IDLE
        self._lock = asyncio.Lock()

    async def run(
        self,
        template_path: str | Path,
        working_path: str | Path,
        options: SyncOptions | None = None,
        dry_run: bool = False,
    ) -> SyncResult:
        """Synchronize *working_path* against *template_path*.

        Args:
            template_path: Template database file (never modified).
            working_path: Working database file.
            options: Per-phase switches; all phases enabled by default.
            dry_run: If ``True``, statements against working are logged
                and reported in ``SyncResult.statements`` but not run.

        Returns:
            ``SyncResult``; ``error`` holds the first failure, if any.
        """
        async with self._lock:
            return await self._run(
                template_path, working_path, options or SyncOptions(), dry_run
            )

    async def _run(
        self,
        template_path: str | Path,
        working_path: str | Path,
        options: SyncOptions,
        dry_run: bool,
    ) -> SyncResult:
        result = SyncResult(dry_run=dry_run)
        pair: DatabasePair | None = None

        logger.debug("Syncing DB...")
        logger.debug(f"Template DB path: {template_path}")
        logger.debug(f"Working DB path : {working_path}")

        try:
            self._enter(SyncState.VALIDATING_PATHS, result)
            validate_paths(template_path, working_path)
            pair = await open_database_pair(
                template_path, working_path, dry_run=dry_run, inspector=self.inspector
            )

            self._enter(SyncState.SYNCING_TABLES, result)
            result.tables_created = len(await sync_tables(pair, options))

            self._enter(SyncState.SYNCING_COLUMNS, result)
            result.columns_added = len(await sync_columns(pair, options))

            self._enter(SyncState.SYNCING_CONTENT, result)
            stats = await sync_content(pair, options)
            result.rows_inserted = stats.inserted
            result.rows_updated = stats.updated
            result.rows_unchanged = stats.unchanged

            self._enter(SyncState.DONE, result)
            result.success = True

        except SyncError as e:
            logger.error(f"Sync failed during {self.state.value}: {e.message}")
            result.failed_phase = self.state
            result.error = e.to_info()
            self._enter(SyncState.FAILED, result)

        finally:
            # Also reached when a non-SyncError propagates
            self.state = SyncState.IDLE
            if pair is not None:
                result.statements = list(pair.working.statements)
                await pair.close()

        logger.info(
            f"Sync {result.state.value}: {result.tables_created} table(s) created, "
            f"{result.columns_added} column(s) added, {result.rows_inserted} row(s) "
            f"inserted, {result.rows_updated} row(s) updated"
        )
        return result

    def _enter(self, state: SyncState, result: SyncResult) -> None:
        logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state
        result.state = state


async def run_sync(
    template_path: str | Path,
    working_path: str | Path,
    options: SyncOptions | None = None,
    dry_run: bool = False,
    inspector: SchemaInspector | None = None,
) -> SyncResult:
    """Run one synchronization with a fresh ``SyncOrchestrator``.

    Callers that may start overlapping runs against the same working
    database should share a ``SyncOrchestrator`` instead.

    Example:
        >>> result = await run_sync("template.db", "working.db")  # doctest: +SKIP
        >>> result.success
        True
    """
    orchestrator = SyncOrchestrator(inspector=inspector)
    return await orchestrator.run(template_path, working_path, options, dry_run)
