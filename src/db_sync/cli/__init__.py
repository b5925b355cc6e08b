"""CLI module for template/working database synchronization.

Provides commands to preview schema differences, create a working
database on first start, and run a synchronization.

Usage:
    db-sync diff --template data/template.db --working data/working.db
    db-sync init
    db-sync run --dry-run
    db-sync run --no-content
    db-sync --config /etc/db-sync.toml run

Commands:
    diff  - Show tables and columns a sync would add (read-only)
    init  - Create the working database from the template if missing
    run   - Synchronize tables, columns and content
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from db_sync.config.loader import load_sync_config
from db_sync.config.models import SyncConfig
from db_sync.errors import SyncError
from db_sync.factory import open_database_pair, provision_working_database, validate_paths
from db_sync.orchestrator import run_sync
from db_sync.schema.comparator import compare_schemas, shared_tables
from db_sync.schema.introspector import SchemaInspector
from db_sync.schema.models import SchemaDiff, SyncOptions, SyncResult

console = Console()


# ============================================================================
# Config / argument helpers
# ============================================================================


def _load_config(args: argparse.Namespace) -> SyncConfig:
    """Load the config file, or defaults when no file exists.

    An explicitly passed ``--config`` that does not exist is an error;
    the implicit default file is optional.
    """
    loaded = getattr(args, "sync_config", None)
    if loaded is not None:
        return loaded

    config_path = Path(args.config) if args.config else None
    try:
        return load_sync_config(config_path)
    except FileNotFoundError:
        if config_path is not None:
            raise
        return SyncConfig()


def _resolve_paths(
    args: argparse.Namespace, config: SyncConfig
) -> tuple[str, str] | None:
    """Pick template/working paths: CLI flags first, then config."""
    template = args.template or config.databases.template
    working = args.working or config.databases.working
    if not template or not working:
        console.print(
            "[red]Error: template and working database paths are required.[/red]"
        )
        console.print(
            "[dim]Pass[/dim] [cyan]--template[/cyan] [dim]and[/dim] "
            "[cyan]--working[/cyan] [dim]or set them in db-sync.toml.[/dim]"
        )
        return None
    return template, working


def _make_inspector(config: SyncConfig) -> SchemaInspector:
    return SchemaInspector(
        system_prefix=config.introspection.system_prefix,
        excluded_tables=set(config.introspection.excluded_tables),
    )


def _resolve_log_level(name: str) -> int:
    """Map a level name (any case) to its number.

    Raises:
        ValueError: If the name is not a logging level.
    """
    levels = logging.getLevelNamesMapping()
    level = levels.get(name.upper())
    if level is None:
        raise ValueError(
            f"Unknown log level '{name}' (expected one of: {', '.join(sorted(levels))})"
        )
    return level


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ============================================================================
# Rendering
# ============================================================================


def _print_diff(diff: SchemaDiff) -> None:
    if diff.in_sync:
        console.print("[bold green]v[/bold green] Schemas in sync")
        if diff.extra_tables:
            console.print(
                f"  Working-only tables: [yellow]{', '.join(diff.extra_tables)}[/yellow]"
            )
        return

    diff_table = Table(
        title="Schema Differences", show_header=True, header_style="bold"
    )
    diff_table.add_column("Table", style="dim")
    diff_table.add_column("Column")
    diff_table.add_column("Type")

    for table in diff.missing_tables:
        diff_table.add_row(table, "[bold green]NEW TABLE[/bold green]", "")
    for col in diff.missing_columns:
        diff_table.add_row(col.table, col.column, col.declared_type)
    for table in diff.extra_tables:
        diff_table.add_row(table, "[dim]working only (kept)[/dim]", "")

    console.print(diff_table)


def _print_result(result: SyncResult) -> None:
    summary = Table(title="Sync Summary", show_header=False)
    summary.add_column("Key", style="dim")
    summary.add_column("Value", justify="right")

    summary.add_row("Tables created", str(result.tables_created))
    summary.add_row("Columns added", str(result.columns_added))
    summary.add_row("Rows inserted", str(result.rows_inserted))
    summary.add_row("Rows updated", str(result.rows_updated))
    summary.add_row("Rows unchanged", str(result.rows_unchanged))
    summary.add_row("Statements", str(len(result.statements)))

    console.print(summary)

    if result.dry_run:
        console.print()
        console.print("[bold yellow]DRY RUN[/bold yellow] - No changes made.")
        for sql in result.statements:
            console.print(f"  [dim]{sql}[/dim]")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_diff(args: argparse.Namespace) -> int:
    """Async implementation for diff command.

    Args:
        args: Parsed arguments with template, working and config.

    Returns:
        0 when schemas are in sync, 1 on differences or errors.
    """
    config = _load_config(args)
    paths = _resolve_paths(args, config)
    if paths is None:
        return 1
    template_path, working_path = paths

    try:
        validate_paths(template_path, working_path)
        pair = await open_database_pair(
            template_path, working_path, inspector=_make_inspector(config)
        )
    except SyncError as e:
        console.print(f"[bold red]x[/bold red] {e.message}")
        return 1

    try:
        template_tables = await pair.inspector.list_table_names(pair.template)
        working_tables = await pair.inspector.list_table_names(pair.working)

        template_columns = {}
        working_columns = {}
        for table in shared_tables(template_tables, working_tables):
            template_columns[table] = await pair.inspector.list_columns(pair.template, table)
            working_columns[table] = await pair.inspector.list_columns(pair.working, table)
    except SyncError as e:
        console.print(f"[bold red]x[/bold red] {e.message}")
        return 1
    finally:
        await pair.close()

    diff = compare_schemas(
        template_tables, working_tables, template_columns, working_columns
    )
    _print_diff(diff)
    return 0 if diff.in_sync else 1


async def _async_run(args: argparse.Namespace) -> int:
    """Async implementation for run command.

    Args:
        args: Parsed arguments with template, working, phase switches
            and dry_run.

    Returns:
        0 on success, 1 on failure.
    """
    config = _load_config(args)
    paths = _resolve_paths(args, config)
    if paths is None:
        return 1
    template_path, working_path = paths

    options = SyncOptions(
        create_tables=config.options.create_tables and not args.no_tables,
        create_columns=config.options.create_columns and not args.no_columns,
        copy_content=config.options.copy_content and not args.no_content,
    )
    dry_run = args.dry_run or config.dry_run

    console.print("Syncing databases...", style="dim")
    console.print(f"  Template: [bold]{template_path}[/bold]")
    console.print(f"  Working:  [bold cyan]{working_path}[/bold cyan]")

    result = await run_sync(
        template_path,
        working_path,
        options=options,
        dry_run=dry_run,
        inspector=_make_inspector(config),
    )

    console.print()
    _print_result(result)

    if result.success:
        console.print("[bold green]v[/bold green] Sync complete.")
        return 0

    error = result.error
    console.print(
        f"[bold red]x[/bold red] [{error.error_code}] {error.message}"
    )
    return 1


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_diff(args: argparse.Namespace) -> int:
    """Show schema differences.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_diff(args))


def cmd_run(args: argparse.Namespace) -> int:
    """Run a synchronization.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_run(args))


def cmd_init(args: argparse.Namespace) -> int:
    """Create the working database from the template if it is missing.

    Local file copy only -- no database calls.

    Returns:
        0 on success (created or already present), 1 on error.
    """
    config = _load_config(args)
    paths = _resolve_paths(args, config)
    if paths is None:
        return 1
    template_path, working_path = paths

    try:
        created = provision_working_database(template_path, working_path)
    except SyncError as e:
        console.print(f"[bold red]x[/bold red] {e.message}")
        return 1

    if created:
        console.print(
            f"[bold green]v[/bold green] Created [bold cyan]{working_path}[/bold cyan] "
            f"from template"
        )
    else:
        console.print(f"[dim]Working database already exists:[/dim] {working_path}")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-sync",
        description="Synchronize a working SQLite database with a template",
    )

    # Global options
    parser.add_argument(
        "--config",
        default=None,
        help="Path to db-sync.toml (default: $DB_SYNC_CONFIG or ./db-sync.toml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...); overrides the config file",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_path_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--template", "-t", help="Template database file")
        p.add_argument("--working", "-w", help="Working database file")

    # diff command
    p_diff = subparsers.add_parser(
        "diff",
        help="Show tables and columns a sync would add",
    )
    add_path_args(p_diff)
    p_diff.set_defaults(func=cmd_diff)

    # init command
    p_init = subparsers.add_parser(
        "init",
        help="Create the working database from the template if missing",
    )
    add_path_args(p_init)
    p_init.set_defaults(func=cmd_init)

    # run command
    p_run = subparsers.add_parser(
        "run",
        help="Synchronize tables, columns and content",
    )
    add_path_args(p_run)
    p_run.add_argument(
        "--no-tables",
        action="store_true",
        help="Skip creating missing tables",
    )
    p_run.add_argument(
        "--no-columns",
        action="store_true",
        help="Skip adding missing columns",
    )
    p_run.add_argument(
        "--no-content",
        action="store_true",
        help="Skip copying row content",
    )
    p_run.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the statements a sync would issue without running them",
    )
    p_run.set_defaults(func=cmd_run)

    args = parser.parse_args()

    try:
        config = _load_config(args)
        log_level = _resolve_log_level(args.log_level or config.log_level)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    args.sync_config = config
    _configure_logging(log_level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
