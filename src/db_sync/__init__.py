"""db-sync: Template-driven SQLite schema and content synchronization.

Brings a mutable working SQLite database in line with a read-only
template database: missing tables are created, missing columns added,
and template rows inserted or updated by primary key.  Nothing the
working database owns is ever deleted.

Usage:
    from db_sync import run_sync, SyncOptions, SyncOrchestrator
    from db_sync import SchemaInspector, compare_schemas
    from db_sync import load_sync_config, SyncConfig
"""

__version__ = "0.1.0"

# Adapters
from db_sync.adapters.base import DatabaseHandle
from db_sync.adapters.sqlite import AsyncSQLiteAdapter

# Config
from db_sync.config.loader import load_sync_config
from db_sync.config.models import SyncConfig

# Errors
from db_sync.errors import (
    DatabaseConnectionError,
    PathNotFoundError,
    QueryExecutionError,
    SchemaIntegrityError,
    SyncError,
    SyncErrorInfo,
)

# Factory
from db_sync.factory import (
    DatabasePair,
    open_database_pair,
    provision_working_database,
)

# Orchestration
from db_sync.orchestrator import SyncOrchestrator, run_sync

# Schema
from db_sync.schema.comparator import compare_schemas
from db_sync.schema.introspector import SchemaInspector
from db_sync.schema.models import SyncOptions, SyncResult, SyncState

__all__ = [
    # Adapters
    "DatabaseHandle",
    "AsyncSQLiteAdapter",
    # Config
    "load_sync_config",
    "SyncConfig",
    # Errors
    "SyncError",
    "SyncErrorInfo",
    "PathNotFoundError",
    "DatabaseConnectionError",
    "QueryExecutionError",
    "SchemaIntegrityError",
    # Factory
    "DatabasePair",
    "open_database_pair",
    "provision_working_database",
    # Orchestration
    "SyncOrchestrator",
    "run_sync",
    # Schema
    "compare_schemas",
    "SchemaInspector",
    "SyncOptions",
    "SyncResult",
    "SyncState",
]
