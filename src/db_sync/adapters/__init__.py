"""Database adapters package.

Provides the ``DatabaseHandle`` Protocol and the async SQLite adapter
the sync engine runs on.

Usage:
    from db_sync.adapters import DatabaseHandle, AsyncSQLiteAdapter
"""

from db_sync.adapters.base import DatabaseHandle, SqlValue
from db_sync.adapters.sqlite import AsyncSQLiteAdapter

__all__ = [
    "DatabaseHandle",
    "SqlValue",
    "AsyncSQLiteAdapter",
]
