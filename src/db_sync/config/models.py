"""Pydantic models for sync configuration."""

from pydantic import BaseModel, Field

from db_sync.schema.introspector import PROPERTIES_TABLE, SYSTEM_PREFIX
from db_sync.schema.models import SyncOptions


# ============================================================================
# Configuration Models
# ============================================================================


class DatabasePaths(BaseModel):
    """Database file locations from the ``[databases]`` table."""

    template: str | None = None
    working: str | None = None


class IntrospectionSettings(BaseModel):
    """Table exclusion rules from the ``[introspection]`` table."""

    system_prefix: str = SYSTEM_PREFIX
    excluded_tables: list[str] = Field(default_factory=lambda: [PROPERTIES_TABLE])


class SyncConfig(BaseModel):
    """Complete sync configuration from db-sync.toml."""

    databases: DatabasePaths = Field(default_factory=DatabasePaths)
    options: SyncOptions = Field(default_factory=SyncOptions)
    dry_run: bool = False
    introspection: IntrospectionSettings = Field(default_factory=IntrospectionSettings)
    log_level: str = "INFO"
