"""TOML configuration loader for sync runs.

Reads ``db-sync.toml`` and returns a ``SyncConfig``.  The file location
defaults to ``db-sync.toml`` in the current working directory and can
be overridden with the ``DB_SYNC_CONFIG`` environment variable or an
explicit path.

Usage:
    from db_sync.config.loader import load_sync_config

    config = load_sync_config()                       # ./db-sync.toml
    config = load_sync_config(Path("/etc/db-sync.toml"))
"""

import os
import tomllib
from pathlib import Path

from db_sync.config.models import (
    DatabasePaths,
    IntrospectionSettings,
    SyncConfig,
)
from db_sync.schema.models import SyncOptions

CONFIG_ENV_VAR = "DB_SYNC_CONFIG"
DEFAULT_CONFIG_FILE = "db-sync.toml"


def default_config_path() -> Path:
    """Config path from ``DB_SYNC_CONFIG``, else ``./db-sync.toml``."""
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def load_sync_config(config_path: Path | None = None) -> SyncConfig:
    """Load sync configuration from TOML file.

    Args:
        config_path: Path to the TOML file.  If ``None``, uses
            ``default_config_path()``.

    Returns:
        SyncConfig with database paths, phase options, introspection
        rules and logging level.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config format is invalid.
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Sync config not found: {config_path}\n"
            f"Pass --template/--working explicitly or create {DEFAULT_CONFIG_FILE}."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    options_data = dict(data.get("options", {}))
    # dry_run lives next to the phase switches in the file
    dry_run = bool(options_data.pop("dry_run", False))

    # Relative database paths resolve against the config file's directory
    databases = DatabasePaths(**data.get("databases", {}))
    for role in ("template", "working"):
        value = getattr(databases, role)
        if value is not None and not Path(value).is_absolute():
            setattr(databases, role, str(config_path.parent / value))

    return SyncConfig(
        databases=databases,
        options=SyncOptions(**options_data),
        dry_run=dry_run,
        introspection=IntrospectionSettings(**data.get("introspection", {})),
        log_level=data.get("logging", {}).get("level", "INFO"),
    )
