"""Exception hierarchy for synchronization runs.

Every component raises one of these and never recovers from it.  The
orchestrator is the single boundary that turns the first ``SyncError``
of a run into a ``SyncErrorInfo`` on the returned ``SyncResult``.

Usage:
    from db_sync.errors import QueryExecutionError, SyncError

    try:
        await handle.execute("DELETE FROM missing")
    except SyncError as e:
        info = e.to_info()
        print(info.error_code, info.message)
"""

from typing import Any

from pydantic import BaseModel

# Short error-code tokens exposed to callers
TEMPLATE_MISSING = "SYNCERR"
WORKING_MISSING = "SYNCWARN"
CONNECTION_FAILED = "SYNCCONN"
SYNC_FAILED = "SYNCFAIL"


class SyncErrorInfo(BaseModel):
    """Error value handed back to the caller of a sync run.

    Example:
        >>> info = SyncErrorInfo(message="boom")
        >>> info.error_code
        'SYNCFAIL'
    """

    message: str
    details: dict[str, Any] | None = None
    error_code: str = SYNC_FAILED
    status_code: int | None = None


class SyncError(Exception):
    """Base class for all synchronization failures."""

    error_code: str = SYNC_FAILED
    status_code: int | None = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

    def to_info(self) -> SyncErrorInfo:
        """Structured form of this error for callers and transports."""
        return SyncErrorInfo(
            message=self.message,
            details=self.details,
            error_code=self.error_code,
            status_code=self.status_code,
        )


class PathNotFoundError(SyncError):
    """Template or working database file does not exist."""

    status_code = 404

    @classmethod
    def for_template(cls, path: str) -> "PathNotFoundError":
        return cls(
            f"Template database not found: {path}",
            details={"path": path, "role": "template"},
            error_code=TEMPLATE_MISSING,
        )

    @classmethod
    def for_working(cls, path: str) -> "PathNotFoundError":
        return cls(
            f"Working database not found: {path}",
            details={"path": path, "role": "working"},
            error_code=WORKING_MISSING,
        )


class DatabaseConnectionError(SyncError):
    """A database handle could not be opened."""

    error_code = CONNECTION_FAILED
    status_code = 503


class QueryExecutionError(SyncError):
    """A read or write statement failed at the storage layer."""


class SchemaIntegrityError(SyncError):
    """A table cannot take part in content sync (primary key problems)."""

    status_code = 409
