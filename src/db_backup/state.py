"""Process-wide observable state shared by the scheduler and its reporters.

``AppState`` is created once at startup and passed explicitly to whoever
needs it.  History and log records are kept in bounded rings (newest
first, oldest evicted).  A plain ``threading.Lock`` guards every field, so a
reporter running in another thread can read while the scheduler writes.

Usage:
    state = AppState()
    state.add_log("INFO", "Starting backup scheduler")
    for entry in state.history():
        print(entry.connection_name, entry.success)
"""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from db_backup.backup.models import BackupResult

MAX_HISTORY = 50
MAX_LOGS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerStatus(BaseModel):
    """Snapshot of what the scheduler is doing."""

    running: bool = False
    next_run: datetime | None = None
    interval_secs: int = 0
    connection_name: str | None = None
    database_count: int = 0


class BackupEntry(BaseModel):
    """One job execution as shown in history."""

    timestamp: datetime = Field(default_factory=_utcnow)
    connection_name: str
    databases: list[str] = Field(default_factory=list)
    success: bool
    file_size: int = 0
    duration_secs: float = 0.0
    error: str | None = None

    @classmethod
    def from_result(cls, result: BackupResult) -> "BackupEntry":
        return cls(
            connection_name=result.connection_name,
            databases=list(result.databases),
            success=result.success,
            file_size=result.file_size or 0,
            duration_secs=result.duration_secs,
            error=result.error,
        )


class LogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=_utcnow)
    level: str
    message: str


class ConfigSummary(BaseModel):
    database_connections: int = 0
    backup_jobs: int = 0
    sinks: list[str] = Field(default_factory=list)
    backup_directory: str = ""


class AppState:
    """Synchronized scheduler status, backup history and scheduler log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scheduler = SchedulerStatus()
        self._config_summary = ConfigSummary()
        self._history: deque[BackupEntry] = deque(maxlen=MAX_HISTORY)
        self._logs: deque[LogEntry] = deque(maxlen=MAX_LOGS)

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def update_scheduler(self, status: SchedulerStatus) -> None:
        with self._lock:
            self._scheduler = status

    def update_config(self, summary: ConfigSummary) -> None:
        with self._lock:
            self._config_summary = summary

    def add_backup_entry(self, entry: BackupEntry) -> None:
        with self._lock:
            self._history.appendleft(entry)

    def add_log(self, level: str, message: str) -> None:
        with self._lock:
            self._logs.appendleft(LogEntry(level=level, message=message))

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()

    # ------------------------------------------------------------------
    # Readers (return copies)
    # ------------------------------------------------------------------

    def scheduler(self) -> SchedulerStatus:
        with self._lock:
            return self._scheduler.model_copy()

    def config_summary(self) -> ConfigSummary:
        with self._lock:
            return self._config_summary.model_copy()

    def history(self) -> list[BackupEntry]:
        """Backup entries, newest first."""
        with self._lock:
            return list(self._history)

    def logs(self) -> list[LogEntry]:
        """Log entries, newest first."""
        with self._lock:
            return list(self._logs)
