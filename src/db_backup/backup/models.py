"""Result and metadata models for backup jobs.

``BackupResult`` is produced exactly once per job execution, whether the job
fully, partially, or did not succeed.  Partial success is ``success=True``
with a non-empty ``db_errors`` list.

Usage:
    from db_backup.backup.models import BackupResult

    result = await execute_job_backup(config, connection, ["orders", "users"])
    if result.partial:
        for failure in result.db_errors:
            print(failure.database, failure.message)
"""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class DatabaseFailure(BaseModel):
    """A database whose dump failed within an otherwise running job."""

    model_config = ConfigDict(frozen=True)

    database: str
    message: str


class SinkFailure(BaseModel):
    """A sink that failed to receive the finished archive."""

    model_config = ConfigDict(frozen=True)

    sink: str
    message: str


class BackupMetadata(BaseModel):
    """Description of a finished archive handed to every sink."""

    model_config = ConfigDict(frozen=True)

    connection_name: str
    databases: list[str]
    timestamp: datetime
    file_size: int
    file_hash: str | None = None
    duration_secs: float
    file_path: Path


class BackupResult(BaseModel):
    """Outcome of one job execution.

    Only ``connection_name`` and ``success`` are guaranteed to be meaningful;
    the remaining fields are populated as far as the job got.
    """

    model_config = ConfigDict(frozen=True)

    connection_name: str
    success: bool
    requested_databases: list[str] = Field(default_factory=list)
    databases: list[str] = Field(default_factory=list)   # successfully dumped
    file_path: Path | None = None
    file_size: int | None = None
    file_hash: str | None = None
    duration_secs: float = 0.0
    error: str | None = None                              # job-level failure
    db_errors: list[DatabaseFailure] = Field(default_factory=list)
    sink_errors: list[SinkFailure] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True when the job succeeded but some databases failed."""
        return self.success and bool(self.db_errors)

    @property
    def file_size_mb(self) -> float:
        return (self.file_size or 0) / 1024 / 1024
