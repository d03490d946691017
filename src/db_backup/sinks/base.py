"""Backup sink protocol definition.

A sink receives a finished archive after the backup already counts as
successful.  ``upload`` raises ``SinkError`` on failure; the job
orchestrator records the failure and moves on to the next sink.
"""

from pathlib import Path
from typing import Protocol

from db_backup.backup.models import BackupMetadata


class BackupSink(Protocol):
    """Upload target for finished backup archives."""

    @property
    def name(self) -> str:
        """Short label used in logs and failure records."""
        ...

    async def upload(self, metadata: BackupMetadata, file_path: Path) -> None:
        """Deliver the archive at ``file_path``.

        Raises:
            SinkError: If delivery fails.
        """
        ...

    async def test_connection(self) -> None:
        """Check that the target is reachable.

        Raises:
            SinkError: If the target cannot be reached.
        """
        ...
