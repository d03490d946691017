"""Copy finished archives into a mirror directory (NAS mount, synced folder)."""

import asyncio
import logging
import shutil
from pathlib import Path

from db_backup.backup.models import BackupMetadata
from db_backup.config.models import LocalSinkConfig
from db_backup.errors import SinkError

logger = logging.getLogger(__name__)


class LocalDirectorySink:
    """Copies each archive into ``<directory>/<connection>/``.

    When the archive hash is known, a ``<archive>.sha256`` file in
    ``sha256sum`` format is written next to the copy.
    """

    def __init__(self, config: LocalSinkConfig) -> None:
        self._directory = config.directory

    @property
    def name(self) -> str:
        return "local"

    async def upload(self, metadata: BackupMetadata, file_path: Path) -> None:
        target_dir = self._directory / metadata.connection_name
        try:
            await asyncio.to_thread(self._copy, file_path, target_dir, metadata.file_hash)
        except OSError as e:
            raise SinkError(f"Failed to copy {file_path.name} to {target_dir}: {e}") from e
        logger.info("Copied %s to %s", file_path.name, target_dir)

    async def test_connection(self) -> None:
        if not self._directory.is_dir():
            raise SinkError(f"Mirror directory does not exist: {self._directory}")

    @staticmethod
    def _copy(file_path: Path, target_dir: Path, file_hash: str | None) -> None:
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(file_path, target_dir / file_path.name)
        if file_hash:
            sidecar = target_dir / f"{file_path.name}.sha256"
            sidecar.write_text(f"{file_hash}  {file_path.name}\n")
