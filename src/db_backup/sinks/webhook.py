"""Post backup notifications, with the archive attached, to a webhook.

The payload follows Discord's webhook format (``content`` plus a
multipart file).  Archives larger than ``max_file_size_mb`` are announced
without the attachment, pointing at the local path instead.
"""

import asyncio
import json
import logging
from pathlib import Path

import requests

from db_backup.backup.models import BackupMetadata
from db_backup.config.models import WebhookSinkConfig
from db_backup.errors import SinkError

logger = logging.getLogger(__name__)

USER_AGENT = "db-backup/0.1"


def format_message(metadata: BackupMetadata) -> str:
    """Human-readable summary of a finished backup."""
    db_list = ", ".join(metadata.databases)
    return (
        "**Database Backup Completed**\n\n"
        f"**Connection:** `{metadata.connection_name}`\n"
        f"**Databases ({len(metadata.databases)}):** `{db_list}`\n"
        f"**Timestamp:** {metadata.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}\n"
        f"**File Size:** {metadata.file_size / 1024 / 1024:.2f} MB\n"
        f"**Duration:** {metadata.duration_secs:.0f} seconds\n"
        f"**SHA256:** `{metadata.file_hash or 'N/A'}`\n"
        "**Status:** Success"
    )


class WebhookSink:
    """Upload archives to a Discord-style webhook URL."""

    def __init__(self, config: WebhookSinkConfig) -> None:
        self._config = config
        self._max_bytes = int(config.max_file_size_mb * 1024 * 1024)

    @property
    def name(self) -> str:
        return "webhook"

    async def upload(self, metadata: BackupMetadata, file_path: Path) -> None:
        await asyncio.to_thread(self._post, metadata, file_path)

    async def test_connection(self) -> None:
        await asyncio.to_thread(self._get)

    def _get(self) -> None:
        try:
            response = requests.get(
                self._config.url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            raise SinkError(f"Webhook unreachable: {e}") from e
        if not response.ok:
            raise SinkError(
                f"Webhook check failed: {response.status_code} - {response.text}"
            )

    def _post(self, metadata: BackupMetadata, file_path: Path) -> None:
        content = format_message(metadata)
        payload = {"username": self._config.username, "content": content}

        try:
            if metadata.file_size > self._max_bytes:
                logger.warning(
                    "Backup file size (%.2f MB) exceeds webhook limit (%.2f MB). "
                    "Uploading without attachment.",
                    metadata.file_size / 1024 / 1024,
                    self._config.max_file_size_mb,
                )
                payload["content"] = (
                    f"{content}\n\n**Note:** File too large for upload. "
                    f"Backup saved locally at: `{metadata.file_path}`"
                )
                response = requests.post(
                    self._config.url,
                    json=payload,
                    headers={"User-Agent": USER_AGENT},
                    timeout=self._config.timeout,
                )
            else:
                with open(file_path, "rb") as f:
                    response = requests.post(
                        self._config.url,
                        data={"payload_json": json.dumps(payload)},
                        files={"file": (file_path.name, f, "application/zip")},
                        headers={"User-Agent": USER_AGENT},
                        timeout=self._config.timeout,
                    )
        except (requests.RequestException, OSError) as e:
            raise SinkError(f"Webhook upload failed: {e}") from e

        if not response.ok:
            raise SinkError(
                f"Webhook upload failed: {response.status_code} - {response.text}"
            )
        logger.info("Posted %s to webhook", file_path.name)
