"""Backup sinks package.

Usage:
    from db_backup.sinks import BackupSink, LocalDirectorySink, WebhookSink
"""

from db_backup.sinks.base import BackupSink
from db_backup.sinks.local import LocalDirectorySink
from db_backup.sinks.webhook import WebhookSink

__all__ = [
    "BackupSink",
    "LocalDirectorySink",
    "WebhookSink",
]
