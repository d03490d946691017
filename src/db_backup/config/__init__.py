"""Configuration management: TOML loading and config models.

Usage:
    >>> from db_backup.config import load_config, AppConfig, BackupJob
"""

from db_backup.config.loader import default_config_path, load_config
from db_backup.config.models import (
    AppConfig,
    BackupJob,
    ConnectionProfile,
    LocalSinkConfig,
    Schedule,
    UploadConfig,
    WebhookSinkConfig,
)

__all__ = [
    "load_config",
    "default_config_path",
    "AppConfig",
    "BackupJob",
    "ConnectionProfile",
    "Schedule",
    "UploadConfig",
    "LocalSinkConfig",
    "WebhookSinkConfig",
]
