"""Source and sink construction from configuration.

Usage:
    from db_backup.factory import get_connection, create_source, create_sinks

    profile = get_connection(config, "prod")
    source = create_source(profile)
    sinks = create_sinks(config.upload)
"""

from db_backup.config.models import AppConfig, ConnectionProfile, UploadConfig
from db_backup.errors import ConfigError, ConnectionNotFoundError
from db_backup.sinks.base import BackupSink
from db_backup.sinks.local import LocalDirectorySink
from db_backup.sinks.webhook import WebhookSink
from db_backup.sources.base import DatabaseSource
from db_backup.sources.mysql import AsyncMySQLSource


def get_connection(config: AppConfig, name: str) -> ConnectionProfile:
    """Look up a connection profile by name.

    Raises:
        ConnectionNotFoundError: If no connection has that name.
    """
    for profile in config.connections:
        if profile.name == name:
            return profile

    available = ", ".join(p.name for p in config.connections) or "(none)"
    raise ConnectionNotFoundError(
        f"Connection '{name}' not found. Available: {available}"
    )


def create_source(profile: ConnectionProfile) -> DatabaseSource:
    """Build the source for a connection profile.

    Raises:
        ConfigError: If the profile's engine is not supported.
    """
    if profile.engine == "mysql":
        return AsyncMySQLSource(
            host=profile.host,
            port=profile.port,
            username=profile.username,
            password=profile.resolve_password(),
        )
    raise ConfigError(f"Unsupported database engine: {profile.engine}")


def create_sinks(config: UploadConfig) -> list[BackupSink]:
    """Build every configured sink, in a fixed order (local, then webhook)."""
    sinks: list[BackupSink] = []
    if config.local is not None:
        sinks.append(LocalDirectorySink(config.local))
    if config.webhook is not None:
        sinks.append(WebhookSink(config.webhook))
    return sinks
