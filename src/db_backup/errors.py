"""Exception taxonomy for db-backup.

Errors are scoped to the operation that raised them:

- ``ConfigError``: configuration is missing or invalid (fatal to the
  operation that needed it, never to the process).
- ``SourceError``: connectivity or query failure against a source database
  (scoped to the single database dump in flight).
- ``CompressionError``: the archive could not be built (scoped to the whole
  archive step -- there is no partial archive).
- ``SinkError``: an upload target rejected or failed a delivery (scoped to
  that one sink, never escalated).
"""


class BackupError(Exception):
    """Base class for all db-backup errors."""

    pass


class ConfigError(BackupError):
    """Raised when configuration is missing or malformed."""

    pass


class ConnectionNotFoundError(ConfigError):
    """Raised when a job references a connection that is not configured."""

    pass


class SourceError(BackupError):
    """Raised when a source database operation fails."""

    pass


class CompressionError(BackupError):
    """Raised when the backup archive cannot be written."""

    pass


class SinkError(BackupError):
    """Raised when a sink fails to deliver a backup archive."""

    pass
