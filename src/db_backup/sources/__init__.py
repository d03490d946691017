"""Database sources package.

Provides the ``DatabaseSource`` Protocol and the async MySQL source.

Usage:
    from db_backup.sources import DatabaseSource, AsyncMySQLSource
"""

from db_backup.sources.base import DatabaseSource
from db_backup.sources.mysql import AsyncMySQLSource

__all__ = [
    "DatabaseSource",
    "AsyncMySQLSource",
]
