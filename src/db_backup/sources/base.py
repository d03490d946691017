"""Database source protocol definition.

Defines the ``DatabaseSource`` Protocol that every source must implement.
A source is read-only from the backup engine's point of view: it lists
databases and tables and hands back schema statements and rows.
All methods are ``async def``.

Usage:
    from db_backup.sources.base import DatabaseSource

    async def count_tables(source: DatabaseSource, database: str) -> int:
        tables = await source.list_tables(database)
        await source.close()
        return len(tables)
"""

from typing import Any, Protocol, Sequence


class DatabaseSource(Protocol):
    """Source database interface consumed by the dumper.

    Rows returned by ``fetch_rows`` must hold their values in the same order
    as the ``columns`` argument -- the dumper builds the INSERT column list
    from that same sequence.
    """

    async def test_connection(self) -> None:
        """Check that the server is reachable.

        Raises:
            SourceError: If the connection fails.
        """
        ...

    async def list_databases(self) -> list[str]:
        """List user databases, excluding the server's system schemas."""
        ...

    async def list_tables(self, database: str) -> list[str]:
        """List tables of ``database`` in the server's natural listing order."""
        ...

    async def get_create_table(self, database: str, table: str) -> str:
        """Return the CREATE TABLE statement for ``table``.

        Raises:
            SourceError: If the statement cannot be fetched.
        """
        ...

    async def get_columns(self, database: str, table: str) -> list[str]:
        """Return column names in ordinal position order."""
        ...

    async def fetch_rows(
        self,
        database: str,
        table: str,
        columns: Sequence[str],
    ) -> list[tuple[Any, ...]]:
        """Fetch every row of ``table`` with values ordered like ``columns``."""
        ...

    async def close(self) -> None:
        """Release connections held by the source."""
        ...
