"""Async MySQL database source.

Provides ``AsyncMySQLSource``, an implementation of the ``DatabaseSource``
protocol using SQLAlchemy's async engine with the ``aiomysql`` driver.

Usage:
    from db_backup.sources.mysql import AsyncMySQLSource

    source = AsyncMySQLSource(host="db.internal", username="backup", password="...")
    for database in await source.list_databases():
        print(database, await source.list_tables(database))
    await source.close()
"""

from typing import Any, Sequence
from sqlalchemy import URL, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from db_backup.errors import SourceError

SYSTEM_DATABASES = frozenset(
    {"information_schema", "performance_schema", "mysql", "sys"}
)


def create_async_engine_pooled(database_url: str | URL, **kwargs: Any) -> AsyncEngine:
    """Create an async SQLAlchemy engine with connection pooling.

    Default pool settings:

    - ``pool_size=2``: A dump uses one connection at a time.
    - ``max_overflow=2``: Allow a connectivity check alongside a dump.
    - ``pool_pre_ping=True``: Validate connections before checkout.
    - ``pool_recycle=300``: Recycle connections every 5 minutes.

    Args:
        database_url: MySQL connection URL with the ``mysql+aiomysql`` driver.
        **kwargs: Additional keyword arguments forwarded to
            ``create_async_engine``.

    Returns:
        Configured ``AsyncEngine``.
    """
    defaults: dict[str, Any] = {
        "pool_size": 2,
        "max_overflow": 2,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "echo": False,
        "connect_args": {"connect_timeout": 10},
    }
    # Caller kwargs override defaults
    merged = {**defaults, **kwargs}

    return create_async_engine(database_url, **merged)


def _quote_ident(name: str) -> str:
    """Quote a MySQL identifier with backticks."""
    return "`" + name.replace("`", "``") + "`"


class AsyncMySQLSource:
    """Async MySQL implementation of the ``DatabaseSource`` protocol.

    Connects without a default database; every query names its schema
    explicitly so one source can dump any number of databases.

    Args:
        host: Server hostname or IP.
        port: Server port.
        username: Login user (needs SELECT, SHOW VIEW and LOCK-free reads).
        password: Login password.
        **engine_kwargs: Additional keyword arguments forwarded to
            ``create_async_engine_pooled``.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        username: str = "root",
        password: str = "",
        **engine_kwargs: Any,
    ) -> None:
        self.host = host
        self.port = port
        # Built from parts so IPv6 hosts and special characters need no quoting
        url = URL.create(
            "mysql+aiomysql",
            username=username,
            password=password,
            host=host,
            port=port,
            query={"charset": "utf8mb4"},
        )
        try:
            self._engine: AsyncEngine = create_async_engine_pooled(url, **engine_kwargs)
        except (SQLAlchemyError, ValueError, TypeError, ImportError) as e:
            raise SourceError(f"Cannot create engine for {host}:{port}: {e}") from e

    async def _query(self, sql: str, params: dict | None = None) -> list[tuple]:
        """Run a query and return all rows, mapping driver errors to SourceError."""
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text(sql), params or {})
                return [tuple(row) for row in result.fetchall()]
        except SQLAlchemyError as e:
            raise SourceError(str(e)) from e
        except OSError as e:
            raise SourceError(f"Connection to {self.host}:{self.port} failed: {e}") from e

    # ------------------------------------------------------------------
    # DatabaseSource
    # ------------------------------------------------------------------

    async def test_connection(self) -> None:
        rows = await self._query("SELECT 1")
        if not rows or rows[0][0] != 1:
            raise SourceError(f"Unexpected response from {self.host}:{self.port}")

    async def list_databases(self) -> list[str]:
        rows = await self._query("SHOW DATABASES")
        return [row[0] for row in rows if row[0] not in SYSTEM_DATABASES]

    async def list_tables(self, database: str) -> list[str]:
        rows = await self._query(f"SHOW TABLES FROM {_quote_ident(database)}")
        return [row[0] for row in rows]

    async def get_create_table(self, database: str, table: str) -> str:
        rows = await self._query(
            f"SHOW CREATE TABLE {_quote_ident(database)}.{_quote_ident(table)}"
        )
        if not rows:
            raise SourceError(f"Could not get CREATE TABLE for {database}.{table}")
        return rows[0][1]

    async def get_columns(self, database: str, table: str) -> list[str]:
        rows = await self._query(
            """
            SELECT COLUMN_NAME
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = :schema
              AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
            """,
            {"schema": database, "table": table},
        )
        return [row[0] for row in rows]

    async def fetch_rows(
        self,
        database: str,
        table: str,
        columns: Sequence[str],
    ) -> list[tuple[Any, ...]]:
        # Explicit column list keeps value order tied to `columns`
        column_list = ", ".join(_quote_ident(c) for c in columns)
        return await self._query(
            f"SELECT {column_list} FROM {_quote_ident(database)}.{_quote_ident(table)}"
        )

    async def close(self) -> None:
        """Close the async engine and dispose of the connection pool."""
        if self._engine:
            await self._engine.dispose()
