"""Stream a database's schema and rows as replayable SQL.

``dump_database`` writes one complete dump (header, every table, footer)
to a binary writer.  ``dump_table_data`` writes the INSERT statements for a
single table.  Neither knows whether the writer is a file, a buffer or a
socket.

Any source failure propagates: partial success is tracked per database by
the job orchestrator, never per table.

Usage:
    from db_backup.backup.dumper import dump_database

    with open("orders.sql", "wb") as f:
        await dump_database(source, "orders", f)
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from db_backup.backup.encoder import encode_value
from db_backup.sources.base import DatabaseSource

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
TOOL_BANNER = "db-backup"


class BinaryWriter(Protocol):
    """Append-only byte sink (file, ``BytesIO``, socket wrapper)."""

    def write(self, data: bytes, /) -> object: ...


def _quote_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _write(writer: BinaryWriter, text: str) -> None:
    writer.write(text.encode("utf-8"))


def dump_header(database: str, generated_at: datetime | None = None) -> str:
    """Header with banner, database name, timestamp and session settings."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return (
        f"-- MySQL dump generated by {TOOL_BANNER}\n"
        f"-- Database: {database}\n"
        f"-- Generated at: {generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}\n\n"
        "SET FOREIGN_KEY_CHECKS=0;\n"
        "SET SQL_MODE='NO_AUTO_VALUE_ON_ZERO';\n\n"
    )


DUMP_FOOTER = "\nSET FOREIGN_KEY_CHECKS=1;\n"


def build_insert(table: str, columns: list[str], rows: list[tuple]) -> str:
    """Build one multi-row INSERT statement followed by a blank line.

    Values in each row must be ordered like ``columns``.
    """
    column_list = ", ".join(_quote_ident(c) for c in columns)
    values = ",\n".join(
        "(" + ", ".join(encode_value(v) for v in row) + ")" for row in rows
    )
    return f"INSERT INTO {_quote_ident(table)} ({column_list}) VALUES\n{values};\n\n"


async def dump_table_data(
    source: DatabaseSource,
    database: str,
    table: str,
    writer: BinaryWriter,
) -> int:
    """Write INSERT statements for every row of ``table``.

    Rows are fetched in full before writing, then emitted in batches of at
    most ``BATCH_SIZE`` rows.  Tables without columns or rows produce no
    output.

    Args:
        source: Database source to read from.
        database: Database containing the table.
        table: Table name.
        writer: Binary destination.

    Returns:
        Number of rows written.
    """
    columns = await source.get_columns(database, table)
    if not columns:
        return 0

    # Same column sequence drives both the SELECT and the INSERT header
    rows = await source.fetch_rows(database, table, columns)
    if not rows:
        return 0

    for start in range(0, len(rows), BATCH_SIZE):
        batch = rows[start:start + BATCH_SIZE]
        _write(writer, build_insert(table, columns, batch))

    return len(rows)


async def dump_database(
    source: DatabaseSource,
    database: str,
    writer: BinaryWriter,
) -> int:
    """Write a complete dump of ``database`` to ``writer``.

    For each table, in the source's listing order: a section comment,
    ``DROP TABLE IF EXISTS``, the live CREATE statement, then its rows.

    Args:
        source: Database source to read from.
        database: Database to dump.
        writer: Binary destination.

    Returns:
        Total number of rows written.

    Raises:
        Exception: Whatever the source raises; a failed table fails the
            whole database.
    """
    logger.info("Starting dump of database: %s", database)
    _write(writer, dump_header(database))

    tables = await source.list_tables(database)
    logger.info("Found %d tables in database %s", len(tables), database)

    total_rows = 0
    for table in tables:
        logger.debug("Dumping table: %s.%s", database, table)
        _write(
            writer,
            f"\n-- Table: {table}\n-- ----------------------------------------\n\n",
        )
        _write(writer, f"DROP TABLE IF EXISTS {_quote_ident(table)};\n\n")
        create_stmt = await source.get_create_table(database, table)
        _write(writer, f"{create_stmt};\n\n")
        total_rows += await dump_table_data(source, database, table, writer)

    _write(writer, DUMP_FOOTER)
    logger.info("Completed dump of database: %s (%d rows)", database, total_rows)
    return total_rows
