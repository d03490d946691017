"""Run one backup job: dump each database, archive, clean up, upload.

A job execution always returns exactly one ``BackupResult``.  The job
fails at the top level only when the backup directory cannot be created,
the source cannot be built, no database dumped successfully, or the
archive cannot be written.  Individual database failures are recorded in
``db_errors`` and never stop the remaining databases; sink failures are
recorded in ``sink_errors`` and never change ``success``.

Files produced per run (one shared timestamp, ``YYYYMMDD_HHMMSS`` UTC)::

    <local_backup_dir>/<connection>/<database>_<timestamp>.sql   (deleted after archiving)
    <local_backup_dir>/<connection>/backup_<connection>_<timestamp>.zip

Usage:
    from db_backup.backup.job import execute_job_backup

    result = await execute_job_backup(config, profile, ["orders", "users"])
    print(result.success, result.databases, result.db_errors)
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from db_backup.backup.archive import build_archive, calculate_sha256
from db_backup.backup.dumper import dump_database
from db_backup.backup.models import (
    BackupMetadata,
    BackupResult,
    DatabaseFailure,
    SinkFailure,
)
from db_backup.config.models import AppConfig, ConnectionProfile
from db_backup.errors import BackupError, ConnectionNotFoundError
from db_backup.factory import create_sinks, create_source, get_connection
from db_backup.sinks.base import BackupSink
from db_backup.sources.base import DatabaseSource

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def dump_filename(database: str, timestamp: str) -> str:
    return f"{database}_{timestamp}.sql"


def archive_filename(connection_name: str, timestamp: str) -> str:
    return f"backup_{connection_name}_{timestamp}.zip"


def _remove(path: Path) -> None:
    """Delete an intermediate file; a failure is logged, not raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


async def _close(source: DatabaseSource) -> None:
    """Close a source; a failure is logged, not raised."""
    try:
        await source.close()
    except Exception as e:
        logger.warning("Could not close database source: %s", e)


async def _deliver(
    sink: BackupSink,
    metadata: BackupMetadata,
    archive_path: Path,
) -> SinkFailure | None:
    """Upload to one sink, converting any failure into a ``SinkFailure``."""
    logger.info("Uploading combined backup to %s", sink.name)
    try:
        await sink.upload(metadata, archive_path)
    except Exception as e:
        logger.error("Failed to upload to %s: %s", sink.name, e)
        return SinkFailure(sink=sink.name, message=str(e))
    return None


async def execute_job_backup(
    config: AppConfig,
    connection: ConnectionProfile,
    databases: list[str],
    *,
    source: DatabaseSource | None = None,
    sinks: list[BackupSink] | None = None,
) -> BackupResult:
    """Dump ``databases`` from one connection into a single archive.

    Args:
        config: Application config (backup directory, upload settings).
        connection: Connection profile the databases live on.
        databases: Databases to dump, in order.
        source: Source to read from.  Built from ``connection`` when
            ``None`` (and closed afterwards).
        sinks: Upload targets.  Built from ``config.upload`` when ``None``.

    Returns:
        ``BackupResult`` describing what succeeded and what failed.
    """
    start = time.monotonic()
    timestamp = datetime.now(timezone.utc)
    timestamp_str = timestamp.strftime(TIMESTAMP_FORMAT)
    name = connection.name
    # Duplicates would share one dump file
    requested = list(dict.fromkeys(databases))

    def failed(error: str, **fields) -> BackupResult:
        return BackupResult(
            connection_name=name,
            success=False,
            requested_databases=requested,
            duration_secs=time.monotonic() - start,
            error=error,
            **fields,
        )

    logger.info(
        "Starting combined backup for %d databases on connection '%s'",
        len(requested),
        name,
    )

    backup_dir = config.local_backup_dir / name
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create backup directory %s: %s", backup_dir, e)
        return failed(f"Failed to create backup directory: {e}")

    owns_source = source is None
    if source is None:
        try:
            source = create_source(connection)
        except Exception as e:
            logger.error("Failed to create database source for '%s': %s", name, e)
            return failed(f"Failed to create database source: {e}")

    sql_files: list[tuple[Path, str]] = []
    db_errors: list[DatabaseFailure] = []
    successful: list[str] = []

    try:
        for db_name in requested:
            logger.info("Dumping database: %s", db_name)
            sql_filename = dump_filename(db_name, timestamp_str)
            sql_path = backup_dir / sql_filename

            try:
                f = open(sql_path, "wb")
            except OSError as e:
                logger.error("Failed to create SQL file for %s: %s", db_name, e)
                db_errors.append(
                    DatabaseFailure(database=db_name, message=f"Failed to create file: {e}")
                )
                continue

            try:
                with f:
                    await dump_database(source, db_name, f)
            except Exception as e:
                logger.error("Failed to dump database %s: %s", db_name, e)
                _remove(sql_path)
                db_errors.append(
                    DatabaseFailure(database=db_name, message=f"Failed to dump: {e}")
                )
                continue

            logger.info("Successfully dumped: %s", db_name)
            sql_files.append((sql_path, sql_filename))
            successful.append(db_name)
    finally:
        if owns_source:
            await _close(source)

    if not sql_files:
        logger.error("No databases were successfully dumped for '%s'", name)
        return failed("No databases were successfully dumped", db_errors=db_errors)

    archive_path = backup_dir / archive_filename(name, timestamp_str)
    logger.info("Creating combined archive with %d databases", len(sql_files))

    try:
        file_size = await asyncio.to_thread(build_archive, sql_files, archive_path)
    except BackupError as e:
        logger.error("Failed to create archive for '%s': %s", name, e)
        for sql_path, _ in sql_files:
            _remove(sql_path)
        _remove(archive_path)
        return failed(
            f"Failed to create archive: {e}",
            databases=successful,
            db_errors=db_errors,
        )

    for sql_path, _ in sql_files:
        _remove(sql_path)

    try:
        file_hash = await asyncio.to_thread(calculate_sha256, archive_path)
    except OSError as e:
        logger.warning("Could not hash %s: %s", archive_path.name, e)
        file_hash = None

    duration_secs = time.monotonic() - start

    metadata = BackupMetadata(
        connection_name=name,
        databases=successful,
        timestamp=timestamp,
        file_size=file_size,
        file_hash=file_hash,
        duration_secs=duration_secs,
        file_path=archive_path,
    )

    if sinks is None:
        sinks = create_sinks(config.upload)

    sink_errors: list[SinkFailure] = []
    for sink in sinks:
        failure = await _deliver(sink, metadata, archive_path)
        if failure is not None:
            sink_errors.append(failure)

    logger.info(
        "Combined backup completed: %d databases, %.0f seconds, %.2f MB",
        len(successful),
        duration_secs,
        file_size / 1024 / 1024,
    )

    return BackupResult(
        connection_name=name,
        success=True,
        requested_databases=requested,
        databases=successful,
        file_path=archive_path,
        file_size=file_size,
        file_hash=file_hash,
        duration_secs=duration_secs,
        db_errors=db_errors,
        sink_errors=sink_errors,
    )


async def execute_all_jobs(config: AppConfig) -> list[BackupResult]:
    """Run every configured job once, sequentially.

    A job whose connection is not configured yields a failed result
    instead of being skipped.
    """
    results: list[BackupResult] = []

    for job in config.jobs:
        try:
            connection = get_connection(config, job.connection)
        except ConnectionNotFoundError as e:
            logger.warning("Database config '%s' not found for job", job.connection)
            results.append(
                BackupResult(
                    connection_name=job.connection,
                    success=False,
                    requested_databases=list(job.databases),
                    error=str(e),
                )
            )
            continue
        results.append(await execute_job_backup(config, connection, job.databases))

    return results
