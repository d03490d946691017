"""Dump, archive and schedule database backups.

Usage:
    from db_backup.backup import execute_job_backup, execute_all_jobs, run_scheduler
    from db_backup.backup import dump_database, build_archive, encode_value
"""

from db_backup.backup.archive import build_archive, calculate_sha256, verify_archive
from db_backup.backup.dumper import dump_database, dump_table_data
from db_backup.backup.encoder import Float32, encode_value, escape_string
from db_backup.backup.job import execute_all_jobs, execute_job_backup
from db_backup.backup.models import (
    BackupMetadata,
    BackupResult,
    DatabaseFailure,
    SinkFailure,
)
from db_backup.backup.scheduler import Scheduler, run_scheduler

__all__ = [
    "BackupMetadata",
    "BackupResult",
    "DatabaseFailure",
    "SinkFailure",
    "Float32",
    "encode_value",
    "escape_string",
    "dump_database",
    "dump_table_data",
    "build_archive",
    "calculate_sha256",
    "verify_archive",
    "execute_job_backup",
    "execute_all_jobs",
    "Scheduler",
    "run_scheduler",
]
