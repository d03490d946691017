"""db-backup: scheduled SQL dumps of relational databases.

Dumps every configured database to replayable SQL, bundles the dumps of one
job into a single zip archive with a SHA-256 digest, and hands the archive
to the configured sinks.  One failing database or sink never stops the rest.

Usage:
    from db_backup import load_config, execute_all_jobs, run_scheduler
    from db_backup import AppState, BackupResult
"""

__version__ = "0.1.0"

# Config
from db_backup.config.loader import load_config
from db_backup.config.models import AppConfig, BackupJob, ConnectionProfile, Schedule

# Errors
from db_backup.errors import (
    BackupError,
    CompressionError,
    ConfigError,
    ConnectionNotFoundError,
    SinkError,
    SourceError,
)

# Backup engine
from db_backup.backup.job import execute_all_jobs, execute_job_backup
from db_backup.backup.models import BackupMetadata, BackupResult
from db_backup.backup.scheduler import Scheduler, run_scheduler

# State
from db_backup.state import AppState

__all__ = [
    # Config
    "load_config",
    "AppConfig",
    "BackupJob",
    "ConnectionProfile",
    "Schedule",
    # Errors
    "BackupError",
    "ConfigError",
    "ConnectionNotFoundError",
    "SourceError",
    "CompressionError",
    "SinkError",
    # Backup engine
    "execute_job_backup",
    "execute_all_jobs",
    "BackupResult",
    "BackupMetadata",
    "Scheduler",
    "run_scheduler",
    # State
    "AppState",
]
