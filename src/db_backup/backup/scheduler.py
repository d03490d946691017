"""Periodic execution of configured backup jobs.

The scheduler ticks at the smallest job interval (one hour when no jobs are
configured).  On every tick each job is checked on its own: it is due if it
has never run or if at least its own interval has passed since its last
attempt.  Jobs run one after another inside the loop.

The first tick happens immediately.  Between ticks the scheduler waits on
the shutdown event with the tick length as timeout; shutdown is also
checked at the top of every iteration.  A job that is already running is
never interrupted.

Last-run times live only in memory and are keyed by
``(connection, databases)``, so editing a job's database list makes it a new
job that runs on the next tick.

Usage:
    shutdown = asyncio.Event()
    state = AppState()
    await run_scheduler(config, shutdown, state)   # returns after shutdown.set()
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from db_backup.backup.job import execute_job_backup
from db_backup.backup.models import BackupResult
from db_backup.config.models import AppConfig, BackupJob, ConnectionProfile
from db_backup.errors import ConnectionNotFoundError
from db_backup.factory import get_connection
from db_backup.state import AppState, BackupEntry, SchedulerStatus

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECS = 3600

JobRunner = Callable[[AppConfig, ConnectionProfile, list[str]], Awaitable[BackupResult]]
JobKey = tuple[str, tuple[str, ...]]


class Scheduler:
    """Tick loop that runs due jobs until the shutdown event is set.

    Args:
        config: Application config; ``config.jobs`` is read once at start.
        state: Shared status/history/log handle.
        runner: Coroutine executing one job (default ``execute_job_backup``).
        clock: Monotonic clock in seconds, used for due checks.
        on_result: Optional callback receiving every ``BackupResult``.
    """

    def __init__(
        self,
        config: AppConfig,
        state: AppState,
        *,
        runner: JobRunner = execute_job_backup,
        clock: Callable[[], float] = time.monotonic,
        on_result: Callable[[BackupResult], None] | None = None,
    ) -> None:
        self.config = config
        self.state = state
        self._runner = runner
        self._clock = clock
        self._on_result = on_result
        self._last_run: dict[JobKey, float] = {}
        self.interval_secs = min(
            (job.schedule.as_seconds() for job in config.jobs),
            default=DEFAULT_INTERVAL_SECS,
        )

    def _log(self, level: int, message: str) -> None:
        logger.log(level, message)
        self.state.add_log(logging.getLevelName(level), message)

    def _set_status(self, running: bool, next_run: datetime | None = None) -> None:
        jobs = self.config.jobs
        self.state.update_scheduler(
            SchedulerStatus(
                running=running,
                next_run=next_run,
                interval_secs=self.interval_secs,
                connection_name=jobs[0].connection if running and jobs else None,
                database_count=sum(len(j.databases) for j in jobs) if running else 0,
            )
        )

    def _stopped(self) -> None:
        self._set_status(running=False)
        self._log(logging.INFO, "Scheduler shutdown requested")

    def is_due(self, job: BackupJob, now: float) -> bool:
        last = self._last_run.get(job.key)
        if last is None:
            return True
        return now - last >= job.schedule.as_seconds()

    async def wait(self, shutdown: asyncio.Event, timeout: float) -> bool:
        """Wait ``timeout`` seconds or until shutdown; True if shutdown was set."""
        try:
            await asyncio.wait_for(shutdown.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        # Shutdown wins a tie with the timeout
        return shutdown.is_set()

    async def run_due_jobs(self) -> list[BackupResult]:
        """Run every job due at this tick, recording each attempt."""
        results: list[BackupResult] = []
        now = self._clock()

        for job in self.config.jobs:
            if not self.is_due(job, now):
                continue

            self._log(logging.INFO, f"Executing backup job for {job.connection}")
            try:
                connection = get_connection(self.config, job.connection)
            except ConnectionNotFoundError as e:
                self._log(logging.WARNING, f"Database config '{job.connection}' not found")
                result = BackupResult(
                    connection_name=job.connection,
                    success=False,
                    requested_databases=list(job.databases),
                    error=str(e),
                )
            else:
                result = await self._run_job(connection, job)

            self._last_run[job.key] = now
            self._record(result)
            results.append(result)

        return results

    async def _run_job(self, connection: ConnectionProfile, job: BackupJob) -> BackupResult:
        """Run one job; an escaping exception becomes a failed result."""
        try:
            return await self._runner(self.config, connection, list(job.databases))
        except Exception as e:
            logger.exception("Backup job for %s raised", job.connection)
            return BackupResult(
                connection_name=job.connection,
                success=False,
                requested_databases=list(job.databases),
                error=f"Unexpected error: {e}",
            )

    def _record(self, result: BackupResult) -> None:
        self.state.add_backup_entry(BackupEntry.from_result(result))
        if result.success:
            self._log(
                logging.INFO,
                f"Backup of {result.connection_name} ({len(result.databases)} databases) "
                f"completed: {result.file_size_mb:.2f} MB in {result.duration_secs:.0f} sec",
            )
        else:
            self._log(
                logging.ERROR,
                f"Backup of {result.connection_name} failed: {result.error or ''}",
            )
        if self._on_result is not None:
            self._on_result(result)

    async def run(self, shutdown: asyncio.Event) -> None:
        """Loop until ``shutdown`` is set."""
        self._log(logging.INFO, "Starting backup scheduler")
        if not self.config.jobs:
            self._log(
                logging.WARNING,
                "No backup jobs configured. Scheduler will wait for configuration.",
            )
        self._log(logging.INFO, f"Scheduler interval: {self.interval_secs} seconds")

        first_run = True
        while True:
            if shutdown.is_set():
                self._stopped()
                break

            if first_run:
                self._set_status(running=True)
                first_run = False
            else:
                next_run = datetime.now(timezone.utc) + timedelta(seconds=self.interval_secs)
                self._set_status(running=True, next_run=next_run)
                if await self.wait(shutdown, self.interval_secs):
                    self._stopped()
                    break

            await self.run_due_jobs()

        self._log(logging.INFO, "Scheduler stopped")


async def run_scheduler(
    config: AppConfig,
    shutdown: asyncio.Event,
    state: AppState,
) -> None:
    """Run the backup scheduler until ``shutdown`` is set."""
    await Scheduler(config, state).run(shutdown)
