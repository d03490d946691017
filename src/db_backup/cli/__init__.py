"""CLI for running and scheduling database backups.

Usage:
    db-backup connections
    db-backup jobs
    db-backup test --connection prod
    db-backup databases --connection prod
    db-backup run
    db-backup run --connection prod
    db-backup schedule
    db-backup verify backups/prod/backup_prod_20260101_000000.zip --sha256 <hex>

Commands:
    connections - List configured connections
    jobs        - List configured backup jobs and their schedules
    test        - Check connectivity of a connection and the configured sinks
    databases   - List user databases on a connection
    run         - Run backup jobs once, now
    schedule    - Run the scheduler until interrupted
    verify      - Check an archive's entries and optional SHA-256
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from db_backup.backup.archive import verify_archive
from db_backup.backup.job import execute_all_jobs, execute_job_backup
from db_backup.backup.models import BackupResult
from db_backup.backup.scheduler import run_scheduler
from db_backup.config.loader import load_config
from db_backup.config.models import AppConfig
from db_backup.errors import BackupError, ConfigError, ConnectionNotFoundError
from db_backup.factory import create_sinks, create_source, get_connection
from db_backup.logging_setup import setup_logging
from db_backup.state import AppState, ConfigSummary

console = Console()


def _load(args: argparse.Namespace) -> AppConfig | None:
    """Load config for a command, printing the error and returning None on failure."""
    config_path = Path(args.config) if args.config else None
    try:
        return load_config(config_path)
    except (FileNotFoundError, ConfigError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


def _results_table(results: list[BackupResult]) -> Table:
    table = Table(title="Backup Results", show_header=True, header_style="bold")
    table.add_column("Connection")
    table.add_column("Status")
    table.add_column("Databases")
    table.add_column("Size", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Archive / Error")

    for result in results:
        if result.partial:
            status = "[bold yellow]PARTIAL[/bold yellow]"
        elif result.success:
            status = "[bold green]OK[/bold green]"
        else:
            status = "[bold red]FAILED[/bold red]"
        detail = str(result.file_path) if result.success else (result.error or "")
        table.add_row(
            result.connection_name,
            status,
            ", ".join(result.databases) or "-",
            f"{result.file_size_mb:.2f} MB" if result.file_size else "-",
            f"{result.duration_secs:.1f}s",
            detail,
        )
    return table


def _print_failures(results: list[BackupResult]) -> None:
    for result in results:
        for failure in result.db_errors:
            console.print(
                f"  [red]x[/red] {result.connection_name}/{failure.database}: "
                f"{failure.message}"
            )
        for failure in result.sink_errors:
            console.print(
                f"  [yellow]![/yellow] {result.connection_name} -> {failure.sink}: "
                f"{failure.message}"
            )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_test(args: argparse.Namespace) -> int:
    """Async implementation for test command.

    Returns:
        0 if the connection (and every sink) is reachable, 1 otherwise.
    """
    config = _load(args)
    if config is None:
        return 1

    try:
        profile = get_connection(config, args.connection)
        source = create_source(profile)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    exit_code = 0
    console.print(f"Testing connection to {profile.host}:{profile.port}...", style="dim")
    try:
        await source.test_connection()
        console.print(
            f"[bold green]v[/bold green] Connection [bold cyan]{profile.name}[/bold cyan] OK"
        )
    except BackupError as e:
        console.print(f"[bold red]x[/bold red] Connection failed: {e}")
        exit_code = 1
    finally:
        await source.close()

    for sink in create_sinks(config.upload):
        try:
            await sink.test_connection()
            console.print(f"[bold green]v[/bold green] Sink [bold]{sink.name}[/bold] OK")
        except BackupError as e:
            console.print(f"[bold red]x[/bold red] Sink {sink.name}: {e}")
            exit_code = 1

    return exit_code


async def _async_databases(args: argparse.Namespace) -> int:
    """Async implementation for databases command."""
    config = _load(args)
    if config is None:
        return 1

    try:
        source = create_source(get_connection(config, args.connection))
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        databases = await source.list_databases()
    except BackupError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    finally:
        await source.close()

    table = Table(title=f"Databases on {args.connection}", show_header=True, header_style="bold")
    table.add_column("Database")
    for name in databases:
        table.add_row(name)
    console.print(table)
    return 0


async def _async_run(args: argparse.Namespace) -> int:
    """Async implementation for run command.

    Returns:
        0 when every job succeeded (partial counts as success), 1 otherwise.
    """
    config = _load(args)
    if config is None:
        return 1

    if args.connection:
        jobs = [job for job in config.jobs if job.connection == args.connection]
        if not jobs:
            console.print(f"[yellow]No jobs configured for {args.connection}.[/yellow]")
            return 1
        try:
            profile = get_connection(config, args.connection)
        except ConnectionNotFoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
        results = [
            await execute_job_backup(config, profile, job.databases) for job in jobs
        ]
    else:
        if not config.jobs:
            console.print("[yellow]No backup jobs configured.[/yellow]")
            return 1
        results = await execute_all_jobs(config)

    console.print(_results_table(results))
    _print_failures(results)
    return 0 if all(r.success for r in results) else 1


async def _async_schedule(args: argparse.Namespace) -> int:
    """Async implementation for schedule command.

    Runs until SIGINT or SIGTERM.  The signal only stops the wait between
    ticks; a job already running finishes first.
    """
    config = _load(args)
    if config is None:
        return 1

    state = AppState()
    state.update_config(
        ConfigSummary(
            database_connections=len(config.connections),
            backup_jobs=len(config.jobs),
            sinks=[sink.name for sink in create_sinks(config.upload)],
            backup_directory=str(config.local_backup_dir),
        )
    )

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows event loops: fall back to KeyboardInterrupt
            pass

    console.print(
        f"Scheduler running with {len(config.jobs)} job(s). "
        "Press Ctrl+C to stop.",
        style="dim",
    )
    await run_scheduler(config, shutdown, state)

    history = state.history()
    console.print(
        f"[bold]Scheduler stopped[/bold] after {len(history)} job run(s)."
    )
    return 0


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_connections(args: argparse.Namespace) -> int:
    """List configured connections.

    Reads only the local config file -- no database calls.
    """
    config = _load(args)
    if config is None:
        return 1

    table = Table(title="Connections", show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Engine")
    table.add_column("Host")
    table.add_column("User")
    table.add_column("Description")
    for profile in config.connections:
        table.add_row(
            f"[bold cyan]{profile.name}[/bold cyan]",
            profile.engine,
            f"{profile.host}:{profile.port}",
            profile.username,
            profile.description,
        )
    console.print(table)
    return 0


def cmd_jobs(args: argparse.Namespace) -> int:
    """List configured backup jobs with their schedules."""
    config = _load(args)
    if config is None:
        return 1

    table = Table(title="Backup Jobs", show_header=True, header_style="bold")
    table.add_column("Connection")
    table.add_column("Databases")
    table.add_column("Schedule")
    for job in config.jobs:
        table.add_row(job.connection, ", ".join(job.databases), str(job.schedule))
    console.print(table)
    console.print(f"[dim]Backup directory: {config.local_backup_dir}[/dim]")
    return 0


def cmd_test(args: argparse.Namespace) -> int:
    """Wraps the async implementation with ``asyncio.run()``."""
    return asyncio.run(_async_test(args))


def cmd_databases(args: argparse.Namespace) -> int:
    """Wraps the async implementation with ``asyncio.run()``."""
    return asyncio.run(_async_databases(args))


def cmd_run(args: argparse.Namespace) -> int:
    """Wraps the async implementation with ``asyncio.run()``."""
    return asyncio.run(_async_run(args))


def cmd_schedule(args: argparse.Namespace) -> int:
    """Wraps the async implementation with ``asyncio.run()``."""
    try:
        return asyncio.run(_async_schedule(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        return 130


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify a backup archive. Local file read only."""
    report = verify_archive(Path(args.archive), expected_hash=args.sha256)

    console.print(f"Verifying: {args.archive}")
    for name in report["entries"]:
        console.print(f"   - {name}", style="dim")

    if report["errors"]:
        console.print(f"\n[red]x INVALID - Found {len(report['errors'])} errors:[/red]")
        for error in report["errors"]:
            console.print(f"   - {error}")

    if report["warnings"]:
        console.print(f"\n[yellow]Found {len(report['warnings'])} warnings:[/yellow]")
        for warning in report["warnings"]:
            console.print(f"   - {warning}")

    if report["valid"]:
        console.print("\n[bold green]v[/bold green] Archive is valid")
        return 0
    return 1


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-backup",
        description="Scheduled SQL dumps, archives and uploads of relational databases",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to config file (default: $DB_BACKUP_CONFIG or ./db-backup.toml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_connections = subparsers.add_parser("connections", help="List configured connections")
    p_connections.set_defaults(func=cmd_connections)

    p_jobs = subparsers.add_parser("jobs", help="List configured backup jobs")
    p_jobs.set_defaults(func=cmd_jobs)

    p_test = subparsers.add_parser("test", help="Check connectivity of a connection and sinks")
    p_test.add_argument("--connection", required=True, help="Connection name")
    p_test.set_defaults(func=cmd_test)

    p_databases = subparsers.add_parser("databases", help="List user databases on a connection")
    p_databases.add_argument("--connection", required=True, help="Connection name")
    p_databases.set_defaults(func=cmd_databases)

    p_run = subparsers.add_parser("run", help="Run backup jobs once, now")
    p_run.add_argument(
        "--connection",
        default=None,
        help="Only run jobs for this connection",
    )
    p_run.set_defaults(func=cmd_run)

    p_schedule = subparsers.add_parser("schedule", help="Run the scheduler until interrupted")
    p_schedule.set_defaults(func=cmd_schedule)

    p_verify = subparsers.add_parser("verify", help="Verify a backup archive")
    p_verify.add_argument("archive", help="Path to backup zip archive")
    p_verify.add_argument("--sha256", default=None, help="Expected SHA-256 hex digest")
    p_verify.set_defaults(func=cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
