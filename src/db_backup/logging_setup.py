"""Logging configuration for the db-backup CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route stdlib logging through rich.

    Args:
        verbose: Log DEBUG from db_backup modules instead of INFO.
        console: Console to render to (stderr by default).
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger("db_backup").setLevel(logging.DEBUG if verbose else logging.INFO)
