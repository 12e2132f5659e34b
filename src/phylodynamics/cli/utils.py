"""
Shared CLI utilities for phylodynamics commands.

Provides progress display, quiet-mode output and logging setup.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Progress, None, None]:
    """Show an indeterminate spinner while the pipeline runs.

    The analysis stages report no incremental progress, so the task has no
    total; the elapsed time is the only feedback. With ``quiet`` the display
    is disabled but the Progress object is still yielded.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        progress.add_task(description=description, total=None)
        yield progress


def configure_logging(console: Console, verbose: bool = False, quiet: bool = False) -> None:
    """Route library logging through Rich.

    WARNING by default, DEBUG with verbose, ERROR only when quiet.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


class QuietConsole:
    """Console for the run banner and file listing of ``analyze run``.

    ``print`` is a no-op under ``--quiet``; errors and the summary table go
    through the wrapped console directly.
    """

    def __init__(self, console: Console, quiet: bool = False):
        self._console = console
        self._quiet = quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        if not self._quiet:
            self._console.print(*args, **kwargs)
