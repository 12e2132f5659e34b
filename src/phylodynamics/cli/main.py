"""
Main CLI entry point for phylodynamics.

Provides subcommands for the phylodynamic pipeline:
- analyze run: tree, molecular clock, skyline and selection from a dated table
- analyze config: write a default configuration file
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.console import Console

from phylodynamics import __version__

app = typer.Typer(
    name="phylodynamics",
    help="Phylodynamic analysis of dated viral and phage sequence sets",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"phylodynamics version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Phylodynamics: trees, molecular clocks, skylines and selection.

    Reconstructs a UPGMA tree from aligned, dated sequences, calibrates it
    against sampling dates, estimates effective population size through
    time and quantifies selective pressure.
    """


# Import subcommands
from phylodynamics.cli import analyze

# Register subcommands
app.add_typer(analyze.app, name="analyze")


if __name__ == "__main__":
    app()
