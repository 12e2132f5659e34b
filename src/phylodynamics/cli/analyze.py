"""
Analyze command for running the phylodynamic pipeline.

Provides subcommands:
- run: Build the tree and run clock, skyline and selection analyses
- config: Write the default configuration as YAML
"""
from __future__ import annotations

import math
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from phylodynamics.cli.utils import QuietConsole, configure_logging, spinner_progress
from phylodynamics.core.exceptions import PhylodynamicsError
from phylodynamics.models.config import PhylodynamicsConfig
from phylodynamics.models.results import PhylodynamicsResult

app = typer.Typer(
    name="analyze",
    help="Run phylodynamic analyses on dated sequence tables",
    no_args_is_help=True,
)

console = Console()


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        if math.isinf(value):
            return "inf"
        return f"{value:.4g}"
    return str(value)


def _summary_table(result: PhylodynamicsResult) -> Table:
    table = Table(title="Phylodynamics Summary", show_header=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    for key, value in result.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), _format_value(value))

    if result.clock_regression is None:
        table.add_row("Clock", "[dim]not computed[/dim]")
    if result.skyline is None:
        table.add_row("Skyline", "[dim]not computed[/dim]")
    if result.selection is None:
        table.add_row("Selection", "[dim]not computed[/dim]")
    return table


@app.command(name="run")
def run(
    input_table: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="CSV/TSV table with id, date (decimal year) and aligned sequence columns",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output JSON file for the full analysis result",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        exists=True,
        dir_okay=False,
    ),
    newick: Path | None = typer.Option(
        None,
        "--newick",
        "-n",
        help="Also write the final tree in Newick format",
    ),
    distances: Path | None = typer.Option(
        None,
        "--distances",
        "-d",
        help="Also write the pairwise distance matrix as CSV",
    ),
    no_clock: bool = typer.Option(False, "--no-clock", help="Skip clock regression"),
    no_skyline: bool = typer.Option(False, "--no-skyline", help="Skip skyline estimation"),
    no_selection: bool = typer.Option(False, "--no-selection", help="Skip dN/dS analysis"),
    outgroup: str | None = typer.Option(
        None,
        "--outgroup",
        help="Sequence id used as the dN/dS reference",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Run the phylodynamic pipeline on a dated alignment table.

    Builds a UPGMA tree, regresses root-to-tip distance on sampling date,
    calibrates the tree when the clock is accepted, estimates a coalescent
    skyline on calibrated trees and computes dN/dS.

    Examples:

        # Full analysis
        phylodynamics analyze run -i outbreak.tsv -o result.json

        # Tree only, with Newick output
        phylodynamics analyze run -i outbreak.tsv -o result.json \\
            --no-clock --no-skyline --no-selection --newick tree.nwk
    """
    from phylodynamics.core.io_utils import (
        read_dated_sequences,
        write_distance_matrix,
        write_newick,
        write_result_json,
    )
    from phylodynamics.core.pipeline import analyze_phylodynamics

    configure_logging(console, verbose=verbose, quiet=quiet)
    out = QuietConsole(console, quiet=quiet)

    out.print("\n[bold blue]Phylodynamics Analysis[/bold blue]\n")

    try:
        config = (
            PhylodynamicsConfig.from_yaml(config_file)
            if config_file is not None
            else PhylodynamicsConfig()
        )
        overrides: dict[str, object] = {}
        if no_clock:
            overrides["run_clock"] = False
        if no_skyline:
            overrides["run_skyline"] = False
        if no_selection:
            overrides["run_selection"] = False
        if outgroup is not None:
            overrides["outgroup_id"] = outgroup
        if overrides:
            config = config.with_overrides(**overrides)

        sequences = read_dated_sequences(input_table)
    except (PhylodynamicsError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    out.print(f"[bold]Input:[/bold] {input_table}")
    out.print(f"[bold]Sequences:[/bold] {len(sequences)}")

    try:
        with spinner_progress(
            f"Analyzing {len(sequences)} sequences...",
            console,
            quiet,
        ):
            result = analyze_phylodynamics(sequences, config)
    except PhylodynamicsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    try:
        write_result_json(result, output)
        if newick is not None:
            write_newick(result.tree, newick)
        if distances is not None:
            write_distance_matrix(sequences, distances, config.max_distance)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: could not write results: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if not quiet:
        console.print(_summary_table(result))

    out.print("\n[bold green]Analysis complete![/bold green]")
    out.print(f"[bold]Result:[/bold] {output}")
    if newick is not None:
        out.print(f"[bold]Tree:[/bold] {newick}")
    if distances is not None:
        out.print(f"[bold]Distances:[/bold] {distances}")
    out.print()


@app.command(name="config")
def write_config(
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output YAML file",
    ),
) -> None:
    """
    Write the default analysis configuration as YAML.

    Edit the file and pass it to 'phylodynamics analyze run --config'.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    PhylodynamicsConfig().to_yaml(output)
    console.print(f"[green]Default configuration written to {output}[/green]")
