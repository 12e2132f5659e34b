"""
I/O utilities for dated alignment tables and analysis outputs.

The core algorithms never touch files; these helpers are the caller-side
loader and writers used by the CLI.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path

import polars as pl

from phylodynamics.core.constants import MAX_JC_DISTANCE
from phylodynamics.core.distance import distance_matrix_frame
from phylodynamics.core.exceptions import DatedTableError
from phylodynamics.core.phylogeny.tree_builder import tree_to_newick
from phylodynamics.models.results import PhylodynamicsResult
from phylodynamics.models.sequences import DatedSequence
from phylodynamics.models.tree import PhylogeneticTree

REQUIRED_COLUMNS = ("id", "date", "sequence")


def _separator_for(path: Path) -> str:
    suffixes = [s.lower() for s in path.suffixes]
    return "\t" if ".tsv" in suffixes or ".txt" in suffixes else ","


def read_dated_sequences(path: Path) -> list[DatedSequence]:
    """
    Load dated, aligned sequences from a CSV or TSV table.

    Required columns are ``id``, ``date`` (decimal year, may be empty for
    undated samples) and ``sequence``. Any other column is carried as
    metadata; empty metadata cells are dropped.

    Args:
        path: Table path; ``.tsv``/``.txt`` are read tab-separated,
            anything else comma-separated.

    Returns:
        Sequences in file order.

    Raises:
        FileNotFoundError: If the table does not exist.
        DatedTableError: If columns are missing or dates are not numeric.

    Example:
        >>> seqs = read_dated_sequences(Path("outbreak.tsv"))
        >>> seqs[0].date
        2021.25
    """
    if not path.exists():
        raise FileNotFoundError(f"Sequence table not found: {path}")

    try:
        df = pl.read_csv(
            path,
            separator=_separator_for(path),
            schema_overrides={"id": pl.Utf8, "sequence": pl.Utf8},
        )
    except pl.exceptions.PolarsError as e:
        raise DatedTableError(str(path), str(e)) from e

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DatedTableError(str(path), f"missing column(s): {', '.join(missing)}")

    try:
        df = df.with_columns(pl.col("date").cast(pl.Float64))
    except pl.exceptions.PolarsError as e:
        raise DatedTableError(str(path), "'date' must be a decimal year") from e

    metadata_columns = [col for col in df.columns if col not in REQUIRED_COLUMNS]
    sequences = []
    for row in df.iter_rows(named=True):
        if row["id"] is None or row["sequence"] is None:
            raise DatedTableError(str(path), "every row needs an id and a sequence")
        date = row["date"]
        metadata = {
            col: row[col]
            for col in metadata_columns
            if row[col] is not None and not (isinstance(row[col], float) and math.isnan(row[col]))
        }
        sequences.append(
            DatedSequence(
                id=str(row["id"]),
                sequence=row["sequence"].strip(),
                date=date,
                metadata=metadata,
            )
        )

    return sequences


def write_result_json(result: PhylodynamicsResult, path: Path) -> None:
    """
    Write the full analysis result as JSON.

    The tree is written as a flat node list with parent ids; infinite dN/dS
    ratios become null.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.model_dump_json(indent=2))


def write_newick(tree: PhylogeneticTree, path: Path) -> None:
    """Write a tree in Newick format."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tree_to_newick(tree) + "\n")


def write_distance_matrix(
    sequences: Sequence[DatedSequence],
    path: Path,
    max_distance: float = MAX_JC_DISTANCE,
) -> None:
    """Write the labelled pairwise distance matrix as CSV."""
    path.parent.mkdir(parents=True, exist_ok=True)
    distance_matrix_frame(sequences, max_distance).to_csv(path)
