"""
Phylodynamic analysis pipeline.

Chains the stages strictly downstream:

    dated sequences -> distance matrix -> UPGMA tree
        -> clock regression -> calibrated tree (when the clock is accepted)
        -> skyline (calibrated trees only)
        -> selection (independent of the clock)

Each stage builds a new result from the previous one. A stage that is
switched off or whose prerequisite is unmet is None in the result; callers
should read None as "not computed", never as "computed with no signal".
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from phylodynamics.core.phylogeny.clock import calibrate_tree, clock_regression
from phylodynamics.core.phylogeny.skyline import compute_skyline
from phylodynamics.core.phylogeny.tree_builder import build_tree
from phylodynamics.core.selection import annotate_dnds, compute_selection
from phylodynamics.models.config import PhylodynamicsConfig
from phylodynamics.models.results import (
    ClockRegressionResult,
    PhylodynamicsResult,
    SelectionResult,
    SkylinePlot,
)
from phylodynamics.models.sequences import DatedSequence

logger = logging.getLogger(__name__)


def analyze_phylodynamics(
    sequences: Sequence[DatedSequence],
    options: PhylodynamicsConfig | None = None,
    **overrides: Any,
) -> PhylodynamicsResult:
    """
    Run the complete phylodynamic analysis.

    The skyline only runs when the clock was requested and accepted: rate
    above 0 and R-squared above ``clock_r2_threshold``. Selection runs on
    the final (calibrated or not) tree regardless of clock status.

    Args:
        sequences: Aligned, dated sequences.
        options: Analysis configuration; defaults enable every stage.
        **overrides: Configuration fields to replace, e.g. run_skyline=False.

    Returns:
        PhylodynamicsResult with None for every stage that did not run.

    Raises:
        EmptySequenceSetError: If no sequences are given.
        SequenceLengthMismatchError: If the sequences are not aligned.
        UnknownSequenceIdError: If the configured outgroup is not a leaf.

    Example:
        >>> result = analyze_phylodynamics(sequences, run_selection=False)
        >>> if result.skyline is None:
        ...     print("No usable molecular clock")
    """
    config = options or PhylodynamicsConfig()
    if overrides:
        config = config.with_overrides(**overrides)

    tree = build_tree(
        sequences,
        max_distance=config.max_distance,
        tie_break=config.tie_break,
    )

    clock: ClockRegressionResult | None = None
    if config.run_clock:
        clock = clock_regression(tree)
        if clock.r2 > config.clock_r2_threshold and clock.rate > 0:
            tree = calibrate_tree(tree, clock)
        elif config.run_skyline:
            logger.warning(
                f"Clock not accepted (rate={clock.rate:.4g}, R2={clock.r2:.3f}, "
                f"threshold={config.clock_r2_threshold}); skipping skyline"
            )

    skyline: SkylinePlot | None = None
    if config.run_skyline and tree.is_clock_calibrated:
        skyline = compute_skyline(
            tree,
            non_coalescent_scale=config.non_coalescent_scale,
            min_ne=config.min_ne,
        )

    selection: SelectionResult | None = None
    if config.run_selection:
        selection = compute_selection(
            tree,
            reference_id=config.outgroup_id,
            saturated=config.dnds_saturation_value,
        )
        tree = annotate_dnds(tree, selection)

    logger.info(
        f"Phylodynamic analysis of {tree.leaf_count} sequences complete "
        f"(calibrated={tree.is_clock_calibrated})"
    )
    return PhylodynamicsResult(
        tree=tree,
        clock_regression=clock,
        skyline=skyline,
        selection=selection,
    )
