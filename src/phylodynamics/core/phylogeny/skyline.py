"""Coalescent skyline estimation of effective population size.

A simplified classic skyline (Pybus et al. 2000). Internal-node heights are
coalescent events and leaf heights are sampling events; the merged, sorted
event times split the tree into intervals. For k lineages over an interval
of width w the estimate is

    Ne = k(k-1)/2 * w

for intervals ending in a coalescence, scaled by ``non_coalescent_scale``
for intervals that do not. The lineage count starts at the number of leaves
and drops by one after every coalescent interval, never below 1.

Heights grow from the root (0) toward the leaves, and event times are
compared as heights. The estimator is only meaningful on a clock-calibrated
tree but does not check calibration itself.
"""

from __future__ import annotations

import logging

from phylodynamics.core.constants import (
    MIN_EFFECTIVE_POPULATION_SIZE,
    NON_COALESCENT_SCALE,
)
from phylodynamics.core.phylogeny.tree_builder import iter_nodes
from phylodynamics.models.results import CoalescentInterval, SkylinePlot
from phylodynamics.models.tree import PhylogeneticTree

logger = logging.getLogger(__name__)


def compute_skyline(
    tree: PhylogeneticTree,
    *,
    non_coalescent_scale: float = NON_COALESCENT_SCALE,
    min_ne: float = MIN_EFFECTIVE_POPULATION_SIZE,
) -> SkylinePlot:
    """
    Estimate piecewise-constant Ne over the tree's event times.

    Args:
        tree: Clock-calibrated tree (heights in years).
        non_coalescent_scale: Ne multiplier for intervals that do not end
            at an internal-node height.
        min_ne: Floor applied to every Ne estimate.

    Returns:
        SkylinePlot; empty when the tree has no internal nodes.
    """
    coalescent_times: set[float] = set()
    leaf_times: set[float] = set()
    for node in iter_nodes(tree.root):
        if node.is_leaf:
            leaf_times.add(node.height)
        else:
            coalescent_times.add(node.height)

    if not coalescent_times:
        return SkylinePlot.empty()

    event_times = sorted(coalescent_times | leaf_times)
    lineages = tree.leaf_count
    intervals: list[CoalescentInterval] = []

    for start, end in zip(event_times, event_times[1:]):
        width = end - start
        if width <= 0:
            continue

        is_coalescent = end in coalescent_times
        pairs = lineages * (lineages - 1) / 2
        ne = pairs * width
        if not (is_coalescent and lineages >= 2):
            ne *= non_coalescent_scale

        intervals.append(
            CoalescentInterval(
                start_time=start,
                end_time=end,
                lineages=lineages,
                ne=max(min_ne, ne),
                width=width,
            )
        )

        if is_coalescent:
            lineages = max(1, lineages - 1)

    times: list[float] = []
    ne_values: list[float] = []
    for interval in intervals:
        times.extend((interval.start_time, interval.end_time))
        ne_values.extend((interval.ne, interval.ne))

    logger.info(f"Skyline: {len(intervals)} intervals over {event_times[-1]:.4g} time units")
    return SkylinePlot(
        intervals=tuple(intervals),
        times=tuple(times),
        ne_values=tuple(ne_values),
        time_span=event_times[-1],
    )
