"""Molecular clock estimation by root-to-tip regression.

Regresses each dated leaf's root-to-tip distance (substitutions per site)
against its sampling date (decimal year). The slope is the substitution
rate and the x-intercept the root age (Drummond et al. 2003, TempEst).

A slope that is not strictly positive is rejected: a zero or negative rate
has no biological meaning, so the result reports rate 0 and residuals
against the mean distance instead of the fitted line.
"""

from __future__ import annotations

import logging

import numpy as np

from phylodynamics.core.constants import MIN_DATED_LEAVES, VARIANCE_EPSILON
from phylodynamics.core.phylogeny.tree_builder import (
    collect_leaves,
    max_depth,
    root_to_tip_distances,
)
from phylodynamics.models.results import ClockRegressionResult, ResidualPoint
from phylodynamics.models.tree import PhylogeneticTree, TreeNode

logger = logging.getLogger(__name__)


def clock_regression(tree: PhylogeneticTree) -> ClockRegressionResult:
    """
    Fit root-to-tip distance against sampling date by least squares.

    Only leaves with a finite date take part. Fewer than two dated leaves,
    or no spread in dates, yields the no-signal result (rate 0, root age 0,
    R-squared 0, no residuals); this is a normal outcome, not an error.

    Args:
        tree: Uncalibrated tree with branch lengths in substitutions per site.

    Returns:
        ClockRegressionResult. When the slope is rejected, rate and
        R-squared are 0, root age is the earliest sampling date and the
        residuals are measured against the mean distance.
    """
    distances = root_to_tip_distances(tree.root)
    points = [
        (leaf.id, leaf.sequence.date, distances[leaf.id])
        for leaf in collect_leaves(tree.root)
        if leaf.sequence is not None and leaf.sequence.is_dated
    ]

    if len(points) < MIN_DATED_LEAVES:
        logger.warning(
            f"Clock regression needs >= {MIN_DATED_LEAVES} dated leaves, got {len(points)}"
        )
        return ClockRegressionResult.no_signal()

    ids = [p[0] for p in points]
    dates = np.array([p[1] for p in points], dtype=float)
    y = np.array([p[2] for p in points], dtype=float)

    date_mean = float(dates.mean())
    y_mean = float(y.mean())
    sxx = float(np.sum((dates - date_mean) ** 2))
    ss_tot = float(np.sum((y - y_mean) ** 2))

    if sxx < VARIANCE_EPSILON:
        logger.warning("All dated leaves share one sampling date; no clock signal")
        return ClockRegressionResult.no_signal()

    # Constant distances (any UPGMA tree is ultrametric) carry no slope
    if ss_tot < VARIANCE_EPSILON:
        slope = 0.0
    else:
        slope = float(np.sum((dates - date_mean) * (y - y_mean))) / sxx
    intercept = y_mean - slope * date_mean
    logger.debug(
        f"Root-to-tip fit over {len(points)} leaves: "
        f"slope={slope:.6g}, intercept={intercept:.6g}"
    )

    if not slope > 0:
        logger.warning(
            f"Root-to-tip slope {slope:.6g} is not positive; rejecting clock signal"
        )
        residuals = tuple(
            ResidualPoint(id=leaf_id, observed=obs, expected=y_mean, residual=obs - y_mean)
            for leaf_id, obs in zip(ids, y.tolist())
        )
        return ClockRegressionResult(
            rate=0.0,
            root_age=float(dates.min()),
            r2=0.0,
            residuals=residuals,
        )

    predicted = slope * dates + intercept
    ss_res = float(np.sum((y - predicted) ** 2))
    r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0

    residuals = tuple(
        ResidualPoint(id=leaf_id, observed=obs, expected=exp, residual=obs - exp)
        for leaf_id, obs, exp in zip(ids, y.tolist(), predicted.tolist())
    )

    result = ClockRegressionResult(
        rate=slope,
        root_age=-intercept / slope,
        r2=min(1.0, max(0.0, r2)),
        residuals=residuals,
    )
    logger.info(
        f"Clock rate {result.rate:.4g} subs/site/year, root age {result.root_age:.2f}, "
        f"R2 {result.r2:.3f}"
    )
    return result


def _rescale(node: TreeNode, rate: float, parent_height: float) -> TreeNode:
    distance = node.distance / rate
    height = parent_height + distance
    return node.model_copy(
        update={
            "distance": distance,
            "height": height,
            "children": tuple(_rescale(child, rate, height) for child in node.children),
        }
    )


def calibrate_tree(
    tree: PhylogeneticTree,
    regression: ClockRegressionResult,
) -> PhylogeneticTree:
    """
    Convert branch lengths from substitutions per site to years.

    Builds a new tree: every branch length is divided by the clock rate and
    heights are recomputed top-down from the root at 0. The input tree is
    left untouched.

    Args:
        tree: Uncalibrated tree.
        regression: Clock regression for the same tree.

    Returns:
        Calibrated tree carrying the rate and R-squared, or the input tree
        marked uncalibrated when the rate is not positive.
    """
    if regression.rate <= 0:
        return tree.model_copy(update={"is_clock_calibrated": False})

    root = _rescale(tree.root, regression.rate, 0.0)
    return PhylogeneticTree(
        root=root,
        leaf_count=tree.leaf_count,
        height=max_depth(root),
        is_clock_calibrated=True,
        substitution_rate=regression.rate,
        clock_r2=regression.r2,
        clamped_branches=tree.clamped_branches,
    )
