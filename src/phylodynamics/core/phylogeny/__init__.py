"""Phylogeny module for tree building, clock calibration and skyline estimation.

Provides UPGMA tree construction from dated sequences, root-to-tip molecular
clock regression with calibration to years, and a coalescent skyline over
the calibrated tree.
"""

from phylodynamics.core.phylogeny.clock import calibrate_tree, clock_regression
from phylodynamics.core.phylogeny.skyline import compute_skyline
from phylodynamics.core.phylogeny.tree_builder import (
    build_tree,
    collect_leaves,
    find_node,
    iter_nodes,
    max_depth,
    root_to_tip_distances,
    tree_to_newick,
)

__all__ = [
    "build_tree",
    "calibrate_tree",
    "clock_regression",
    "collect_leaves",
    "compute_skyline",
    "find_node",
    "iter_nodes",
    "max_depth",
    "root_to_tip_distances",
    "tree_to_newick",
]
