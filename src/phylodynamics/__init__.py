"""
Phylodynamics: tree, clock, skyline and selection analysis of dated sequences.

Reconstructs a UPGMA tree from aligned viral or phage sequences, calibrates
it against sample collection dates with a root-to-tip molecular clock,
estimates effective population size through time with a coalescent
skyline, and quantifies selective pressure with dN/dS.
"""

__version__ = "0.1.0"
__author__ = "Phylodynamics Team"

from phylodynamics.core.distance import (
    compute_genetic_distance_matrix,
    distance_matrix_frame,
    jukes_cantor,
)
from phylodynamics.core.phylogeny import (
    build_tree,
    calibrate_tree,
    clock_regression,
    compute_skyline,
    tree_to_newick,
)
from phylodynamics.core.pipeline import analyze_phylodynamics
from phylodynamics.core.selection import compute_dnds, compute_selection
from phylodynamics.models import (
    ClockRegressionResult,
    DatedSequence,
    PhylodynamicsConfig,
    PhylodynamicsResult,
    PhylogeneticTree,
    SelectionResult,
    SkylinePlot,
    TreeNode,
)

__all__ = [
    "ClockRegressionResult",
    "DatedSequence",
    "PhylodynamicsConfig",
    "PhylodynamicsResult",
    "PhylogeneticTree",
    "SelectionResult",
    "SkylinePlot",
    "TreeNode",
    "__version__",
    "analyze_phylodynamics",
    "build_tree",
    "calibrate_tree",
    "clock_regression",
    "compute_dnds",
    "compute_genetic_distance_matrix",
    "compute_selection",
    "compute_skyline",
    "distance_matrix_frame",
    "jukes_cantor",
    "tree_to_newick",
]
