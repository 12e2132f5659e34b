"""
Pydantic data models for phylodynamics.

Provides immutable models for dated sequences, trees, stage results and
analysis configuration.
"""

from phylodynamics.models.config import PhylodynamicsConfig
from phylodynamics.models.results import (
    BranchSelection,
    ClockRegressionResult,
    CoalescentInterval,
    DnDsEstimate,
    PhylodynamicsResult,
    ResidualPoint,
    SelectionResult,
    SkylinePlot,
)
from phylodynamics.models.sequences import DatedSequence
from phylodynamics.models.tree import PhylogeneticTree, TreeNode

__all__ = [
    "BranchSelection",
    "ClockRegressionResult",
    "CoalescentInterval",
    "DatedSequence",
    "DnDsEstimate",
    "PhylodynamicsConfig",
    "PhylodynamicsResult",
    "PhylogeneticTree",
    "ResidualPoint",
    "SelectionResult",
    "SkylinePlot",
    "TreeNode",
]
