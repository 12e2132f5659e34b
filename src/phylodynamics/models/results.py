"""
Result models for the phylodynamic analysis stages.

Each stage returns a fresh result. Absence of signal is encoded explicitly
(zero rate, empty intervals) and skipped stages are None on the combined
PhylodynamicsResult, so "not computed" and "computed, nothing found" stay
distinguishable.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from phylodynamics.models.tree import PhylogeneticTree


class ResidualPoint(BaseModel):
    """Observed and predicted root-to-tip distance for one dated leaf."""

    id: str
    observed: float
    expected: float
    residual: float

    model_config = {"frozen": True}


class ClockRegressionResult(BaseModel):
    """Root-to-tip regression of genetic distance against sampling date.

    Attributes:
        rate: Substitutions per site per year; 0 when no clock signal
        root_age: Decimal year where the fitted line reaches zero distance
        r2: Coefficient of determination, clamped to [0, 1]
        residuals: Per-leaf residuals against the fitted (or mean) predictor
    """

    rate: float = Field(ge=0.0)
    root_age: float
    r2: float = Field(ge=0.0, le=1.0)
    residuals: tuple[ResidualPoint, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def no_signal(cls) -> ClockRegressionResult:
        """Result for inputs that cannot support a regression at all."""
        return cls(rate=0.0, root_age=0.0, r2=0.0, residuals=())

    @property
    def has_clock(self) -> bool:
        return self.rate > 0


class CoalescentInterval(BaseModel):
    """Interval between two consecutive tree events."""

    start_time: float
    end_time: float
    lineages: int = Field(ge=1)
    ne: float = Field(gt=0.0, description="Effective population size estimate")
    width: float = Field(gt=0.0)

    model_config = {"frozen": True}


class SkylinePlot(BaseModel):
    """Piecewise-constant effective population size through time.

    ``times`` and ``ne_values`` are step-plot arrays: each interval
    contributes its start and end time, both paired with its Ne.
    """

    intervals: tuple[CoalescentInterval, ...] = ()
    times: tuple[float, ...] = ()
    ne_values: tuple[float, ...] = ()
    time_span: float = 0.0

    model_config = {"frozen": True}

    @classmethod
    def empty(cls) -> SkylinePlot:
        return cls()


class DnDsEstimate(BaseModel):
    """Pairwise dN/dS estimate between two coding sequences."""

    dnds: float = Field(ge=0.0)
    dn: float = Field(ge=0.0)
    ds: float = Field(ge=0.0)

    model_config = {"frozen": True}


class BranchSelection(BaseModel):
    """dN/dS for the branch leading to one leaf."""

    node_id: str
    dnds: float = Field(ge=0.0)
    dn: float = Field(ge=0.0)
    ds: float = Field(ge=0.0)

    model_config = {"frozen": True}


class SelectionResult(BaseModel):
    """Per-branch and tree-wide selection pressure.

    ``tree_dnds`` aggregates sum(dN) / sum(dS) over all compared branches
    rather than averaging per-branch ratios.
    """

    branch_dnds: tuple[BranchSelection, ...] = ()
    tree_dnds: float = Field(ge=0.0)

    model_config = {"frozen": True}


class PhylodynamicsResult(BaseModel):
    """Combined output of the phylodynamic pipeline."""

    tree: PhylogeneticTree
    clock_regression: ClockRegressionResult | None = None
    skyline: SkylinePlot | None = None
    selection: SelectionResult | None = None

    model_config = {"frozen": True}

    def summary(self) -> dict[str, Any]:
        """Flat summary of the headline numbers for display."""
        data: dict[str, Any] = {
            "leaf_count": self.tree.leaf_count,
            "tree_height": self.tree.height,
            "clock_calibrated": self.tree.is_clock_calibrated,
            "clamped_branches": self.tree.clamped_branches,
        }
        if self.clock_regression is not None:
            data["substitution_rate"] = self.clock_regression.rate
            data["root_age"] = self.clock_regression.root_age
            data["clock_r2"] = self.clock_regression.r2
        if self.skyline is not None:
            data["skyline_intervals"] = len(self.skyline.intervals)
            data["skyline_time_span"] = self.skyline.time_span
        if self.selection is not None:
            data["branches_compared"] = len(self.selection.branch_dnds)
            data["tree_dnds"] = self.selection.tree_dnds
        return data
