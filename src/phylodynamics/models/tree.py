"""
Tree data models.

Nodes are immutable: every stage that changes branch lengths or annotations
builds new nodes instead of editing existing ones, so a tree handed to a
caller is never altered retroactively.

Height convention: the root sits at height 0 and height grows toward the
leaves (height = accumulated branch length from the root). For every node,
height(node) = height(parent) + distance(node).
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Self

from pydantic import BaseModel, Field, model_serializer, model_validator

from phylodynamics.models.sequences import DatedSequence


class TreeNode(BaseModel):
    """Node of a rooted binary tree.

    Attributes:
        id: Leaf sequence id, or a generated internal node id
        distance: Branch length to the parent (0 for the root)
        height: Accumulated branch length from the root
        children: Exactly two children for internal nodes, none for leaves
        sequence: Originating sample; present on leaves only
        dnds: dN/dS of the branch leading to this node, when computed
    """

    id: str
    distance: float = Field(default=0.0, description="Branch length to parent")
    height: float = Field(default=0.0, description="Distance from root")
    children: tuple[TreeNode, ...] = Field(default=())
    sequence: DatedSequence | None = Field(default=None)
    dnds: float | None = Field(default=None)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_shape(self) -> Self:
        """Internal nodes are strictly binary and never carry a sequence."""
        if self.children:
            if len(self.children) != 2:
                msg = f"Internal node '{self.id}' must have 2 children, got {len(self.children)}"
                raise ValueError(msg)
            if self.sequence is not None:
                msg = f"Internal node '{self.id}' cannot carry a sequence"
                raise ValueError(msg)
        return self

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def __repr_args__(self) -> Iterator[tuple[str | None, Any]]:
        # Children shown by id so the repr stays one level deep
        for name, value in super().__repr_args__():
            if name == "children":
                value = tuple(child.id for child in value)
            yield name, value


class PhylogeneticTree(BaseModel):
    """Rooted tree with calibration metadata.

    Attributes:
        root: Root node (height 0)
        leaf_count: Number of leaves, equal to the input sequence count
        height: Largest root-to-leaf height; time units once calibrated
        is_clock_calibrated: Whether branch lengths are in years
        substitution_rate: Clock rate used for calibration
        clock_r2: R-squared of the root-to-tip regression used for calibration
        clamped_branches: Negative UPGMA branch lengths clamped to zero
    """

    root: TreeNode
    leaf_count: int = Field(ge=1)
    height: float = Field(default=0.0, ge=0.0)
    is_clock_calibrated: bool = False
    substitution_rate: float | None = None
    clock_r2: float | None = None
    clamped_branches: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @model_serializer(mode="plain")
    def serialize_flat(self) -> dict[str, Any]:
        """
        Serialize with the nodes as a flat pre-order list.

        Each node records its parent id instead of nesting its children, so
        ladder-shaped trees serialize regardless of depth.
        """
        nodes: list[dict[str, Any]] = []
        stack: list[tuple[TreeNode, str | None]] = [(self.root, None)]
        while stack:
            node, parent = stack.pop()
            nodes.append(
                {
                    "id": node.id,
                    "parent": parent,
                    "distance": node.distance,
                    "height": node.height,
                    "dnds": node.dnds,
                    "sequence_id": node.sequence.id if node.sequence is not None else None,
                    "date": node.sequence.date if node.sequence is not None else None,
                }
            )
            stack.extend((child, node.id) for child in reversed(node.children))

        return {
            "root": self.root.id,
            "leaf_count": self.leaf_count,
            "height": self.height,
            "is_clock_calibrated": self.is_clock_calibrated,
            "substitution_rate": self.substitution_rate,
            "clock_r2": self.clock_r2,
            "clamped_branches": self.clamped_branches,
            "nodes": nodes,
        }


TreeNode.model_rebuild()
