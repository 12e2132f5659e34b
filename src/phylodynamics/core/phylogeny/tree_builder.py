"""Build rooted phylogenetic trees from dated sequences with UPGMA.

UPGMA (Sokal & Michener 1958) repeatedly merges the two closest clusters,
placing the new node at half their distance. Cluster-to-cluster distances
are always recomputed as the mean over original leaf-pair distances, never
from previously averaged values.

Clusters live in an arena keyed by stable integer ids. The active set is an
insertion-ordered dict, so a merge removes two ids and appends one without
shifting any other cluster's position.

The module also provides traversal helpers shared by the downstream stages
and Newick export through Biopython.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from io import StringIO
from itertools import combinations
from typing import TYPE_CHECKING, Literal

import numpy as np

from phylodynamics.core.constants import INTERNAL_NODE_PREFIX, MAX_JC_DISTANCE
from phylodynamics.core.distance import compute_genetic_distance_matrix
from phylodynamics.core.exceptions import DuplicateSequenceIdError, EmptySequenceSetError
from phylodynamics.models.sequences import DatedSequence
from phylodynamics.models.tree import PhylogeneticTree, TreeNode

if TYPE_CHECKING:
    from Bio.Phylo.BaseTree import Clade

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cluster:
    """Arena record for one UPGMA cluster."""

    id: int
    members: tuple[int, ...]
    height: float
    children: tuple[int, int] | None = None


def _closest_pair(
    active: dict[int, None],
    linkage: dict[tuple[int, int], float],
    tie_break: Literal["first", "last"],
) -> tuple[int, int, float]:
    """Scan active cluster pairs in id order for the minimum distance."""
    pairs = combinations(active, 2)
    best = next(pairs)
    best_distance = linkage[best]

    for i, j in pairs:
        d = linkage[(i, j)]
        if d < best_distance or (tie_break == "last" and d == best_distance):
            best = (i, j)
            best_distance = d

    return best[0], best[1], best_distance


def _mean_linkage(
    distances: np.ndarray,
    members_a: tuple[int, ...],
    members_b: tuple[int, ...],
) -> float:
    """Size-weighted average over all original leaf pairs between two clusters."""
    return float(distances[np.ix_(members_a, members_b)].mean())


def _check_unique_ids(sequences: Sequence[DatedSequence]) -> None:
    counts = Counter(s.id for s in sequences)
    duplicates = [seq_id for seq_id, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateSequenceIdError(duplicates)


def build_tree(
    sequences: Sequence[DatedSequence],
    *,
    max_distance: float = MAX_JC_DISTANCE,
    tie_break: Literal["first", "last"] = "first",
) -> PhylogeneticTree:
    """
    Build an uncalibrated UPGMA tree from aligned, dated sequences.

    Ties for the closest pair are broken by scan order over active clusters
    (leaves in input order, merged clusters appended as created). The choice
    is deterministic but arbitrary.

    Args:
        sequences: Aligned dated sequences; ids must be unique.
        max_distance: Distance reported for saturated pairs.
        tie_break: Keep the 'first' or 'last' equally close pair in scan order.

    Returns:
        PhylogeneticTree rooted at height 0, heights growing toward leaves.

    Raises:
        EmptySequenceSetError: If no sequences are given.
        DuplicateSequenceIdError: If two sequences share an id.
        SequenceLengthMismatchError: If the sequences are not aligned.
    """
    n = len(sequences)
    if n == 0:
        raise EmptySequenceSetError()
    _check_unique_ids(sequences)

    if n == 1:
        leaf = TreeNode(id=sequences[0].id, sequence=sequences[0])
        return PhylogeneticTree(root=leaf, leaf_count=1, height=0.0)

    distances = compute_genetic_distance_matrix(sequences, max_distance)

    arena: dict[int, _Cluster] = {
        i: _Cluster(id=i, members=(i,), height=0.0) for i in range(n)
    }
    active: dict[int, None] = dict.fromkeys(range(n))
    linkage: dict[tuple[int, int], float] = {
        (i, j): float(distances[i, j]) for i, j in combinations(range(n), 2)
    }
    next_id = n

    while len(active) > 1:
        i, j, min_distance = _closest_pair(active, linkage, tie_break)
        left, right = arena[i], arena[j]

        merged = _Cluster(
            id=next_id,
            members=left.members + right.members,
            height=min_distance / 2,
            children=(i, j),
        )
        arena[merged.id] = merged
        next_id += 1

        del active[i]
        del active[j]
        for k in active:
            linkage[(k, merged.id)] = _mean_linkage(
                distances, arena[k].members, merged.members
            )
        active[merged.id] = None

        logger.debug(
            f"Merged clusters {i} and {j} into {merged.id} at height {merged.height:.6g}"
        )

    (root_id,) = active
    root, clamped = _assemble(arena, root_id, sequences)

    tree = PhylogeneticTree(
        root=root,
        leaf_count=n,
        height=max_depth(root),
        clamped_branches=clamped,
    )
    logger.info(f"Built UPGMA tree with {n} leaves, height {tree.height:.6g}")
    return tree


def _assemble(
    arena: dict[int, _Cluster],
    root_id: int,
    sequences: Sequence[DatedSequence],
) -> tuple[TreeNode, int]:
    """Turn the merge arena into TreeNodes with heights measured from the root."""
    clamped = 0

    def build(cluster_id: int, distance: float, height: float) -> TreeNode:
        nonlocal clamped
        cluster = arena[cluster_id]
        if cluster.children is None:
            seq = sequences[cluster.members[0]]
            return TreeNode(id=seq.id, distance=distance, height=height, sequence=seq)

        children = []
        for child_id in cluster.children:
            branch = cluster.height - arena[child_id].height
            if branch < 0:
                clamped += 1
                branch = 0.0
            children.append(build(child_id, branch, height + branch))

        return TreeNode(
            id=f"{INTERNAL_NODE_PREFIX}{cluster_id}",
            distance=distance,
            height=height,
            children=tuple(children),
        )

    root = build(root_id, 0.0, 0.0)
    if clamped:
        logger.warning(
            f"{clamped} negative UPGMA branch length(s) clamped to zero; "
            "input distances are not ultrametric"
        )
    return root, clamped


# =============================================================================
# Traversal helpers
# =============================================================================


def iter_nodes(root: TreeNode) -> Iterator[TreeNode]:
    """Yield nodes depth-first in pre-order, children left to right."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def collect_leaves(root: TreeNode) -> list[TreeNode]:
    """Leaves in left-to-right order."""
    return [node for node in iter_nodes(root) if node.is_leaf]


def find_node(root: TreeNode, node_id: str) -> TreeNode | None:
    """First node with the given id, or None."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def root_to_tip_distances(root: TreeNode) -> dict[str, float]:
    """Cumulative branch length from the root to every leaf, keyed by leaf id."""
    result: dict[str, float] = {}
    stack: list[tuple[TreeNode, float]] = [(root, 0.0)]
    while stack:
        node, distance = stack.pop()
        if node.is_leaf:
            result[node.id] = distance
            continue
        for child in node.children:
            stack.append((child, distance + child.distance))
    return result


def max_depth(root: TreeNode) -> float:
    """Largest leaf height below the root."""
    return max(leaf.height for leaf in collect_leaves(root))


def _to_clade(node: TreeNode) -> Clade:
    from Bio.Phylo.BaseTree import Clade

    return Clade(
        branch_length=node.distance,
        name=node.id if node.is_leaf else None,
        clades=[_to_clade(child) for child in node.children],
    )


def tree_to_newick(tree: PhylogeneticTree) -> str:
    """
    Serialize a tree to a Newick string.

    Leaf names are sequence ids; branch lengths are substitutions per site,
    or years on a calibrated tree.

    Args:
        tree: Tree to serialize.

    Returns:
        Newick string terminated by ';'.
    """
    from Bio import Phylo
    from Bio.Phylo.BaseTree import Tree

    bio_tree = Tree(root=_to_clade(tree.root), rooted=True)
    output = StringIO()
    Phylo.write(bio_tree, output, "newick")
    return output.getvalue().strip()
