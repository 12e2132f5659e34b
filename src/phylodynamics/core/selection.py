"""
Selection pressure (dN/dS) from codon-level sequence comparisons.

A simplified Nei-Gojobori (1986) estimate:

- Only whole codons are compared; codons with gaps or ambiguous bases are
  skipped entirely.
- Every retained codon contributes 1 synonymous and 2 nonsynonymous sites.
- All base differences in a codon count as synonymous when both codons
  translate to the same amino acid, nonsynonymous otherwise. Multi-base
  differences are not split into individual mutational paths.
- pN and pS receive the Jukes-Cantor correction used for distances.

Internal UPGMA nodes carry no sequence and no ancestral reconstruction is
performed, so a branch estimate is the divergence of a leaf from the
nearest sequence-carrying ancestor (or an outgroup reference), not a
per-branch evolutionary decomposition.
"""

from __future__ import annotations

import logging

from Bio.Data import CodonTable

from phylodynamics.core.constants import (
    DNDS_SATURATION_VALUE,
    NEUTRAL_DNDS,
    NONSYNONYMOUS_SITES_PER_CODON,
    STANDARD_GENETIC_CODE_ID,
    STOP_SYMBOL,
    SYNONYMOUS_SITES_PER_CODON,
)
from phylodynamics.core.distance import jukes_cantor_correction, normalize_sequence
from phylodynamics.core.exceptions import UnknownSequenceIdError
from phylodynamics.core.phylogeny.tree_builder import find_node
from phylodynamics.models.results import BranchSelection, DnDsEstimate, SelectionResult
from phylodynamics.models.tree import PhylogeneticTree, TreeNode

logger = logging.getLogger(__name__)

_GENETIC_CODE = CodonTable.unambiguous_dna_by_id[STANDARD_GENETIC_CODE_ID]

# Codon -> amino acid, stops included; any codon outside holds a gap or ambiguity
CODON_TABLE: dict[str, str] = {
    **_GENETIC_CODE.forward_table,
    **dict.fromkeys(_GENETIC_CODE.stop_codons, STOP_SYMBOL),
}


def count_codon_differences(codon_a: str, codon_b: str) -> tuple[int, int]:
    """
    Classify the base differences between two codons.

    Args:
        codon_a: Normalized codon (uppercase DNA).
        codon_b: Normalized codon (uppercase DNA).

    Returns:
        (synonymous, nonsynonymous) difference counts. (0, 0) when the
        codons are identical or either cannot be translated.
    """
    aa_a = CODON_TABLE.get(codon_a)
    aa_b = CODON_TABLE.get(codon_b)
    if aa_a is None or aa_b is None:
        return 0, 0

    differences = sum(1 for a, b in zip(codon_a, codon_b) if a != b)
    if differences == 0:
        return 0, 0
    if aa_a == aa_b:
        return differences, 0
    return 0, differences


def compute_dnds(
    seq_a: str,
    seq_b: str,
    saturated: float = DNDS_SATURATION_VALUE,
) -> DnDsEstimate | None:
    """
    Estimate dN/dS between two coding sequences.

    Sequences are truncated to the largest multiple of three within their
    shared length.

    Args:
        seq_a: Reference (ancestral) coding sequence.
        seq_b: Derived coding sequence.
        saturated: Corrected dN or dS reported when pN or pS >= 0.75.

    Returns:
        DnDsEstimate, or None when no complete codon pair is comparable.
        With dS = 0 the ratio is infinite if dN > 0 and neutral (1) otherwise.
    """
    seq_a = normalize_sequence(seq_a)
    seq_b = normalize_sequence(seq_b)
    codon_length = min(len(seq_a), len(seq_b)) // 3 * 3
    if codon_length < 3:
        return None

    syn_differences = 0
    nonsyn_differences = 0
    syn_sites = 0
    nonsyn_sites = 0

    for i in range(0, codon_length, 3):
        codon_a = seq_a[i:i + 3]
        codon_b = seq_b[i:i + 3]
        if codon_a not in CODON_TABLE or codon_b not in CODON_TABLE:
            continue

        syn, nonsyn = count_codon_differences(codon_a, codon_b)
        syn_differences += syn
        nonsyn_differences += nonsyn
        syn_sites += SYNONYMOUS_SITES_PER_CODON
        nonsyn_sites += NONSYNONYMOUS_SITES_PER_CODON

    if syn_sites == 0:
        return None

    ds = jukes_cantor_correction(syn_differences / syn_sites, saturated)
    dn = jukes_cantor_correction(nonsyn_differences / nonsyn_sites, saturated)

    if ds > 0:
        dnds = dn / ds
    elif dn > 0:
        dnds = float("inf")
    else:
        dnds = NEUTRAL_DNDS

    return DnDsEstimate(dnds=dnds, dn=dn, ds=ds)


def compute_selection(
    tree: PhylogeneticTree,
    reference_id: str | None = None,
    saturated: float = DNDS_SATURATION_VALUE,
) -> SelectionResult:
    """
    Compute per-branch and tree-wide dN/dS.

    Walks the tree depth-first carrying the nearest ancestral sequence and
    compares each leaf against it. UPGMA internal nodes carry no sequence,
    so without a reference a multi-leaf tree yields no comparisons and a
    neutral tree-wide ratio.

    Args:
        tree: Tree whose leaves carry their sequences.
        reference_id: Leaf used as the root reference (outgroup) for every
            other leaf.
        saturated: Corrected dN or dS reported for saturated comparisons.

    Returns:
        SelectionResult with tree-wide sum(dN) / sum(dS); 1 when the summed
        dS is zero.

    Raises:
        UnknownSequenceIdError: If reference_id is not a leaf of the tree.
    """
    reference: str | None = None
    if reference_id is not None:
        node = find_node(tree.root, reference_id)
        if node is None or node.sequence is None:
            raise UnknownSequenceIdError(reference_id)
        reference = node.sequence.sequence

    branches: list[BranchSelection] = []
    stack: list[tuple[TreeNode, str | None]] = [(tree.root, reference)]

    while stack:
        node, ancestral = stack.pop()
        if node.is_leaf and node.sequence is not None and ancestral is not None:
            if node.id != reference_id:
                estimate = compute_dnds(ancestral, node.sequence.sequence, saturated)
                if estimate is not None:
                    branches.append(
                        BranchSelection(
                            node_id=node.id,
                            dnds=estimate.dnds,
                            dn=estimate.dn,
                            ds=estimate.ds,
                        )
                    )

        carried = node.sequence.sequence if node.sequence is not None else ancestral
        for child in reversed(node.children):
            stack.append((child, carried))

    total_dn = sum(b.dn for b in branches)
    total_ds = sum(b.ds for b in branches)
    tree_dnds = total_dn / total_ds if total_ds > 0 else NEUTRAL_DNDS

    if not branches:
        logger.info("No branch had a sequence-carrying ancestor; tree dN/dS is neutral")
    else:
        logger.info(f"Selection over {len(branches)} branches: tree dN/dS {tree_dnds:.3f}")

    return SelectionResult(branch_dnds=tuple(branches), tree_dnds=tree_dnds)


def annotate_dnds(tree: PhylogeneticTree, selection: SelectionResult) -> PhylogeneticTree:
    """Return a copy of the tree with each compared leaf's dN/dS set on its node."""
    by_node = {b.node_id: b.dnds for b in selection.branch_dnds}
    if not by_node:
        return tree

    def annotate(node: TreeNode) -> TreeNode:
        update: dict[str, object] = {
            "children": tuple(annotate(child) for child in node.children)
        }
        if node.id in by_node:
            update["dnds"] = by_node[node.id]
        return node.model_copy(update=update)

    return tree.model_copy(update={"root": annotate(tree.root)})
