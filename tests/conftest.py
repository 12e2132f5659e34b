"""
Shared pytest fixtures for phylodynamics tests.

Provides reusable sequence sets, hand-built trees, and temporary
directories for unit and integration testing.
"""

from __future__ import annotations

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from phylodynamics.models import DatedSequence, PhylogeneticTree
from tests.factories import (
    DatedSequenceFactory,
    clock_like_tree,
    make_sequences,
    staggered_tree,
)


# =============================================================================
# Sequence Fixtures
# =============================================================================


@pytest.fixture
def identical_sequences() -> list[DatedSequence]:
    """Four identical 10-base sequences sampled on the same date."""
    return make_sequences([(name, "ACGTACGTAC", 2020.0) for name in "ABCD"])


@pytest.fixture
def diverging_sequences() -> list[DatedSequence]:
    """Four sequences accumulating mutations with increasing dates."""
    return make_sequences([
        ("A", "AAAAAAAAAA", 2020.0),
        ("B", "AAAAAAAAAC", 2021.0),
        ("C", "AAAAAAAACC", 2022.0),
        ("D", "AAAAAAAACT", 2023.0),
    ])


@pytest.fixture
def outlier_sequences() -> list[DatedSequence]:
    """Two close sequences and one saturated outlier."""
    return make_sequences([
        ("A", "AAAAAAAAAA", 2020.0),
        ("B", "AAAAAAAAAC", 2021.0),
        ("C", "TTTTTTTTTT", 2022.0),
    ])


@pytest.fixture
def coding_sequences() -> list[DatedSequence]:
    """Codon-aligned sequences: B carries one synonymous and one nonsynonymous change."""
    return make_sequences([
        ("A", "CTCATGATGATG", 2020.0),
        ("B", "CTTATGATGATA", 2021.0),
    ])


@pytest.fixture
def synthetic_sequences() -> list[DatedSequence]:
    """Twenty seeded sequences diverging over five years."""
    return DatedSequenceFactory(seed=7).diverging_set(num_sequences=20, length=120)


# =============================================================================
# Tree Fixtures
# =============================================================================


@pytest.fixture
def clock_tree() -> PhylogeneticTree:
    """Non-ultrametric tree with a perfect 0.01 subs/site/year clock."""
    return clock_like_tree()


@pytest.fixture
def calibrated_tree() -> PhylogeneticTree:
    """Tree with coalescent events at heights 0, 1, 2 and all leaves at 3."""
    return staggered_tree()


# =============================================================================
# Temporary File Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Temporary directory cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
