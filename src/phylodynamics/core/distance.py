"""
Pairwise genetic distances under the Jukes-Cantor substitution model.

Positions where either sequence holds a gap or an ambiguous symbol are
excluded from both the mismatch count and the number of compared sites.
The raw mismatch proportion p is corrected for multiple substitutions with
d = -3/4 * ln(1 - 4p/3); proportions at or beyond saturation (p >= 0.75)
map to a fixed maximum distance.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
import pandas as pd

from phylodynamics.core.constants import (
    JC_SATURATION_PROPORTION,
    MAX_JC_DISTANCE,
    VALID_BASES,
)
from phylodynamics.core.exceptions import SequenceLengthMismatchError
from phylodynamics.models.sequences import DatedSequence

logger = logging.getLogger(__name__)

# Byte lookup: True for unambiguous nucleotides
_VALID_BYTE = np.zeros(256, dtype=bool)
_VALID_BYTE[[ord(base) for base in VALID_BASES]] = True


def normalize_sequence(sequence: str) -> str:
    """Uppercase a sequence and read RNA uracil as thymine.

    Non-ASCII symbols become '?' before uppercasing, so the length never
    changes and the symbol never counts as a valid base.
    """
    raw = sequence.encode("ascii", errors="replace").upper()
    return raw.replace(b"U", b"T").decode("ascii")


def encode_sequence(sequence: str) -> np.ndarray:
    """Encode a sequence as a uint8 array of normalized ASCII codes."""
    return np.frombuffer(normalize_sequence(sequence).encode("ascii"), dtype=np.uint8)


def jukes_cantor_correction(p: float, saturated: float = MAX_JC_DISTANCE) -> float:
    """
    Apply the Jukes-Cantor correction to a mismatch proportion.

    Args:
        p: Observed proportion of differing sites.
        saturated: Value returned when p >= 0.75, where the log argument
            would be zero or negative.

    Returns:
        Corrected distance, never negative.
    """
    if p >= JC_SATURATION_PROPORTION:
        return saturated
    if p <= 0:
        return 0.0
    return max(0.0, -0.75 * math.log(1.0 - 4.0 * p / 3.0))


def _encoded_distance(
    encoded_a: np.ndarray,
    encoded_b: np.ndarray,
    max_distance: float,
) -> float:
    if encoded_a.shape != encoded_b.shape:
        raise SequenceLengthMismatchError(len(encoded_a), len(encoded_b))

    valid = _VALID_BYTE[encoded_a] & _VALID_BYTE[encoded_b]
    valid_positions = int(np.count_nonzero(valid))
    if valid_positions == 0:
        return 0.0

    differences = int(np.count_nonzero(encoded_a[valid] != encoded_b[valid]))
    return jukes_cantor_correction(differences / valid_positions, max_distance)


def jukes_cantor(
    seq_a: str,
    seq_b: str,
    max_distance: float = MAX_JC_DISTANCE,
) -> float:
    """
    Jukes-Cantor distance between two aligned sequences.

    Comparison is case-insensitive. Gaps, N and other ambiguity codes are
    skipped at the position where they occur.

    Args:
        seq_a: First aligned sequence.
        seq_b: Second aligned sequence, same length as seq_a.
        max_distance: Distance reported for saturated pairs.

    Returns:
        Non-negative distance; 0 when no position is comparable.

    Raises:
        SequenceLengthMismatchError: If the sequences differ in length.
    """
    if len(seq_a) != len(seq_b):
        raise SequenceLengthMismatchError(len(seq_a), len(seq_b))
    return _encoded_distance(encode_sequence(seq_a), encode_sequence(seq_b), max_distance)


def compute_genetic_distance_matrix(
    sequences: Sequence[DatedSequence],
    max_distance: float = MAX_JC_DISTANCE,
) -> np.ndarray:
    """
    Build the symmetric pairwise distance matrix for a sequence set.

    Each unordered pair is computed once; the diagonal is zero.

    Args:
        sequences: Aligned dated sequences.
        max_distance: Distance reported for saturated pairs.

    Returns:
        Square float array indexed in input order.

    Raises:
        SequenceLengthMismatchError: If any compared pair differs in length.
    """
    n = len(sequences)
    matrix = np.zeros((n, n), dtype=float)
    encoded = [encode_sequence(s.sequence) for s in sequences]

    for i in range(n):
        for j in range(i + 1, n):
            d = _encoded_distance(encoded[i], encoded[j], max_distance)
            matrix[i, j] = d
            matrix[j, i] = d

    logger.debug(f"Computed {n * (n - 1) // 2} pairwise distances for {n} sequences")
    return matrix


def distance_matrix_frame(
    sequences: Sequence[DatedSequence],
    max_distance: float = MAX_JC_DISTANCE,
) -> pd.DataFrame:
    """Distance matrix as a DataFrame labelled by sequence id on both axes."""
    ids = [s.id for s in sequences]
    matrix = compute_genetic_distance_matrix(sequences, max_distance)
    return pd.DataFrame(matrix, index=ids, columns=ids)
