"""Tests for the Jukes-Cantor distance engine."""

from __future__ import annotations

import itertools
import math

import numpy as np
import pytest

from phylodynamics.core.constants import MAX_JC_DISTANCE
from phylodynamics.core.distance import (
    compute_genetic_distance_matrix,
    distance_matrix_frame,
    jukes_cantor,
    jukes_cantor_correction,
)
from phylodynamics.core.exceptions import SequenceLengthMismatchError
from tests.factories import DatedSequenceFactory, make_sequences


class TestJukesCantorCorrection:
    """Test the saturation-corrected transform of a mismatch proportion."""

    def test_zero_proportion(self) -> None:
        assert jukes_cantor_correction(0.0) == 0.0

    def test_known_value(self) -> None:
        """p = 0.1 follows -3/4 ln(1 - 4p/3)."""
        expected = -0.75 * math.log(1 - 4 * 0.1 / 3)
        assert jukes_cantor_correction(0.1) == pytest.approx(expected)

    def test_saturation_boundary(self) -> None:
        """p >= 0.75 returns the saturated value instead of a log error."""
        assert jukes_cantor_correction(0.75) == MAX_JC_DISTANCE
        assert jukes_cantor_correction(1.0) == MAX_JC_DISTANCE
        assert jukes_cantor_correction(0.9, saturated=1.0) == 1.0

    def test_monotonic_below_saturation(self) -> None:
        values = [jukes_cantor_correction(p / 100) for p in range(0, 75, 5)]
        assert values == sorted(values)


class TestJukesCantor:
    """Test pairwise sequence distance."""

    def test_identical_sequences(self) -> None:
        assert jukes_cantor("ACGT", "ACGT") == 0

    def test_different_sequences_positive(self) -> None:
        assert jukes_cantor("AAAA", "TTTT") > 0

    def test_single_mismatch_in_ten(self) -> None:
        expected = -0.75 * math.log(1 - 4 * 0.1 / 3)
        assert jukes_cantor("AAAAAAAAAA", "AAAAAAAAAC") == pytest.approx(expected)

    def test_gaps_excluded(self) -> None:
        """Gap positions drop out of numerator and denominator."""
        assert jukes_cantor("ACGT", "A-GT") == pytest.approx(jukes_cantor("AGT", "AGT"))
        # 1 mismatch over 3 valid sites, not 4
        expected = jukes_cantor_correction(1 / 3)
        assert jukes_cantor("ACGT", "A-GA") == pytest.approx(expected)

    def test_ambiguous_bases_excluded(self) -> None:
        assert jukes_cantor("ACNT", "ACGT") == 0
        assert jukes_cantor("ACGR", "ACGT") == 0
        assert jukes_cantor("ACGY", "ACGT") == 0

    def test_case_insensitive(self) -> None:
        assert jukes_cantor("ACGT", "acgt") == 0

    def test_uracil_read_as_thymine(self) -> None:
        assert jukes_cantor("ACGU", "ACGT") == 0

    def test_non_ascii_symbols_excluded(self) -> None:
        """Symbols whose uppercase form is longer keep the alignment length."""
        assert jukes_cantor("A\u00dfA", "AAA") == 0
        assert jukes_cantor("A\u00dfC", "AAA") == pytest.approx(jukes_cantor_correction(0.5))

    def test_no_valid_positions_is_zero(self) -> None:
        assert jukes_cantor("----", "NNNN") == 0.0
        assert jukes_cantor("", "") == 0.0

    def test_caps_distance_at_saturation(self) -> None:
        """Sequences differing at every position hit the maximum exactly."""
        assert jukes_cantor("AAAA", "CCCC") == MAX_JC_DISTANCE
        assert jukes_cantor("ACGTACGT", "CATGCATG") <= MAX_JC_DISTANCE

    def test_custom_max_distance(self) -> None:
        assert jukes_cantor("AAAA", "CCCC", max_distance=5.0) == 5.0

    def test_unequal_length_raises(self) -> None:
        with pytest.raises(SequenceLengthMismatchError, match="equal length"):
            jukes_cantor("ACGT", "ACG")

    def test_length_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            jukes_cantor("ACGT", "ACGTA")

    def test_length_error_records_lengths(self) -> None:
        with pytest.raises(SequenceLengthMismatchError) as exc_info:
            jukes_cantor("ACGT", "AC")
        assert exc_info.value.length_a == 4
        assert exc_info.value.length_b == 2
        assert "Align" in exc_info.value.suggestion

    def test_symmetry_and_identity(self) -> None:
        """distance(a, b) == distance(b, a) and distance(a, a) == 0."""
        sequences = DatedSequenceFactory(seed=3).diverging_set(num_sequences=6, length=60)
        for a, b in itertools.combinations(sequences, 2):
            assert jukes_cantor(a.sequence, b.sequence) == jukes_cantor(b.sequence, a.sequence)
        for s in sequences:
            assert jukes_cantor(s.sequence, s.sequence) == 0


class TestDistanceMatrix:
    """Test pairwise distance matrix construction."""

    def test_symmetric(self) -> None:
        sequences = make_sequences([
            ("A", "AAAA", 2020.0),
            ("B", "AAAT", 2021.0),
            ("C", "TTTT", 2022.0),
        ])
        matrix = compute_genetic_distance_matrix(sequences)

        assert matrix.shape == (3, 3)
        assert np.array_equal(matrix, matrix.T)

    def test_zero_diagonal(self) -> None:
        sequences = make_sequences([
            ("A", "ACGT", 2020.0),
            ("B", "ACGT", 2021.0),
        ])
        matrix = compute_genetic_distance_matrix(sequences)

        assert matrix[0, 0] == 0
        assert matrix[1, 1] == 0

    def test_entries_match_pairwise_distance(self) -> None:
        sequences = DatedSequenceFactory(seed=11).diverging_set(num_sequences=5, length=50)
        matrix = compute_genetic_distance_matrix(sequences)

        for i, j in itertools.combinations(range(5), 2):
            expected = jukes_cantor(sequences[i].sequence, sequences[j].sequence)
            assert matrix[i, j] == pytest.approx(expected)

    def test_identical_sequences_all_zero(self, identical_sequences) -> None:
        matrix = compute_genetic_distance_matrix(identical_sequences)
        assert not matrix.any()

    def test_empty_and_single(self) -> None:
        assert compute_genetic_distance_matrix([]).shape == (0, 0)
        single = make_sequences([("A", "ACGT", 2020.0)])
        assert compute_genetic_distance_matrix(single).tolist() == [[0.0]]

    def test_unaligned_set_raises(self) -> None:
        sequences = make_sequences([
            ("A", "ACGT", 2020.0),
            ("B", "ACGTT", 2021.0),
        ])
        with pytest.raises(SequenceLengthMismatchError):
            compute_genetic_distance_matrix(sequences)

    def test_frame_labelled_by_id(self, diverging_sequences) -> None:
        frame = distance_matrix_frame(diverging_sequences)

        assert list(frame.index) == ["A", "B", "C", "D"]
        assert list(frame.columns) == ["A", "B", "C", "D"]
        assert frame.loc["A", "B"] == pytest.approx(jukes_cantor("AAAAAAAAAA", "AAAAAAAAAC"))
        assert frame.loc["B", "A"] == frame.loc["A", "B"]
