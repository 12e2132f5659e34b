"""
Custom exceptions with actionable guidance.

Input contract violations (misuse of the API) are raised as errors. Data-quality
degeneracies such as a missing clock signal are never raised; they surface as
explicit "no signal" values in the result models instead.
"""

from __future__ import annotations


class PhylodynamicsError(Exception):
    """Base exception for phylodynamics errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class SequenceInputError(PhylodynamicsError):
    """Base class for sequence input contract violations."""



class SequenceLengthMismatchError(SequenceInputError, ValueError):
    """Raised when two sequences compared position-by-position differ in length."""

    def __init__(self, length_a: int, length_b: int):
        super().__init__(
            message=f"Sequences must have equal length: got {length_a} and {length_b}",
            suggestion=(
                "Align the sequence set before analysis (e.g. with MAFFT or MUSCLE). "
                "Every sequence must be padded with gaps to the alignment length."
            ),
        )
        self.length_a = length_a
        self.length_b = length_b


class EmptySequenceSetError(SequenceInputError, ValueError):
    """Raised when tree construction receives no sequences."""

    def __init__(self) -> None:
        super().__init__(
            message="No sequences provided for tree construction",
            suggestion="Supply at least one dated, aligned sequence.",
        )


class DuplicateSequenceIdError(SequenceInputError, ValueError):
    """Raised when a sequence set reuses an identifier."""

    def __init__(self, duplicate_ids: list[str]):
        shown = ", ".join(sorted(duplicate_ids)[:5])
        if len(duplicate_ids) > 5:
            shown += f"... and {len(duplicate_ids) - 5} more"
        super().__init__(
            message=f"Duplicate sequence identifiers: {shown}",
            suggestion="Give every sequence a unique id; leaves are looked up by id.",
        )
        self.duplicate_ids = duplicate_ids


class UnknownSequenceIdError(SequenceInputError, KeyError):
    """Raised when a requested leaf id is not present in the tree."""

    def __init__(self, sequence_id: str):
        super().__init__(
            message=f"No leaf with id '{sequence_id}' in the tree",
            suggestion="Check the outgroup id against the ids in the input table.",
        )
        self.sequence_id = sequence_id

    def __str__(self) -> str:
        return self.full_message


class DatedTableError(SequenceInputError):
    """Raised when a dated alignment table cannot be loaded."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Cannot load dated sequences from '{path}': {reason}",
            suggestion=(
                "The table must be CSV or TSV with columns 'id', 'date' "
                "(decimal year) and 'sequence'. Extra columns are kept as metadata."
            ),
        )
        self.path = path


class ConfigurationError(PhylodynamicsError):
    """Raised when configuration is invalid."""



class InvalidConfigFileError(ConfigurationError):
    """Raised when a YAML configuration file cannot be used."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Invalid configuration file '{path}': {reason}",
            suggestion=(
                "Write a fresh template with 'phylodynamics analyze config "
                "--output config.yaml' and edit the values you need."
            ),
        )
        self.path = path
