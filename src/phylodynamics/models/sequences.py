"""
Data model for dated input sequences.

A DatedSequence is one aligned sample with its collection date. The set is
supplied by a caller-owned loader and is never mutated after ingestion.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field


class DatedSequence(BaseModel):
    """Single aligned sequence with its sampling date.

    Attributes:
        id: Unique sample identifier (becomes the leaf id)
        sequence: Aligned nucleotide sequence; gaps and ambiguity codes allowed
        date: Collection date as a decimal year (2023.5 is mid-2023), or None
            when the sample is undated
        metadata: Free-form annotations carried through to the leaf
    """

    id: str = Field(min_length=1, description="Unique sample identifier")
    sequence: str = Field(description="Aligned nucleotide sequence")
    date: float | None = Field(default=None, description="Decimal-year collection date")
    metadata: dict[str, str | int | float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def is_dated(self) -> bool:
        """True when the sample has a finite collection date."""
        return self.date is not None and math.isfinite(self.date)

    def __len__(self) -> int:
        return len(self.sequence)
