"""
Constants used throughout the phylodynamics package.

Centralizes substitution-model limits, symbol sets and default thresholds
so the core algorithms and the configuration model share one source.
"""

from __future__ import annotations

# =============================================================================
# Sequence Symbols
# =============================================================================

# Unambiguous nucleotides; everything else (gaps, N, IUPAC codes) is excluded
VALID_BASES = frozenset("ACGT")

# =============================================================================
# Jukes-Cantor Substitution Model
#
# d = -3/4 * ln(1 - 4p/3), undefined for p >= 3/4
# =============================================================================

JC_SATURATION_PROPORTION = 0.75

# Distance reported for saturated sequence pairs
MAX_JC_DISTANCE = 3.0

# Corrected pN / pS reported for saturated codon comparisons
DNDS_SATURATION_VALUE = 1.0

# =============================================================================
# Tree Construction
# =============================================================================

INTERNAL_NODE_PREFIX = "internal_"

# =============================================================================
# Molecular Clock
# =============================================================================

MIN_DATED_LEAVES = 2

# Below this the date (or distance) spread is treated as zero
VARIANCE_EPSILON = 1e-10

# Orchestrator acceptance threshold for a usable clock
DEFAULT_CLOCK_R2_THRESHOLD = 0.5

# =============================================================================
# Coalescent Skyline
# =============================================================================

# Ne multiplier for intervals that do not end in a coalescence
NON_COALESCENT_SCALE = 10.0

MIN_EFFECTIVE_POPULATION_SIZE = 1.0

# =============================================================================
# Selection
# =============================================================================

# NCBI translation table 1 (standard code)
STANDARD_GENETIC_CODE_ID = 1

STOP_SYMBOL = "*"

# Uniform per-codon site approximation
SYNONYMOUS_SITES_PER_CODON = 1
NONSYNONYMOUS_SITES_PER_CODON = 2

NEUTRAL_DNDS = 1.0
