"""
Pydantic configuration model for the phylodynamic pipeline.

Holds the stage switches and the heuristic constants of the core algorithms
(saturation caps, skyline scaling, UPGMA tie-break) so they can be tuned
from a YAML file or the CLI instead of being hard-coded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from phylodynamics.core.constants import (
    DEFAULT_CLOCK_R2_THRESHOLD,
    DNDS_SATURATION_VALUE,
    MAX_JC_DISTANCE,
    MIN_EFFECTIVE_POPULATION_SIZE,
    NON_COALESCENT_SCALE,
)
from phylodynamics.core.exceptions import InvalidConfigFileError

logger = logging.getLogger(__name__)

TieBreak = Literal["first", "last"]


class PhylodynamicsConfig(BaseModel):
    """
    Configuration for a phylodynamic analysis run.

    Stage switches:
        - run_clock: root-to-tip regression and, when accepted, calibration
        - run_skyline: coalescent skyline; only runs on a calibrated tree
        - run_selection: dN/dS against the nearest ancestral sequence

    A clock is accepted for calibration when its rate is positive and its
    R-squared exceeds ``clock_r2_threshold``.
    """

    run_clock: bool = Field(default=True, description="Run molecular clock regression")
    run_skyline: bool = Field(
        default=True,
        description="Run coalescent skyline (requires an accepted clock)",
    )
    run_selection: bool = Field(default=True, description="Run dN/dS selection analysis")

    clock_r2_threshold: float = Field(
        default=DEFAULT_CLOCK_R2_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum root-to-tip R-squared (exclusive) for calibrating the tree",
    )
    max_distance: float = Field(
        default=MAX_JC_DISTANCE,
        gt=0.0,
        description="Distance reported for saturated pairs (mismatch proportion >= 0.75)",
    )
    dnds_saturation_value: float = Field(
        default=DNDS_SATURATION_VALUE,
        gt=0.0,
        description="Corrected dN or dS reported for saturated codon comparisons",
    )
    non_coalescent_scale: float = Field(
        default=NON_COALESCENT_SCALE,
        gt=0.0,
        description="Ne multiplier for skyline intervals not ending in a coalescence",
    )
    min_ne: float = Field(
        default=MIN_EFFECTIVE_POPULATION_SIZE,
        gt=0.0,
        description="Floor for skyline effective population size",
    )
    tie_break: TieBreak = Field(
        default="first",
        description=(
            "UPGMA tie-break among equally close cluster pairs: 'first' or 'last' "
            "pair encountered in scan order"
        ),
    )
    outgroup_id: str | None = Field(
        default=None,
        description="Leaf used as the reference sequence for dN/dS comparisons",
    )

    model_config = {"frozen": True}

    def with_overrides(self, **overrides: Any) -> PhylodynamicsConfig:
        """Return a validated copy with the given fields replaced."""
        return type(self)(**{**self.model_dump(), **overrides})

    @classmethod
    def from_yaml(cls, path: Path) -> PhylodynamicsConfig:
        """
        Load configuration from a YAML file.

        The file may be flat or group keys under ``stages``, ``clock``,
        ``distance``, ``skyline``, ``selection`` and ``tree`` sections.
        Unknown keys are ignored with a warning.

        Args:
            path: Path to YAML configuration file.

        Returns:
            PhylodynamicsConfig merged with defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidConfigFileError: If the file is not a mapping or holds
                invalid values.
        """
        import yaml

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise InvalidConfigFileError(str(path), f"YAML parse error: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise InvalidConfigFileError(
                str(path), f"expected a mapping, got {type(raw).__name__}"
            )

        flat = _flatten_yaml_config(raw)
        try:
            return cls(**flat)
        except ValidationError as e:
            raise InvalidConfigFileError(str(path), str(e)) from e

    def to_yaml(self, path: Path) -> None:
        """Write configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize configuration to a sectioned YAML string."""
        import yaml

        data = _build_yaml_structure(self)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


# Section name -> {yaml key: model field}
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "stages": {
        "clock": "run_clock",
        "skyline": "run_skyline",
        "selection": "run_selection",
    },
    "clock": {"r2_threshold": "clock_r2_threshold"},
    "distance": {"max_distance": "max_distance"},
    "tree": {"tie_break": "tie_break"},
    "skyline": {
        "non_coalescent_scale": "non_coalescent_scale",
        "min_ne": "min_ne",
    },
    "selection": {
        "saturation_value": "dnds_saturation_value",
        "outgroup_id": "outgroup_id",
    },
}


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Flatten sectioned YAML into model field names."""
    fields = set(PhylodynamicsConfig.model_fields)
    flat: dict[str, Any] = {}

    for key, value in raw.items():
        if key in _YAML_SECTIONS and isinstance(value, dict):
            mapping = _YAML_SECTIONS[key]
            for sub_key, sub_value in value.items():
                if sub_key in mapping:
                    flat[mapping[sub_key]] = sub_value
                else:
                    logger.warning(f"Ignoring unknown config key: {key}.{sub_key}")
        elif key in fields:
            flat[key] = value
        else:
            logger.warning(f"Ignoring unknown config key: {key}")

    return flat


def _build_yaml_structure(config: PhylodynamicsConfig) -> dict[str, Any]:
    """Build the sectioned YAML mapping for a configuration."""
    return {
        section: {yaml_key: getattr(config, field) for yaml_key, field in mapping.items()}
        for section, mapping in _YAML_SECTIONS.items()
    }
