"""
Integration tests for the phylodynamics CLI.

Tests the command-line interface using Typer's CliRunner for:
- Main entry point and version display
- analyze run with output files and stage switches
- analyze config template generation
- Error handling for invalid inputs
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from phylodynamics import __version__
from phylodynamics.cli.main import app
from phylodynamics.models import PhylodynamicsConfig
from tests.factories import write_sequence_table

runner = CliRunner()


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def sequence_table(temp_dir: Path, synthetic_sequences) -> Path:
    """TSV table of twenty dated sequences."""
    return write_sequence_table(synthetic_sequences, temp_dir / "samples.tsv")


@pytest.fixture
def coding_table(temp_dir: Path, coding_sequences) -> Path:
    """CSV table of two codon-aligned sequences."""
    return write_sequence_table(coding_sequences, temp_dir / "coding.csv", separator=",")


# =============================================================================
# Main App Tests
# =============================================================================


class TestMainApp:
    """Tests for the main entry point."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"phylodynamics version {__version__}" in result.stdout

    def test_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "analyze" in result.stdout

    def test_analyze_help(self):
        result = runner.invoke(app, ["analyze", "run", "--help"])

        assert result.exit_code == 0
        assert "--input" in result.stdout
        assert "--outgroup" in result.stdout


# =============================================================================
# analyze run Tests
# =============================================================================


class TestAnalyzeRun:
    """Tests for the analyze run command."""

    def test_full_run(self, sequence_table: Path, temp_dir: Path):
        output = temp_dir / "result.json"

        result = runner.invoke(
            app, ["analyze", "run", "-i", str(sequence_table), "-o", str(output)]
        )

        assert result.exit_code == 0, result.stdout
        assert output.exists()
        data = json.loads(output.read_text())
        assert data["tree"]["leaf_count"] == 20
        assert data["clock_regression"] is not None
        assert data["selection"] is not None
        assert "Phylodynamics Summary" in result.stdout

    def test_extra_outputs(self, sequence_table: Path, temp_dir: Path):
        output = temp_dir / "result.json"
        newick = temp_dir / "tree.nwk"
        distances = temp_dir / "distances.csv"

        result = runner.invoke(
            app,
            [
                "analyze", "run",
                "-i", str(sequence_table),
                "-o", str(output),
                "--newick", str(newick),
                "--distances", str(distances),
            ],
        )

        assert result.exit_code == 0, result.stdout
        assert newick.read_text().strip().endswith(";")
        assert distances.read_text().startswith(",Seq_1")

    def test_stage_switches(self, sequence_table: Path, temp_dir: Path):
        output = temp_dir / "result.json"

        result = runner.invoke(
            app,
            [
                "analyze", "run",
                "-i", str(sequence_table),
                "-o", str(output),
                "--no-clock",
                "--no-selection",
            ],
        )

        assert result.exit_code == 0, result.stdout
        data = json.loads(output.read_text())
        assert data["clock_regression"] is None
        assert data["skyline"] is None
        assert data["selection"] is None

    def test_outgroup(self, coding_table: Path, temp_dir: Path):
        output = temp_dir / "result.json"

        result = runner.invoke(
            app,
            ["analyze", "run", "-i", str(coding_table), "-o", str(output), "--outgroup", "A"],
        )

        assert result.exit_code == 0, result.stdout
        data = json.loads(output.read_text())
        assert [b["node_id"] for b in data["selection"]["branch_dnds"]] == ["B"]

    def test_config_file(self, sequence_table: Path, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        PhylodynamicsConfig(run_selection=False).to_yaml(config_path)
        output = temp_dir / "result.json"

        result = runner.invoke(
            app,
            ["analyze", "run", "-i", str(sequence_table), "-o", str(output), "-c", str(config_path)],
        )

        assert result.exit_code == 0, result.stdout
        assert json.loads(output.read_text())["selection"] is None

    def test_quiet(self, sequence_table: Path, temp_dir: Path):
        output = temp_dir / "result.json"

        result = runner.invoke(
            app, ["analyze", "run", "-i", str(sequence_table), "-o", str(output), "--quiet"]
        )

        assert result.exit_code == 0
        assert "Phylodynamics Summary" not in result.stdout
        assert output.exists()


class TestAnalyzeRunErrors:
    """Tests for error handling in analyze run."""

    def test_missing_input(self, temp_dir: Path):
        result = runner.invoke(
            app,
            ["analyze", "run", "-i", str(temp_dir / "missing.tsv"), "-o", str(temp_dir / "r.json")],
        )
        assert result.exit_code != 0

    def test_unaligned_sequences(self, temp_dir: Path):
        table = temp_dir / "bad.tsv"
        table.write_text("id\tdate\tsequence\nA\t2020\tACGT\nB\t2021\tACG\n")

        result = runner.invoke(
            app, ["analyze", "run", "-i", str(table), "-o", str(temp_dir / "r.json")]
        )

        assert result.exit_code == 1
        assert "equal length" in " ".join(result.stdout.split())

    def test_bad_table(self, temp_dir: Path):
        table = temp_dir / "bad.tsv"
        table.write_text("name\tsequence\nA\tACGT\n")

        result = runner.invoke(
            app, ["analyze", "run", "-i", str(table), "-o", str(temp_dir / "r.json")]
        )

        assert result.exit_code == 1
        assert "missing column" in " ".join(result.stdout.split())

    def test_unknown_outgroup(self, coding_table: Path, temp_dir: Path):
        result = runner.invoke(
            app,
            [
                "analyze", "run",
                "-i", str(coding_table),
                "-o", str(temp_dir / "r.json"),
                "--outgroup", "nope",
            ],
        )

        assert result.exit_code == 1
        assert "nope" in result.stdout

    def test_unwritable_output(self, sequence_table: Path, temp_dir: Path):
        """An output path that is a directory fails cleanly."""
        result = runner.invoke(
            app, ["analyze", "run", "-i", str(sequence_table), "-o", str(temp_dir)]
        )

        assert result.exit_code == 1
        assert "could not write results" in " ".join(result.stdout.split())

    def test_invalid_config(self, sequence_table: Path, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("clock:\n  r2_threshold: 7\n")

        result = runner.invoke(
            app,
            [
                "analyze", "run",
                "-i", str(sequence_table),
                "-o", str(temp_dir / "r.json"),
                "-c", str(config_path),
            ],
        )

        assert result.exit_code == 1
        assert "Invalid configuration file" in " ".join(result.stdout.split())


# =============================================================================
# analyze config Tests
# =============================================================================


class TestAnalyzeConfig:
    """Tests for the analyze config command."""

    def test_writes_default_config(self, temp_dir: Path):
        output = temp_dir / "nested" / "config.yaml"

        result = runner.invoke(app, ["analyze", "config", "-o", str(output)])

        assert result.exit_code == 0
        assert "Default configuration written" in result.stdout
        assert PhylodynamicsConfig.from_yaml(output) == PhylodynamicsConfig()
        assert "stages" in yaml.safe_load(output.read_text())
