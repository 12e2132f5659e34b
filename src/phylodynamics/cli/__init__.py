"""
Command-line interface for phylodynamics.

Provides Typer-based CLI for running the phylodynamic analysis pipeline
on dated sequence tables.
"""
