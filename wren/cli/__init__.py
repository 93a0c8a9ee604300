"""Wren CLI.

Registers all commands on the main group.
"""

from wren.cli.assets import ingest, snr, trim
from wren.cli.main import cli

__all__ = ["cli", "ingest", "snr", "trim"]
