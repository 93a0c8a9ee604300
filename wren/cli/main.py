"""Main CLI command group for Wren."""

from __future__ import annotations

import click

import wren


@click.group()
@click.version_option(version=wren.__version__, prog_name="wren")
def cli() -> None:
    """Wren: content-addressed audio assets."""
