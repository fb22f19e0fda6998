"""CLI modules for vaultctl."""

from vaultctl.cli.main import cli, main

__all__ = ["cli", "main"]
