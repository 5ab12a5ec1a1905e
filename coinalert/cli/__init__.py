"""CLI commands for CoinAlert.

This package provides the command-line front end for managing
price alerts.
"""

from coinalert.cli.main import cli, main

__all__ = ["cli", "main"]
