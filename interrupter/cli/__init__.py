"""Command line interface for interrupter."""

from __future__ import annotations

from interrupter.cli.main import InterrupterCLI, main

__all__ = ["InterrupterCLI", "main"]
