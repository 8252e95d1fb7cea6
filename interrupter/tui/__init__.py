"""Textual TUI for interrupter."""

from interrupter.tui.app import InterrupterTUI

__all__ = ["InterrupterTUI"]
