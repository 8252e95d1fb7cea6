"""Logging helpers for interrupter."""

from interrupter.logging.filters import StreamRoutingFilter
from interrupter.logging.handlers import TuiLogHandler, TuiLogMessage

__all__ = ["StreamRoutingFilter", "TuiLogHandler", "TuiLogMessage"]
