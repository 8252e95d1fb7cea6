"""Interactive EC2 Spot interruption tool."""

__version__ = "0.1.0"
