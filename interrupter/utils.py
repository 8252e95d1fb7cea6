"""Utility functions for interrupter."""

from __future__ import annotations

import re

DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")

DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Parameters
    ----------
    value : str | int | float
        Number of seconds, or a string such as ``"15s"``, ``"2m"``, ``"500ms"``
        or ``"1h"``. A bare number string is read as seconds.

    Returns
    -------
    float
        Duration in seconds

    Raises
    ------
    ValueError
        If the value cannot be parsed or is not positive
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    if isinstance(value, int | float):
        seconds = float(value)
    else:
        match = DURATION_PATTERN.match(str(value))

        if not match:
            raise ValueError(
                f"Invalid duration: {value!r}. Use seconds or a suffix such as 15s, 2m, 500ms"
            )

        amount, unit = match.groups()
        seconds = float(amount) * DURATION_UNITS[unit or "s"]

    if seconds <= 0:
        raise ValueError(f"Duration must be positive, got {value!r}")

    return seconds


def format_instance_row(instance_id: str, label: str) -> str:
    """Format an instance as ``id (label)`` for plain output.

    Parameters
    ----------
    instance_id : str
        Instance identifier
    label : str
        Human readable name, possibly empty

    Returns
    -------
    str
        Formatted row
    """
    return f"{instance_id} ({label})"
