"""Logging filters for stdout/stderr routing."""

import logging


class StreamRoutingFilter(logging.Filter):
    """Pass only records destined for one output stream.

    Records at WARNING and above go to stderr, everything else to stdout.

    Parameters
    ----------
    stream : str
        Either ``"stdout"`` or ``"stderr"``
    """

    def __init__(self, stream: str) -> None:
        super().__init__()
        self.stream = stream

    def filter(self, record: logging.LogRecord) -> bool:
        target = "stderr" if record.levelno >= logging.WARNING else "stdout"
        return target == self.stream
