"""AWS provider for interrupter."""

from interrupter.providers.aws.instances import SpotInstanceSource
from interrupter.providers.aws.interruption import FISInterrupter

__all__ = ["SpotInstanceSource", "FISInterrupter"]
