"""Provider-agnostic exceptions raised by cloud collaborators."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for all provider errors."""


class ProviderCredentialsError(ProviderError):
    """Raised when cloud credentials are missing or unusable."""


class ProviderAPIError(ProviderError):
    """Raised when a cloud API call is rejected.

    Parameters
    ----------
    message : str
        Human readable error message
    error_code : str | None
        Provider error code (e.g., ``UnauthorizedOperation``)
    """

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class ProviderConnectionError(ProviderError):
    """Raised when the cloud endpoint cannot be reached."""
