"""Provider registry and management.

Each provider contributes a candidate source (what can be interrupted) and an
action invoker (how to interrupt it). The interactive session only depends on
the two contracts in ``interrupter.core.interfaces``.
"""

from __future__ import annotations

from interrupter.providers.aws import FISInterrupter, SpotInstanceSource
from interrupter.providers.aws.constants import DEFAULT_REGION
from interrupter.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
)

_PROVIDERS: dict[str, dict[str, type | str | None]] = {}


def register_provider(
    name: str,
    source_class: type,
    invoker_class: type,
    default_region: str | None = None,
) -> None:
    """Register a cloud provider implementation.

    Parameters
    ----------
    name : str
        Provider name (e.g., 'aws')
    source_class : type
        Class implementing the CandidateSource protocol
    invoker_class : type
        Class implementing the ActionInvoker protocol
    default_region : str | None
        Default region for this provider
    """
    _PROVIDERS[name] = {
        "source": source_class,
        "invoker": invoker_class,
        "default_region": default_region,
    }


def get_provider(name: str) -> dict[str, type | str | None]:
    """Get a registered provider by name.

    Parameters
    ----------
    name : str
        Provider name

    Returns
    -------
    dict[str, type | str | None]
        Dictionary with 'source', 'invoker' and 'default_region' keys

    Raises
    ------
    ValueError
        If provider is not registered
    """
    if name not in _PROVIDERS:
        raise ValueError(f"Unknown provider: {name}")
    return _PROVIDERS[name]


def list_providers() -> list[str]:
    """List all registered provider names."""
    return list(_PROVIDERS.keys())


def get_default_region(provider_name: str) -> str:
    """Get the default region for a provider.

    Raises
    ------
    ValueError
        If provider is not registered or has no default region
    """
    default_region = get_provider(provider_name).get("default_region")

    if default_region is None:
        raise ValueError(f"No default region defined for provider: {provider_name}")

    return default_region


__all__ = [
    "register_provider",
    "get_provider",
    "list_providers",
    "get_default_region",
    "ProviderError",
    "ProviderCredentialsError",
    "ProviderAPIError",
    "ProviderConnectionError",
]

register_provider("aws", SpotInstanceSource, FISInterrupter, DEFAULT_REGION)
