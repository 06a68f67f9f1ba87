"""Factory for creating secret providers."""

from __future__ import annotations

from typing import Any

from templatizer.secrets.env_provider import EnvSecretProvider
from templatizer.secrets.exceptions import SecretProviderError
from templatizer.secrets.gcp_provider import GCPSecretManagerProvider
from templatizer.secrets.local_provider import LocalFileSecretProvider
from templatizer.secrets.provider import SecretProvider

PROVIDERS: dict[str, type[SecretProvider]] = {
    "local": LocalFileSecretProvider,
    "env": EnvSecretProvider,
    "gcp": GCPSecretManagerProvider,
}


def create_secret_provider(provider_type: str, **kwargs: Any) -> SecretProvider:
    """Create a secret provider by type name.

    Example:
        >>> provider = create_secret_provider("local", base_path="/run/secrets")

    Raises:
        SecretProviderError: If provider_type is unknown
    """
    if provider_type not in PROVIDERS:
        raise SecretProviderError(
            f"Unknown provider type: {provider_type}. Available: {', '.join(PROVIDERS)}"
        )
    return PROVIDERS[provider_type](**kwargs)
