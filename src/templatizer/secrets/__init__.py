"""Secret providers for the GitHub App key and the webhook secret."""

from templatizer.secrets.env_provider import EnvSecretProvider
from templatizer.secrets.exceptions import SecretError, SecretNotFoundError, SecretProviderError
from templatizer.secrets.factory import create_secret_provider
from templatizer.secrets.gcp_provider import GCPSecretManagerProvider
from templatizer.secrets.local_provider import LocalFileSecretProvider
from templatizer.secrets.provider import SecretProvider

__all__ = [
    "EnvSecretProvider",
    "GCPSecretManagerProvider",
    "LocalFileSecretProvider",
    "SecretError",
    "SecretNotFoundError",
    "SecretProvider",
    "SecretProviderError",
    "create_secret_provider",
]
