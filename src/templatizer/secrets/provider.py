"""Base secret provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SecretProvider(ABC):
    """Abstract base class for secret providers.

    Implementations resolve a secret name to its UTF-8 value. Calls may
    block on I/O; async callers run them in a worker thread.
    """

    @abstractmethod
    def get_secret(self, key_name: str) -> str:
        """Retrieve a secret by name.

        Args:
            key_name: Name/identifier of the secret

        Returns:
            Secret value as a string

        Raises:
            SecretNotFoundError: If the secret does not exist
            SecretProviderError: If retrieval fails
        """

    def secret_exists(self, key_name: str) -> bool:
        """Check if a secret exists."""
        from templatizer.secrets.exceptions import SecretError

        try:
            self.get_secret(key_name)
        except SecretError:
            return False
        return True
