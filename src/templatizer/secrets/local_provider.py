"""Local filesystem secret provider."""

from __future__ import annotations

import logging
from pathlib import Path

from templatizer.secrets.exceptions import SecretNotFoundError, SecretProviderError
from templatizer.secrets.provider import SecretProvider

logger = logging.getLogger(__name__)


class LocalFileSecretProvider(SecretProvider):
    """Secret provider that reads secrets from a directory of files.

    Each file holds one secret and the filename is the secret name. Suits
    Docker and Kubernetes mounted secrets and local development.

    Example:
        >>> provider = LocalFileSecretProvider(base_path="/run/secrets")
        >>> key = provider.get_secret("templatizer-github-key")
    """

    def __init__(self, base_path: str | Path) -> None:
        """Initialize the provider.

        Raises:
            SecretProviderError: If base_path does not exist or is not a directory
        """
        self.base_path = Path(base_path)

        if not self.base_path.exists():
            raise SecretProviderError("Secret base path does not exist")
        if not self.base_path.is_dir():
            raise SecretProviderError("Secret base path is not a directory")

        logger.info("Initialized local secret provider at %s", self.base_path)

    def _get_secret_path(self, key_name: str) -> Path:
        potential_path = (self.base_path / key_name).resolve()
        try:
            potential_path.relative_to(self.base_path.resolve())
        except ValueError as e:
            raise SecretProviderError(f"Invalid secret name (path traversal detected): {key_name}") from e
        return potential_path

    def get_secret(self, key_name: str) -> str:
        """Read the secret file. The value is returned as stored."""
        secret_path = self._get_secret_path(key_name)

        if not secret_path.exists():
            raise SecretNotFoundError(f"Secret not found: {key_name}")
        if not secret_path.is_file():
            raise SecretProviderError(f"Secret path is not a file: {key_name}")

        try:
            return secret_path.read_text(encoding="utf-8")
        except OSError as e:
            raise SecretProviderError(f"Failed to read secret {key_name}: {e}") from e
