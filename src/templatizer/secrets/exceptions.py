"""Exceptions for secret retrieval."""


class SecretError(Exception):
    """Base exception for secret management errors."""


class SecretNotFoundError(SecretError):
    """Raised when a requested secret does not exist."""


class SecretProviderError(SecretError):
    """Raised when the secret provider encounters an error."""
