"""Exceptions raised by the templatizer core."""

from __future__ import annotations


class TemplatizerError(Exception):
    """Base exception for templatizer errors."""


class CredentialError(TemplatizerError):
    """Raised when a GitHub App credential cannot be minted or exchanged.

    Covers missing or malformed key material, an unreadable webhook
    secret, and a rejected installation token exchange.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigParseError(TemplatizerError):
    """Raised when a configuration document cannot be parsed."""


class StoreError(TemplatizerError):
    """Raised when the persisted config store cannot be read or written."""
