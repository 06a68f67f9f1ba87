"""GitHub App authentication."""

from templatizer.auth.credentials import (
    Credential,
    CredentialManager,
    compute_signature,
    load_private_key,
)

__all__ = ["Credential", "CredentialManager", "compute_signature", "load_private_key"]
