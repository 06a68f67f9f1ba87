"""Environment variable secret provider."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from templatizer.secrets.exceptions import SecretNotFoundError
from templatizer.secrets.provider import SecretProvider


class EnvSecretProvider(SecretProvider):
    """Reads secrets from environment variables.

    ``templatizer-github-key`` is looked up as ``TEMPLATIZER_GITHUB_KEY``:
    the name is upper-cased and non-alphanumerics become underscores. A
    ``prefix`` is prepended when given.
    """

    def __init__(self, prefix: str = "", environ: Mapping[str, str] | None = None) -> None:
        self.prefix = prefix
        self._environ = os.environ if environ is None else environ

    def variable_name(self, key_name: str) -> str:
        return self.prefix + re.sub(r"[^A-Za-z0-9]", "_", key_name).upper()

    def get_secret(self, key_name: str) -> str:
        var = self.variable_name(key_name)
        value = self._environ.get(var)
        if value is None:
            raise SecretNotFoundError(f"Secret not found: {key_name} (expected ${var})")
        # PEM keys pasted into a single-line variable keep literal "\n"
        return value.replace("\\n", "\n")
