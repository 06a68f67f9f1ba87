"""Service configuration for the templatizer GitHub App."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ENV_PREFIX = "TEMPLATIZER_"


class TemplatizerConfig(BaseModel):
    """Configuration for the webhook service and its collaborators."""

    # GitHub App
    app_id: str = Field(default="", description="GitHub App id, used as the JWT issuer")
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    user_agent: str = Field(default="Templatizer", description="User-Agent sent on every API call")
    request_timeout: float = Field(default=10.0, description="Timeout in seconds for outbound HTTP calls")
    assertion_lifetime_seconds: int = Field(default=540, description="Lifetime of the app JWT (9 minutes)")

    # Repository configuration lookup
    config_path: str = Field(default=".github/templatizer.yml", description="Well-known config path in a repo")
    org_config_repo: str = Field(default=".github", description="Org-level repository holding default config")

    # Secrets
    secret_provider: Literal["local", "env", "gcp"] = Field(default="local", description="Secret backend")
    secrets_dir: Path = Field(default=Path("/run/secrets"), description="Directory for the local secret backend")
    gcp_project_id: str | None = Field(default=None, description="Project id for Google Secret Manager")
    private_key_secret: str = Field(default="templatizer-github-key", description="Secret holding the app key")
    webhook_secret_name: str = Field(
        default="templatizer-webhook-secret",
        description="Secret holding the webhook HMAC key",
    )

    # Persisted config store
    store_backend: Literal["memory", "json"] = Field(default="json", description="Config store backend")
    store_path: Path = Field(
        default_factory=lambda: Path.home() / ".templatizer" / "configs.json",
        description="Path to the JSON config store",
    )

    # Webhook server
    webhook_host: str = Field(default="0.0.0.0", description="Interface for the webhook server")
    webhook_port: int = Field(default=8080, description="Port for the webhook server")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> TemplatizerConfig:
        """Build a config from ``TEMPLATIZER_*`` environment variables.

        Unset variables keep their defaults. ``TEMPLATIZER_APP_ID`` maps to
        ``app_id``, ``TEMPLATIZER_WEBHOOK_PORT`` to ``webhook_port`` and so on.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)


# Default configuration
TEMPLATIZER_CONFIG = TemplatizerConfig()
