"""Service wiring: builds every collaborator from a TemplatizerConfig."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Callable

import httpx

from templatizer.auth.credentials import CredentialManager, utc_now
from templatizer.github.client import GitHubClient
from templatizer.memory.config_store import ConfigStore, create_config_store
from templatizer.secrets.factory import create_secret_provider
from templatizer.sync.executor import LoggingPlanExecutor, PlanExecutor
from templatizer.sync.planner import PropagationPlanner
from templatizer.sync.resolver import ConfigResolver
from templatizer.sync.webhook import WebhookServer

if TYPE_CHECKING:
    from datetime import datetime

    from templatizer.config import TemplatizerConfig
    from templatizer.secrets.provider import SecretProvider

logger = logging.getLogger(__name__)


def build_secret_provider(config: TemplatizerConfig) -> SecretProvider:
    """Secret provider selected by ``config.secret_provider``."""
    if config.secret_provider == "local":
        return create_secret_provider("local", base_path=config.secrets_dir)
    if config.secret_provider == "gcp":
        return create_secret_provider("gcp", project_id=config.gcp_project_id or "")
    return create_secret_provider("env")


class TemplatizerService:
    """Owns the shared HTTP client, credential cache, store and webhook server.

    Orchestrates:
    - Credential minting and webhook signature checks
    - Configuration resolution and persistence
    - Propagation planning and hand-off to the executor
    """

    def __init__(
        self,
        config: TemplatizerConfig,
        secrets: SecretProvider | None = None,
        store: ConfigStore | None = None,
        executor: PlanExecutor | None = None,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            config: Service configuration.
            secrets: Secret provider; built from config when omitted.
            store: Config store; built from config when omitted.
            executor: Plan executor; logs plans when omitted.
            http: Shared HTTP client; created and owned when omitted.
            clock: Current UTC time source for assertions and token expiry.
        """
        self._config = config
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=config.request_timeout)

        self.github = GitHubClient(
            self._http,
            base_url=config.github_api_url,
            user_agent=config.user_agent,
        )
        self.credentials = CredentialManager(
            app_id=config.app_id,
            secrets=secrets or build_secret_provider(config),
            github=self.github,
            private_key_secret=config.private_key_secret,
            webhook_secret_name=config.webhook_secret_name,
            assertion_lifetime=timedelta(seconds=config.assertion_lifetime_seconds),
            clock=clock,
        )
        self.resolver = ConfigResolver(
            self.credentials,
            self.github,
            config_path=config.config_path,
            org_config_repo=config.org_config_repo,
        )
        self.store = store or create_config_store(config.store_backend, config.store_path)
        self.planner = PropagationPlanner(self.resolver, self.store)
        self.executor = executor or LoggingPlanExecutor()
        self.webhook = WebhookServer(
            self.credentials,
            self.planner,
            self.executor,
            host=config.webhook_host,
            port=config.webhook_port,
        )

    async def start(self) -> None:
        """Start the webhook server."""
        await self.webhook.start()
        logger.info("Templatizer service started (app %s)", self._config.app_id or "<unset>")

    async def stop(self) -> None:
        """Stop the webhook server and release the HTTP client."""
        await self.webhook.stop()
        if self._owns_http:
            await self._http.aclose()
        logger.info("Templatizer service stopped")

    async def run_forever(self) -> None:
        """Serve until cancelled, then release resources."""
        try:
            await self.webhook.run_forever()
        finally:
            if self._owns_http:
                await self._http.aclose()
