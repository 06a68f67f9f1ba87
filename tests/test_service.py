"""Tests for TemplatizerService wiring."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from aiohttp import test_utils

from conftest import APP_ID, WEBHOOK_SECRET, FakeClock, GitHubStub, make_commit, make_push_payload, payload_bytes
from templatizer.auth.credentials import compute_signature
from templatizer.config import TemplatizerConfig
from templatizer.entities.config import FullRepoConfig
from templatizer.memory.config_store import InMemoryConfigStore, JsonConfigStore
from templatizer.secrets import EnvSecretProvider, LocalFileSecretProvider
from templatizer.sync.executor import LoggingPlanExecutor, PlanExecutor
from templatizer.sync.manager import TemplatizerService, build_secret_provider
from templatizer.sync.planner import PropagationPlan

if TYPE_CHECKING:
    from pathlib import Path


class RecordingExecutor(PlanExecutor):
    def __init__(self) -> None:
        self.plans: list[PropagationPlan] = []

    async def execute(self, plan: PropagationPlan) -> None:
        self.plans.append(plan)


class TestBuildSecretProvider:
    def test_local(self, tmp_path: Path) -> None:
        provider = build_secret_provider(TemplatizerConfig(secrets_dir=tmp_path))
        assert isinstance(provider, LocalFileSecretProvider)
        assert provider.base_path == tmp_path

    def test_env(self) -> None:
        assert isinstance(build_secret_provider(TemplatizerConfig(secret_provider="env")), EnvSecretProvider)


class TestTemplatizerService:
    def test_defaults_from_config(self, tmp_path: Path) -> None:
        config = TemplatizerConfig(secrets_dir=tmp_path, store_path=tmp_path / "configs.json")
        service = TemplatizerService(config)

        assert isinstance(service.store, JsonConfigStore)
        assert isinstance(service.executor, LoggingPlanExecutor)
        assert service.github.base_url == "https://api.github.com"
        assert service.resolver.config_path == ".github/templatizer.yml"

    async def test_delivery_end_to_end(self, secrets_dir: Path, github: GitHubStub, clock: FakeClock) -> None:
        """A signed push runs through the wired credential manager, resolver and store."""
        github.add_config("acme", "templates", "sourceSets:\n  - name: ci\n    files: ['ci/*.yml']\n")
        store = InMemoryConfigStore()
        store.upsert(2, FullRepoConfig(full_name="acme/app", config_sets=["acme/templates/ci"]))
        executor = RecordingExecutor()
        http = httpx.AsyncClient(transport=httpx.MockTransport(github.handler))
        service = TemplatizerService(
            TemplatizerConfig(app_id=APP_ID, store_backend="memory"),
            secrets=LocalFileSecretProvider(secrets_dir),
            store=store,
            http=http,
            executor=executor,
            clock=clock,
        )

        body = payload_bytes(make_push_payload(commits=[make_commit(modified=["ci/build.yml"])]))
        headers = {"X-GitHub-Event": "push", "X-Hub-Signature": compute_signature(WEBHOOK_SECRET, body)}
        async with test_utils.TestClient(test_utils.TestServer(service.webhook.build_app())) as client:
            response = await client.post("/webhook", data=body, headers=headers)
            assert response.status == 200

        assert github.exchanges() == 1
        assert 1 in store
        assert [plan.subscribers() for plan in executor.plans] == [["acme/app"]]
        await http.aclose()

    async def test_stop_closes_owned_client(self, tmp_path: Path) -> None:
        config = TemplatizerConfig(secrets_dir=tmp_path, store_backend="memory")
        service = TemplatizerService(config)
        await service.stop()
        assert service.github._http.is_closed

    async def test_stop_keeps_injected_client(self, tmp_path: Path) -> None:
        http = httpx.AsyncClient()
        service = TemplatizerService(TemplatizerConfig(secrets_dir=tmp_path, store_backend="memory"), http=http)
        await service.stop()
        assert not http.is_closed
        await http.aclose()
