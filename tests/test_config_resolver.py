"""Tests for ConfigResolver and LocalConfigResolver."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from conftest import INSTALLATION_ID, GitHubStub
from templatizer.exceptions import ConfigParseError, CredentialError
from templatizer.sync.resolver import ConfigResolver, LocalConfigResolver

if TYPE_CHECKING:
    from pathlib import Path

    from templatizer.auth.credentials import CredentialManager

REPO_PATH = "/repos/acme/app/contents/.github/templatizer.yml"
ORG_PATH = "/repos/acme/.github/contents/.github/templatizer.yml"


@pytest.fixture
def resolver(credentials: CredentialManager, github: GitHubStub) -> ConfigResolver:
    return ConfigResolver(credentials, github.client())


class TestConfigResolver:
    def test_candidate_urls(self, resolver: ConfigResolver) -> None:
        assert resolver.candidate_urls("acme", "app") == [
            f"https://api.github.com{REPO_PATH}",
            f"https://api.github.com{ORG_PATH}",
        ]

    async def test_repository_config(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_config("acme", "app", "configSets:\n  - acme/templates/ci\n")
        github.add_config("acme", ".github", "configSets:\n  - acme/templates/org\n")

        config = await resolver.get_config(INSTALLATION_ID, "acme", "app")

        assert config is not None
        assert config.config_sets == ["acme/templates/ci"]
        assert github.gets() == [REPO_PATH]

    async def test_request_headers(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_config("acme", "app", "configSets: []\n")
        await resolver.get_config(INSTALLATION_ID, "acme", "app")

        get = next(r for r in github.requests if r.method == "GET")
        assert get.headers["Authorization"] == "token ghs_token1"
        assert get.headers["Accept"] == "application/vnd.github+json"
        assert get.headers["User-Agent"] == "Templatizer"

    async def test_falls_back_to_org_config(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_config("acme", ".github", "configSets:\n  - acme/templates/org\n")

        config = await resolver.get_config(INSTALLATION_ID, "acme", "app")

        assert config is not None
        assert config.config_sets == ["acme/templates/org"]
        assert github.gets() == [REPO_PATH, ORG_PATH]

    async def test_none_when_both_missing(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        assert await resolver.get_config(INSTALLATION_ID, "acme", "app") is None
        assert github.gets() == [REPO_PATH, ORG_PATH]

    async def test_token_reused_across_lookups(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        await resolver.get_config(INSTALLATION_ID, "acme", "app")
        assert github.exchanges() == 1

    async def test_undecodable_content_falls_through(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_response(REPO_PATH, httpx.Response(200, json={"content": "%%% not base64 %%%"}))
        github.add_config("acme", ".github", "configSets: [acme/templates/org]\n")

        config = await resolver.get_config(INSTALLATION_ID, "acme", "app")

        assert config is not None
        assert config.config_sets == ["acme/templates/org"]

    async def test_invalid_yaml_is_none(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_config("acme", "app", "sourceSets: [unclosed\n")
        url = resolver.candidate_urls("acme", "app")[0]
        assert await resolver.get_config_by_url(INSTALLATION_ID, url) is None

    async def test_non_json_body_is_none(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_response(REPO_PATH, httpx.Response(200, text="<html>"))
        url = resolver.candidate_urls("acme", "app")[0]
        assert await resolver.get_config_by_url(INSTALLATION_ID, url) is None

    async def test_server_error_is_none(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_response(REPO_PATH, httpx.Response(502))
        url = resolver.candidate_urls("acme", "app")[0]
        assert await resolver.get_config_by_url(INSTALLATION_ID, url) is None

    async def test_large_file_without_inline_content_is_none(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        """Files over 1 MB come back with an empty body and encoding 'none'."""
        github.add_response(REPO_PATH, httpx.Response(200, json={"type": "file", "encoding": "none", "content": ""}))
        url = resolver.candidate_urls("acme", "app")[0]
        assert await resolver.get_config_by_url(INSTALLATION_ID, url) is None

    async def test_empty_content_falls_back_to_org_config(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.add_response(REPO_PATH, httpx.Response(200, json={"type": "file", "encoding": "base64", "content": ""}))
        github.add_config("acme", ".github", "configSets: [acme/templates/org]\n")

        config = await resolver.get_config(INSTALLATION_ID, "acme", "app")

        assert config is not None
        assert config.config_sets == ["acme/templates/org"]
        assert github.gets() == [REPO_PATH, ORG_PATH]

    async def test_credential_error_propagates(self, resolver: ConfigResolver, github: GitHubStub) -> None:
        github.token_status = 401
        with pytest.raises(CredentialError):
            await resolver.get_config(INSTALLATION_ID, "acme", "app")
        assert github.gets() == []

    def test_custom_path(self, credentials: CredentialManager, github: GitHubStub) -> None:
        resolver = ConfigResolver(credentials, github.client(), config_path="templatizer.yaml", org_config_repo="meta")
        assert resolver.candidate_urls("acme", "app") == [
            "https://api.github.com/repos/acme/app/contents/templatizer.yaml",
            "https://api.github.com/repos/acme/meta/contents/templatizer.yaml",
        ]


class TestLocalConfigResolver:
    async def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "templatizer.yml"
        path.write_text("configSets: [acme/templates/ci]\n")
        config = await LocalConfigResolver(path).get_config(0, "acme", "app")
        assert config is not None
        assert config.config_sets == ["acme/templates/ci"]

    async def test_missing_file(self, tmp_path: Path) -> None:
        assert await LocalConfigResolver(tmp_path / "nope.yml").get_config(0, "acme", "app") is None

    async def test_invalid_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "templatizer.yml"
        path.write_text("- not a mapping\n")
        with pytest.raises(ConfigParseError):
            await LocalConfigResolver(path).get_config(0, "acme", "app")
