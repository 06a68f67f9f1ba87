"""Shared test fixtures for templatizer."""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from templatizer.auth.credentials import CredentialManager
from templatizer.github.client import GitHubClient
from templatizer.secrets.local_provider import LocalFileSecretProvider

APP_ID = "12345"
INSTALLATION_ID = 42
WEBHOOK_SECRET = "s3cret"
START = datetime(2024, 1, 1, tzinfo=UTC)


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class GitHubStub:
    """In-process fake of the GitHub endpoints, served through httpx.MockTransport."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.requests: list[httpx.Request] = []
        self.token_status = 201
        self.token_lifetime = timedelta(hours=1)
        self.tokens_issued = 0
        self.contents: dict[str, httpx.Response] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/access_tokens"):
            if self.token_status >= 400:
                return httpx.Response(self.token_status, json={"message": "Bad credentials"})
            self.tokens_issued += 1
            expires_at = (self.clock.now + self.token_lifetime).strftime("%Y-%m-%dT%H:%M:%SZ")
            return httpx.Response(
                201,
                json={"token": f"ghs_token{self.tokens_issued}", "expires_at": expires_at},
            )

        if request.method == "GET" and path in self.contents:
            return self.contents[path]

        return httpx.Response(404, json={"message": "Not Found"})

    def add_config(self, owner: str, repo: str, text: str) -> None:
        """Serve ``text`` as the repository's templatizer.yml."""
        encoded = base64.encodebytes(text.encode("utf-8")).decode("ascii")
        self.contents[f"/repos/{owner}/{repo}/contents/.github/templatizer.yml"] = httpx.Response(
            200,
            json={"type": "file", "encoding": "base64", "content": encoded},
        )

    def add_response(self, path: str, response: httpx.Response) -> None:
        self.contents[path] = response

    def exchanges(self) -> int:
        return sum(1 for r in self.requests if r.method == "POST")

    def gets(self) -> list[str]:
        return [r.url.path for r in self.requests if r.method == "GET"]

    def client(self) -> GitHubClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return GitHubClient(http)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """A throwaway RSA key for signing app assertions."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    """PKCS#1 PEM, the format GitHub hands out for app keys."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def secrets_dir(tmp_path: Path, rsa_private_pem: str) -> Path:
    """A mounted-secrets directory holding the app key and webhook secret."""
    directory = tmp_path / "secrets"
    directory.mkdir()
    (directory / "templatizer-github-key").write_text(rsa_private_pem)
    (directory / "templatizer-webhook-secret").write_text(f"  {WEBHOOK_SECRET}\n")
    return directory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def github(clock: FakeClock) -> GitHubStub:
    return GitHubStub(clock)


@pytest.fixture
def credentials(secrets_dir: Path, github: GitHubStub, clock: FakeClock) -> CredentialManager:
    return CredentialManager(
        app_id=APP_ID,
        secrets=LocalFileSecretProvider(secrets_dir),
        github=github.client(),
        clock=clock,
    )


def make_commit(
    commit_id: str = "c0ffee0000000000",
    added: list[str] | None = None,
    modified: list[str] | None = None,
    removed: list[str] | None = None,
) -> dict[str, Any]:
    """A push payload commit entry."""
    return {
        "id": commit_id,
        "message": "update",
        "added": added or [],
        "modified": modified or [],
        "removed": removed or [],
    }


def make_push_payload(
    full_name: str = "acme/templates",
    repo_id: int = 1,
    ref: str = "refs/heads/main",
    default_branch: str = "main",
    commits: list[dict[str, Any]] | None = None,
    installation_id: int | None = INSTALLATION_ID,
) -> dict[str, Any]:
    """A GitHub ``push`` payload with the fields the planner reads."""
    owner, name = full_name.split("/", 1)
    payload: dict[str, Any] = {
        "ref": ref,
        "before": "0" * 40,
        "after": "a" * 40,
        "repository": {
            "id": repo_id,
            "name": name,
            "full_name": full_name,
            "owner": {"login": owner, "id": 7},
            "default_branch": default_branch,
        },
        "sender": {"login": "octocat", "id": 1},
        "commits": commits if commits is not None else [make_commit(modified=["ci/build.yml"])],
    }
    if installation_id is not None:
        payload["installation"] = {"id": installation_id}
    return payload


def payload_bytes(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")
