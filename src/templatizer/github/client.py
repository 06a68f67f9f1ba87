"""Thin async client for the GitHub REST endpoints templatizer calls."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

ACCEPT_JSON = "application/vnd.github+json"


class GitHubClient:
    """Authenticated HTTP calls against the GitHub REST API.

    Wraps one shared ``httpx.AsyncClient``. Methods return the raw
    ``httpx.Response``; status handling belongs to the caller. Transport
    failures and timeouts surface as ``httpx.HTTPError``.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        base_url: str = "https://api.github.com",
        user_agent: str = "Templatizer",
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def url(self, path: str) -> str:
        """Absolute API URL for a path such as ``/repos/o/r/contents/x``."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def contents_url(self, owner: str, repo: str, path: str) -> str:
        return self.url(f"/repos/{owner}/{repo}/contents/{path.lstrip('/')}")

    def _headers(self, authorization: str) -> dict[str, str]:
        return {
            "Authorization": authorization,
            "Accept": ACCEPT_JSON,
            "User-Agent": self.user_agent,
        }

    async def create_installation_token(self, installation_id: int, assertion: str) -> httpx.Response:
        """POST /app/installations/{id}/access_tokens with the app JWT."""
        url = self.url(f"/app/installations/{installation_id}/access_tokens")
        return await self._http.post(url, headers=self._headers(f"Bearer {assertion}"))

    async def get(self, url: str, token: str) -> httpx.Response:
        """GET an API URL with an installation access token."""
        return await self._http.get(self.url(url), headers=self._headers(f"token {token}"))
