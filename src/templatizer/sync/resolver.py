"""Resolution of a repository's declared templatizer configuration."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from templatizer.entities.config import RepoConfig, parse_config
from templatizer.entities.events import ContentsResponse
from templatizer.exceptions import ConfigParseError

if TYPE_CHECKING:
    from templatizer.auth.credentials import CredentialManager
    from templatizer.github.client import GitHubClient

logger = logging.getLogger(__name__)


class ConfigResolver:
    """Fetches ``.github/templatizer.yml`` for a repository.

    Lookup order:

    1. ``{owner}/{repo}/.github/templatizer.yml``
    2. ``{owner}/.github/.github/templatizer.yml`` (organization default)

    A missing or unreadable document is not an error: the resolver
    returns ``None`` and the caller treats the repository as having no
    configuration. ``CredentialError`` and transport failures propagate.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        github: GitHubClient,
        config_path: str = ".github/templatizer.yml",
        org_config_repo: str = ".github",
    ) -> None:
        self._credentials = credentials
        self._github = github
        self.config_path = config_path
        self.org_config_repo = org_config_repo

    def candidate_urls(self, owner: str, repo: str) -> list[str]:
        """Contents URLs to try, in order of preference."""
        return [
            self._github.contents_url(owner, repo, self.config_path),
            self._github.contents_url(owner, self.org_config_repo, self.config_path),
        ]

    async def get_config(self, installation_id: int, owner: str, repo: str) -> RepoConfig | None:
        """Return the first configuration found for the repository, or None."""
        for url in self.candidate_urls(owner, repo):
            config = await self.get_config_by_url(installation_id, url)
            if config is not None:
                return config
        logger.info("No templatizer config found for %s/%s", owner, repo)
        return None

    async def get_config_by_url(self, installation_id: int, url: str) -> RepoConfig | None:
        """Fetch and parse a configuration from a contents API URL.

        Returns:
            The parsed configuration, or None on a non-success status, a
            document served without inline base64 content, or an undecodable
            document.

        Raises:
            CredentialError: If no access token can be obtained.
            httpx.HTTPError: If the request fails at the transport level.
        """
        token = await self._credentials.get_access_token(installation_id)
        response = await self._github.get(url, token)
        if not response.is_success:
            logger.info("Request for config failed: HTTP %d for %s", response.status_code, url)
            return None

        try:
            contents = ContentsResponse.model_validate(response.json())
            if contents.encoding != "base64" or not contents.content.strip():
                logger.warning("Ignoring config at %s: no inline content (encoding %r)", url, contents.encoding)
                return None
            text = base64.b64decode(contents.content).decode("utf-8")
            return parse_config(text)
        except (ValueError, ValidationError, binascii.Error, ConfigParseError) as e:
            logger.warning("Ignoring unreadable config at %s: %s", url, e)
            return None


class LocalConfigResolver:
    """Serves a configuration from a local file, for offline planning."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def get_config(self, installation_id: int, owner: str, repo: str) -> RepoConfig | None:
        if not self.path.exists():
            return None
        return parse_config(self.path.read_text(encoding="utf-8"))
