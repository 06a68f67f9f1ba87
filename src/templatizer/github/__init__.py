"""GitHub REST API access."""

from templatizer.github.client import GitHubClient

__all__ = ["GitHubClient"]
