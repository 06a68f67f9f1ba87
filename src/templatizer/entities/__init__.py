"""Domain models for repository configuration and GitHub payloads."""

from templatizer.entities.config import (
    FullRepoConfig,
    RepoConfig,
    TemplateGroup,
    group_reference,
    parse_config,
)
from templatizer.entities.events import (
    AccessTokenResult,
    Commit,
    ContentsResponse,
    GitHubInstallation,
    GitHubRepository,
    GitHubUser,
    GitUser,
    PushEvent,
)

__all__ = [
    "AccessTokenResult",
    "Commit",
    "ContentsResponse",
    "FullRepoConfig",
    "GitHubInstallation",
    "GitHubRepository",
    "GitHubUser",
    "GitUser",
    "PushEvent",
    "RepoConfig",
    "TemplateGroup",
    "group_reference",
    "parse_config",
]
