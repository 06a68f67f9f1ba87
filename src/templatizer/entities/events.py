"""GitHub webhook and REST payload models.

Only the fields the planner reads are required to be meaningful; every
field has a default so partial payloads still validate.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GitHubUser(_Payload):
    """Account that owns a repository or sent an event."""

    login: str = ""
    id: int = 0
    type: str = ""


class GitUser(_Payload):
    """Git author, committer or pusher identity."""

    name: str = ""
    email: str | None = None
    username: str | None = None


class GitHubRepository(_Payload):
    """Repository section of a push payload."""

    id: int = 0
    name: str = ""
    full_name: str = ""
    owner: GitHubUser = Field(default_factory=GitHubUser)
    private: bool = False
    default_branch: str = ""
    master_branch: str = ""
    html_url: str = ""

    @property
    def owner_login(self) -> str:
        """Owner login, falling back to the full name prefix."""
        if self.owner.login:
            return self.owner.login
        return self.full_name.split("/", 1)[0] if "/" in self.full_name else ""

    @property
    def configured_default_branch(self) -> str:
        """Default branch as configured on the repository."""
        return self.default_branch or self.master_branch


class GitHubInstallation(_Payload):
    """Installation section of a webhook payload."""

    id: int = 0
    node_id: str = ""


class Commit(_Payload):
    """One commit of a push, with the paths it touched."""

    id: str = ""
    tree_id: str = ""
    distinct: bool = True
    message: str = ""
    timestamp: str = ""
    url: str = ""
    author: GitUser | None = None
    committer: GitUser | None = None
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)

    @field_validator("added", "removed", "modified", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    def changed_paths(self) -> list[str]:
        """Added, modified and removed paths, in that order, without repeats."""
        return list(dict.fromkeys([*self.added, *self.modified, *self.removed]))


class PushEvent(_Payload):
    """A ``push`` webhook delivery."""

    ref: str = ""
    before: str = ""
    after: str = ""
    repository: GitHubRepository = Field(default_factory=GitHubRepository)
    pusher: GitUser | None = None
    sender: GitHubUser | None = None
    installation: GitHubInstallation | None = None
    created: bool = False
    deleted: bool = False
    forced: bool = False
    base_ref: str | None = None
    compare: str = ""
    commits: list[Commit] = Field(default_factory=list)
    head_commit: Commit | None = None

    @field_validator("commits", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    @property
    def installation_id(self) -> int | None:
        return self.installation.id if self.installation else None

    def targets_default_branch(self) -> bool:
        """Whether the pushed ref is the repository's default branch."""
        branch = self.repository.configured_default_branch
        return bool(branch) and self.ref == f"refs/heads/{branch}"


class AccessTokenResult(_Payload):
    """Response of the installation access token endpoint."""

    token: str = ""
    expires_at: datetime | None = None
    repository_selection: str = ""
    permissions: dict[str, str] = Field(default_factory=dict)


class ContentsResponse(_Payload):
    """Response of the repository contents endpoint for a file."""

    type: str = ""
    encoding: str = "base64"
    name: str = ""
    path: str = ""
    sha: str = ""
    content: str = ""
