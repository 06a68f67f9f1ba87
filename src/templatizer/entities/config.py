"""Repository configuration models: template groups and subscriptions."""

from __future__ import annotations

from functools import lru_cache

import yaml
from pathspec import PathSpec
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from templatizer.exceptions import ConfigParseError


class TemplateGroup(BaseModel):
    """A named set of glob patterns published by a source repository.

    Patterns use gitignore syntax anchored at the repository root:
    ``ci/*.yml`` and ``*.yml`` only match files directly in ``ci/`` or at
    the root, ``**`` crosses directories, and a leading ``!`` excludes.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    files: list[str] = Field(default_factory=list)

    @field_validator("files", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("files")
    @classmethod
    def patterns_compile(cls, v: list[str]) -> list[str]:
        compile_patterns(tuple(v))
        return v

    @property
    def spec(self) -> PathSpec:
        return compile_patterns(tuple(self.files))

    def matched_paths(self, paths: list[str]) -> list[str]:
        """Paths matching the group, in input order."""
        spec = self.spec
        return [path for path in paths if spec.match_file(path)]


class RepoConfig(BaseModel):
    """Configuration declared in a repository's ``templatizer.yml``.

    ``source_sets`` is non-empty only for producer repositories and
    ``config_sets`` only for consumers; a repository may be both.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source_sets: list[TemplateGroup] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sourceSets", "source_sets"),
        serialization_alias="sourceSets",
    )
    config_sets: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("configSets", "config_sets"),
        serialization_alias="configSets",
    )

    @field_validator("source_sets", "config_sets", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return [] if v is None else v

    @property
    def is_producer(self) -> bool:
        return bool(self.source_sets)

    def with_repository(self, full_name: str) -> FullRepoConfig:
        """Attach the owning repository's full name for persistence."""
        return FullRepoConfig(
            full_name=full_name,
            source_sets=list(self.source_sets),
            config_sets=list(self.config_sets),
        )


class FullRepoConfig(RepoConfig):
    """Durable form of a repository configuration, keyed by repository id."""

    full_name: str = Field(
        validation_alias=AliasChoices("fullName", "full_name"),
        serialization_alias="fullName",
    )

    def to_document(self) -> dict[str, object]:
        """Serialize for storage using the camelCase document field names."""
        return self.model_dump(mode="json", by_alias=True)


def group_reference(owner: str, repo: str, group_name: str) -> str:
    """Fully-qualified subscription reference for a template group."""
    return f"{owner}/{repo}/{group_name}"


def parse_config(text: str) -> RepoConfig:
    """Parse a YAML configuration document.

    An empty document yields an empty configuration.

    Raises:
        ConfigParseError: If the text is not YAML or does not describe a
            configuration mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML: {e}") from e

    if data is None:
        return RepoConfig()
    if not isinstance(data, dict):
        raise ConfigParseError(f"Expected a mapping at the top level, got {type(data).__name__}")

    try:
        return RepoConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid configuration: {e}") from e


def _anchor(pattern: str) -> str:
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    if body and not body.startswith("/"):
        body = "/" + body
    return ("!" if negated else "") + body


@lru_cache(maxsize=256)
def compile_patterns(patterns: tuple[str, ...]) -> PathSpec:
    """Compile a group's patterns into a root-anchored gitwildmatch spec."""
    return PathSpec.from_lines("gitwildmatch", [_anchor(p) for p in patterns])
