"""Propagation planning for push events.

Given a push to a source repository, work out which of its template
groups changed and which subscriber repositories must receive the
change. The planner only produces a plan; carrying it out (clone, copy,
pull request) belongs to a ``PlanExecutor``.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import httpx
from pydantic import BaseModel, Field

from templatizer.entities.config import TemplateGroup, group_reference
from templatizer.exceptions import CredentialError

if TYPE_CHECKING:
    from templatizer.entities.config import RepoConfig
    from templatizer.entities.events import Commit, PushEvent
    from templatizer.memory.config_store import ConfigStore

logger = logging.getLogger(__name__)


class DeliveryState(StrEnum):
    """States a webhook delivery moves through.

    ``rejected``, ``ignored`` and ``plan_emitted`` are terminal; the others
    record how far a delivery got before it terminated.
    """

    RECEIVED = "received"
    SIGNATURE_CHECKED = "signature_checked"
    EVENT_CLASSIFIED = "event_classified"
    CONFIG_RESOLVED = "config_resolved"
    CONFIG_PERSISTED = "config_persisted"
    CHANGES_CLASSIFIED = "changes_classified"
    SUBSCRIBERS_QUERIED = "subscribers_queried"
    PLAN_EMITTED = "plan_emitted"
    REJECTED = "rejected"
    IGNORED = "ignored"


class IgnoreReason(StrEnum):
    """Why a delivery ended in the ``ignored`` state."""

    NOT_PUSH = "not_push"
    NOT_DEFAULT_BRANCH = "not_default_branch"
    NO_INSTALLATION = "no_installation"
    NO_CONFIG = "no_config"
    CONFIG_UNAVAILABLE = "config_unavailable"
    NOT_PRODUCER = "not_producer"


class GroupChange(BaseModel):
    """A template group touched by one commit."""

    commit_id: str
    group: str
    matched_paths: list[str] = Field(default_factory=list)


class PlanEntry(BaseModel):
    """One affected group of one commit and the repositories subscribed to it."""

    commit_id: str = ""
    group: str
    reference: str
    matched_paths: list[str] = Field(default_factory=list)
    subscribers: list[str] = Field(default_factory=list)


class PropagationPlan(BaseModel):
    """Ordered plan entries for a single push."""

    repository: str
    ref: str = ""
    after: str = ""
    entries: list[PlanEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def subscribers(self) -> list[str]:
        """Every subscriber named in the plan, first occurrence order."""
        return list(dict.fromkeys(s for entry in self.entries for s in entry.subscribers))


class PlanOutcome(BaseModel):
    """Terminal state of a delivery and, when one was emitted, its plan."""

    state: DeliveryState
    reached: DeliveryState = DeliveryState.RECEIVED
    reason: IgnoreReason | None = None
    plan: PropagationPlan | None = None

    @classmethod
    def ignored(cls, reason: IgnoreReason, reached: DeliveryState) -> PlanOutcome:
        return cls(state=DeliveryState.IGNORED, reached=reached, reason=reason)


class ConfigSource(Protocol):
    """Anything that can resolve a repository's configuration."""

    async def get_config(self, installation_id: int, owner: str, repo: str) -> RepoConfig | None: ...


def classify_commit(commit: Commit, groups: list[TemplateGroup]) -> list[GroupChange]:
    """Template groups touched by a single commit."""
    paths = commit.changed_paths()
    changes: list[GroupChange] = []
    for group in groups:
        matches = group.matched_paths(paths)
        if matches:
            changes.append(GroupChange(commit_id=commit.id, group=group.name, matched_paths=matches))
    return changes


def classify_changes(commits: list[Commit], groups: list[TemplateGroup]) -> list[GroupChange]:
    """Classify every commit independently.

    A path touched by several commits is reported once per commit.
    """
    changes: list[GroupChange] = []
    for commit in commits:
        changes.extend(classify_commit(commit, groups))
    return changes


class PropagationPlanner:
    """Turns push events into propagation plans.

    One planner is shared by all deliveries; it holds no per-delivery
    state. Store calls are blocking and run in a worker thread.
    """

    def __init__(self, resolver: ConfigSource, store: ConfigStore) -> None:
        self._resolver = resolver
        self._store = store

    async def handle_push(self, event: PushEvent) -> PlanOutcome:
        """Plan the propagation of a push.

        Returns:
            ``ignored`` with a reason, or ``plan_emitted`` with the plan.

        Raises:
            StoreError: If the config store cannot be written or queried.
        """
        repository = event.repository
        full_name = repository.full_name
        owner = repository.owner_login

        if not event.targets_default_branch():
            logger.debug("Ignoring push to %s on %s (not the default branch)", full_name, event.ref)
            return PlanOutcome.ignored(IgnoreReason.NOT_DEFAULT_BRANCH, DeliveryState.EVENT_CLASSIFIED)

        installation_id = event.installation_id
        if installation_id is None:
            logger.warning("Push to %s carries no installation; ignoring", full_name)
            return PlanOutcome.ignored(IgnoreReason.NO_INSTALLATION, DeliveryState.EVENT_CLASSIFIED)

        try:
            config = await self._resolver.get_config(installation_id, owner, repository.name)
        except CredentialError as e:
            logger.error("Could not authenticate to read config for %s: %s", full_name, e)
            return PlanOutcome.ignored(IgnoreReason.CONFIG_UNAVAILABLE, DeliveryState.EVENT_CLASSIFIED)
        except httpx.HTTPError as e:
            logger.error("Could not fetch config for %s: %s", full_name, e)
            return PlanOutcome.ignored(IgnoreReason.CONFIG_UNAVAILABLE, DeliveryState.EVENT_CLASSIFIED)

        if config is None:
            return PlanOutcome.ignored(IgnoreReason.NO_CONFIG, DeliveryState.CONFIG_RESOLVED)

        # Consumers are stored too: a later push may look them up as subscribers
        await asyncio.to_thread(self._store.upsert, repository.id, config.with_repository(full_name))

        if not config.is_producer:
            logger.debug("%s declares no source sets; nothing to propagate", full_name)
            return PlanOutcome.ignored(IgnoreReason.NOT_PRODUCER, DeliveryState.CONFIG_PERSISTED)

        changes = classify_changes(event.commits, config.source_sets)
        logger.info("Push to %s touched %d template group change(s)", full_name, len(changes))

        subscribers_by_ref: dict[str, list[str]] = {}
        entries: list[PlanEntry] = []
        for change in changes:
            reference = group_reference(owner, repository.name, change.group)
            if reference not in subscribers_by_ref:
                subscribers_by_ref[reference] = await self._subscribers(reference)
            entries.append(
                PlanEntry(
                    commit_id=change.commit_id,
                    group=change.group,
                    reference=reference,
                    matched_paths=change.matched_paths,
                    subscribers=subscribers_by_ref[reference],
                )
            )

        plan = PropagationPlan(repository=full_name, ref=event.ref, after=event.after, entries=entries)
        reached = DeliveryState.SUBSCRIBERS_QUERIED if entries else DeliveryState.CHANGES_CLASSIFIED
        return PlanOutcome(state=DeliveryState.PLAN_EMITTED, reached=reached, plan=plan)

    async def _subscribers(self, reference: str) -> list[str]:
        configs = await asyncio.to_thread(self._store.find_by_subscription, reference)
        names = [c.full_name for c in configs]
        logger.info("%d subscriber(s) for %s", len(names), reference)
        return names
