"""Executors that carry out propagation plans."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from templatizer.sync.planner import PropagationPlan

logger = logging.getLogger(__name__)


class PlanExecutor(ABC):
    """Consumes the plans emitted by the planner."""

    @abstractmethod
    async def execute(self, plan: PropagationPlan) -> None:
        """Carry out a propagation plan."""


class LoggingPlanExecutor(PlanExecutor):
    """Logs each planned propagation without touching any repository.

    Cloning subscribers, copying the matched files and opening pull
    requests is left to a deployment-specific executor.
    """

    async def execute(self, plan: PropagationPlan) -> None:
        if plan.is_empty:
            logger.info("No template changes to propagate from %s", plan.repository)
            return

        for entry in plan.entries:
            if not entry.subscribers:
                logger.info("%s changed in %s but has no subscribers", entry.reference, entry.commit_id[:8])
                continue
            for subscriber in entry.subscribers:
                logger.info(
                    "Would propagate %s (%d file(s), commit %s) to %s",
                    entry.reference,
                    len(entry.matched_paths),
                    entry.commit_id[:8],
                    subscriber,
                )
