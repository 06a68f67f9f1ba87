"""Push classification, propagation planning and the webhook service."""

from templatizer.sync.executor import LoggingPlanExecutor, PlanExecutor
from templatizer.sync.manager import TemplatizerService
from templatizer.sync.planner import (
    DeliveryState,
    IgnoreReason,
    PlanEntry,
    PlanOutcome,
    PropagationPlan,
    PropagationPlanner,
    classify_changes,
)
from templatizer.sync.resolver import ConfigResolver, LocalConfigResolver
from templatizer.sync.webhook import WebhookServer

__all__ = [
    "ConfigResolver",
    "DeliveryState",
    "IgnoreReason",
    "LocalConfigResolver",
    "LoggingPlanExecutor",
    "PlanEntry",
    "PlanExecutor",
    "PlanOutcome",
    "PropagationPlan",
    "PropagationPlanner",
    "TemplatizerService",
    "WebhookServer",
    "classify_changes",
]
