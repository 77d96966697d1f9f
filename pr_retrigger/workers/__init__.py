"""Pull request discovery and workflow re-trigger workers."""

from .discovery import PullRequestDiscovery
from .dispatcher import WorkflowDispatcher
from .eligibility import LabelFilter
from .exceptions import InvalidParametersError, RetriggerError
from .models import (
    DispatchAction,
    DispatchContext,
    DispatchResult,
    Job,
    Label,
    PullRequest,
    RetriggerSummary,
    WorkflowRun,
)
from .orchestrator import RetriggerOrchestrator
from .resolution import WorkflowRunResolver

__all__ = [
    "DispatchAction",
    "DispatchContext",
    "DispatchResult",
    "InvalidParametersError",
    "Job",
    "Label",
    "LabelFilter",
    "PullRequest",
    "PullRequestDiscovery",
    "RetriggerError",
    "RetriggerOrchestrator",
    "RetriggerSummary",
    "WorkflowDispatcher",
    "WorkflowRun",
    "WorkflowRunResolver",
]
