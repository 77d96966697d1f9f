"""Re-trigger orchestration across all open pull requests of a base branch.

Discovery -> label filter -> (per pull request) run resolution and dispatch.
Pull requests are independent of each other: a pull request that is skipped
or whose dispatch fails does not affect the rest.
"""

import asyncio
import logging

from pr_retrigger.config.models import DispatchMode, RetriggerConfig
from pr_retrigger.github.client import GitHubClient

from .discovery import PullRequestDiscovery
from .dispatcher import WorkflowDispatcher
from .eligibility import LabelFilter
from .models import (
    DispatchAction,
    DispatchContext,
    DispatchResult,
    PullRequest,
    RetriggerSummary,
)
from .resolution import WorkflowRunResolver

logger = logging.getLogger(__name__)


class RetriggerOrchestrator:
    """Finds the open pull requests of a branch and re-triggers their CI."""

    def __init__(
        self,
        github_client: GitHubClient,
        config: RetriggerConfig,
        discovery: PullRequestDiscovery | None = None,
        label_filter: LabelFilter | None = None,
        dispatcher: WorkflowDispatcher | None = None,
    ):
        """Initialize orchestrator.

        Components default to ones built from ``github_client`` and ``config``.

        Args:
            github_client: GitHub API client shared by all components
            config: Re-trigger settings
            discovery: Pull request discovery
            label_filter: Required-label filter
            dispatcher: Per pull request dispatcher
        """
        self.config = config
        self.discovery = discovery or PullRequestDiscovery(github_client, config)
        self.label_filter = label_filter or LabelFilter(config.require_label_regex)
        self.dispatcher = dispatcher or WorkflowDispatcher(
            github_client,
            WorkflowRunResolver(github_client, event=config.workflow_event),
            config,
        )
        self._dispatch_semaphore = asyncio.Semaphore(config.max_concurrent_dispatches)

    async def run(self) -> RetriggerSummary:
        """Re-trigger every eligible pull request.

        Returns:
            One result per discovered pull request, in discovery order

        Raises:
            GitHubError: If the pull requests cannot be listed
        """
        owner, repo = self.config.owner, self.config.repo
        base_branch = self.config.base_branch
        summary = RetriggerSummary(repository=f"{owner}/{repo}", base_branch=base_branch)

        pull_requests = await self.discovery.discover(owner, repo, base_branch)
        summary.discovered = len(pull_requests)

        if self.config.dispatch_mode == DispatchMode.SEQUENTIAL:
            for pr in pull_requests:
                summary.results.append(await self._process(pr, repo))
        else:
            results = await asyncio.gather(
                *(self._process_bounded(pr, repo) for pr in pull_requests)
            )
            summary.results.extend(results)

        logger.info(f"Re-trigger summary for {summary.repository}: {summary.action_counts}")
        return summary

    async def _process_bounded(self, pr: PullRequest, repo: str) -> DispatchResult:
        async with self._dispatch_semaphore:
            return await self._process(pr, repo)

    async def _process(self, pr: PullRequest, repo: str) -> DispatchResult:
        """Filter and dispatch one pull request; never raises."""
        if not self.label_filter.is_eligible(pr):
            return DispatchResult(
                number=pr.number,
                title=pr.title,
                action=DispatchAction.SKIPPED_LABEL,
                dry_run=self.config.dry_run,
            )

        logger.info(f"Dispatching workflow on #{pr.number}: {pr.title}")
        context = DispatchContext.for_pull_request(pr, repo)
        try:
            result = await self.dispatcher.dispatch(context)
        except Exception as e:
            logger.warning(
                f"Failed to dispatch workflow on #{pr.number}: {pr.title}: {e}"
            )
            return DispatchResult(
                number=pr.number,
                title=pr.title,
                action=DispatchAction.ERROR,
                dry_run=self.config.dry_run,
                error=str(e),
            )

        logger.info(f"Dispatched workflow on #{pr.number}: {pr.title}")
        return result
