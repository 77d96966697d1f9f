"""Cancel/re-run decision for a single pull request's workflow run.

Decision table, applied to the latest run of the pull request branch:

- no run: nothing to do
- run failed and failed runs are skipped: nothing to do (jobs are logged
  when a job pattern is configured)
- run not completed: cancel, wait for the cancellation to land, re-run
- run completed: re-run

The wait after cancelling is bounded. When it runs out the re-run is issued
anyway.
"""

import asyncio
import logging
import re

from pr_retrigger.config.models import RetriggerConfig
from pr_retrigger.github.client import GitHubClient

from .models import (
    DispatchAction,
    DispatchContext,
    DispatchResult,
    WorkflowRun,
)
from .resolution import WorkflowRunResolver

logger = logging.getLogger(__name__)


class WorkflowDispatcher:
    """Re-triggers the workflow run of one pull request at a time.

    Errors from the cancel and re-run calls propagate; the orchestrator
    catches them per pull request.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        resolver: WorkflowRunResolver,
        config: RetriggerConfig,
    ):
        """Initialize dispatcher.

        Args:
            github_client: GitHub API client used for cancel and re-run
            resolver: Latest-run lookup, also used while polling
            config: Re-trigger settings
        """
        self.github_client = github_client
        self.resolver = resolver
        self.skip_failed_runs = config.skip_failed_runs
        self.dry_run = config.dry_run
        self.cancel_poll_interval = config.cancel_poll_interval
        self.cancel_poll_attempts = config.cancel_poll_attempts
        self._prefix = "DRY RUN " if config.dry_run else ""

        self.ignore_failed_jobs_regex = (
            re.compile(config.ignore_failed_jobs_regex, re.IGNORECASE)
            if config.ignore_failed_jobs_regex
            else None
        )

    async def dispatch(self, context: DispatchContext) -> DispatchResult:
        """Cancel and/or re-run the latest workflow run of a pull request.

        Args:
            context: Pull request branch and identity

        Returns:
            What was done

        Raises:
            InvalidParametersError: If owner, repo or ref is missing
            GitHubError: If the cancel or re-run request fails
        """
        context.validate()
        logger.info(f"{self._prefix}Dispatching workflow re-run... {context.label}")

        run = await self.resolver.resolve(context)
        if run is None:
            logger.info(f"No workflow run found for {context.ref} {context.label}")
            return self._result(context, DispatchAction.NO_RUN)

        if run.is_failed and self.skip_failed_runs:
            if self.ignore_failed_jobs_regex is not None:
                await self._log_failed_run_jobs(
                    context, run, self.ignore_failed_jobs_regex
                )
            logger.info(f"Skipped: Failed run {context.label}")
            return self._result(context, DispatchAction.SKIPPED_FAILED, run)

        if run.is_completed:
            await self._rerun(context, run)
            return self._result(context, DispatchAction.RERUN, run)

        cancel_confirmed = await self._cancel(context, run)
        await self._rerun(context, run)
        result = self._result(context, DispatchAction.CANCELLED_AND_RERUN, run)
        result.cancel_confirmed = cancel_confirmed
        return result

    async def wait_for_cancelled_run(self, context: DispatchContext) -> bool:
        """Poll until the branch's latest run is completed.

        Sleeps before every poll and gives up after ``cancel_poll_attempts``.

        Returns:
            True if a poll observed ``completed``, False if the budget ran out
        """
        for attempt in range(1, self.cancel_poll_attempts + 1):
            logger.info(
                f"Waiting for workflow to cancel (attempt #{attempt})... "
                f"{context.label}"
            )
            await asyncio.sleep(self.cancel_poll_interval)

            run = await self.resolver.resolve(context)
            if run is not None and run.is_completed:
                return True

        logger.warning(
            f"Workflow run not completed after {self.cancel_poll_attempts} "
            f"attempts, re-running anyway {context.label}"
        )
        return False

    async def _cancel(self, context: DispatchContext, run: WorkflowRun) -> bool | None:
        logger.info(
            f"{self._prefix}Cancelling workflow run {run.id} ({run.status})... "
            f"{context.label}"
        )
        if self.dry_run:
            return None

        await self.github_client.cancel_workflow_run(context.owner, context.repo, run.id)
        return await self.wait_for_cancelled_run(context)

    async def _rerun(self, context: DispatchContext, run: WorkflowRun) -> None:
        logger.info(f"{self._prefix}Re-running workflow run {run.id}... {context.label}")
        if self.dry_run:
            return

        await self.github_client.rerun_workflow_run(context.owner, context.repo, run.id)

    async def _log_failed_run_jobs(
        self, context: DispatchContext, run: WorkflowRun, pattern: re.Pattern[str]
    ) -> None:
        # Diagnostic only: the run is skipped whatever the jobs look like.
        jobs = await self.resolver.list_jobs(context, run.id)
        for job in jobs:
            ignored = bool(pattern.search(job.name))
            logger.info(
                f"  Job: {job.name} - {job.status} {job.conclusion} "
                f"ignored={ignored}"
            )

    def _result(
        self,
        context: DispatchContext,
        action: DispatchAction,
        run: WorkflowRun | None = None,
    ) -> DispatchResult:
        return DispatchResult(
            number=context.number,
            title=context.title,
            action=action,
            run_id=run.id if run else None,
            dry_run=self.dry_run,
        )
