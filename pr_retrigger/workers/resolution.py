"""Lookup of the most recent workflow run for a pull request branch."""

import logging

from pr_retrigger.github.client import GitHubClient
from pr_retrigger.github.exceptions import GitHubError

from .models import DispatchContext, Job, WorkflowRun

logger = logging.getLogger(__name__)


class WorkflowRunResolver:
    """Resolves a branch to its latest workflow run.

    Lookup failures are logged and reported as "no run" rather than raised,
    so a single unreadable branch never stops the other pull requests.
    """

    def __init__(self, github_client: GitHubClient, event: str = "pull_request"):
        """Initialize resolver.

        Args:
            github_client: GitHub API client
            event: Only runs triggered by this event are considered
        """
        self.github_client = github_client
        self.event = event

    async def resolve(self, context: DispatchContext) -> WorkflowRun | None:
        """Return the most recent run for ``context.ref``, or None.

        GitHub lists runs newest first, so the first entry wins.
        """
        try:
            payload = await self.github_client.list_workflow_runs(
                context.owner,
                context.repo,
                branch=context.ref,
                event=self.event,
            )
            runs = payload.get("workflow_runs") or []
            if not runs:
                logger.debug(f"No {self.event} run found for {context.ref}")
                return None
            return WorkflowRun.from_api(runs[0])
        except GitHubError as e:
            logger.error(
                f"Failed to list workflow runs for {context.owner}/{context.repo} "
                f"branch {context.ref}: {e}"
            )
        except (AttributeError, KeyError, TypeError) as e:
            logger.error(
                f"Malformed workflow run listing for {context.ref}: {e!r}"
            )
        return None

    async def list_jobs(self, context: DispatchContext, run_id: int) -> list[Job]:
        """Return the jobs of ``run_id``, or an empty list if they can't be read."""
        try:
            raw_jobs = await self.github_client.list_workflow_run_jobs(
                context.owner, context.repo, run_id
            ).collect_all()
            return [Job.from_api(job) for job in raw_jobs]
        except GitHubError as e:
            logger.error(f"Failed to list jobs for run {run_id}: {e}")
        except (AttributeError, KeyError, TypeError) as e:
            logger.error(f"Malformed job listing for run {run_id}: {e!r}")
        return []
