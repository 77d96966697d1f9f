"""
Unit tests for WorkflowRunResolver.

Why: A branch whose runs cannot be read must count as "no run" so the
     remaining pull requests are still processed.
What: Tests latest-run selection, event filtering, error handling and
      job listing.
How: Drives the resolver with a mocked GitHub client.
"""

import logging

import pytest

from pr_retrigger.github.exceptions import GitHubNotFoundError, GitHubServerError
from pr_retrigger.workers.models import DispatchContext
from pr_retrigger.workers.resolution import WorkflowRunResolver


def _job(job_id: int, name: str, conclusion: str) -> dict:
    return {"id": job_id, "name": name, "status": "completed", "conclusion": conclusion}


@pytest.fixture
def context() -> DispatchContext:
    return DispatchContext(
        owner="octo-org", repo="widgets", ref="feature-1", title="Change 1", number=1
    )


class TestResolve:
    @pytest.mark.asyncio
    async def test_returns_first_listed_run(
        self, mock_github_client, context, run_payload, runs_listing
    ) -> None:
        mock_github_client.list_workflow_runs.return_value = runs_listing(
            run_payload(status="in_progress", conclusion=None, run_id=2),
            run_payload(run_id=1),
        )
        resolver = WorkflowRunResolver(mock_github_client)

        run = await resolver.resolve(context)

        assert run is not None
        assert run.id == 2
        assert run.status == "in_progress"
        assert run.conclusion is None
        assert not run.is_completed
        mock_github_client.list_workflow_runs.assert_awaited_once_with(
            "octo-org", "widgets", branch="feature-1", event="pull_request"
        )

    @pytest.mark.asyncio
    async def test_custom_event(self, mock_github_client, context) -> None:
        resolver = WorkflowRunResolver(mock_github_client, event="pull_request_target")

        await resolver.resolve(context)

        assert (
            mock_github_client.list_workflow_runs.await_args.kwargs["event"]
            == "pull_request_target"
        )

    @pytest.mark.asyncio
    async def test_no_runs_returns_none(self, mock_github_client, context) -> None:
        assert await WorkflowRunResolver(mock_github_client).resolve(context) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            GitHubNotFoundError("Not Found", 404),
            GitHubServerError("Bad Gateway", 502),
        ],
    )
    async def test_api_error_is_logged_and_returns_none(
        self, mock_github_client, context, error, caplog
    ) -> None:
        mock_github_client.list_workflow_runs.side_effect = error

        with caplog.at_level(logging.ERROR):
            run = await WorkflowRunResolver(mock_github_client).resolve(context)

        assert run is None
        assert "Failed to list workflow runs for octo-org/widgets" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            None,
            {"workflow_runs": [{"status": "completed"}]},
            {"workflow_runs": "unexpected"},
        ],
    )
    async def test_malformed_listing_returns_none(
        self, mock_github_client, context, payload, caplog
    ) -> None:
        mock_github_client.list_workflow_runs.return_value = payload

        with caplog.at_level(logging.ERROR):
            run = await WorkflowRunResolver(mock_github_client).resolve(context)

        assert run is None
        assert "Malformed workflow run listing for feature-1" in caplog.text


class TestListJobs:
    @pytest.mark.asyncio
    async def test_returns_jobs(self, mock_github_client, context, paginator) -> None:
        mock_github_client.list_workflow_run_jobs.return_value = paginator(
            [
                _job(1, "lint", "success"),
                _job(2, "test", "failure"),
            ]
        )

        jobs = await WorkflowRunResolver(mock_github_client).list_jobs(context, 42)

        assert [(job.name, job.conclusion) for job in jobs] == [
            ("lint", "success"),
            ("test", "failure"),
        ]
        mock_github_client.list_workflow_run_jobs.assert_called_once_with(
            "octo-org", "widgets", 42
        )

    @pytest.mark.asyncio
    async def test_error_returns_empty_list(
        self, mock_github_client, context
    ) -> None:
        jobs_paginator = mock_github_client.list_workflow_run_jobs.return_value
        jobs_paginator.collect_all.side_effect = GitHubServerError("Server Error", 500)

        resolver = WorkflowRunResolver(mock_github_client)
        assert await resolver.list_jobs(context, 42) == []
