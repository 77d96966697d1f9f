"""
Shared fixtures for the pull request re-trigger tests.

Provides GitHub API payload builders, a mocked GitHub client and
configuration factories so unit tests never talk to the real API.
"""

import itertools
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from pr_retrigger.config.models import Config, RetriggerConfig

REPOSITORY = "octo-org/widgets"

_run_ids = itertools.count(1000)


def make_paginator(items: list[dict[str, Any]]) -> Mock:
    """Stand-in for AsyncPaginator returning ``items`` from collect_all()."""
    paginator = Mock()
    paginator.collect_all = AsyncMock(return_value=list(items))
    return paginator


@pytest.fixture
def paginator() -> Callable[[list[dict[str, Any]]], Mock]:
    """Factory for AsyncPaginator stand-ins."""
    return make_paginator


@pytest.fixture
def pr_payload() -> Callable[..., dict[str, Any]]:
    """
    Factory for GitHub pull request payloads.

    Why: Discovery and orchestration tests need realistic pulls responses
    What: Returns a builder producing the subset of fields the worker reads
    How: Keyword arguments override author, draft flag, head branch and labels
    """

    def build(
        number: int,
        title: str | None = None,
        author: str = "octocat",
        draft: bool = False,
        head_ref: str | None = None,
        head_owner: str = "octo-org",
        base_ref: str = "main",
        labels: tuple[str, ...] | list[str] = (),
    ) -> dict[str, Any]:
        return {
            "number": number,
            "title": title or f"Change {number}",
            "user": {"login": author},
            "draft": draft,
            "head": {
                "ref": head_ref if head_ref is not None else f"feature-{number}",
                "user": {"login": head_owner},
                "repo": {"owner": {"login": head_owner}},
            },
            "base": {"ref": base_ref},
            "labels": [{"id": i, "name": name} for i, name in enumerate(labels)],
        }

    return build


@pytest.fixture
def run_payload() -> Callable[..., dict[str, Any]]:
    """Factory for GitHub workflow run payloads."""

    def build(
        status: str = "completed",
        conclusion: str | None = "success",
        run_id: int | None = None,
        head_branch: str = "feature-1",
    ) -> dict[str, Any]:
        return {
            "id": run_id if run_id is not None else next(_run_ids),
            "name": "CI",
            "status": status,
            "conclusion": conclusion,
            "head_branch": head_branch,
            "event": "pull_request",
            "html_url": "https://github.com/octo-org/widgets/actions/runs/1",
        }

    return build


@pytest.fixture
def runs_listing() -> Callable[..., dict[str, Any]]:
    """Wrap run payloads the way the workflow runs endpoint does."""

    def build(*runs: dict[str, Any]) -> dict[str, Any]:
        return {"total_count": len(runs), "workflow_runs": list(runs)}

    return build


@pytest.fixture
def mock_github_client() -> MagicMock:
    """
    Mocked GitHubClient.

    Why: Dispatch logic must be verified by the calls it makes, not by HTTP
    What: Provides the endpoint methods used by discovery, resolution and dispatch
    How: Listing methods return empty results until a test configures them
    """
    client = MagicMock()
    client.list_pulls = Mock(return_value=make_paginator([]))
    client.list_workflow_runs = AsyncMock(
        return_value={"total_count": 0, "workflow_runs": []}
    )
    client.list_workflow_run_jobs = Mock(return_value=make_paginator([]))
    client.cancel_workflow_run = AsyncMock(return_value=None)
    client.rerun_workflow_run = AsyncMock(return_value=None)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


@pytest.fixture
def retrigger_config() -> Callable[..., RetriggerConfig]:
    """Factory for RetriggerConfig with polling sped up for tests."""

    def build(**overrides: Any) -> RetriggerConfig:
        settings: dict[str, Any] = {
            "repository": REPOSITORY,
            "cancel_poll_interval": 0,
        }
        settings.update(overrides)
        return RetriggerConfig(**settings)

    return build


@pytest.fixture
def config_data() -> dict[str, Any]:
    """Minimal valid configuration dictionary."""
    return {
        "github": {"token": "ghp_test_token"},
        "retrigger": {"repository": REPOSITORY},
    }


@pytest.fixture
def full_config(config_data: dict[str, Any]) -> Config:
    """Validated root configuration."""
    return Config(**config_data)
