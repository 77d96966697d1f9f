"""Data transfer objects for pull request re-triggering.

Everything here is a read-only snapshot of GitHub state or of a decision
taken about it. Nothing is persisted.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import InvalidParametersError


class DispatchAction(str, Enum):
    """What was done (or skipped) for one pull request."""

    NO_RUN = "no_run"
    SKIPPED_FAILED = "skipped_failed"
    SKIPPED_LABEL = "skipped_label"
    RERUN = "rerun"
    CANCELLED_AND_RERUN = "cancelled_and_rerun"
    ERROR = "error"


@dataclass(frozen=True)
class Label:
    """Pull request label."""

    name: str


@dataclass(frozen=True)
class PullRequest:
    """Open pull request as returned by the pulls endpoint."""

    number: int
    title: str
    author: str
    draft: bool
    head_ref: str
    head_owner: str
    base_ref: str
    labels: tuple[Label, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        """Build from a GitHub pull request payload."""
        head = data.get("head") or {}
        base = data.get("base") or {}
        head_user = head.get("user") or {}
        head_repo_owner = (head.get("repo") or {}).get("owner") or {}
        labels = tuple(
            Label(name=label["name"])
            for label in data.get("labels") or []
            if label and label.get("name")
        )
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            author=(data.get("user") or {}).get("login") or "",
            draft=bool(data.get("draft", False)),
            head_ref=head.get("ref") or "",
            head_owner=head_user.get("login") or head_repo_owner.get("login") or "",
            base_ref=base.get("ref") or "",
            labels=labels,
        )

    @property
    def label_names(self) -> list[str]:
        """Names of all labels."""
        return [label.name for label in self.labels]


@dataclass(frozen=True)
class WorkflowRun:
    """Snapshot of a GitHub Actions workflow run."""

    id: int
    status: str  # 'queued', 'in_progress', 'completed', ...
    conclusion: str | None  # 'success', 'failure', 'cancelled', ...
    name: str | None = None
    head_branch: str | None = None
    html_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "WorkflowRun":
        """Build from a GitHub workflow run payload."""
        return cls(
            id=data["id"],
            status=data["status"],
            conclusion=data.get("conclusion"),
            name=data.get("name"),
            head_branch=data.get("head_branch"),
            html_url=data.get("html_url"),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.conclusion == "failure"


@dataclass(frozen=True)
class Job:
    """Job belonging to a workflow run."""

    id: int
    name: str
    status: str
    conclusion: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Job":
        """Build from a GitHub workflow job payload."""
        return cls(
            id=data["id"],
            name=data["name"],
            status=data["status"],
            conclusion=data.get("conclusion"),
        )


@dataclass(frozen=True)
class DispatchContext:
    """Where to look for a pull request's run, and how to describe it in logs."""

    owner: str
    repo: str
    ref: str
    title: str
    number: int

    @classmethod
    def for_pull_request(cls, pr: PullRequest, repo: str) -> "DispatchContext":
        """Runs are looked up under the head repository owner and branch."""
        return cls(
            owner=pr.head_owner,
            repo=repo,
            ref=pr.head_ref,
            title=pr.title,
            number=pr.number,
        )

    def validate(self) -> None:
        """Raise ``InvalidParametersError`` unless owner, repo and ref are set."""
        if not self.owner or not self.repo or not self.ref:
            raise InvalidParametersError("Invalid parameters")

    @property
    def label(self) -> str:
        """``#12: Title`` suffix used in log lines."""
        return f"#{self.number}: {self.title}"


@dataclass
class DispatchResult:
    """Outcome of dispatching one pull request."""

    number: int
    title: str
    action: DispatchAction
    run_id: int | None = None
    cancel_confirmed: bool | None = None
    dry_run: bool = False
    error: str | None = None


@dataclass
class RetriggerSummary:
    """Outcome of one re-trigger invocation."""

    repository: str
    base_branch: str
    discovered: int = 0
    results: list[DispatchResult] = field(default_factory=list)

    def count(self, action: DispatchAction) -> int:
        """Number of pull requests that ended with ``action``."""
        return sum(1 for result in self.results if result.action == action)

    @property
    def action_counts(self) -> dict[str, int]:
        counts = Counter(result.action.value for result in self.results)
        return dict(counts)

    @property
    def failed(self) -> list[DispatchResult]:
        """Pull requests whose dispatch raised."""
        return [r for r in self.results if r.action == DispatchAction.ERROR]
