"""Discovery of open pull requests targeting a base branch."""

import logging

from pr_retrigger.config.models import RetriggerConfig
from pr_retrigger.github.client import GitHubClient

from .models import PullRequest

logger = logging.getLogger(__name__)


class PullRequestDiscovery:
    """Lists open pull requests and drops drafts and bot-authored ones.

    Listing errors are not caught: without the pull request list there is
    nothing to dispatch, so the whole run fails.
    """

    def __init__(self, github_client: GitHubClient, config: RetriggerConfig):
        """Initialize discovery.

        Args:
            github_client: GitHub API client
            config: Re-trigger settings (bot login patterns)
        """
        self.github_client = github_client
        self.bot_login_patterns = list(config.bot_login_patterns)

    def is_bot(self, pr: PullRequest) -> bool:
        """Whether the author login contains a bot name (case-sensitive)."""
        return any(pattern in pr.author for pattern in self.bot_login_patterns)

    async def discover(self, owner: str, repo: str, base_branch: str) -> list[PullRequest]:
        """Return open, non-draft, non-bot pull requests targeting ``base_branch``.

        Args:
            owner: Repository owner
            repo: Repository name
            base_branch: Branch the pull requests target

        Returns:
            Pull requests in the order GitHub lists them

        Raises:
            GitHubError: If the pull requests cannot be listed
        """
        raw_prs = await self.github_client.list_pulls(
            owner, repo, state="open", base=base_branch
        ).collect_all()

        pull_requests = []
        for data in raw_prs:
            pr = PullRequest.from_api(data)
            if self.is_bot(pr):
                logger.debug(f"Ignoring bot pull request #{pr.number} by {pr.author}")
                continue
            if pr.draft:
                logger.debug(f"Ignoring draft pull request #{pr.number}")
                continue
            pull_requests.append(pr)

        logger.info(
            f"Found {len(pull_requests)} open PR(s) targeting '{base_branch}'"
        )
        return pull_requests
