"""Process entry point for re-triggering pull request workflow runs.

Loads the configuration once, builds the single GitHub client, runs the
orchestrator and reports the outcome in the form GitHub Actions expects:
``Finished.`` on success, an ``::error::`` workflow command and exit status 1
on failure.
"""

import argparse
import asyncio
import logging
import sys
from typing import Any

from pr_retrigger.config.exceptions import ConfigurationError
from pr_retrigger.config.loader import load_config
from pr_retrigger.config.models import Config, DispatchMode, LogLevel
from pr_retrigger.github.auth import TokenAuth
from pr_retrigger.github.client import GitHubClient, GitHubClientConfig

from .models import RetriggerSummary
from .orchestrator import RetriggerOrchestrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _escape_workflow_command(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_failed(message: str) -> None:
    """Report a failed run to the log and to the Actions runner."""
    logger.error(message)
    sys.stdout.write(f"::error::{_escape_workflow_command(message)}\n")
    sys.stdout.flush()


class RetriggerWorker:
    """Owns the GitHub client for the lifetime of one invocation."""

    def __init__(self, config: Config, github_client: GitHubClient | None = None):
        """Initialize worker.

        Args:
            config: Loaded configuration
            github_client: Pre-built client; one is created from config otherwise
        """
        self.config = config
        self.github_client = github_client or self._create_client()

    def _create_client(self) -> GitHubClient:
        github = self.config.github
        return GitHubClient(
            auth=TokenAuth(github.token),
            config=GitHubClientConfig(
                base_url=github.api_url,
                timeout=github.timeout,
                max_retries=github.max_retries,
                retry_backoff_factor=github.retry_backoff_factor,
                rate_limit_buffer=github.rate_limit_buffer,
                user_agent=github.user_agent,
                max_concurrent_requests=github.max_concurrent_requests,
            ),
        )

    async def run(self) -> RetriggerSummary:
        """Run the orchestrator and close the client afterwards."""
        retrigger = self.config.retrigger
        logger.info(
            f"Re-triggering pull request runs on {retrigger.repository} "
            f"targeting '{retrigger.base_branch}' "
            f"(mode={retrigger.dispatch_mode.value}, dry_run={retrigger.dry_run})"
        )
        async with self.github_client as client:
            orchestrator = RetriggerOrchestrator(client, retrigger)
            return await orchestrator.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pr-retrigger",
        description="Re-run CI workflow runs of open pull requests targeting a branch",
    )
    parser.add_argument("--config", help="YAML configuration file path")
    parser.add_argument("--repository", help="Target repository (owner/name)")
    parser.add_argument("--base-branch", help="Branch the pull requests target")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Log decisions without cancelling or re-running",
    )
    parser.add_argument(
        "--dispatch-mode",
        choices=[mode.value for mode in DispatchMode],
        help="Dispatch pull requests one at a time or concurrently",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Log level",
    )
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    retrigger: dict[str, Any] = {}
    if args.repository:
        retrigger["repository"] = args.repository
    if args.base_branch:
        retrigger["base_branch"] = args.base_branch
    if args.dry_run:
        retrigger["dry_run"] = True
    if args.dispatch_mode:
        retrigger["dispatch_mode"] = args.dispatch_mode

    overrides: dict[str, Any] = {}
    if retrigger:
        overrides["retrigger"] = retrigger
    if args.log_level:
        overrides["system"] = {"log_level": args.log_level}
    return overrides


async def main(argv: list[str] | None = None) -> int:
    """Run one re-trigger pass.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, (args.log_level or "INFO").upper()),
        format=LOG_FORMAT,
    )

    try:
        config = load_config(args.config, overrides=_overrides_from_args(args))
    except ConfigurationError as e:
        set_failed(str(e))
        return 1

    logging.getLogger().setLevel(config.system.log_level.value)

    try:
        summary = await RetriggerWorker(config).run()
    except Exception as e:
        set_failed(str(e))
        return 1

    if summary.failed:
        logger.warning(
            f"{len(summary.failed)} pull request(s) could not be dispatched: "
            + ", ".join(f"#{result.number}" for result in summary.failed)
        )
    logger.info("Finished.")
    return 0


def cli(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main(argv)))


if __name__ == "__main__":
    cli()
