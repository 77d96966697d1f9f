"""Async GitHub REST client for the pull request and Actions endpoints."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .pagination import AsyncPaginator, PaginatedResponse
from .rate_limiting import CircuitBreaker, RateLimitManager

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({200, 201, 202, 204})


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 2.0
    rate_limit_buffer: int = 100
    user_agent: str = "pr-retrigger/0.1"
    max_concurrent_requests: int = 10


@dataclass
class GitHubResponse:
    """Status, headers and decoded body of a successful API call."""

    status: int
    headers: dict[str, str]
    data: Any


class GitHubClient:
    """Async GitHub API client.

    One instance is created per process and shared by every component. The
    HTTP session is opened lazily and closed by ``close()`` or by leaving the
    ``async with`` block.
    """

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager(buffer=self.config.rate_limit_buffer)
        self.circuit_breaker = CircuitBreaker()

        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                    self._session = aiohttp.ClientSession(
                        timeout=timeout,
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Accept": "application/vnd.github+json",
                            "X-GitHub-Api-Version": "2022-11-28",
                        },
                    )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _generate_correlation_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def _build_url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        correlation_id: str | None = None,
    ) -> GitHubResponse:
        """Make HTTP request with error mapping and retries.

        Only GET requests are retried (on timeouts, transport errors and 5xx
        responses). Writes are attempted exactly once.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            data: Request body data
            headers: Additional headers
            correlation_id: Request correlation ID

        Returns:
            The decoded response

        Raises:
            GitHubError: Various GitHub API errors
        """
        if not correlation_id:
            correlation_id = self._generate_correlation_id()

        if not self.circuit_breaker.can_attempt_request():
            wait_time = self.circuit_breaker.get_wait_time()
            raise GitHubConnectionError(
                f"Circuit breaker open. Wait {wait_time:.1f}s before retry."
            )

        self.rate_limiter.check_rate_limit()

        request_headers = dict(headers or {})
        auth_token = await self.auth.get_token()
        request_headers.update(auth_token.to_header())

        await self._ensure_session()

        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        request_kwargs: dict[str, Any] = {
            "params": params,
            "headers": request_headers,
        }
        if data is not None:
            request_kwargs["json"] = data

        max_retries = self.config.max_retries if method == "GET" else 0

        last_exception: GitHubError | None = None
        for attempt in range(max_retries + 1):
            try:
                async with self._request_semaphore:
                    start_time = time.time()

                    logger.debug(
                        f"GitHub API request [{correlation_id}] {method} {url} "
                        f"(attempt {attempt + 1})"
                    )

                    async with self._session.request(
                        method, url, **request_kwargs
                    ) as response:
                        request_time = time.time() - start_time
                        self.rate_limiter.update_rate_limit(response.headers)

                        logger.debug(
                            f"GitHub API response [{correlation_id}] "
                            f"{response.status} in {request_time:.2f}s"
                        )

                        if response.status in SUCCESS_STATUSES:
                            body = await self._read_body(response)
                            self.circuit_breaker.record_success()
                            return GitHubResponse(
                                status=response.status,
                                headers=dict(response.headers),
                                data=body,
                            )

                        await self._handle_error_response(response, correlation_id)

            except GitHubServerError as e:
                last_exception = e

            except GitHubError:
                raise

            except TimeoutError:
                last_exception = GitHubTimeoutError(
                    f"Request timeout for {method} {url}"
                )
                self.circuit_breaker.record_failure()

            except aiohttp.ClientError as e:
                last_exception = GitHubConnectionError(
                    f"Connection error for {method} {url}: {e}"
                )
                self.circuit_breaker.record_failure()

            if attempt < max_retries:
                backoff_time = self.config.retry_backoff_factor**attempt
                logger.warning(
                    f"Request [{correlation_id}] failed (attempt {attempt + 1}), "
                    f"retrying in {backoff_time:.1f}s: {last_exception}"
                )
                await asyncio.sleep(backoff_time)

        if last_exception:
            raise last_exception
        raise GitHubError(f"Request failed after {max_retries} retries")

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        # cancel/rerun answer 202/201 with an empty body
        text = await response.text()
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text

    async def _handle_error_response(
        self, response: aiohttp.ClientResponse, correlation_id: str
    ) -> None:
        """Raise the exception matching an error response.

        Args:
            response: HTTP response
            correlation_id: Request correlation ID

        Raises:
            GitHubError: Appropriate error based on status code
        """
        try:
            error_data = await response.json()
        except (json.JSONDecodeError, aiohttp.ContentTypeError):
            error_data = {"message": await response.text()}

        if not isinstance(error_data, dict):
            error_data = {"message": str(error_data)}

        error_message = error_data.get("message") or f"HTTP {response.status}"

        logger.warning(
            f"GitHub API error [{correlation_id}] {response.status}: {error_message}"
        )

        if response.status == 401:
            raise GitHubAuthenticationError(error_message, response.status, error_data)
        elif response.status == 403:
            if "rate limit" in error_message.lower():
                reset_time = response.headers.get("X-RateLimit-Reset")
                remaining = response.headers.get("X-RateLimit-Remaining", "0")
                limit = response.headers.get("X-RateLimit-Limit", "0")

                raise GitHubRateLimitError(
                    error_message,
                    reset_time=int(reset_time) if reset_time else None,
                    remaining=int(remaining),
                    limit=int(limit),
                )
            raise GitHubAuthenticationError(error_message, response.status, error_data)
        elif response.status == 404:
            raise GitHubNotFoundError(error_message, response.status, error_data)
        elif response.status in (409, 422):
            raise GitHubValidationError(error_message, response.status, error_data)
        elif 500 <= response.status < 600:
            self.circuit_breaker.record_failure()
            raise GitHubServerError(error_message, response.status, error_data)
        else:
            raise GitHubError(error_message, response.status, error_data)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make GET request to GitHub API.

        Args:
            path: API path (e.g., '/repos/owner/repo/pulls')
            params: Query parameters
            headers: Additional headers

        Returns:
            JSON response data
        """
        response = await self._make_request(
            "GET", self._build_url(path), params, headers=headers
        )
        return response.data

    async def post(
        self,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make POST request to GitHub API.

        Args:
            path: API path
            data: Request body data
            params: Query parameters
            headers: Additional headers

        Returns:
            JSON response data, empty when the endpoint returns no body
        """
        response = await self._make_request(
            "POST", self._build_url(path), params, data, headers
        )
        return response.data or {}

    async def _fetch_paginated(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
    ) -> PaginatedResponse:
        """Fetch one page for ``AsyncPaginator``."""
        response = await self._make_request("GET", url, params)
        return PaginatedResponse(response.data, response.headers, url, items_key)

    def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = 100,
        max_pages: int | None = None,
        items_key: str | None = None,
    ) -> AsyncPaginator:
        """Create async paginator for GitHub API endpoint.

        Args:
            path: API path
            params: Query parameters
            per_page: Items per page (max 100)
            max_pages: Maximum pages to fetch
            items_key: Key of the item list for wrapped responses

        Returns:
            AsyncPaginator for iterating through results
        """
        return AsyncPaginator(
            client=self,
            initial_url=self._build_url(path),
            params=params,
            per_page=per_page,
            max_pages=max_pages,
            items_key=items_key,
        )

    # Endpoints

    async def get_rate_limit(self) -> dict[str, Any]:
        """Get current rate limit status."""
        data: dict[str, Any] = await self.get("/rate_limit")
        return data

    def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        base: str | None = None,
        per_page: int = 100,
    ) -> AsyncPaginator:
        """List pull requests for a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            state: PR state (open, closed, all)
            base: Only pull requests targeting this branch
            per_page: Items per page

        Returns:
            AsyncPaginator for pull requests
        """
        params: dict[str, Any] = {"state": state}
        if base:
            params["base"] = base
        return self.paginate(
            f"/repos/{owner}/{repo}/pulls", params=params, per_page=per_page
        )

    async def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
        event: str | None = None,
        per_page: int = 30,
    ) -> dict[str, Any]:
        """List workflow runs for a repository, most recent first.

        Only the first page is fetched.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Only runs for this head branch
            event: Only runs triggered by this event
            per_page: Number of runs to return

        Returns:
            Payload with ``total_count`` and ``workflow_runs``
        """
        params: dict[str, Any] = {"per_page": per_page}
        if branch:
            params["branch"] = branch
        if event:
            params["event"] = event
        data: dict[str, Any] = await self.get(
            f"/repos/{owner}/{repo}/actions/runs", params=params
        )
        return data

    def list_workflow_run_jobs(
        self, owner: str, repo: str, run_id: int, per_page: int = 100
    ) -> AsyncPaginator:
        """List jobs of a workflow run."""
        return self.paginate(
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs",
            per_page=per_page,
            items_key="jobs",
        )

    async def cancel_workflow_run(self, owner: str, repo: str, run_id: int) -> None:
        """Request cancellation of a workflow run.

        GitHub accepts the request with 202; the run reaches ``completed``
        asynchronously.
        """
        await self.post(f"/repos/{owner}/{repo}/actions/runs/{run_id}/cancel")

    async def rerun_workflow_run(self, owner: str, repo: str, run_id: int) -> None:
        """Re-run a workflow run."""
        await self.post(f"/repos/{owner}/{repo}/actions/runs/{run_id}/rerun")
