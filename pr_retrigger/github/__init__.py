"""GitHub API client package."""

from .auth import AuthProvider, AuthToken, TokenAuth
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
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
from .pagination import AsyncPaginator, LinkHeader, PaginatedResponse
from .rate_limiting import CircuitBreaker, RateLimitInfo, RateLimitManager

__all__ = [
    "AsyncPaginator",
    "AuthProvider",
    "AuthToken",
    "CircuitBreaker",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "LinkHeader",
    "PaginatedResponse",
    "RateLimitInfo",
    "RateLimitManager",
    "TokenAuth",
]
