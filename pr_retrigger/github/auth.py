"""GitHub authentication handlers."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .exceptions import GitHubAuthenticationError


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"
    expires_at: int | None = None

    @property
    def is_expired(self) -> bool:
        """Check if token is expired."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}

    def __repr__(self) -> str:
        return f"AuthToken(token_type={self.token_type!r}, token='***')"


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""

    @abstractmethod
    async def validate_token(self) -> bool:
        """Validate current token."""


class TokenAuth(AuthProvider):
    """Static token authentication.

    Covers both the workflow-scoped ``GITHUB_TOKEN`` handed to Actions jobs and
    personal access tokens. GitHub accepts either with the ``Bearer`` scheme.
    """

    DEFAULT_TOKEN_TYPE = "Bearer"  # nosec B105

    def __init__(self, token: str, token_type: str | None = None):
        """Initialize token authentication.

        Args:
            token: Authentication token
            token_type: Authorization scheme. Uses Bearer by default.

        Raises:
            GitHubAuthenticationError: If the token is empty
        """
        if not token or not token.strip():
            raise GitHubAuthenticationError("GitHub token is required")
        if token_type is None:
            token_type = self.DEFAULT_TOKEN_TYPE
        self._token = AuthToken(token=token.strip(), token_type=token_type)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token

    async def validate_token(self) -> bool:
        """Static tokens are never refreshed; validity is checked by the API."""
        return not self._token.is_expired
