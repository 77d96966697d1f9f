"""Unit tests for GitHub token authentication."""

import time

import pytest

from pr_retrigger.github.auth import AuthToken, TokenAuth
from pr_retrigger.github.exceptions import GitHubAuthenticationError


class TestAuthToken:
    def test_to_header(self) -> None:
        token = AuthToken(token="ghs_abc")

        assert token.to_header() == {"Authorization": "Bearer ghs_abc"}

    def test_repr_masks_token(self) -> None:
        assert "ghs_abc" not in repr(AuthToken(token="ghs_abc"))

    def test_expiry(self) -> None:
        assert AuthToken(token="t").is_expired is False
        assert AuthToken(token="t", expires_at=int(time.time()) - 1).is_expired
        assert not AuthToken(token="t", expires_at=int(time.time()) + 600).is_expired


class TestTokenAuth:
    @pytest.mark.asyncio
    async def test_uses_bearer_by_default(self) -> None:
        auth = TokenAuth(" ghp_test_token ")

        token = await auth.get_token()

        assert token.token == "ghp_test_token"
        assert token.to_header() == {"Authorization": "Bearer ghp_test_token"}
        assert await auth.validate_token() is True

    @pytest.mark.asyncio
    async def test_custom_scheme(self) -> None:
        token = await TokenAuth("ghp_test_token", token_type="token").get_token()

        assert token.to_header() == {"Authorization": "token ghp_test_token"}

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_token_rejected(self, value) -> None:
        with pytest.raises(GitHubAuthenticationError, match="token is required"):
            TokenAuth(value)
