"""GitHub API pagination utilities."""

import re
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import parse_qs, urlparse

_LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


class LinkHeader:
    """Parser for GitHub Link headers."""

    def __init__(self, link_header: str | None = None):
        self.links: dict[str, str] = {}
        if link_header:
            # <url>; rel="next", <url>; rel="last"
            for match in _LINK_PATTERN.finditer(link_header):
                url, rel = match.groups()
                self.links[rel] = url

    @property
    def next_url(self) -> str | None:
        """Get URL for next page."""
        return self.links.get("next")

    @property
    def last_url(self) -> str | None:
        """Get URL for last page."""
        return self.links.get("last")

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return "next" in self.links

    def get_last_page_number(self) -> int | None:
        """Extract last page number from last URL."""
        if not self.last_url:
            return None

        try:
            params = parse_qs(urlparse(self.last_url).query)
            page = params.get("page", [None])[0]
            return int(page) if page else None
        except (ValueError, TypeError):
            return None


class PaginatedResponse:
    """One page of a paginated GitHub API response.

    Most list endpoints return a bare JSON array. The Actions endpoints wrap
    their items in an object (``{"total_count": n, "jobs": [...]}``); for
    those ``items_key`` names the list to unwrap.
    """

    def __init__(
        self,
        data: Any,
        headers: dict[str, str],
        url: str,
        items_key: str | None = None,
    ):
        """Initialize paginated response.

        Args:
            data: Decoded JSON body
            headers: Response headers
            url: Request URL
            items_key: Key of the item list when the body is an object
        """
        self.data = data
        self.headers = headers
        self.url = url
        self.items_key = items_key
        self.link_header = LinkHeader(headers.get("Link"))

    @property
    def has_next_page(self) -> bool:
        """Check if there's a next page."""
        return self.link_header.has_next

    @property
    def next_page_url(self) -> str | None:
        """Get URL for next page."""
        return self.link_header.next_url

    @property
    def total_pages(self) -> int | None:
        """Get total number of pages."""
        return self.link_header.get_last_page_number()

    @property
    def items(self) -> list[dict[str, Any]]:
        """Get items from current page."""
        if self.data is None:
            return []
        if self.items_key is not None:
            items: list[dict[str, Any]] = self.data.get(self.items_key) or []
            return items
        return list(self.data)


class AsyncPaginator:
    """Async iterator for paginated GitHub API responses."""

    def __init__(
        self,
        client: Any,  # Avoid circular import
        initial_url: str,
        params: dict[str, Any] | None = None,
        max_pages: int | None = None,
        per_page: int = 100,
        items_key: str | None = None,
    ):
        """Initialize async paginator.

        Args:
            client: GitHub client instance
            initial_url: Initial URL to fetch
            params: Query parameters
            max_pages: Maximum number of pages to fetch
            per_page: Items per page (max 100 for GitHub)
            items_key: Key of the item list for wrapped responses
        """
        self.client = client
        self.initial_url = initial_url
        self.params = dict(params or {})
        self.max_pages = max_pages
        self.per_page = min(per_page, 100)  # GitHub max is 100
        self.items_key = items_key

        self.params["per_page"] = self.per_page

        self._current_page = 0
        self._next_url: str | None = initial_url
        self._exhausted = False

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        """Async iterator implementation."""
        while not self._exhausted and self._next_url:
            if self.max_pages and self._current_page >= self.max_pages:
                break

            response = await self._fetch_page(self._next_url)
            self._current_page += 1

            if response.has_next_page:
                self._next_url = response.next_page_url
            else:
                self._exhausted = True
                self._next_url = None

            for item in response.items:
                yield item

    async def _fetch_page(self, url: str) -> PaginatedResponse:
        # The next-page URL from the Link header already carries the query
        # string, so parameters are only sent with the first request.
        params = self.params if self._current_page == 0 else None
        result: PaginatedResponse = await self.client._fetch_paginated(
            url, params, items_key=self.items_key
        )
        return result

    async def collect_all(self) -> list[dict[str, Any]]:
        """Collect all items from all pages.

        Returns:
            List of all items
        """
        items = []
        async for item in self:
            items.append(item)
        return items
