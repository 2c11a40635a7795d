"""
Users admin SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for the users resource.
Built on top of the core APIClient.
"""

import builtins
import os
from collections.abc import AsyncIterator, Mapping

import httpx

from users_admin.core.client import APIClient, RequestConfig, unwrap_empty, unwrap_json
from users_admin.core.types import (
    InfinityPagination,
    SortItem,
    User,
    UserFilters,
    UserPatchRequest,
    UserPostRequest,
    UserRequest,
    UsersDeleteRequest,
    UsersRequest,
)

DEFAULT_USERS_PATH = "/auth"


class UsersAdminClient:
    """
    High-level admin API client with typed methods.

    Example:
        async with UsersAdminClient(base_url="https://api.example.com/api/v1") as client:
            page = await client.users.list(UsersRequest(page=1, limit=10))
            user = await client.users.get(UserRequest(id=page.data[0].id))

    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        users_path: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the admin client.

        Args:
            base_url: API root URL (or USERS_ADMIN_API_URL env var)
            token: Bearer token (or USERS_ADMIN_API_TOKEN env var)
            users_path: Users resource path (or USERS_ADMIN_RESOURCE_PATH env var, default /auth)
            headers: Default headers sent with every request
            timeout: Request timeout in seconds (None disables timeouts)
            transport: Custom httpx transport, mainly for tests

        """
        self._client = APIClient(
            base_url=base_url,
            token=token,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        path = users_path or os.environ.get("USERS_ADMIN_RESOURCE_PATH") or DEFAULT_USERS_PATH
        self.users = UserOperations(self._client, path)

    @property
    def base_url(self) -> str:
        """Get the API root URL."""
        return self._client.base_url

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "UsersAdminClient":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()


# =============================================================================
# User Operations
# =============================================================================


class UserOperations:
    """Operations for listing and managing users."""

    def __init__(self, client: APIClient, path: str = DEFAULT_USERS_PATH):
        self._client = client
        self.path = "/" + path.strip("/")

    def _item_path(self, user_id: str | int) -> str:
        return f"{self.path}/{user_id}"

    async def list(
        self,
        request: UsersRequest,
        config: RequestConfig | None = None,
    ) -> InfinityPagination[User]:
        """
        List one page of users.

        Args:
            request: Page, limit, optional email filter and sort
            config: Per-call headers, cancellation signal or timeout

        Returns:
            InfinityPagination with users in server order and has_next_page

        """
        response = await self._client.get(self.path, request.to_query_params(), config)
        return unwrap_json(response, lambda payload: InfinityPagination.from_dict(payload, User.from_dict))

    async def get(self, request: UserRequest, config: RequestConfig | None = None) -> User:
        """Get a user by ID."""
        response = await self._client.get(self._item_path(request.id), config=config)
        return unwrap_json(response, User.from_dict)

    async def create(self, request: UserPostRequest, config: RequestConfig | None = None) -> User:
        """
        Create a user.

        Returns:
            The created user, including the server-assigned ID

        """
        response = await self._client.post(self.path, request.to_dict(), config)
        return unwrap_json(response, User.from_dict)

    async def update(self, request: UserPatchRequest, config: RequestConfig | None = None) -> User:
        """Update the given fields of a user and return the updated user."""
        response = await self._client.patch(self._item_path(request.id), request.to_dict(), config)
        return unwrap_json(response, User.from_dict)

    async def delete(self, request: UsersDeleteRequest, config: RequestConfig | None = None) -> None:
        """Delete a user."""
        response = await self._client.delete(self._item_path(request.id), config)
        return unwrap_empty(response)

    # =========================================================================
    # Pagination
    # =========================================================================

    async def iterate(
        self,
        limit: int = 50,
        filters: UserFilters | None = None,
        sort: builtins.list[SortItem] | None = None,
        config: RequestConfig | None = None,
    ) -> AsyncIterator[User]:
        """
        Iterate through all pages, starting from page 1, while the server reports more.

        Args:
            limit: Users per page
            filters: Optional email filter
            sort: Sort criteria (only the first is sent)
            config: Per-call overrides applied to every page request

        Yields:
            Users from all pages

        """
        page = 1
        while True:
            result = await self.list(UsersRequest(page=page, limit=limit, filters=filters, sort=sort), config)
            for user in result.data:
                yield user

            if not result.has_next_page or not result.data:
                break
            page += 1

    async def list_all(
        self,
        limit: int = 50,
        filters: UserFilters | None = None,
        sort: builtins.list[SortItem] | None = None,
        config: RequestConfig | None = None,
    ) -> builtins.list[User]:
        """Fetch all users from every page."""
        return [user async for user in self.iterate(limit, filters, sort, config)]
