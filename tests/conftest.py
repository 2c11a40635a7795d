"""Pytest configuration - isolated env and mock HTTP transports."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from users_admin.sdk import UsersAdminClient

BASE_URL = "https://admin.example.test/api/v1"

ENV_VARS = ("USERS_ADMIN_API_URL", "USERS_ADMIN_API_TOKEN", "USERS_ADMIN_RESOURCE_PATH")


def make_user(user_id: int | str = 1, **overrides: Any) -> dict[str, Any]:
    """Build a user payload the way the API returns it."""
    user = {
        "id": user_id,
        "email": f"user{user_id}@example.com",
        "firstName": "Ada",
        "lastName": f"Lovelace{user_id}",
        "photo": None,
        "role": {"id": 2, "name": "User"},
        "provider": "email",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    user.update(overrides)
    return user


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep local USERS_ADMIN_* settings out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sent() -> list[httpx.Request]:
    """Requests that reached the mock transport, in order."""
    return []


@pytest.fixture
def make_client(sent: list[httpx.Request]) -> Callable[..., UsersAdminClient]:
    """Factory for a UsersAdminClient whose transport is ``handler``."""

    def factory(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> UsersAdminClient:
        def recording(request: httpx.Request) -> Any:
            sent.append(request)
            return handler(request)

        return UsersAdminClient(base_url=BASE_URL, transport=httpx.MockTransport(recording), **kwargs)

    return factory
