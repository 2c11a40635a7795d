"""End-to-end behavior of the users operations against a mock API."""

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from tests.conftest import BASE_URL, make_user
from users_admin.core.client import APIError, DecodeError, RequestCancelledError, RequestConfig
from users_admin.core.types import (
    Role,
    SortItem,
    SortOrder,
    User,
    UserFilters,
    UserPatchRequest,
    UserPostRequest,
    UserRequest,
    UsersDeleteRequest,
    UsersRequest,
)
from users_admin.sdk import UsersAdminClient

ClientFactory = Callable[..., UsersAdminClient]


@pytest.mark.asyncio
async def test_list_returns_typed_page(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    users = [make_user(i) for i in range(1, 6)]

    async with make_client(lambda r: httpx.Response(200, json={"data": users, "hasNextPage": True})) as client:
        page = await client.users.list(UsersRequest(page=1, limit=10))

    assert len(page.data) == 5
    assert all(isinstance(u, User) for u in page.data)
    assert [u.id for u in page.data] == [1, 2, 3, 4, 5]
    assert page.has_next_page is True

    (request,) = sent
    assert request.method == "GET"
    assert str(request.url) == f"{BASE_URL}/auth?page=1&limit=10"


@pytest.mark.asyncio
async def test_list_encodes_filter_and_sort(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    async with make_client(lambda r: httpx.Response(200, json={"data": [], "hasNextPage": False})) as client:
        await client.users.list(
            UsersRequest(
                page=2,
                limit=25,
                filters=UserFilters(email="ada@example.com"),
                sort=[SortItem(order_by="email", order=SortOrder.DESC)],
            )
        )

    (request,) = sent
    assert list(request.url.params.multi_items()) == [
        ("page", "2"),
        ("limit", "25"),
        ("email", "ada@example.com"),
        ("sort", "desc"),
        ("order", "email"),
    ]


@pytest.mark.asyncio
async def test_list_shape_mismatch_is_decode_error(make_client: ClientFactory) -> None:
    async with make_client(lambda r: httpx.Response(200, json=[make_user(1)])) as client:
        with pytest.raises(DecodeError):
            await client.users.list(UsersRequest(page=1, limit=10))


@pytest.mark.asyncio
async def test_list_without_has_next_page_is_decode_error(make_client: ClientFactory) -> None:
    async with make_client(lambda r: httpx.Response(200, json={"data": []})) as client:
        with pytest.raises(DecodeError):
            await client.users.list(UsersRequest(page=1, limit=10))


@pytest.mark.asyncio
async def test_get_not_found(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    async with make_client(lambda r: httpx.Response(404, json={"message": "not found"})) as client:
        with pytest.raises(APIError) as exc:
            await client.users.get(UserRequest(id="42"))

    assert exc.value.status == 404
    assert exc.value.message == "not found"
    assert exc.value.body == {"message": "not found"}
    assert str(sent[0].url) == f"{BASE_URL}/auth/42"


@pytest.mark.asyncio
async def test_get_returns_user(make_client: ClientFactory) -> None:
    async with make_client(lambda r: httpx.Response(200, json=make_user(42))) as client:
        user = await client.users.get(UserRequest(id=42))

    assert user == User.from_dict(make_user(42))


@pytest.mark.asyncio
async def test_create_returns_created_user(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    created = make_user(99, email="grace@example.com", firstName="Grace", lastName="Hopper")

    async with make_client(lambda r: httpx.Response(201, json=created)) as client:
        user = await client.users.create(
            UserPostRequest(
                email="grace@example.com",
                password="s3cret-pass",
                first_name="Grace",
                last_name="Hopper",
                role=Role(id=2),
            )
        )

    assert user == User.from_dict(created)
    assert user.id == 99

    (request,) = sent
    assert request.method == "POST"
    assert str(request.url) == f"{BASE_URL}/auth"
    body = json.loads(request.content)
    assert "id" not in body
    assert "photo" not in body
    assert body["password"] == "s3cret-pass"
    assert body["firstName"] == "Grace"
    assert body["role"] == {"id": 2}


@pytest.mark.asyncio
async def test_create_validation_errors(make_client: ClientFactory) -> None:
    body = {"status": 422, "errors": {"email": "emailAlreadyExists"}}

    async with make_client(lambda r: httpx.Response(422, json=body)) as client:
        with pytest.raises(APIError) as exc:
            await client.users.create(
                UserPostRequest(email="dup@example.com", password="x1", first_name="A", last_name="B")
            )

    assert exc.value.status == 422
    assert exc.value.errors == {"email": "emailAlreadyExists"}


@pytest.mark.asyncio
async def test_update_sends_partial_body(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    async with make_client(lambda r: httpx.Response(200, json=make_user(7, firstName="Augusta"))) as client:
        user = await client.users.update(
            UserPatchRequest(id=7, first_name="Augusta"),
            RequestConfig(headers={"X-Request-Id": "abc"}),
        )

    assert user.first_name == "Augusta"
    (request,) = sent
    assert request.method == "PATCH"
    assert str(request.url) == f"{BASE_URL}/auth/7"
    assert json.loads(request.content) == {"firstName": "Augusta"}
    assert request.headers["X-Request-Id"] == "abc"


@pytest.mark.asyncio
async def test_delete_with_empty_body(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    async with make_client(lambda r: httpx.Response(204)) as client:
        result = await client.users.delete(UsersDeleteRequest(id="7"))

    assert result is None
    (request,) = sent
    assert request.method == "DELETE"
    assert str(request.url) == f"{BASE_URL}/auth/7"
    assert request.content == b""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda users, config: users.list(UsersRequest(page=1, limit=10), config),
        lambda users, config: users.get(UserRequest(id=1), config),
        lambda users, config: users.create(
            UserPostRequest(email="a@example.com", password="p4ss", first_name="A", last_name="B"), config
        ),
        lambda users, config: users.update(UserPatchRequest(id=1, email="b@example.com"), config),
        lambda users, config: users.delete(UsersDeleteRequest(id=1), config),
    ],
)
async def test_every_operation_honors_cancellation(make_client: ClientFactory, call) -> None:
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json=make_user(1))

    signal = asyncio.Event()
    async with make_client(handler) as client:
        task = asyncio.create_task(call(client.users, RequestConfig(signal=signal)))
        await started.wait()
        signal.set()

        with pytest.raises(RequestCancelledError):
            await task


@pytest.mark.asyncio
async def test_custom_resource_path(monkeypatch: pytest.MonkeyPatch, make_client: ClientFactory, sent) -> None:
    monkeypatch.setenv("USERS_ADMIN_RESOURCE_PATH", "users/")

    async with make_client(lambda r: httpx.Response(200, json=make_user(1))) as client:
        await client.users.get(UserRequest(id=1))

    assert str(sent[0].url) == f"{BASE_URL}/users/1"


# =============================================================================
# Pagination
# =============================================================================


@pytest.mark.asyncio
async def test_iterate_walks_pages_until_no_more(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    pages = {
        "1": {"data": [make_user(1), make_user(2)], "hasNextPage": True},
        "2": {"data": [make_user(3)], "hasNextPage": False},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[request.url.params["page"]])

    async with make_client(handler) as client:
        users = await client.users.list_all(limit=2, filters=UserFilters(email="user"))

    assert [u.id for u in users] == [1, 2, 3]
    assert [r.url.params["page"] for r in sent] == ["1", "2"]
    assert all(r.url.params["limit"] == "2" for r in sent)
    assert all(r.url.params["email"] == "user" for r in sent)


@pytest.mark.asyncio
async def test_iterate_stops_on_empty_page(make_client: ClientFactory, sent: list[httpx.Request]) -> None:
    async with make_client(lambda r: httpx.Response(200, json={"data": [], "hasNextPage": True})) as client:
        users = [u async for u in client.users.iterate()]

    assert users == []
    assert len(sent) == 1
