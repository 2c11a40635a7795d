"""
Core types for the users resource of the admin API.

These dataclasses provide type safety for API requests and responses.
Decoding is checked: ``from_dict`` raises ``KeyError``/``TypeError``/``ValueError``
on payloads that do not match the expected shape.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _expect_mapping(data: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{name} must be a JSON object, got {type(data).__name__}")
    return data


def _expect_id(value: Any, name: str) -> str | int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, str | int):
        raise TypeError(f"{name} must be a string or integer")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value


# =============================================================================
# Sorting & Filtering
# =============================================================================


class SortOrder(StrEnum):
    """Sort direction accepted by list endpoints."""

    ASC = "asc"
    DESC = "desc"


@dataclass
class SortItem:
    """A single sort criterion."""

    order_by: str
    order: SortOrder = SortOrder.ASC


@dataclass
class UserFilters:
    """Filters for the users list endpoint."""

    email: str | None = None


# =============================================================================
# Pagination
# =============================================================================


@dataclass
class InfinityPagination(Generic[T]):
    """One page of an "infinite" list: items plus a has-more flag."""

    data: list[T]
    has_next_page: bool = False

    @classmethod
    def from_dict(cls, data: Any, parser: Callable[[Any], T]) -> "InfinityPagination[T]":
        """Create from API response dict, parsing each item with ``parser``."""
        payload = _expect_mapping(data, "page")
        items = payload["data"]
        if not isinstance(items, list):
            raise TypeError("'data' must be a JSON array")
        has_next_page = payload["hasNextPage"]
        if not isinstance(has_next_page, bool):
            raise TypeError("'hasNextPage' must be a boolean")
        return cls(data=[parser(item) for item in items], has_next_page=has_next_page)


# =============================================================================
# User Types
# =============================================================================


@dataclass
class Role:
    """A user role."""

    id: str | int
    name: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Role":
        """Create from API response dict."""
        payload = _expect_mapping(data, "role")
        return cls(id=_expect_id(payload["id"], "role.id"), name=_optional_str(payload, "name"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        result: dict[str, Any] = {"id": self.id}
        if self.name is not None:
            result["name"] = self.name
        return result


@dataclass
class FileEntity:
    """An uploaded file (user photo)."""

    id: str
    path: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "FileEntity":
        """Create from API response dict."""
        payload = _expect_mapping(data, "photo")
        return cls(id=str(_expect_id(payload["id"], "photo.id")), path=_optional_str(payload, "path"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        result: dict[str, Any] = {"id": self.id}
        if self.path is not None:
            result["path"] = self.path
        return result


@dataclass
class User:
    """A user as returned by the API."""

    id: str | int
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    photo: FileEntity | None = None
    role: Role | None = None
    provider: str | None = None
    social_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None

    @property
    def full_name(self) -> str:
        """First and last name joined, skipping missing parts."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @classmethod
    def from_dict(cls, data: Any) -> "User":
        """Create from API response dict."""
        payload = _expect_mapping(data, "user")
        photo = payload.get("photo")
        role = payload.get("role")
        return cls(
            id=_expect_id(payload["id"], "id"),
            email=_optional_str(payload, "email"),
            first_name=_optional_str(payload, "firstName"),
            last_name=_optional_str(payload, "lastName"),
            photo=FileEntity.from_dict(photo) if photo is not None else None,
            role=Role.from_dict(role) if role is not None else None,
            provider=_optional_str(payload, "provider"),
            # socialId may be numeric for some providers
            social_id=str(payload["socialId"]) if payload.get("socialId") is not None else None,
            created_at=_optional_str(payload, "createdAt"),
            updated_at=_optional_str(payload, "updatedAt"),
            deleted_at=_optional_str(payload, "deletedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's camelCase shape (used for JSON output)."""
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "photo": self.photo.to_dict() if self.photo else None,
            "role": self.role.to_dict() if self.role else None,
            "provider": self.provider,
            "socialId": self.social_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
        }


# =============================================================================
# Request Types
# =============================================================================


@dataclass
class UsersRequest:
    """Request for one page of users."""

    page: int = 1
    limit: int = 10
    filters: UserFilters | None = None
    sort: list[SortItem] | None = None

    def to_query_params(self) -> list[tuple[str, str]]:
        """
        Encode the request as ordered URL query parameters.

        Only the first sort entry is sent. Its direction goes under ``sort``
        and its field name under ``order``; the key names look swapped, but
        that is what the users endpoint expects on the wire.

        Values are not validated here (``page``/``limit`` below 1 are sent as-is).
        """
        params = [("page", str(self.page)), ("limit", str(self.limit))]
        if self.filters and self.filters.email:
            params.append(("email", self.filters.email))
        if self.sort:
            first = self.sort[0]
            params.append(("sort", str(first.order)))
            params.append(("order", first.order_by))
        return params


@dataclass
class UserRequest:
    """Request for a single user by ID."""

    id: str | int


@dataclass
class UsersDeleteRequest:
    """Request to delete a user by ID."""

    id: str | int


@dataclass
class UserPostRequest:
    """Payload for creating a user. The server assigns the ID."""

    email: str
    password: str
    first_name: str
    last_name: str
    photo: FileEntity | None = None
    role: Role | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request. Unset photo and role are left out."""
        result: dict[str, Any] = {
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }
        if self.photo is not None:
            result["photo"] = self.photo.to_dict()
        if self.role is not None:
            result["role"] = self.role.to_dict()
        return result


@dataclass
class UserPatchRequest:
    """Partial update of a user. Fields left as ``None`` are not sent."""

    id: str | int
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    photo: FileEntity | None = None
    role: Role | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        fields: dict[str, Any] = {
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "photo": self.photo.to_dict() if self.photo else None,
            "role": self.role.to_dict() if self.role else None,
        }
        result = {k: v for k, v in fields.items() if v is not None}
        result.update(self.extra)
        return result
