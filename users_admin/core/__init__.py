"""
Core layer - Raw types and HTTP client.

This layer provides:
- Typed dataclasses for the users resource, with checked decoding
- Async HTTP client with auth headers, cancellation and error handling
"""

from users_admin.core.client import (
    APIClient,
    APIError,
    ClientError,
    DecodeError,
    RequestCancelledError,
    RequestConfig,
    ValidationError,
    unwrap_empty,
    unwrap_json,
    validate_response,
)
from users_admin.core.types import (
    FileEntity,
    InfinityPagination,
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

__all__ = [
    "APIClient",
    "APIError",
    "ClientError",
    "DecodeError",
    "FileEntity",
    "InfinityPagination",
    "RequestCancelledError",
    "RequestConfig",
    "Role",
    "SortItem",
    "SortOrder",
    "User",
    "UserFilters",
    "UserPatchRequest",
    "UserPostRequest",
    "UserRequest",
    "UsersDeleteRequest",
    "UsersRequest",
    "ValidationError",
    "unwrap_empty",
    "unwrap_json",
    "validate_response",
]
