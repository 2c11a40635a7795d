"""
Core async HTTP client for the admin API.

Handles authentication headers, request/response, cancellation, and error handling.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "http://localhost:3000/api/v1"

T = TypeVar("T")


class ClientError(Exception):
    """Base error class for client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(ClientError):
    """Non-2xx response, with status code and the parsed (or raw text) body."""

    def __init__(self, message: str, status: int = 0, body: Any = None):
        super().__init__(message, body if isinstance(body, dict) else None)
        self.status = status
        self.body = body

    @property
    def errors(self) -> dict[str, Any]:
        """Per-field validation errors, if the server sent any."""
        if isinstance(self.body, dict) and isinstance(self.body.get("errors"), dict):
            return self.body["errors"]
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        if self.body is not None and not isinstance(self.body, dict):
            result["body"] = self.body
        return result


class DecodeError(ClientError):
    """Successful response whose body is not valid JSON or has the wrong shape."""


class RequestCancelledError(ClientError):
    """The caller's cancellation signal fired before the response arrived."""


class ValidationError(ClientError):
    """Validation error for local input/data issues (not API errors)."""


@dataclass
class RequestConfig:
    """
    Per-call request overrides.

    Attributes:
        headers: Extra headers, merged over the client defaults
        signal: Event that aborts the request when set
        timeout: Per-call timeout in seconds (no timeout when None)

    """

    headers: dict[str, str] = field(default_factory=dict)
    signal: asyncio.Event | None = None
    timeout: float | None = None


# =============================================================================
# Response handling
# =============================================================================


def _error_message(status: int, body: Any) -> str:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
        # Handle both {"error": "message"} and {"error": {"message": "..."}}
        error_field = body.get("error")
        if isinstance(error_field, str) and error_field:
            return error_field
        if isinstance(error_field, dict) and isinstance(error_field.get("message"), str):
            return error_field["message"]
    return f"HTTP {status}"


def validate_response(response: httpx.Response) -> httpx.Response:
    """
    Pass 2xx responses through untouched, raise APIError for everything else.

    The error body is read once: parsed as JSON when possible, otherwise kept as text.
    """
    if 200 <= response.status_code < 300:
        return response

    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    raise APIError(_error_message(response.status_code, body), status=response.status_code, body=body)


def unwrap_json(response: httpx.Response, parser: Callable[[Any], T]) -> T:
    """Decode a validated response body and parse it into the expected type."""
    try:
        payload = response.json()
    except ValueError as e:
        raise DecodeError(f"Invalid JSON response: {e}") from e

    try:
        return parser(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Unexpected response shape: {e!r}", {"payload": payload}) from e


def unwrap_empty(response: httpx.Response) -> None:
    """Validated response with no payload; the body is never decoded."""
    return None


# =============================================================================
# Client
# =============================================================================


class APIClient:
    """
    Low-level async HTTP client for the admin API.

    Handles:
    - Bearer authentication and default headers
    - HTTP methods (GET, POST, PATCH, DELETE)
    - Cancellation via RequestConfig.signal
    - Status validation (see validate_response)
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root URL (or USERS_ADMIN_API_URL env var)
            token: Bearer token (or USERS_ADMIN_API_TOKEN env var)
            headers: Default headers sent with every request
            timeout: Default request timeout in seconds (None disables timeouts)
            transport: Custom httpx transport, mainly for tests
            http_client: Existing AsyncClient to use; it is not closed by this client

        """
        self.base_url = (base_url or os.environ.get("USERS_ADMIN_API_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.token = token or os.environ.get("USERS_ADMIN_API_TOKEN")
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    def _build_url(self, path: str) -> str:
        """Build full URL from path."""
        if path.startswith("http"):
            return path
        return f"{self.base_url}{path}"

    def _build_headers(self, has_body: bool, config: RequestConfig | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        headers.update(self.headers)
        if config:
            headers.update(config.headers)
        return headers

    async def _send(self, request: httpx.Request, signal: asyncio.Event | None) -> httpx.Response:
        """Send a request, aborting it if ``signal`` fires first."""
        if signal is None:
            return await self._http.send(request)
        if signal.is_set():
            raise RequestCancelledError(f"{request.method} {request.url} cancelled before it was sent")

        send_task = asyncio.ensure_future(self._http.send(request))
        signal_task = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({send_task, signal_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send_task.cancel()
            signal_task.cancel()
            await asyncio.shield(asyncio.gather(send_task, signal_task, return_exceptions=True))
            raise

        if send_task in done:
            signal_task.cancel()
            await asyncio.gather(signal_task, return_exceptions=True)
            return send_task.result()

        send_task.cancel()
        # Wait for the transport to unwind; its outcome is discarded
        await asyncio.gather(send_task, return_exceptions=True)
        raise RequestCancelledError(f"{request.method} {request.url} cancelled")

    async def request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        data: dict | None = None,
        config: RequestConfig | None = None,
    ) -> httpx.Response:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: API path (e.g., /auth/42)
            params: Ordered query parameters
            data: JSON request body
            config: Per-call overrides; cannot change method or body

        Returns:
            The validated (2xx) response, body not yet decoded

        Raises:
            APIError: On non-2xx status
            RequestCancelledError: When config.signal fires first
            httpx.TransportError: On network failure, unchanged

        """
        url = self._build_url(path)
        headers = self._build_headers(data is not None, config)
        timeout = config.timeout if config and config.timeout is not None else httpx.USE_CLIENT_DEFAULT

        request = self._http.build_request(method, url, params=params, json=data, headers=headers, timeout=timeout)
        logger.debug("%s %s", method, request.url)
        response = await self._send(request, config.signal if config else None)
        logger.debug("%s %s -> %s", method, request.url, response.status_code)
        return validate_response(response)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def get(
        self,
        path: str,
        params: list[tuple[str, str]] | None = None,
        config: RequestConfig | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, params=params, config=config)

    async def post(self, path: str, data: dict, config: RequestConfig | None = None) -> httpx.Response:
        """Make a POST request."""
        return await self.request("POST", path, data=data, config=config)

    async def patch(self, path: str, data: dict, config: RequestConfig | None = None) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request("PATCH", path, data=data, config=config)

    async def delete(self, path: str, config: RequestConfig | None = None) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, config=config)
