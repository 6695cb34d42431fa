"""Internal HTTP handling for the household calendar client.

This module provides the low-level HTTP layer used by all sub-clients:
request encoding, error mapping and retry with exponential backoff.

This is an internal module and should not be imported directly by users.
"""

import asyncio
import time
from datetime import date, datetime
from typing import Any, Literal

import httpx

from client.exceptions import (
    APIError,
    BadRequestError,
    ConflictError,
    ConnectionError,
    HouseholdClientError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)


HttpMethod = Literal["GET", "POST", "PATCH", "DELETE"]

# Status codes that trigger automatic retry (when retry is enabled)
RETRYABLE_STATUS_CODES = {502, 503, 504}

DEFAULT_RETRY_BACKOFF_BASE = 0.5  # seconds
DEFAULT_RETRY_BACKOFF_MAX = 30.0  # seconds


def _encode_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop None values and render dates as ISO strings."""
    if not params:
        return params
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        elif isinstance(value, bool):
            value = "true" if value else "false"
        encoded[key] = value
    return encoded


def _parse_error_response(response: httpx.Response) -> tuple[str, str | None, dict | None]:
    """Extract message, error type and details from an error response.

    Understands the service's ``{"error", "detail", ...}`` bodies as well
    as FastAPI's list-style request validation errors. Falls back to the
    raw text.

    Args:
        response: The HTTP response to parse.

    Returns:
        A tuple of (message, error_type, details).
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or f"HTTP {response.status_code} error"), None, None

    if not isinstance(body, dict):
        return str(body), None, None

    detail = body.get("detail")
    extras = {k: v for k, v in body.items() if k not in ("detail", "error")} or None
    if isinstance(detail, str):
        return detail, body.get("error"), extras
    if isinstance(detail, list):
        messages = [
            f"{err.get('loc', ['unknown'])[-1]}: {err.get('msg', 'invalid')}"
            for err in detail
        ]
        return "; ".join(messages), "validation_error", {"errors": detail}
    if "error" in body:
        return body["error"], None, extras
    return str(body), None, None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the exception matching an error status code.

    Args:
        response: The HTTP response to check.

    Raises:
        BadRequestError: For HTTP 400 responses.
        ValidationError: For HTTP 422 responses.
        NotFoundError: For HTTP 404 responses.
        ConflictError: For HTTP 409 responses.
        ServerError: For HTTP 5xx responses.
        APIError: For other HTTP 4xx responses.
    """
    if response.is_success:
        return

    message, error_type, details = _parse_error_response(response)
    status_code = response.status_code
    try:
        response_body = response.json()
    except ValueError:
        response_body = response.text

    if status_code == 400:
        raise BadRequestError(message=message, details=details, response_body=response_body)
    if status_code == 422:
        raise ValidationError(message=message, details=details, response_body=response_body)
    if status_code == 404:
        raise NotFoundError(message=message, details=details, response_body=response_body)
    if status_code == 409:
        raise ConflictError(message=message, details=details, response_body=response_body)
    if status_code >= 500:
        raise ServerError(
            message=message,
            status_code=status_code,
            details=details,
            response_body=response_body,
        )
    raise APIError(
        message=message,
        status_code=status_code,
        error_type=error_type,
        details=details,
        response_body=response_body,
    )


def _calculate_backoff(attempt: int, base: float = DEFAULT_RETRY_BACKOFF_BASE) -> float:
    """Exponential backoff delay (base * 2^attempt), capped at the maximum.

    Args:
        attempt: The retry attempt number (0-indexed).
        base: Base delay in seconds.

    Returns:
        The delay in seconds before the next retry.
    """
    return min(base * (2 ** attempt), DEFAULT_RETRY_BACKOFF_MAX)


def _decode(response: httpx.Response) -> Any:
    """Check the status and return the JSON body, or None when empty."""
    _raise_for_status(response)
    if response.content:
        return response.json()
    return None



class _RetrySettings:
    """Connection settings and retry decisions shared by both clients.

    Attributes:
        base_url: The base URL for all API requests.
        timeout: Request timeout in seconds.
        retry_enabled: Whether to retry on transient failures.
        max_retries: Maximum number of retry attempts.
    """

    def __init__(
        self, base_url: str, timeout: float, retry_enabled: bool, max_retries: int
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

    @property
    def retry_budget(self) -> int:
        """Retries allowed after the first attempt."""
        return self.max_retries if self.retry_enabled else 0

    def _retry_status(self, response: httpx.Response, attempt: int) -> bool:
        return attempt < self.retry_budget and response.status_code in RETRYABLE_STATUS_CODES

    def _transport_error(
        self, error: httpx.TransportError, path: str
    ) -> HouseholdClientError:
        """Client exception for a request that never got a response."""
        url = f"{self.base_url}{path}"
        if isinstance(error, httpx.TimeoutException):
            return TimeoutError(
                message=f"Request to {url} timed out", timeout=self.timeout, url=url
            )
        return ConnectionError(message=f"Failed to connect to {url}", url=url, cause=error)


# Transport failures worth another attempt.
_RETRYABLE_ERRORS = (httpx.ConnectError, httpx.TimeoutException)


class HTTPClient(_RetrySettings):
    """Synchronous HTTP client wrapping httpx.Client."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: The base URL for all API requests.
            timeout: Request timeout in seconds.
            retry_enabled: Whether to retry on transient failures.
            max_retries: Maximum number of retry attempts.
            transport: Custom transport (e.g., MockTransport for testing).
        """
        super().__init__(base_url, timeout, retry_enabled, max_retries)
        self._client = httpx.Client(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request and return the parsed JSON response.

        Args:
            method: The HTTP method.
            path: The URL path (appended to base_url).
            params: Query parameters; None values are dropped.
            json: JSON body to send with the request.

        Returns:
            The parsed JSON response body, or None for empty responses.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the server returns an error response.
        """
        params = _encode_params(params)
        attempt = 0
        while True:
            try:
                response = self._client.request(method, path, params=params, json=json)
            except _RETRYABLE_ERRORS as e:
                if attempt >= self.retry_budget:
                    raise self._transport_error(e, path) from e
            else:
                if not self._retry_status(response, attempt):
                    return _decode(response)
            time.sleep(_calculate_backoff(attempt))
            attempt += 1


class AsyncHTTPClient(_RetrySettings):
    """Asynchronous HTTP client wrapping httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, retry_enabled, max_retries)
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Async counterpart of HTTPClient.request."""
        params = _encode_params(params)
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, params=params, json=json)
            except _RETRYABLE_ERRORS as e:
                if attempt >= self.retry_budget:
                    raise self._transport_error(e, path) from e
            else:
                if not self._retry_status(response, attempt):
                    return _decode(response)
            await asyncio.sleep(_calculate_backoff(attempt))
            attempt += 1
