"""Base classes for the calendar and completion sub-clients.

A sub-client method names an HTTP method, a path below the sub-client's
``_BASE_PATH`` and the client model its response is read into; the base
classes send the request and parse the body.

This is an internal module and should not be imported directly by users.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from client._http import AsyncHTTPClient, HTTPClient, HttpMethod

ModelT = TypeVar("ModelT", bound=BaseModel)


def json_body(fields: dict[str, Any]) -> dict[str, Any]:
    """Build a JSON body from keyword fields.

    Unset (None) fields are left out so the server applies its defaults, and
    dates and datetimes are sent as ISO strings.

    Args:
        fields: Field names mapped to values.

    Returns:
        The body to send.
    """
    body: dict[str, Any] = {}
    for name, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        body[name] = value
    return body


class _Endpoints:
    """Path building and response parsing shared by both base classes."""

    _BASE_PATH = ""

    def _path(self, *parts: str) -> str:
        return "/".join([self._BASE_PATH, *parts])

    @staticmethod
    def _parse(model: type[ModelT] | None, data: Any) -> ModelT | None:
        """Read a response body into ``model``; empty bodies give None."""
        if model is None or data is None:
            return None
        return model.model_validate(data)


class BaseClient(_Endpoints):
    """Base class for synchronous sub-clients.

    Attributes:
        _http: The shared HTTP client for making requests.
    """

    def __init__(self, http_client: "HTTPClient") -> None:
        self._http = http_client

    def _call(
        self,
        method: "HttpMethod",
        model: type[ModelT] | None,
        *parts: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ModelT | None:
        """Request ``_BASE_PATH/<parts>`` and parse the response.

        Args:
            method: HTTP method.
            model: Client model for the response, or None to discard it.
            *parts: Path segments below the base path.
            params: Query parameters; None values are dropped.
            json: JSON body.

        Returns:
            The parsed model, or None.
        """
        data = self._http.request(method, self._path(*parts), params=params, json=json)
        return self._parse(model, data)


class AsyncBaseClient(_Endpoints):
    """Base class for asynchronous sub-clients.

    Attributes:
        _http: The shared async HTTP client for making requests.
    """

    def __init__(self, http_client: "AsyncHTTPClient") -> None:
        self._http = http_client

    async def _call(
        self,
        method: "HttpMethod",
        model: type[ModelT] | None,
        *parts: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ModelT | None:
        """Async counterpart of BaseClient._call."""
        data = await self._http.request(
            method, self._path(*parts), params=params, json=json
        )
        return self._parse(model, data)
