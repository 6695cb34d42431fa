"""Main household calendar client classes.

This module provides the entry points for talking to the household calendar
service:
- HouseholdClient: Synchronous client
- AsyncHouseholdClient: Asynchronous client

Both expose the API through the ``calendar`` and ``completions``
sub-client properties.

Example:
    Synchronous usage::

        from client import HouseholdClient

        with HouseholdClient(base_url="http://localhost:8000") as client:
            chore = client.calendar.create(
                family_id="fam-1",
                title="Feed the cat",
                start=datetime(2024, 1, 1, 8, 0),
                recurrence={"kind": "daily"},
                is_task=True,
            )
            client.completions.toggle(chore.id, "kid-1", date(2024, 1, 1))

    Asynchronous usage::

        from client import AsyncHouseholdClient

        async with AsyncHouseholdClient() as client:
            week = await client.calendar.list_occurrences(
                "fam-1", date(2024, 1, 1), date(2024, 1, 7)
            )
"""

from typing import Any

from client._calendar import AsyncCalendarClient, CalendarClient
from client._completions import AsyncCompletionsClient, CompletionsClient
from client._http import AsyncHTTPClient, HTTPClient
from client.models import HealthResponse


class HouseholdClient:
    """Synchronous client for the household calendar REST API.

    Supports the context manager protocol for automatic resource cleanup.

    Attributes:
        base_url: The base URL of the server.
        timeout: Request timeout in seconds.
        retry_enabled: Whether automatic retry is enabled.
        max_retries: Maximum number of retry attempts.

    Example:
        Manual lifecycle management::

            client = HouseholdClient()
            try:
                client.calendar.list_occurrences("fam-1", start, end)
            finally:
                client.close()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: The base URL of the server (default: http://localhost:8000).
            timeout: Request timeout in seconds (default: 30.0).
            retry_enabled: Whether to automatically retry on transient failures.
                Retries on connection errors, timeouts, and HTTP 502/503/504
                with exponential backoff (default: False).
            max_retries: Maximum number of retry attempts when retry is enabled
                (default: 3).
            transport: Custom HTTP transport (e.g., MockTransport for testing).
        """
        self._base_url = base_url
        self._timeout = timeout
        self._retry_enabled = retry_enabled
        self._max_retries = max_retries

        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        # Sub-clients are created on first access
        self._calendar: CalendarClient | None = None
        self._completions: CompletionsClient | None = None

    def __enter__(self) -> "HouseholdClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    @property
    def calendar(self) -> CalendarClient:
        """Access calendar endpoints (/calendar/*).

        Provides methods for:
        - Listing occurrences and tasks in a date window
        - Creating, reading, updating and deleting events
        - Scoped edits of recurring series

        Returns:
            CalendarClient instance.
        """
        if self._calendar is None:
            self._calendar = CalendarClient(self._http)
        return self._calendar

    @property
    def completions(self) -> CompletionsClient:
        """Access completion ledger endpoints (/completions/*).

        Returns:
            CompletionsClient instance.
        """
        if self._completions is None:
            self._completions = CompletionsClient(self._http)
        return self._completions

    def health(self) -> HealthResponse:
        """Check the server's health endpoint.

        Returns:
            Health status of the server.

        Raises:
            ConnectionError: If the server is unreachable.
        """
        data = self._http.request("GET", "/health")
        return HealthResponse(**data)

    def __repr__(self) -> str:
        return f"HouseholdClient(base_url={self._base_url!r})"


class AsyncHouseholdClient:
    """Asynchronous client for the household calendar REST API.

    Mirrors HouseholdClient with awaitable methods.

    Example:
        async with AsyncHouseholdClient() as client:
            result = await client.completions.toggle(event_id, "kid-1", day)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the async client.

        Args:
            base_url: The base URL of the server (default: http://localhost:8000).
            timeout: Request timeout in seconds (default: 30.0).
            retry_enabled: Whether to automatically retry on transient failures.
            max_retries: Maximum number of retry attempts when retry is enabled.
            transport: Custom HTTP transport (e.g., ASGITransport for testing).
        """
        self._base_url = base_url
        self._timeout = timeout
        self._retry_enabled = retry_enabled
        self._max_retries = max_retries

        self._http = AsyncHTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._calendar: AsyncCalendarClient | None = None
        self._completions: AsyncCompletionsClient | None = None

    async def __aenter__(self) -> "AsyncHouseholdClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    @property
    def calendar(self) -> AsyncCalendarClient:
        """Access calendar endpoints (/calendar/*)."""
        if self._calendar is None:
            self._calendar = AsyncCalendarClient(self._http)
        return self._calendar

    @property
    def completions(self) -> AsyncCompletionsClient:
        """Access completion ledger endpoints (/completions/*)."""
        if self._completions is None:
            self._completions = AsyncCompletionsClient(self._http)
        return self._completions

    async def health(self) -> HealthResponse:
        """Check the server's health endpoint."""
        data = await self._http.request("GET", "/health")
        return HealthResponse(**data)

    def __repr__(self) -> str:
        return f"AsyncHouseholdClient(base_url={self._base_url!r})"
