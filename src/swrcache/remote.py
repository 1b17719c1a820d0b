"""HTTP fetcher for JSON list endpoints."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar, cast

from swrcache.errors import RemoteFetchError
from swrcache.resource import Record

T = TypeVar("T")


class AsyncHttpFetcher(Generic[T]):
    """Fetch a collection from a JSON endpoint with httpx.

    The instance is an async callable, so it plugs straight into
    create_resource(fetch=...). Each JSON object in the response is turned
    into an entity by `parse` (identity by default).
    """

    def __init__(
        self,
        base_url: str,
        path: str,
        *,
        parse: Callable[[Record], T] | None = None,
        envelope: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float = 30.0,
        client: Any = None,  # httpx.AsyncClient
    ) -> None:
        import httpx

        self._path = path
        self._parse = parse
        self._envelope = envelope
        self._params = dict(params or {})
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
        )

    async def __call__(self) -> list[T]:
        return await self.fetch()

    async def fetch(self) -> list[T]:
        """GET the endpoint and return the parsed entities."""
        response = await self._client.get(self._path, params=self._params)
        if not response.is_success:
            try:
                error = response.json().get("error", "Request failed")
            except Exception:
                error = f"HTTP {response.status_code}"
            raise RemoteFetchError(str(error), status_code=response.status_code)

        payload = response.json()
        if self._envelope is not None:
            if not isinstance(payload, dict) or self._envelope not in payload:
                raise RemoteFetchError(f"Response has no {self._envelope!r} field")
            payload = payload[self._envelope]
        if not isinstance(payload, list):
            raise RemoteFetchError(
                f"Expected a JSON list, got {type(payload).__name__}"
            )

        records = cast(list[Record], payload)
        if self._parse is None:
            return cast(list[T], records)
        return [self._parse(record) for record in records]

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
