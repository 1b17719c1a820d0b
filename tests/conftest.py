"""Shared pytest fixtures."""

import asyncio
from dataclasses import dataclass

import pytest

from swrcache import AsyncMemoryStore, CacheConfig, FunctionResource, create_resource


@dataclass(frozen=True)
class Item:
    """Entity used throughout the tests."""

    id: str
    name: str


def item_to_record(item: Item) -> dict:
    return {"id": item.id, "name": item.name}


def item_from_record(record: dict) -> Item:
    return Item(id=record["id"], name=record["name"])


class FakeApi:
    """Remote source double that counts calls.

    Set `error` to make fetches fail, or `gate` to hold a fetch until the
    event is set.
    """

    def __init__(self, items: list[Item] | None = None) -> None:
        self.items = list(items or [])
        self.calls = 0
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def fetch_items(self) -> list[Item]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture
def api() -> FakeApi:
    """Create a FakeApi serving a single item."""
    return FakeApi([Item("1", "Initial")])


@pytest.fixture
def fetch_errors() -> list[BaseException]:
    """Collects exceptions passed to on_fetch_error."""
    return []


@pytest.fixture
def resource(api: FakeApi, fetch_errors: list[BaseException]) -> FunctionResource:
    """Create a resource backed by the FakeApi."""
    return create_resource(
        fetch=api.fetch_items,
        serialize=item_to_record,
        deserialize=item_from_record,
        identify=lambda item: item.id,
        on_fetch_error=fetch_errors.append,
        name="items",
    )


@pytest.fixture
def records() -> dict[str, str]:
    """Backing mapping shared by memory stores within one test."""
    return {}


@pytest.fixture
def store(resource: FunctionResource, records: dict[str, str]) -> AsyncMemoryStore:
    """Create a fresh AsyncMemoryStore for each test."""
    return AsyncMemoryStore(resource, name="items", records=records)


@pytest.fixture
def config() -> CacheConfig:
    """Manual initialization with a 60 second silent refresh throttle."""
    return CacheConfig(auto_initialize=False, refresh_throttle="60s")
