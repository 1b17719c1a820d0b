"""Tests for resource capability objects."""

import logging
from collections.abc import Sequence

import pytest
from conftest import FakeApi, Item, item_from_record, item_to_record

from swrcache import (
    AsyncMemoryStore,
    BaseResource,
    CacheConfig,
    CacheOrchestrator,
    EntityCodec,
    Resource,
    create_resource,
)


class ItemResource(BaseResource[Item, str]):
    """Subclass style resource backed by a FakeApi."""

    name = "subclassed"

    def __init__(self, api: FakeApi) -> None:
        self.api = api

    async def fetch_remote(self) -> Sequence[Item]:
        return await self.api.fetch_items()

    def serialize(self, item: Item) -> dict:
        return item_to_record(item)

    def deserialize(self, record: dict) -> Item:
        return item_from_record(record)

    def identify(self, item: Item) -> str:
        return item.id

    def transform_for_display(self, items: list[Item]) -> list[Item]:
        return sorted(items, key=lambda item: item.name)


class TestCreateResource:
    """Tests for create_resource()."""

    async def test_delegates_to_callables(self, api: FakeApi) -> None:
        resource = create_resource(
            fetch=api.fetch_items,
            serialize=item_to_record,
            deserialize=item_from_record,
            identify=lambda item: item.id,
        )

        assert await resource.fetch_remote() == [Item("1", "Initial")]
        assert resource.serialize(Item("2", "x")) == {"id": "2", "name": "x"}
        assert resource.deserialize({"id": "3", "name": "y"}) == Item("3", "y")
        assert resource.identify(Item("4", "z")) == "4"

    def test_default_transforms_are_identity(self, resource: Resource) -> None:
        items = [Item("1", "a")]
        assert resource.transform_for_cache(items) is items
        assert resource.transform_for_display(items) is items

    def test_default_error_hook_logs(
        self, api: FakeApi, caplog: pytest.LogCaptureFixture
    ) -> None:
        resource = create_resource(
            fetch=api.fetch_items,
            serialize=item_to_record,
            deserialize=item_from_record,
            identify=lambda item: item.id,
            name="tasks",
        )

        with caplog.at_level(logging.ERROR, logger="swrcache.resource"):
            resource.on_fetch_error(RuntimeError("offline"))

        assert "tasks: fetch error: offline" in caplog.text

    def test_rejects_non_callable_fetch(self) -> None:
        with pytest.raises(TypeError, match="fetch must be callable"):
            create_resource(
                fetch=[],  # type: ignore[arg-type]
                serialize=item_to_record,
                deserialize=item_from_record,
                identify=lambda item: item.id,
            )

    def test_satisfies_protocols(self, resource: Resource) -> None:
        assert isinstance(resource, Resource)
        assert isinstance(resource, EntityCodec)


class TestBaseResource:
    """Tests for subclass style resources."""

    def test_unimplemented_methods_raise(self) -> None:
        resource: BaseResource[Item, str] = BaseResource()
        with pytest.raises(NotImplementedError):
            resource.identify(Item("1", "a"))

    async def test_drives_orchestrator(self) -> None:
        api = FakeApi([Item("1", "b"), Item("2", "a")])
        resource = ItemResource(api)
        orchestrator = CacheOrchestrator(
            resource,
            AsyncMemoryStore(resource),
            config=CacheConfig(auto_initialize=False),
        )

        await orchestrator.initialize()

        assert orchestrator.namespace == "subclassed"
        assert [item.name for item in orchestrator.current_state.data] == ["a", "b"]
        await orchestrator.dispose()

    def test_default_error_hook_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        resource = ItemResource(FakeApi())
        try:
            raise ConnectionError("reset")
        except ConnectionError as e:
            with caplog.at_level(logging.ERROR, logger="swrcache.resource"):
                resource.on_fetch_error(e)

        assert "subclassed: fetch error: reset" in caplog.text
        assert "Traceback" in caplog.text
