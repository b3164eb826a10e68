"""Definition source and hot reload tests."""

import asyncio
import copy

import pytest

from ixp.core import ConfigurationError
from ixp.core.json import safe_json_dumps
from ixp.registry import ComponentRegistry, IntentRegistry, JsonFileSource, StaticSource
from ixp.registry.sources import WatchableSource, as_source


def intent(name: str) -> dict:
    return {
        "name": name,
        "description": "d",
        "parameters": {"type": "object", "properties": {}},
        "component": "ProductGrid",
        "version": "1.0.0",
    }


class FakeWatchSource:
    """Watchable source driven by the test."""

    def __init__(self, data):
        self.data = data
        self.changes: asyncio.Queue = asyncio.Queue()
        self.handled = asyncio.Event()

    def load(self):
        if isinstance(self.data, Exception):
            raise self.data
        return copy.deepcopy(self.data)

    async def watch(self, on_change, stop_event):
        while not stop_event.is_set():
            await self.changes.get()
            await on_change()
            self.handled.set()

    async def trigger(self):
        self.handled.clear()
        await self.changes.put(None)
        await asyncio.wait_for(self.handled.wait(), timeout=2)


@pytest.mark.unit
class TestSources:
    """Loaders."""

    def test_static_source_returns_copies(self):
        data = [intent("a")]
        source = StaticSource(data)
        loaded = source.load()
        loaded.append(intent("b"))
        assert len(source.load()) == 1

    def test_json_file_source(self, definitions_dir):
        source = JsonFileSource(definitions_dir / "intents.json")
        assert "intents" in source.load()

    def test_json_file_source_errors(self, tmp_path):
        with pytest.raises(ConfigurationError):
            JsonFileSource(tmp_path / "absent.json").load()

        bad = tmp_path / "bad.json"
        bad.write_text("{'single': 'quotes'}")
        with pytest.raises(ConfigurationError) as exc_info:
            JsonFileSource(bad).load()
        assert exc_info.value.details == {"path": str(bad.resolve())}

    def test_as_source(self, tmp_path):
        assert as_source(None) is None
        assert isinstance(as_source(str(tmp_path / "x.json")), JsonFileSource)
        assert isinstance(as_source(tmp_path / "x.json"), JsonFileSource)
        assert isinstance(as_source([]), StaticSource)
        custom = StaticSource({})
        assert as_source(custom) is custom

    def test_watchable_protocol(self, tmp_path):
        assert isinstance(JsonFileSource(tmp_path / "x.json"), WatchableSource)
        assert not isinstance(StaticSource([]), WatchableSource)


@pytest.mark.unit
class TestWatching:
    """Hot reload through a watchable source."""

    async def test_change_triggers_reload(self):
        source = FakeWatchSource([intent("a")])
        registry = IntentRegistry(source)

        assert registry.enable_file_watching() is True
        assert registry.watching

        source.data = [intent("a"), intent("b")]
        await source.trigger()
        assert {i.name for i in registry.get_all()} == {"a", "b"}

        registry.disable_file_watching()
        assert not registry.watching

    async def test_enable_twice(self):
        registry = IntentRegistry(FakeWatchSource([]))
        assert registry.enable_file_watching() is True
        assert registry.enable_file_watching() is False
        registry.close()

    async def test_static_source_is_not_watchable(self):
        registry = IntentRegistry([intent("a")])
        assert registry.enable_file_watching() is False
        assert not registry.watching

    async def test_failed_reload_keeps_serving(self):
        """Test a bad edit is logged and the previous catalog stays live."""
        source = FakeWatchSource([intent("a")])
        registry = IntentRegistry(source)
        registry.enable_file_watching()

        source.data = ConfigurationError("malformed JSON")
        await source.trigger()
        assert [i.name for i in registry.get_all()] == ["a"]
        assert registry.watching

        source.data = [intent("c")]
        await source.trigger()
        assert [i.name for i in registry.get_all()] == ["c"]
        registry.close()

    async def test_component_registry_watch(self, components_data):
        source = FakeWatchSource(components_data)
        registry = ComponentRegistry(source)
        registry.enable_file_watching()

        source.data = {"Widget": components_data["Widget"]}
        await source.trigger()
        assert [c.name for c in registry.get_all()] == ["Widget"]
        registry.close()


@pytest.mark.integration
async def test_file_watching_end_to_end(definitions_dir):
    """Test edits on disk are picked up by the file watcher."""
    path = definitions_dir / "intents.json"
    registry = IntentRegistry(path, debounce_ms=50)
    reloaded = asyncio.Event()
    registry.on_change(reloaded.set)

    assert registry.enable_file_watching() is True
    try:
        # Give the watcher time to register with the OS
        await asyncio.sleep(0.5)
        path.write_text(safe_json_dumps([intent("from_disk")]))
        await asyncio.wait_for(reloaded.wait(), timeout=10)
        assert [i.name for i in registry.get_all()] == ["from_disk"]
    finally:
        registry.close()
        await asyncio.sleep(0)
