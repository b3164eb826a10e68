"""Intent registry tests."""

import asyncio
import copy
import threading
import time

import pytest

from ixp.core import ConfigurationError
from ixp.core.json import safe_json_dumps
from ixp.registry import IntentDefinition, IntentRegistry


def intent(name: str, **overrides) -> dict:
    data = {
        "name": name,
        "description": f"{name} description",
        "parameters": {"type": "object", "properties": {}},
        "component": "ProductGrid",
        "version": "1.0.0",
    }
    data.update(overrides)
    return data


class CountingSource:
    """Source that records how many loads overlap."""

    def __init__(self, data):
        self.data = data
        self.loads = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def load(self):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.01)
        with self._lock:
            self.active -= 1
            self.loads += 1
        return copy.deepcopy(self.data)


@pytest.mark.unit
class TestLoading:
    """Initial loading."""

    def test_loads_array(self, intents_data):
        registry = IntentRegistry(intents_data)
        assert len(registry) == len(intents_data)
        assert "show_products" in registry
        assert isinstance(registry.get("show_products"), IntentDefinition)

    def test_loads_wrapped_document(self, intents_data):
        registry = IntentRegistry({"intents": intents_data})
        assert len(registry) == len(intents_data)

    def test_loads_file(self, definitions_dir, intents_data):
        registry = IntentRegistry(definitions_dir / "intents.json")
        assert {i.name for i in registry.get_all()} == {i["name"] for i in intents_data}

    def test_empty_without_source(self):
        registry = IntentRegistry()
        assert registry.get_all() == []
        assert registry.get("show_products") is None

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            IntentRegistry(tmp_path / "missing.json")

    def test_malformed_json_is_fatal(self, tmp_path):
        path = tmp_path / "intents.json"
        path.write_text("[{")
        with pytest.raises(ConfigurationError, match="malformed JSON"):
            IntentRegistry(path)

    def test_wrong_document_shape(self):
        with pytest.raises(ConfigurationError):
            IntentRegistry({"intent": []})

    def test_duplicate_names_rejected(self):
        with pytest.raises(ConfigurationError, match="duplicate"):
            IntentRegistry([intent("a"), intent("a")])

    def test_one_bad_entry_rejects_everything(self):
        """Test loading is all-or-nothing."""
        with pytest.raises(ConfigurationError) as exc_info:
            IntentRegistry([intent("good"), intent("bad", description="")])
        assert exc_info.value.details["name"] == "bad"


@pytest.mark.unit
class TestMutation:
    """add / remove / listeners."""

    def test_add_overwrites(self, intent_registry):
        intent_registry.add(intent("show_products", version="2.0.0"))
        assert intent_registry.get("show_products").version == "2.0.0"

    def test_add_model_instance(self, intent_registry):
        model = IntentDefinition.model_validate(intent("new_intent"))
        assert intent_registry.add(model) is model
        assert intent_registry.get("new_intent") is model

    def test_add_invalid_mapping(self, intent_registry):
        with pytest.raises(ConfigurationError):
            intent_registry.add({"name": "broken"})
        assert "broken" not in intent_registry

    def test_remove(self, intent_registry):
        assert intent_registry.remove("show_products") is True
        assert intent_registry.remove("show_products") is False
        assert intent_registry.get("show_products") is None

    def test_snapshot_held_by_reader_is_unchanged(self, intent_registry):
        """Test a captured catalog is never mutated by later writes."""
        before = intent_registry.get_all()
        count = len(before)
        intent_registry.add(intent("another"))
        intent_registry.remove("show_products")
        assert len(before) == count
        assert any(i.name == "show_products" for i in before)

    def test_listeners(self, intent_registry):
        calls = []
        unsubscribe = intent_registry.on_change(lambda: calls.append("a"))

        def failing():
            raise RuntimeError("listener bug")

        intent_registry.on_change(failing)
        intent_registry.on_change(lambda: calls.append("b"))

        intent_registry.add(intent("x"))
        assert calls == ["a", "b"]

        unsubscribe()
        intent_registry.remove("x")
        assert calls == ["a", "b", "b"]

    def test_close_drops_listeners(self, intent_registry):
        calls = []
        intent_registry.on_change(lambda: calls.append(1))
        intent_registry.close()
        intent_registry.add(intent("x"))
        assert calls == []


@pytest.mark.unit
class TestQueries:
    """find_by_criteria / get_stats."""

    def test_find_by_criteria(self, intent_registry):
        assert [i.name for i in intent_registry.find_by_criteria(crawlable=True)] == ["show_products"]
        assert [i.name for i in intent_registry.find_by_criteria(deprecated=True)] == ["legacy_products"]
        by_component = intent_registry.find_by_criteria(component="ProductGrid")
        assert {i.name for i in by_component} == {"show_products", "legacy_products"}
        assert intent_registry.find_by_criteria(crawlable=True, deprecated=True) == []

    def test_get_stats(self, intent_registry, intents_data):
        stats = intent_registry.get_stats()
        assert stats["total"] == len(intents_data)
        assert stats["crawlable"] == 1
        assert stats["deprecated"] == 1
        assert stats["by_component"]["ProductGrid"] == 2
        assert stats["by_component"]["CartSummary"] == 1


@pytest.mark.unit
class TestReload:
    """Reload semantics."""

    async def test_reload_picks_up_changes(self, definitions_dir, intents_data):
        path = definitions_dir / "intents.json"
        registry = IntentRegistry(path)
        notified = []
        registry.on_change(lambda: notified.append(True))

        path.write_text(safe_json_dumps([intent("only_one")]))
        await registry.reload()

        assert [i.name for i in registry.get_all()] == ["only_one"]
        assert notified == [True]

    async def test_failed_reload_keeps_previous_catalog(self, definitions_dir, intents_data):
        path = definitions_dir / "intents.json"
        registry = IntentRegistry(path)

        path.write_text("{ not json")
        with pytest.raises(ConfigurationError):
            await registry.reload()
        assert len(registry) == len(intents_data)

        path.write_text(safe_json_dumps([intent("dup"), intent("dup")]))
        with pytest.raises(ConfigurationError):
            await registry.reload()
        assert len(registry) == len(intents_data)

    async def test_reload_without_source_is_noop(self):
        registry = IntentRegistry()
        await registry.reload()
        assert len(registry) == 0

    async def test_concurrent_reloads_are_serialized(self):
        source = CountingSource([intent("a")])
        registry = IntentRegistry(source)

        await asyncio.gather(*(registry.reload() for _ in range(5)))

        assert source.loads == 6
        assert source.max_active == 1

    async def test_readers_never_see_a_mixed_catalog(self):
        """Test every read during reloads returns one generation."""
        source = CountingSource([intent(f"i{n}", version="1") for n in range(20)])
        registry = IntentRegistry(source)
        seen_versions = []

        async def reader():
            for _ in range(50):
                versions = {i.version for i in registry.get_all()}
                seen_versions.append(versions)
                await asyncio.sleep(0)

        async def writer():
            for generation in range(2, 6):
                source.data = [intent(f"i{n}", version=str(generation)) for n in range(20)]
                await registry.reload()

        await asyncio.gather(reader(), writer())

        assert all(len(versions) == 1 for versions in seen_versions)
        assert {i.version for i in registry.get_all()} == {"5"}
