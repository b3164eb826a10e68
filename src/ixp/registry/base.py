"""
Snapshot Registry
Read-mostly catalog swapped wholesale on every change.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Generic, TypeVar

from ..core.errors import ConfigurationError
from ..core.logging_config import get_logger
from ..monitoring import metrics_collector
from .models import DefinitionModel
from .sources import SourceLoader, WatchableSource, as_source

logger = get_logger(__name__)

T = TypeVar("T", bound=DefinitionModel)

Listener = Callable[[], None]


class SnapshotRegistry(ABC, Generic[T]):
    """
    Base class for the intent and component registries.

    The catalog is an immutable mapping. Every load, add, remove or reload
    builds a fresh mapping and installs it with a single reference
    assignment, so readers never lock and never observe a partial catalog.
    """

    kind: str = "definition"

    def __init__(self, config: Any = None, *, debounce_ms: int = 300) -> None:
        """
        Initialize registry, loading synchronously from `config` if given.

        Args:
            config: File path, in-memory data, or a SourceLoader
            debounce_ms: Debounce window for file watching

        Raises:
            ConfigurationError: If the initial load fails
        """
        self._source: SourceLoader | None = as_source(config, debounce_ms)
        self._snapshot: Mapping[str, T] = MappingProxyType({})
        self._listeners: list[Listener] = []
        self._reload_lock = asyncio.Lock()
        self._watch_task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

        if self._source is not None:
            self._install(self._build(self._source.load()))
            logger.info(
                "definitions_loaded",
                registry=self.kind,
                count=len(self._snapshot),
                source=repr(self._source),
            )

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _build(self, raw: Any) -> dict[str, T]:
        """Build a complete catalog from a raw source document."""

    @abstractmethod
    def _coerce(self, definition: T | Mapping[str, Any]) -> T:
        """Validate a single definition supplied through `add()`."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> list[T]:
        """Get all definitions"""
        return list(self._snapshot.values())

    def get(self, name: str) -> T | None:
        """Get definition by name"""
        return self._snapshot.get(name)

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, name: object) -> bool:
        return name in self._snapshot

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, definition: T | Mapping[str, Any]) -> T:
        """
        Add or overwrite a definition.

        Args:
            definition: Model instance or camelCase mapping

        Returns:
            The validated definition
        """
        item = self._coerce(definition)
        updated = dict(self._snapshot)
        updated[item.name] = item
        self._install(updated)
        logger.info("definition_added", registry=self.kind, name=item.name)
        self._notify()
        return item

    def remove(self, name: str) -> bool:
        """Remove definition by name. Returns True if it existed."""
        if name not in self._snapshot:
            return False
        updated = {k: v for k, v in self._snapshot.items() if k != name}
        self._install(updated)
        logger.info("definition_removed", registry=self.kind, name=name)
        self._notify()
        return True

    async def reload(self) -> None:
        """
        Re-read the source and atomically replace the catalog.

        Concurrent calls are serialized. On failure the previous catalog
        stays in place and the error is re-raised.

        Raises:
            ConfigurationError: If the source is unreadable or malformed
        """
        if self._source is None:
            logger.debug("reload_skipped", registry=self.kind, reason="no source")
            return

        async with self._reload_lock:
            try:
                raw = await asyncio.to_thread(self._source.load)
                catalog = self._build(raw)
            except ConfigurationError:
                metrics_collector.record_reload(self.kind, "error")
                raise
            self._install(catalog)
            metrics_collector.record_reload(self.kind, "success")

        logger.info("definitions_reloaded", registry=self.kind, count=len(catalog))
        self._notify()

    def _install(self, catalog: dict[str, T]) -> None:
        self._snapshot = MappingProxyType(catalog)
        metrics_collector.set_registry_size(self.kind, len(catalog))

    # ------------------------------------------------------------------
    # Hot reload
    # ------------------------------------------------------------------

    @property
    def watching(self) -> bool:
        return self._watch_task is not None and not self._watch_task.done()

    def enable_file_watching(self) -> bool:
        """
        Start reloading on source changes. Must be called from a running event loop.

        Returns:
            True if watching started
        """
        if not isinstance(self._source, WatchableSource):
            logger.warning("watch_unavailable", registry=self.kind, reason="source not watchable")
            return False

        if self.watching:
            logger.warning("watch_already_enabled", registry=self.kind)
            return False

        self._stop_event = asyncio.Event()
        self._watch_task = asyncio.get_running_loop().create_task(
            self._source.watch(self._on_source_change, self._stop_event),
            name=f"{self.kind}-watcher",
        )
        logger.info("watch_enabled", registry=self.kind)
        return True

    def disable_file_watching(self) -> None:
        """Stop watching the source."""
        if self._watch_task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        self._watch_task.cancel()
        self._watch_task = None
        self._stop_event = None
        logger.info("watch_disabled", registry=self.kind)

    async def _on_source_change(self) -> None:
        logger.info("source_changed", registry=self.kind)
        try:
            await self.reload()
        except ConfigurationError as e:
            logger.error("reload_failed", registry=self.kind, error=str(e))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error("listener_failed", registry=self.kind, error=str(e), exc_info=True)

    def close(self) -> None:
        """Stop watching and drop listeners."""
        self.disable_file_watching()
        self._listeners.clear()
