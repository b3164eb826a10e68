"""
Definition Sources
Where registries read their catalogs from: JSON files or in-memory data.
"""

import asyncio
import copy
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from watchfiles import Change, awatch

from ..core.errors import ConfigurationError
from ..core.json import JSONParseError, loads
from ..core.logging_config import get_logger

logger = get_logger(__name__)

ChangeCallback = Callable[[], Awaitable[None]]


class SourceLoader(Protocol):
    """Protocol for definition sources."""

    def load(self) -> Any:
        """Return the raw decoded document."""
        ...


@runtime_checkable
class WatchableSource(SourceLoader, Protocol):
    """Source that can signal changes."""

    async def watch(self, on_change: ChangeCallback, stop_event: asyncio.Event) -> None:
        """Await `on_change()` once per batch of changes until `stop_event` is set."""
        ...


class StaticSource:
    """In-memory definitions supplied programmatically."""

    def __init__(self, data: Any) -> None:
        self._data = data

    def load(self) -> Any:
        # Callers get their own copy so later mutation of `data` cannot leak in
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"StaticSource({type(self._data).__name__})"


class JsonFileSource:
    """
    JSON document on disk with debounced change notification.

    The parent directory is watched (not the file itself) so editors that
    save by rename are still picked up.
    """

    def __init__(self, path: str | Path, debounce_ms: int = 300) -> None:
        self.path = Path(path).resolve()
        self.debounce_ms = debounce_ms

    def load(self) -> Any:
        """
        Read and decode the file.

        Raises:
            ConfigurationError: If the file is missing, unreadable, or not JSON
        """
        if not self.path.is_file():
            raise ConfigurationError(
                f"configuration file not found: {self.path}", details={"path": str(self.path)}
            )
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise ConfigurationError(
                f"cannot read {self.path}: {e}", details={"path": str(self.path)}
            ) from e
        try:
            return loads(raw)
        except JSONParseError as e:
            raise ConfigurationError(
                f"malformed JSON in {self.path}: {e}", details={"path": str(self.path)}
            ) from e

    def _matches(self, change: Change, path: str) -> bool:
        return Path(path).resolve() == self.path and change != Change.deleted

    async def watch(self, on_change: ChangeCallback, stop_event: asyncio.Event) -> None:
        """Invoke `on_change` for each debounced batch of writes to the file."""
        logger.info("watch_started", path=str(self.path))
        async for changes in awatch(
            self.path.parent,
            watch_filter=self._matches,
            debounce=self.debounce_ms,
            stop_event=stop_event,
            recursive=False,
        ):
            logger.debug("file_changed", path=str(self.path), events=len(changes))
            # Changes arriving while on_change runs are buffered by the watcher
            # and delivered as the next single batch
            await on_change()
        logger.info("watch_stopped", path=str(self.path))

    def __repr__(self) -> str:
        return f"JsonFileSource({str(self.path)!r})"


def as_source(config: Any, debounce_ms: int = 300) -> SourceLoader | None:
    """Normalize a registry constructor argument into a source."""
    if config is None:
        return None
    if isinstance(config, (str, Path)):
        return JsonFileSource(config, debounce_ms=debounce_ms)
    if hasattr(config, "load"):
        return config
    return StaticSource(config)


__all__ = [
    "SourceLoader",
    "WatchableSource",
    "StaticSource",
    "JsonFileSource",
    "as_source",
]
