"""
Renderer Capability Set
Framework renderers are selected by `component.framework` from a table.
"""

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ..core.errors import RendererUnavailable
from ..core.logging_config import get_logger
from ..registry import ComponentDefinition

logger = get_logger(__name__)


class RenderState(str, Enum):
    """Stages a render request passes through."""

    RECEIVED = "received"
    RESOLVED = "resolved"
    SSR_ATTEMPTED = "ssr_attempted"
    SSR_SKIPPED = "ssr_skipped"
    TEMPLATED = "templated"
    SENT = "sent"
    FAILED = "failed"


@runtime_checkable
class FrameworkRenderer(Protocol):
    """Everything the pipeline needs from a framework."""

    framework: str

    async def render_to_string(self, component: ComponentDefinition, props: dict[str, Any]) -> str:
        """Server-side markup, or "" when the renderer has none."""
        ...

    def generate_hydration_script(
        self,
        component: ComponentDefinition,
        props: dict[str, Any],
        intent: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        """Client script that loads the bundle and mounts the export."""
        ...

    def generate_template(
        self,
        content: str,
        component: ComponentDefinition,
        props: dict[str, Any],
        intent: str | None = None,
        parameters: dict[str, Any] | None = None,
        ttl: int | None = None,
    ) -> str:
        """Complete HTML document."""
        ...


class RendererTable:
    """Framework name -> renderer."""

    def __init__(self, renderers: Iterable[FrameworkRenderer] = ()) -> None:
        self._renderers: dict[str, FrameworkRenderer] = {}
        for renderer in renderers:
            self.register(renderer)

    def register(self, renderer: FrameworkRenderer, framework: str | None = None) -> None:
        """Register (or replace) the renderer for a framework."""
        key = framework or renderer.framework
        if key in self._renderers:
            logger.info("renderer_replaced", framework=key)
        self._renderers[key] = renderer

    def unregister(self, framework: str) -> bool:
        return self._renderers.pop(framework, None) is not None

    def get(self, framework: str) -> FrameworkRenderer | None:
        return self._renderers.get(framework)

    def require(self, framework: str) -> FrameworkRenderer:
        """
        Look up a renderer.

        Raises:
            RendererUnavailable: Nothing registered for the framework
        """
        renderer = self._renderers.get(framework)
        if renderer is None:
            raise RendererUnavailable(framework, self.frameworks)
        return renderer

    @property
    def frameworks(self) -> list[str]:
        return sorted(self._renderers)

    def __contains__(self, framework: object) -> bool:
        return framework in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)

    def __iter__(self) -> Iterator[str]:
        return iter(self.frameworks)


__all__ = ["RenderState", "FrameworkRenderer", "RendererTable"]
