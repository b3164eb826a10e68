"""Dependency Injection Container."""

from collections.abc import Iterable
from typing import Any

from injector import Injector, Module, provider, singleton

from ..registry import ComponentRegistry, IntentRegistry
from ..render import RendererTable, RenderPipeline, SSRClient, default_renderers
from ..resolver import CrawlerSourceRegistry, IntentDataProvider, IntentResolver
from .config import Settings, get_settings


class CoreModule(Module):
    """
    Core dependencies.

    `intents` / `components` override the configured file paths (a path,
    in-memory data or a SourceLoader). The data provider and SSR client are
    plain optional collaborators, not bindings. `crawler_sources` are
    registered into the crawler source registry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        intents: Any = None,
        components: Any = None,
        data_provider: IntentDataProvider | None = None,
        ssr_client: SSRClient | None = None,
        crawler_sources: Iterable[Any] = (),
    ) -> None:
        self.settings = settings or get_settings()
        self.intents = intents if intents is not None else self.settings.intents_path
        self.components = components if components is not None else self.settings.components_path
        self.data_provider = data_provider
        self.ssr_client = ssr_client
        self.crawler_sources = list(crawler_sources)
        if self.ssr_client is None and self.settings.ssr_url:
            self.ssr_client = SSRClient(self.settings.ssr_url, timeout=self.settings.ssr_timeout)

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_intent_registry(self) -> IntentRegistry:
        """Provide intent registry; load failures are fatal at startup."""
        return IntentRegistry(self.intents, debounce_ms=self.settings.watch_debounce_ms)

    @singleton
    @provider
    def provide_component_registry(self) -> ComponentRegistry:
        """Provide component registry; load failures are fatal at startup."""
        return ComponentRegistry(self.components, debounce_ms=self.settings.watch_debounce_ms)

    @singleton
    @provider
    def provide_resolver(self, intents: IntentRegistry, components: ComponentRegistry) -> IntentResolver:
        return IntentResolver(
            intents,
            components,
            data_provider=self.data_provider,
            default_ttl=self.settings.default_ttl,
        )

    @singleton
    @provider
    def provide_crawler_sources(self) -> CrawlerSourceRegistry:
        """Provide crawler source registry; malformed sources are fatal at startup."""
        return CrawlerSourceRegistry(self.crawler_sources)

    @singleton
    @provider
    def provide_renderers(self) -> RendererTable:
        return default_renderers(
            ssr_client=self.ssr_client,
            react_version=self.settings.react_version,
            vue_version=self.settings.vue_version,
        )

    @singleton
    @provider
    def provide_pipeline(self, resolver: IntentResolver, renderers: RendererTable) -> RenderPipeline:
        return RenderPipeline(resolver, renderers, enable_ssr=self.settings.enable_ssr)


def create_container(settings: Settings | None = None, **overrides: Any) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings, **overrides)])
