"""
Render Pipeline
Resolution result -> JSON payload or hydrated HTML document.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from returns.pipeline import is_successful
from returns.result import Failure, Result, Success

from ..core.errors import ComponentNotFound, IntentNotSupported, IXPError
from ..core.logging_config import LogContext, get_logger
from ..core.validate import IntentRequest
from ..monitoring import metrics_collector
from ..registry import ComponentDefinition
from ..resolver import IntentResolver, ResolutionResult
from .base import FrameworkRenderer, RendererTable, RenderState

logger = get_logger(__name__)

RenderMode = Literal["json", "html"]


@dataclass
class RenderArtifact:
    """Output of a render plus the states it went through."""

    mode: RenderMode
    body: dict[str, Any] | str
    component: str
    ttl: int | None = None
    states: list[RenderState] = field(default_factory=list)
    ssr_fallback: bool = False

    @property
    def media_type(self) -> str:
        return "text/html" if self.mode == "html" else "application/json"

    def mark_sent(self) -> None:
        self.states.append(RenderState.SENT)


async def server_render(
    renderer: FrameworkRenderer, component: ComponentDefinition, props: dict[str, Any]
) -> Result[str, Exception]:
    """Server-side markup as a Result; never raises."""
    try:
        return Success(await renderer.render_to_string(component, props))
    except Exception as e:
        return Failure(e)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class RenderPipeline:
    """Drives resolution, renderer selection, SSR and templating."""

    def __init__(
        self,
        resolver: IntentResolver,
        renderers: RendererTable,
        enable_ssr: bool = True,
    ) -> None:
        self.resolver = resolver
        self.renderers = renderers
        self.enable_ssr = enable_ssr

    async def render(
        self,
        intent_name: str,
        parameters: dict[str, Any] | None = None,
        mode: RenderMode = "json",
        options: dict[str, Any] | None = None,
    ) -> RenderArtifact:
        if mode == "html":
            return await self.render_html(intent_name, parameters, options)
        return await self.render_json(intent_name, parameters, options)

    async def resolve(
        self,
        request: IntentRequest | Mapping[str, Any],
        options: dict[str, Any] | None = None,
        origin: str | None = None,
    ) -> ResolutionResult:
        """
        Resolve an intent for a caller, checking its origin first.

        When `origin` is given and the intent's component restricts origins,
        the check happens before parameter validation or any provider call.

        Raises:
            OriginNotAllowed: `origin` may not request the target component
            IntentNotSupported, ComponentNotFound, ParameterValidationFailed
        """
        try:
            if origin:
                self._check_origin(request, origin)
            return await self.resolver.resolve_intent(request, options)
        except IXPError as e:
            self._fail(e)
            raise

    def _check_origin(self, request: IntentRequest | Mapping[str, Any], origin: str) -> None:
        name = request.name if isinstance(request, IntentRequest) else request.get("name")
        intent_def = self.resolver.intent_registry.get(name) if isinstance(name, str) else None
        if intent_def is None:
            return
        components = self.resolver.component_registry
        if intent_def.component in components:
            components.check_origin(intent_def.component, origin)

    async def render_json(
        self,
        intent_name: str,
        parameters: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> RenderArtifact:
        """
        Resolve an intent and describe it as JSON.

        Returns:
            Artifact whose body is `{intent, parameters, component, data, meta, performance}`
        """
        parameters = parameters if parameters is not None else {}
        states = [RenderState.RECEIVED]
        start = time.perf_counter()

        with LogContext(intent=intent_name, mode="json"), metrics_collector.time_render("json") as outcome:
            try:
                result = await self.resolver.resolve_intent(
                    {"name": intent_name, "parameters": parameters}, options
                )
                states.append(RenderState.RESOLVED)
            except IXPError as e:
                self._fail(e, states)
                raise

            component = result.component
            body = {
                "intent": intent_name,
                "parameters": parameters,
                "component": component.name,
                "data": result.to_dict(),
                "meta": {
                    "version": component.version,
                    "framework": component.framework,
                    "remoteUrl": component.remote_url,
                },
                "performance": {
                    "renderTimeMs": round((time.perf_counter() - start) * 1000, 3),
                    "renderedAt": _now(),
                },
            }
            states.append(RenderState.TEMPLATED)
            outcome["status"] = "success"

        return RenderArtifact(mode="json", body=body, component=component.name, ttl=result.ttl, states=states)

    async def render_html(
        self,
        intent_name: str,
        parameters: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> RenderArtifact:
        """
        Resolve an intent and produce a complete HTML document.

        Raises:
            IntentNotSupported: Unknown intent
            ComponentNotFound: Intent targets a missing component
            RendererUnavailable: No renderer for the component framework
            ParameterValidationFailed: Parameters violate the intent schema
        """
        parameters = parameters if parameters is not None else {}
        states = [RenderState.RECEIVED]

        with LogContext(intent=intent_name, mode="html"), metrics_collector.time_render("html") as outcome:
            try:
                # Target and renderer are settled before validation or data fetching
                self._select_renderer(intent_name)
                states.append(RenderState.RESOLVED)

                result = await self.resolver.resolve_intent(
                    {"name": intent_name, "parameters": parameters}, options
                )
                # A reload between lookup and resolution may have changed the target
                renderer = self.renderers.require(result.component.framework)
            except IXPError as e:
                self._fail(e, states)
                raise

            html, fallback = await self._document(
                renderer,
                result.component,
                result.record.props,
                states,
                intent=intent_name,
                parameters=parameters,
                ttl=result.ttl,
            )
            outcome["status"] = "success"

        return RenderArtifact(
            mode="html",
            body=html,
            component=result.component.name,
            ttl=result.ttl,
            states=states,
            ssr_fallback=fallback,
        )

    async def render_component(
        self,
        component_name: str,
        props: dict[str, Any] | None = None,
        mode: RenderMode = "html",
    ) -> RenderArtifact:
        """
        Render a component directly, without an intent.

        Raises:
            ComponentNotFound: Unknown component
            RendererUnavailable: No renderer for the component framework (HTML mode)
            ParameterValidationFailed: Props violate `propsSchema` (INVALID_COMPONENT_PROPS)
        """
        props = props if props is not None else {}
        states = [RenderState.RECEIVED]

        with LogContext(component=component_name, mode=mode), metrics_collector.time_render(mode) as outcome:
            try:
                component = self.resolver.component_registry.get(component_name)
                if component is None:
                    raise ComponentNotFound(component_name)
                renderer = self.renderers.require(component.framework) if mode == "html" else None
                states.append(RenderState.RESOLVED)
                validated = self.resolver.validate_component_props(component, props)
            except IXPError as e:
                self._fail(e, states)
                raise

            if renderer is None:
                body: dict[str, Any] | str = {
                    "component": component.name,
                    "props": validated,
                    "record": {
                        "moduleUrl": component.remote_url,
                        "exportName": component.export_name,
                        "props": validated,
                    },
                    "meta": {
                        "version": component.version,
                        "framework": component.framework,
                        "remoteUrl": component.remote_url,
                    },
                }
                states.append(RenderState.TEMPLATED)
                fallback = False
            else:
                body, fallback = await self._document(renderer, component, validated, states)
            outcome["status"] = "success"

        return RenderArtifact(mode=mode, body=body, component=component.name, states=states, ssr_fallback=fallback)

    def _select_renderer(self, intent_name: str) -> FrameworkRenderer:
        intent_def = self.resolver.intent_registry.get(intent_name)
        if intent_def is None:
            raise IntentNotSupported(intent_name)
        target = self.resolver.component_registry.get(intent_def.component)
        if target is None:
            raise ComponentNotFound(intent_def.component, intent_name=intent_name)
        return self.renderers.require(target.framework)

    def _fail(self, error: IXPError, states: list[RenderState] | None = None) -> None:
        """Single place where request failures are counted."""
        metrics_collector.record_error(error.code)
        if states is not None:
            states.append(RenderState.FAILED)
            logger.info("render_failed", code=error.code, states=[s.value for s in states])
        else:
            logger.info("resolve_failed", code=error.code)

    async def _document(
        self,
        renderer: FrameworkRenderer,
        component: ComponentDefinition,
        props: dict[str, Any],
        states: list[RenderState],
        intent: str | None = None,
        parameters: dict[str, Any] | None = None,
        ttl: int | None = None,
    ) -> tuple[str, bool]:
        content = ""
        fallback = False

        if not self.enable_ssr:
            states.append(RenderState.SSR_SKIPPED)
        else:
            states.append(RenderState.SSR_ATTEMPTED)
            result = await server_render(renderer, component, props)
            if is_successful(result):
                content = result.unwrap()
            else:
                error = result.failure()
                logger.warning(
                    "ssr_failed",
                    framework=component.framework,
                    component=component.name,
                    error=str(error) or type(error).__name__,
                )
                metrics_collector.record_ssr_fallback(component.framework)
                states[-1] = RenderState.SSR_SKIPPED
                fallback = True

        html = renderer.generate_template(content, component, props, intent, parameters, ttl)
        states.append(RenderState.TEMPLATED)
        return html, fallback


__all__ = ["RenderMode", "RenderArtifact", "RenderPipeline", "server_render"]
