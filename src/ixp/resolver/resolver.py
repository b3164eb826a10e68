"""
Intent Resolver
Turns an intent request into a validated, data-augmented component reference.
"""

import time
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import (
    ComponentNotFound,
    ErrorCode,
    IntentNotSupported,
    InvalidRequest,
    ParameterValidationFailed,
)
from ..core.logging_config import LogContext, get_logger
from ..core.validate import IntentRequest
from ..monitoring import metrics_collector
from ..registry import ComponentDefinition, ComponentRegistry, IntentDefinition, IntentRegistry
from ..registry.models import parse_size_kb
from .provider import IntentDataProvider
from .validation import SchemaValidator

logger = get_logger(__name__)

DEFAULT_TTL = 300
DEPRECATED_TTL = 60
CRAWLABLE_TTL = 600
LARGE_BUNDLE_TTL = 900
LARGE_BUNDLE_KB = 50


class ComponentRecord(BaseModel):
    """What the client loads: bundle URL, export and props."""

    model_config = ConfigDict(frozen=True)

    module_url: str
    export_name: str
    props: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"moduleUrl": self.module_url, "exportName": self.export_name, "props": self.props}


class ResolutionResult(BaseModel):
    """Outcome of resolving an intent."""

    model_config = ConfigDict(frozen=True)

    record: ComponentRecord
    component: ComponentDefinition
    ttl: int

    def to_dict(self) -> dict[str, Any]:
        """Export in the wire format `{record, component, ttl}`."""
        return {
            "record": self.record.to_dict(),
            "component": self.component.to_dict(),
            "ttl": self.ttl,
        }


class IntentResolver:
    """Resolves intents against the registries."""

    def __init__(
        self,
        intent_registry: IntentRegistry,
        component_registry: ComponentRegistry,
        data_provider: IntentDataProvider | None = None,
        default_ttl: int = DEFAULT_TTL,
    ) -> None:
        self.intent_registry = intent_registry
        self.component_registry = component_registry
        self.data_provider = data_provider
        self.default_ttl = default_ttl
        self.validator = SchemaValidator()

        self._total = 0
        self._succeeded = 0
        self._duration_total = 0.0

    async def resolve_intent(
        self,
        request: IntentRequest | Mapping[str, Any],
        options: dict[str, Any] | None = None,
    ) -> ResolutionResult:
        """
        Resolve intent to component descriptor.

        Args:
            request: `{name, parameters}`
            options: Opaque caller options, passed to the data provider as context

        Returns:
            Resolution result

        Raises:
            IntentNotSupported: Unknown intent
            ParameterValidationFailed: Parameters violate the intent schema
            ComponentNotFound: Intent targets a missing component
        """
        start = time.perf_counter()
        status = "error"
        try:
            request = self._coerce_request(request)
            with LogContext(intent=request.name):
                result = await self._resolve(request, options)
            status = "success"
            return result
        finally:
            duration = time.perf_counter() - start
            self._total += 1
            self._duration_total += duration
            if status == "success":
                self._succeeded += 1
            metrics_collector.record_resolution(status, duration)

    async def _resolve(
        self, request: IntentRequest, options: dict[str, Any] | None
    ) -> ResolutionResult:
        intent_def = self.intent_registry.get(request.name)
        if intent_def is None:
            logger.info("intent_unknown")
            raise IntentNotSupported(request.name)

        if intent_def.deprecated:
            logger.warning("intent_deprecated", version=intent_def.version)

        validated = self.validate_parameters(intent_def, request.parameters)

        component_def = self.component_registry.get(intent_def.component)
        if component_def is None:
            # Intents must never point at missing components
            logger.error("component_missing", component=intent_def.component)
            raise ComponentNotFound(intent_def.component, intent_name=intent_def.name)

        if component_def.deprecated:
            logger.warning("component_deprecated", component=component_def.name)

        props = validated
        additional = await self._provider_data(request, options)
        if additional:
            # Explicit parameters win over provider fields
            props = {**additional, **validated}

        ttl = self.calculate_ttl(intent_def, component_def)
        logger.debug("intent_resolved", component=component_def.name, ttl=ttl)

        return ResolutionResult(
            record=ComponentRecord(
                module_url=component_def.remote_url,
                export_name=component_def.export_name,
                props=props,
            ),
            component=component_def,
            ttl=ttl,
        )

    def _coerce_request(self, request: IntentRequest | Mapping[str, Any]) -> IntentRequest:
        if isinstance(request, IntentRequest):
            return request
        try:
            return IntentRequest.model_validate(dict(request))
        except PydanticValidationError as e:
            raise InvalidRequest(
                "Invalid intent request",
                details={"validationErrors": [err["msg"] for err in e.errors()]},
            ) from e

    async def _provider_data(
        self, request: IntentRequest, options: dict[str, Any] | None
    ) -> dict[str, Any]:
        if self.data_provider is None or not hasattr(self.data_provider, "resolve_intent_data"):
            return {}
        try:
            data = await self.data_provider.resolve_intent_data(request, options)
        except Exception as e:
            logger.warning("data_provider_failed", error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("data_provider_invalid", type=type(data).__name__)
            return {}
        return data

    def validate_parameters(
        self, intent_def: IntentDefinition, parameters: Any
    ) -> dict[str, Any]:
        """
        Validate intent parameters and apply schema defaults.

        Raises:
            ParameterValidationFailed: With every violated constraint
        """
        validated, violations = self.validator.validate(intent_def.parameters, parameters)
        if violations:
            logger.info("parameters_invalid", violations=len(violations))
            raise ParameterValidationFailed([v.to_dict() for v in violations])
        return validated

    def validate_component_props(
        self, component_def: ComponentDefinition, props: Any
    ) -> dict[str, Any]:
        """
        Validate props against a component's propsSchema.

        Raises:
            ParameterValidationFailed: code INVALID_COMPONENT_PROPS
        """
        validated, violations = self.validator.validate(component_def.props_schema, props)
        if violations:
            raise ParameterValidationFailed(
                [v.to_dict() for v in violations],
                subject="Component props",
                code=ErrorCode.INVALID_COMPONENT_PROPS,
            )
        return validated

    def calculate_ttl(self, intent_def: IntentDefinition, component_def: ComponentDefinition) -> int:
        """
        Compute how long a resolution may be cached.

        A declared `cache.ttl` wins. Otherwise start from the default, cap
        deprecated entries, extend crawlable intents and large bundles.
        """
        if component_def.cache is not None:
            return component_def.cache.ttl

        ttl = self.default_ttl
        if intent_def.deprecated or component_def.deprecated:
            ttl = min(ttl, DEPRECATED_TTL)
        if intent_def.crawlable:
            ttl = max(ttl, CRAWLABLE_TTL)

        gzipped = parse_size_kb(
            component_def.performance.bundle_size_gzipped if component_def.performance else None
        )
        if gzipped is not None and gzipped > LARGE_BUNDLE_KB:
            ttl = max(ttl, LARGE_BUNDLE_TTL)

        return ttl

    def get_stats(self) -> dict[str, Any]:
        """Get resolution statistics"""
        return {
            "total_resolutions": self._total,
            "successful_resolutions": self._succeeded,
            "failed_resolutions": self._total - self._succeeded,
            "average_resolution_ms": (self._duration_total / self._total * 1000) if self._total else 0.0,
        }
