"""
Component Registry
Catalog of component definitions and their origin allow-lists.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from ..core.errors import ComponentValidationFailed, ConfigurationError, OriginNotAllowed
from ..core.logging_config import get_logger
from .base import SnapshotRegistry
from .models import ComponentDefinition, parse_size_kb

logger = get_logger(__name__)

WILDCARD_ORIGIN = "*"


class ComponentRegistry(SnapshotRegistry[ComponentDefinition]):
    """
    Holds component definitions.

    Sources are a map of name -> definition, or an object with a
    `components` map. A bad document is fatal; a bad entry is rejected on
    its own and the rest of the catalog still loads.
    """

    kind = "component"

    def __init__(self, config: Any = None, *, debounce_ms: int = 300) -> None:
        self._rejected: Mapping[str, ComponentValidationFailed] = MappingProxyType({})
        super().__init__(config, debounce_ms=debounce_ms)

    @property
    def rejected(self) -> Mapping[str, ComponentValidationFailed]:
        """Entries rejected by the most recent load."""
        return self._rejected

    def _build(self, raw: Any) -> dict[str, ComponentDefinition]:
        if isinstance(raw, Mapping) and isinstance(raw.get("components"), Mapping):
            raw = raw["components"]
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                'invalid component configuration: expected a "components" object'
            )

        catalog: dict[str, ComponentDefinition] = {}
        rejected: dict[str, ComponentValidationFailed] = {}
        for name, entry in raw.items():
            try:
                if not isinstance(entry, Mapping):
                    raise ComponentValidationFailed(str(name), ["definition must be an object"])
                # The map key is the component's name
                catalog[name] = self._validate({**entry, "name": name})
            except ComponentValidationFailed as e:
                logger.warning("component_rejected", component=name, errors=e.errors)
                rejected[name] = e

        self._rejected = MappingProxyType(rejected)
        return catalog

    def _coerce(
        self, definition: ComponentDefinition | Mapping[str, Any]
    ) -> ComponentDefinition:
        if isinstance(definition, ComponentDefinition):
            return definition
        return self._validate(definition)

    def _validate(self, entry: Mapping[str, Any]) -> ComponentDefinition:
        try:
            return ComponentDefinition.model_validate(entry)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ComponentValidationFailed(str(entry.get("name") or "<unnamed>"), errors) from e

    def is_origin_allowed(self, component_name: str, origin: str) -> bool:
        """
        Check if origin may request a component.

        Returns:
            True if allowedOrigins contains "*" or exactly `origin`;
            False for unknown components
        """
        component = self.get(component_name)
        if component is None:
            return False
        return WILDCARD_ORIGIN in component.allowed_origins or origin in component.allowed_origins

    def check_origin(self, component_name: str, origin: str) -> None:
        """
        Raises:
            OriginNotAllowed: If `origin` may not request the component
        """
        if not self.is_origin_allowed(component_name, origin):
            logger.warning("origin_rejected", component=component_name, origin=origin)
            raise OriginNotAllowed(origin, component_name)

    def find_by_criteria(
        self,
        framework: str | None = None,
        deprecated: bool | None = None,
        sandboxed: bool | None = None,
    ) -> list[ComponentDefinition]:
        """
        Filter components.

        Args:
            framework: Match framework if given
            deprecated: Match deprecated flag if given
            sandboxed: Match securityPolicy.sandboxed if given

        Returns:
            Matching components
        """
        results = []
        for component in self.get_all():
            if framework and component.framework != framework:
                continue
            if deprecated is not None and component.deprecated != deprecated:
                continue
            if sandboxed is not None and component.sandboxed != sandboxed:
                continue
            results.append(component)
        return results

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics"""
        components = self.get_all()
        by_framework: dict[str, int] = {}
        sizes: list[float] = []

        for component in components:
            by_framework[component.framework] = by_framework.get(component.framework, 0) + 1
            size = parse_size_kb(component.bundle_size)
            if size is not None:
                sizes.append(size)

        average = round(sum(sizes) / len(sizes)) if sizes else 0

        return {
            "total": len(components),
            "by_framework": by_framework,
            "deprecated": sum(1 for c in components if c.deprecated),
            "sandboxed": sum(1 for c in components if c.sandboxed),
            "average_bundle_size": f"{average}KB",
        }
