"""
Intent Registry
Catalog of intent definitions.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..core.errors import ConfigurationError
from ..core.logging_config import get_logger
from .base import SnapshotRegistry
from .models import IntentDefinition

logger = get_logger(__name__)


def _format_errors(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in error.errors()
    ]


class IntentRegistry(SnapshotRegistry[IntentDefinition]):
    """
    Holds intent definitions.

    Sources are either a JSON array of intents or an object with an
    `intents` array. Loading is all-or-nothing: one malformed entry or a
    duplicate name rejects the whole document.
    """

    kind = "intent"

    def _build(self, raw: Any) -> dict[str, IntentDefinition]:
        if isinstance(raw, Mapping):
            raw = raw.get("intents")
        if not isinstance(raw, list):
            raise ConfigurationError('invalid intent configuration: expected an "intents" array')

        catalog: dict[str, IntentDefinition] = {}
        for index, entry in enumerate(raw):
            intent = self._validate(entry, index)
            if intent.name in catalog:
                raise ConfigurationError(
                    f"duplicate intent name '{intent.name}'",
                    details={"name": intent.name, "index": index},
                )
            catalog[intent.name] = intent
        return catalog

    def _coerce(self, definition: IntentDefinition | Mapping[str, Any]) -> IntentDefinition:
        if isinstance(definition, IntentDefinition):
            return definition
        return self._validate(definition)

    def _validate(self, entry: Any, index: int | None = None) -> IntentDefinition:
        try:
            return IntentDefinition.model_validate(entry)
        except ValidationError as e:
            name = entry.get("name") if isinstance(entry, Mapping) else None
            label = f"'{name}'" if name else f"#{index}"
            errors = _format_errors(e)
            logger.error("intent_invalid", intent=label, errors=errors)
            raise ConfigurationError(
                f"intent {label} is invalid: {'; '.join(errors)}",
                details={"name": name, "index": index, "validationErrors": errors},
            ) from e

    def find_by_criteria(
        self,
        crawlable: bool | None = None,
        deprecated: bool | None = None,
        component: str | None = None,
    ) -> list[IntentDefinition]:
        """
        Filter intents.

        Args:
            crawlable: Match crawlable flag if given
            deprecated: Match deprecated flag if given
            component: Match target component if given

        Returns:
            Matching intents
        """
        results = []
        for intent in self.get_all():
            if crawlable is not None and intent.crawlable != crawlable:
                continue
            if deprecated is not None and intent.deprecated != deprecated:
                continue
            if component and intent.component != component:
                continue
            results.append(intent)
        return results

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics"""
        intents = self.get_all()
        by_component: dict[str, int] = {}
        for intent in intents:
            by_component[intent.component] = by_component.get(intent.component, 0) + 1

        return {
            "total": len(intents),
            "crawlable": sum(1 for i in intents if i.crawlable),
            "deprecated": sum(1 for i in intents if i.deprecated),
            "by_component": by_component,
        }
