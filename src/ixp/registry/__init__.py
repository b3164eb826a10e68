"""
Definition Registries
Intent and component catalogs with hot reload
"""

from .models import (
    IntentDefinition,
    ComponentDefinition,
    check_object_schema,
    SecurityPolicy,
    Performance,
    CachePolicy,
    parse_size_kb,
)
from .sources import SourceLoader, StaticSource, JsonFileSource
from .base import SnapshotRegistry
from .intents import IntentRegistry
from .components import ComponentRegistry

__all__ = [
    "IntentDefinition",
    "ComponentDefinition",
    "check_object_schema",
    "SecurityPolicy",
    "Performance",
    "CachePolicy",
    "parse_size_kb",
    "SourceLoader",
    "StaticSource",
    "JsonFileSource",
    "SnapshotRegistry",
    "IntentRegistry",
    "ComponentRegistry",
]
