"""
Definition Models
Intent and component definitions. Parameter and props schemas are plain
JSON Schema (draft 7) documents, checked against the metaschema at load time.
"""

import re
from typing import Any
from urllib.parse import urlparse

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator
from pydantic.alias_generators import to_camel

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(B|KB|MB)\s*$", re.IGNORECASE)
_SIZE_FACTORS = {"B": 1 / 1024, "KB": 1.0, "MB": 1024.0}


def parse_size_kb(size: str | None) -> float | None:
    """
    Parse a human-readable size ("45KB", "1.2MB", "900B") into kilobytes.

    Returns:
        Size in KB, or None if the string is absent or unparseable
    """
    if not size:
        return None
    match = _SIZE_PATTERN.match(size)
    if not match:
        return None
    value, unit = match.groups()
    return float(value) * _SIZE_FACTORS[unit.upper()]


def check_object_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """
    Check a parameters/props schema.

    Raises:
        ValueError: If the schema is not valid draft 7 or is not an object schema
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValueError(f"invalid JSON Schema at {where}: {e.message}") from e
    if schema.get("type") != "object":
        raise ValueError("schema type must be 'object'")
    return schema


class DefinitionModel(BaseModel):
    """Base for wire-format models: camelCase aliases, immutable, extras preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        """Export in the camelCase wire format."""
        return self.model_dump(by_alias=True, exclude_none=True)


class IntentDefinition(DefinitionModel):
    """Named user goal mapped to exactly one component."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    parameters: dict[str, Any]
    component: str = Field(min_length=1)
    version: str = Field(min_length=1)
    deprecated: StrictBool = False
    crawlable: StrictBool = False

    @field_validator("parameters")
    @classmethod
    def validate_parameters(cls, v: dict[str, Any]) -> dict[str, Any]:
        return check_object_schema(v)


class Performance(DefinitionModel):
    """Informational performance metadata."""

    tti: str | None = None
    bundle_size_gzipped: str | None = None


class SecurityPolicy(DefinitionModel):
    """Security constraints declared by a component."""

    allow_eval: StrictBool
    sandboxed: StrictBool
    max_bundle_size: str | None = None
    csp: dict[str, list[str]] | None = None


class CachePolicy(DefinitionModel):
    """Caching hints for resolution results."""

    ttl: int = Field(ge=0)


class ComponentDefinition(DefinitionModel):
    """Remotely hosted UI bundle plus metadata."""

    name: str = Field(min_length=1)
    framework: str = Field(min_length=1)
    remote_url: str = Field(min_length=1)
    export_name: str = Field(min_length=1)
    props_schema: dict[str, Any]
    version: str = Field(min_length=1)
    deprecated: StrictBool = False
    allowed_origins: list[str]
    bundle_size: str | None = None
    performance: Performance | None = None
    security_policy: SecurityPolicy | None = None
    cache: CachePolicy | None = None

    @field_validator("props_schema")
    @classmethod
    def validate_props_schema(cls, v: dict[str, Any]) -> dict[str, Any]:
        return check_object_schema(v)

    @field_validator("remote_url")
    @classmethod
    def validate_remote_url(cls, v: str) -> str:
        """Require an absolute URL."""
        parsed = urlparse(v)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("invalid remoteUrl format")
        return v

    @model_validator(mode="after")
    def check_bundle_size(self) -> "ComponentDefinition":
        """Enforce securityPolicy.maxBundleSize against bundleSize."""
        if self.security_policy is None:
            return self
        size = parse_size_kb(self.bundle_size)
        limit = parse_size_kb(self.security_policy.max_bundle_size)
        if size is not None and limit is not None and size > limit:
            raise ValueError(
                f"bundleSize {self.bundle_size} exceeds securityPolicy.maxBundleSize "
                f"{self.security_policy.max_bundle_size}"
            )
        return self

    @property
    def sandboxed(self) -> bool:
        return bool(self.security_policy and self.security_policy.sandboxed)


__all__ = [
    "parse_size_kb",
    "check_object_schema",
    "IntentDefinition",
    "ComponentDefinition",
    "Performance",
    "SecurityPolicy",
    "CachePolicy",
]
