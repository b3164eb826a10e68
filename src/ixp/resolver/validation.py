"""
Schema Validation
JSON Schema (draft 7) validation of intent parameters and component props,
reporting every violation at once.
"""

import copy
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from jsonschema import Draft7Validator, ValidationError, validators

_BASE_KEYWORDS = Draft7Validator.VALIDATORS


@dataclass(frozen=True)
class Violation:
    """A single schema violation."""

    path: str
    message: str
    keyword: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _required(validator, required, instance, schema):
    # Point at the missing property rather than its parent object
    if not validator.is_type(instance, "object"):
        return
    for name in required:
        if name not in instance:
            yield ValidationError(f"{name!r} is a required property", path=[name])


def _additional_properties(validator, allowed, instance, schema):
    if allowed is not False or not validator.is_type(instance, "object"):
        yield from _BASE_KEYWORDS["additionalProperties"](validator, allowed, instance, schema)
        return
    declared = schema.get("properties", {})
    patterns = schema.get("patternProperties", {})
    for key in instance:
        if key in declared or any(re.search(p, key) for p in patterns):
            continue
        yield ValidationError(f"Unrecognized key {key!r}", path=[key])


ParameterValidator = validators.extend(
    Draft7Validator,
    {"required": _required, "additionalProperties": _additional_properties},
)


def format_path(parts: Iterable[Any]) -> str:
    """`["filters", "tags", 1]` -> `"filters.tags[1]"`; empty -> `"<root>"`."""
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "<root>"


def _violation(error: ValidationError) -> Violation:
    path = format_path(error.absolute_path)
    if error.validator == "required":
        message = f"Required at '{path}'"
    else:
        message = f"{error.message} at '{path}'"
    return Violation(path, message, str(error.validator))


def apply_defaults(schema: Mapping[str, Any], value: Any) -> Any:
    """
    Fill schema defaults for absent properties, recursing into present
    objects and array items. Defaults are deep-copied.
    """
    if isinstance(value, dict):
        result = dict(value)
        for key, prop in schema.get("properties", {}).items():
            if not isinstance(prop, Mapping):
                continue
            if key in result:
                result[key] = apply_defaults(prop, result[key])
            elif "default" in prop:
                result[key] = copy.deepcopy(prop["default"])
        return result
    if isinstance(value, list) and isinstance(schema.get("items"), Mapping):
        return [apply_defaults(schema["items"], item) for item in value]
    return value


class SchemaValidator:
    """
    Validates parameter/props objects against their JSON Schema.

    No coercion is performed: "5" never satisfies a number schema, while
    5.0 satisfies integer. Properties not declared in the schema are kept
    unless `additionalProperties` is false. `format` is checked.
    """

    def validate(self, schema: Mapping[str, Any], value: Any) -> tuple[dict[str, Any], list[Violation]]:
        """
        Validate a parameter/props object.

        Args:
            schema: Object schema (already checked at load time)
            value: Candidate object

        Returns:
            (value with defaults applied, list of violations)
        """
        validator = ParameterValidator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
        violations = sorted(
            (_violation(error) for error in validator.iter_errors(value)),
            key=lambda v: (v.path, v.keyword),
        )
        if not isinstance(value, dict):
            return {}, violations
        return apply_defaults(schema, value), violations


__all__ = ["Violation", "SchemaValidator", "ParameterValidator", "apply_defaults", "format_path"]
