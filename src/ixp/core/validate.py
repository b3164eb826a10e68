"""Request validation with strong typing."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidRequest
from .json import JSONParseError, validate_json_depth, validate_json_size


# Validation limits
MAX_INTENT_NAME_LENGTH = 256
MAX_PARAMETERS_SIZE = 64 * 1024  # 64KB
MAX_PARAMETERS_DEPTH = 10


class RequestValidator(BaseModel):
    """Base validator with strict configuration."""

    model_config = ConfigDict(
        strict=True, validate_assignment=True, extra="forbid", frozen=True  # Immutable by default
    )


class IntentRequest(RequestValidator):
    """Validated intent request: `{name, parameters}`."""

    name: str = Field(min_length=1, max_length=MAX_INTENT_NAME_LENGTH)
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Names are looked up exactly; reject blank or padded ones."""
        if not v.strip():
            raise ValueError("Intent name cannot be empty")
        if v != v.strip():
            raise ValueError("Intent name must not have surrounding whitespace")
        return v


class RenderRequest(RequestValidator):
    """Validated render envelope: `{intent: {name, parameters}, options?}`."""

    intent: IntentRequest
    options: dict[str, Any] | None = None
    mode: Literal["json", "html"] = "json"


def check_parameters_payload(
    parameters: Any,
    max_size: int = MAX_PARAMETERS_SIZE,
    max_depth: int = MAX_PARAMETERS_DEPTH,
) -> None:
    """
    Guard parameter payloads before schema validation.

    Raises:
        InvalidRequest: If the payload is too large or too deeply nested
    """
    try:
        validate_json_size(parameters, max_size, "Parameters")
        validate_json_depth(parameters, max_depth)
    except JSONParseError as e:
        raise InvalidRequest(str(e)) from e


def parse_render_request(payload: Any) -> RenderRequest:
    """
    Parse a raw render envelope.

    Raises:
        InvalidRequest: If the envelope is malformed
    """
    if not isinstance(payload, dict):
        raise InvalidRequest("Request body must be a JSON object")
    intent = payload.get("intent")
    if not isinstance(intent, dict) or not intent.get("name"):
        raise InvalidRequest("Missing required parameter 'intent.name'")
    try:
        return RenderRequest(
            intent=IntentRequest.model_validate(intent),
            options=payload.get("options"),
            mode=payload.get("mode", "json"),
        )
    except PydanticValidationError as e:
        errors = [
            {"path": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidRequest("Invalid render request", details={"validationErrors": errors}) from e
