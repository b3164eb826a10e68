"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import (
    ErrorCode,
    IXPError,
    InvalidRequest,
    IntentNotSupported,
    ComponentNotFound,
    ParameterValidationFailed,
    ComponentValidationFailed,
    OriginNotAllowed,
    RendererUnavailable,
    ConfigurationError,
)
from .validate import (
    IntentRequest,
    RenderRequest,
    check_parameters_payload,
    parse_render_request,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import (
    loads,
    safe_json_dumps,
    script_json,
    JSONParseError,
    validate_json_size,
    validate_json_depth,
)


def create_container(settings: Settings | None = None, **overrides):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings, **overrides)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "IXPError",
    "InvalidRequest",
    "IntentNotSupported",
    "ComponentNotFound",
    "ParameterValidationFailed",
    "ComponentValidationFailed",
    "OriginNotAllowed",
    "RendererUnavailable",
    "ConfigurationError",
    # Validation
    "IntentRequest",
    "RenderRequest",
    "check_parameters_payload",
    "parse_render_request",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "loads",
    "safe_json_dumps",
    "script_json",
    "JSONParseError",
    "validate_json_size",
    "validate_json_depth",
    # DI
    "create_container",
]
