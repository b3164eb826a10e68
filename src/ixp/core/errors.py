"""Structured error taxonomy.

Every error raised by the registries, resolver and render pipeline carries a
machine-readable code, an HTTP status, a timestamp and optional details, and
knows how to turn itself into the wire error envelope.
"""

from datetime import datetime, timezone
from typing import Any


class ErrorCode:
    """Error code constants."""

    # Client errors (4xx)
    INVALID_REQUEST = "INVALID_REQUEST"
    INTENT_NOT_SUPPORTED = "INTENT_NOT_SUPPORTED"
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"
    PARAMETER_VALIDATION_FAILED = "PARAMETER_VALIDATION_FAILED"
    INVALID_COMPONENT_PROPS = "INVALID_COMPONENT_PROPS"
    COMPONENT_VALIDATION_FAILED = "COMPONENT_VALIDATION_FAILED"
    ORIGIN_NOT_ALLOWED = "ORIGIN_NOT_ALLOWED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    RENDERER_UNAVAILABLE = "RENDERER_UNAVAILABLE"


class IXPError(Exception):
    """Base error with code, status and details."""

    code: str = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_response(self) -> dict[str, Any]:
        """Convert to API error envelope."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}

    @classmethod
    def from_error(cls, error: BaseException, code: str = ErrorCode.INTERNAL_ERROR) -> "IXPError":
        """Wrap any exception as an IXPError."""
        if isinstance(error, IXPError):
            return error
        return IXPError(
            str(error) or "An unknown error occurred",
            code=code,
            status_code=500,
            details={"originalError": type(error).__name__},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidRequest(IXPError):
    """Malformed request envelope."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class IntentNotSupported(IXPError):
    """Unknown intent name."""

    code = ErrorCode.INTENT_NOT_SUPPORTED
    status_code = 404

    def __init__(self, intent_name: str) -> None:
        super().__init__(f"Intent '{intent_name}' not found", details={"intentName": intent_name})
        self.intent_name = intent_name


class ComponentNotFound(IXPError):
    """Component missing from the registry."""

    code = ErrorCode.COMPONENT_NOT_FOUND
    status_code = 404

    def __init__(self, component_name: str, intent_name: str | None = None) -> None:
        details: dict[str, Any] = {"componentName": component_name}
        if intent_name:
            details["intentName"] = intent_name
        super().__init__(f"Component '{component_name}' not found", details=details)
        self.component_name = component_name


class ParameterValidationFailed(IXPError):
    """Parameters (or props) violate their schema. Carries every violation."""

    code = ErrorCode.PARAMETER_VALIDATION_FAILED
    status_code = 400

    def __init__(
        self,
        violations: list[dict[str, Any]],
        subject: str = "Parameter",
        code: str | None = None,
    ) -> None:
        summary = ", ".join(v["message"] for v in violations)
        missing = [v["path"] for v in violations if v.get("keyword") == "required"]
        super().__init__(
            f"{subject} validation failed: {summary}",
            code=code,
            details={"validationErrors": violations, "missing": missing},
        )
        self.violations = violations
        self.missing = missing


class ComponentValidationFailed(IXPError):
    """Component definition failed schema or security checks."""

    code = ErrorCode.COMPONENT_VALIDATION_FAILED
    status_code = 400

    def __init__(self, component_name: str, errors: list[str]) -> None:
        super().__init__(
            f"Component '{component_name}' validation failed: {', '.join(errors)}",
            details={"componentName": component_name, "validationErrors": errors},
        )
        self.component_name = component_name
        self.errors = errors


class OriginNotAllowed(IXPError):
    """Origin not in the component allow-list."""

    code = ErrorCode.ORIGIN_NOT_ALLOWED
    status_code = 403

    def __init__(self, origin: str, component_name: str | None = None) -> None:
        if component_name:
            message = f"Origin '{origin}' not allowed for component '{component_name}'"
        else:
            message = f"Origin '{origin}' not allowed"
        super().__init__(message, details={"origin": origin, "componentName": component_name})


class RendererUnavailable(IXPError):
    """No renderer registered for a framework."""

    code = ErrorCode.RENDERER_UNAVAILABLE
    status_code = 500

    def __init__(self, framework: str, available: list[str] | None = None) -> None:
        super().__init__(
            f"No renderer available for framework '{framework}'",
            details={"framework": framework, "available": available or []},
        )
        self.framework = framework


class ConfigurationError(IXPError):
    """Definition source is unreadable or malformed."""

    code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Configuration error: {message}", details=details)


__all__ = [
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
]
