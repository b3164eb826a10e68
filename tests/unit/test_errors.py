"""Error taxonomy tests."""

import pytest

from ixp.core import (
    ComponentNotFound,
    ComponentValidationFailed,
    ConfigurationError,
    ErrorCode,
    IntentNotSupported,
    InvalidRequest,
    IXPError,
    OriginNotAllowed,
    ParameterValidationFailed,
    RendererUnavailable,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error, code, status",
    [
        (InvalidRequest("bad"), ErrorCode.INVALID_REQUEST, 400),
        (IntentNotSupported("nope"), ErrorCode.INTENT_NOT_SUPPORTED, 404),
        (ComponentNotFound("Grid"), ErrorCode.COMPONENT_NOT_FOUND, 404),
        (ParameterValidationFailed([]), ErrorCode.PARAMETER_VALIDATION_FAILED, 400),
        (ComponentValidationFailed("Grid", ["x"]), ErrorCode.COMPONENT_VALIDATION_FAILED, 400),
        (OriginNotAllowed("https://evil.example"), ErrorCode.ORIGIN_NOT_ALLOWED, 403),
        (RendererUnavailable("svelte"), ErrorCode.RENDERER_UNAVAILABLE, 500),
        (ConfigurationError("broken"), ErrorCode.CONFIGURATION_ERROR, 500),
    ],
)
def test_error_codes_and_status(error, code, status):
    """Test each error carries its code and HTTP status."""
    assert isinstance(error, IXPError)
    assert error.code == code
    assert error.status_code == status


@pytest.mark.unit
def test_to_response_envelope():
    """Test wire error envelope."""
    error = IntentNotSupported("show_unicorns")
    body = error.to_response()

    assert set(body) == {"error"}
    assert body["error"]["code"] == "INTENT_NOT_SUPPORTED"
    assert "show_unicorns" in body["error"]["message"]
    assert body["error"]["timestamp"].endswith("Z")
    assert body["error"]["details"] == {"intentName": "show_unicorns"}


@pytest.mark.unit
def test_to_response_omits_missing_details():
    """Test details are omitted when absent."""
    body = IXPError("plain").to_response()
    assert "details" not in body["error"]
    assert body["error"]["code"] == "INTERNAL_ERROR"


@pytest.mark.unit
def test_parameter_validation_collects_missing():
    """Test missing required fields are listed separately."""
    violations = [
        {"path": "category", "message": "Required at 'category'", "keyword": "required"},
        {"path": "limit", "message": "Number at 'limit' must be >= 1", "keyword": "minimum"},
    ]
    error = ParameterValidationFailed(violations)

    assert error.missing == ["category"]
    assert error.details["validationErrors"] == violations
    assert error.details["missing"] == ["category"]
    assert "Required at 'category'" in error.message
    assert error.message.startswith("Parameter validation failed")


@pytest.mark.unit
def test_component_props_code_override():
    """Test props validation reuses the class with its own code."""
    error = ParameterValidationFailed([], subject="Component props", code=ErrorCode.INVALID_COMPONENT_PROPS)
    assert error.code == "INVALID_COMPONENT_PROPS"
    assert error.status_code == 400
    assert error.message.startswith("Component props validation failed")


@pytest.mark.unit
def test_configuration_error_message_prefix():
    """Test configuration errors are labelled."""
    error = ConfigurationError("file missing", details={"path": "/tmp/x.json"})
    assert error.message == "Configuration error: file missing"
    assert error.details == {"path": "/tmp/x.json"}


@pytest.mark.unit
def test_renderer_unavailable_lists_frameworks():
    """Test renderer errors report what is available."""
    error = RendererUnavailable("svelte", ["react", "vue"])
    assert error.framework == "svelte"
    assert error.details == {"framework": "svelte", "available": ["react", "vue"]}


@pytest.mark.unit
def test_from_error_wraps_foreign_exceptions():
    """Test foreign exceptions become INTERNAL_ERROR."""
    wrapped = IXPError.from_error(ValueError("kaput"))
    assert wrapped.code == ErrorCode.INTERNAL_ERROR
    assert wrapped.status_code == 500
    assert wrapped.message == "kaput"
    assert wrapped.details == {"originalError": "ValueError"}


@pytest.mark.unit
def test_from_error_passes_ixp_errors_through():
    """Test IXP errors are returned unchanged."""
    original = ComponentNotFound("Grid", intent_name="show_grid")
    assert IXPError.from_error(original) is original
    assert original.details == {"componentName": "Grid", "intentName": "show_grid"}
