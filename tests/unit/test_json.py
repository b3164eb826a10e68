"""JSON helper tests."""

import pytest
from hypothesis import given, strategies as st

from ixp.core.json import (
    JSONParseError,
    loads,
    safe_json_dumps,
    script_json,
    validate_json_depth,
    validate_json_size,
)

safe_text = st.text(alphabet=st.characters(blacklist_categories=("Cs",)))


@pytest.mark.unit
def test_loads_decodes_bytes_and_text():
    """Test both bytes and str are accepted."""
    assert loads(b'{"a": 1}') == {"a": 1}
    assert loads('[1, 2]') == [1, 2]


@pytest.mark.unit
def test_loads_rejects_invalid_json():
    """Test invalid documents raise JSONParseError."""
    with pytest.raises(JSONParseError) as exc_info:
        loads("{not json")
    assert exc_info.value.original is not None


@pytest.mark.unit
def test_safe_json_dumps_compact():
    """Test compact encoding."""
    assert safe_json_dumps({"a": [1, 2]}) == '{"a":[1,2]}'


@pytest.mark.unit
def test_script_json_cannot_close_script_element():
    """Test HTML-significant characters are escaped."""
    encoded = script_json({"title": "</script><script>alert(1)</script>"})
    assert "</script>" not in encoded
    assert "<" not in encoded
    assert "\\u003c/script\\u003e" in encoded


@pytest.mark.unit
def test_script_json_escapes_line_separators():
    """Test U+2028 and U+2029 do not appear raw."""
    encoded = script_json({"text": "a\u2028b\u2029c"})
    assert "\u2028" not in encoded
    assert "\u2029" not in encoded
    assert loads(encoded) == {"text": "a\u2028b\u2029c"}


@pytest.mark.unit
@given(st.dictionaries(safe_text, st.one_of(safe_text, st.integers(min_value=-(2**53), max_value=2**53), st.booleans(), st.none())))
def test_script_json_preserves_value(data):
    """Test escaping never changes the decoded value."""
    encoded = script_json(data)
    assert loads(encoded) == data
    assert not any(ch in encoded for ch in "<>&")


@pytest.mark.unit
def test_validate_json_size():
    """Test JSON size validation."""
    validate_json_size({"test": "data"}, 1000)

    with pytest.raises(JSONParseError):
        validate_json_size({"blob": "x" * 2000}, 1000)

    with pytest.raises(JSONParseError):
        validate_json_size("x" * 2000, 1000)


@pytest.mark.unit
def test_validate_json_depth():
    """Test JSON depth validation."""
    validate_json_depth({"a": {"b": {"c": 1}}}, max_depth=5)

    deep: dict = {}
    current = deep
    for _ in range(10):
        current["next"] = {}
        current = current["next"]

    with pytest.raises(JSONParseError):
        validate_json_depth(deep, max_depth=5)


@pytest.mark.unit
def test_safe_json_dumps_pretty():
    """Test indented encoding decodes to the same value."""
    text = safe_json_dumps({"a": {"b": [1, 2]}}, pretty=True)
    assert "\n" in text
    assert loads(text) == {"a": {"b": [1, 2]}}


@pytest.mark.unit
def test_safe_json_dumps_falls_back_for_unknown_types():
    """Test objects orjson cannot encode are stringified."""
    class Token:
        def __str__(self):
            return "tok-1"

    assert loads(safe_json_dumps({"token": Token()})) == {"token": "tok-1"}
