"""
JSON Codec
orjson for the hot path, msgspec and the stdlib for what orjson refuses.
"""

import json
from typing import Any

import msgspec
import orjson


class JSONParseError(Exception):
    """JSON could not be decoded or exceeds a configured limit."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


_encoder = msgspec.json.Encoder()

# Characters that must not appear raw inside an inline <script> element
_SCRIPT_ESCAPES = {
    ord("<"): "\\u003c",
    ord(">"): "\\u003e",
    ord("&"): "\\u0026",
    0x2028: "\\u2028",
    0x2029: "\\u2029",
}


def loads(data: bytes | str) -> Any:
    """
    Decode a JSON document (definition files, request bodies, query values).

    Raises:
        JSONParseError: If the document is not valid JSON
    """
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e) from e


def safe_json_dumps(obj: Any, pretty: bool = False) -> str:
    """
    Encode to JSON text, compact unless `pretty`.

    orjson covers almost everything; integers beyond 64 bits and unusual
    types fall through to msgspec, then to the stdlib with `str()` for
    anything still unencodable.
    """
    try:
        return orjson.dumps(obj, option=orjson.OPT_INDENT_2 if pretty else 0).decode("utf-8")
    except TypeError:
        pass

    try:
        encoded = _encoder.encode(obj)
        return (msgspec.json.format(encoded, indent=2) if pretty else encoded).decode("utf-8")
    except (TypeError, OverflowError):
        pass

    return json.dumps(obj, indent=2 if pretty else None, separators=None if pretty else (",", ":"), default=str)


def script_json(obj: Any) -> str:
    """JSON text safe to inline inside a `<script>` element."""
    return safe_json_dumps(obj).translate(_SCRIPT_ESCAPES)


def validate_json_size(data: Any, max_size: int, name: str = "JSON") -> None:
    """
    Reject payloads whose encoded size exceeds `max_size` bytes.

    Raises:
        JSONParseError: If size exceeds limit
    """
    encoded = data if isinstance(data, str) else safe_json_dumps(data)
    size = len(encoded.encode("utf-8"))
    if size > max_size:
        raise JSONParseError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def validate_json_depth(obj: Any, max_depth: int = 20) -> None:
    """
    Reject containers nested deeper than `max_depth`.

    Raises:
        JSONParseError: If depth exceeds limit
    """
    stack: list[tuple[Any, int]] = [(obj, 0)]
    while stack:
        value, depth = stack.pop()
        if depth > max_depth:
            raise JSONParseError(f"JSON nesting depth {depth} exceeds maximum {max_depth}")
        if isinstance(value, dict):
            stack.extend((child, depth + 1) for child in value.values())
        elif isinstance(value, list):
            stack.extend((child, depth + 1) for child in value)
