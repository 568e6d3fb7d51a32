"""
JSON decoding and typed field extraction.

Upstream payloads are loosely typed. Every lookup here checks the shape it
walks through and raises ExtractError on mismatch instead of failing with a
KeyError or TypeError deep inside a mapper.
"""
import json
import re
from typing import Any, Dict, List, Sequence

from .errors import ExtractError, ParseError, PathElement

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -2 ** 63
_INT64_MAX = 2 ** 63 - 1
_MAX_INT_DIGITS = 64


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def parse(raw: bytes) -> Any:
    """Decode a response body into a JSON tree."""
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"invalid JSON: {e}") from e


def json_type(value: Any) -> str:
    """Name ``value`` by its JSON type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _walk(tree: Any, path: Sequence[PathElement]) -> Any:
    node = tree
    for depth, element in enumerate(path):
        walked = path[:depth + 1]
        if isinstance(element, int):
            if not isinstance(node, list):
                raise ExtractError(walked, "array", json_type(node))
            if not -len(node) <= element < len(node):
                raise ExtractError(walked, "array element", "missing")
        else:
            if not isinstance(node, dict):
                raise ExtractError(walked, "object", json_type(node))
            if element not in node:
                raise ExtractError(walked, "value", "missing")
        node = node[element]
    return node


def extract_number(tree: Any, *path: PathElement) -> float:
    value = _walk(tree, path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ExtractError(path, "number", json_type(value))
    try:
        return float(value)
    except OverflowError:
        raise ExtractError(path, "number", "out of range number")


def extract_string(tree: Any, *path: PathElement) -> str:
    value = _walk(tree, path)
    if not isinstance(value, str):
        raise ExtractError(path, "string", json_type(value))
    return value


def extract_object(tree: Any, *path: PathElement) -> Dict[str, Any]:
    value = _walk(tree, path)
    if not isinstance(value, dict):
        raise ExtractError(path, "object", json_type(value))
    return value


def extract_array(tree: Any, *path: PathElement) -> List[Any]:
    value = _walk(tree, path)
    if not isinstance(value, list):
        raise ExtractError(path, "array", json_type(value))
    return value


def extract_array_length(tree: Any, *path: PathElement) -> int:
    return len(extract_array(tree, *path))


def extract_count(tree: Any, *path: PathElement) -> int:
    """
    Read a count that must be present as a string or an integer.

    The key and its type are checked; the string contents are not, see
    parse_int_or_zero.
    """
    value = _walk(tree, path)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ExtractError(path, "string or integer", json_type(value))
    return parse_int_or_zero(value)


def parse_int_or_zero(value: Any) -> int:
    """
    Read a count the API encodes as a decimal string.

    Integers pass through. Unparsable strings, values outside the signed
    64-bit range and any other type become 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        # Bounds the work int() does; the range check decides
        if len(value) > _MAX_INT_DIGITS or not _INTEGER.fullmatch(value):
            return 0
        try:
            value = int(value)
        except ValueError:
            return 0
    if not isinstance(value, int):
        return 0
    if not _INT64_MIN <= value <= _INT64_MAX:
        return 0
    return value
