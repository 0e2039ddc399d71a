import json
from typing import Any, Dict

from .constants import NESTED_FIELD_DELIMITER
from .exceptions import MalformedObjectError


def _reject_constant(name: str):
    # json.loads accepts NaN/Infinity by default; they are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_object(text: str) -> Dict[str, Any]:
    """
    Parse one scanned object text.

    Raises:
        MalformedObjectError: If the text is not a valid JSON object
    """
    try:
        obj = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise MalformedObjectError(f"Invalid JSON object: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedObjectError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


def serialize_array(value: list) -> str:
    """Compact JSON text for an array cell, e.g. ["x","y"]"""
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def flatten_json_object(obj: Dict[str, Any], parent_key: str = '', delimiter: str = NESTED_FIELD_DELIMITER) -> Dict[str, Any]:
    """
    Recursively flatten a nested JSON object into a flat row.

    Nested objects are merged into the same row with their keys joined by the
    delimiter. Arrays are never recursed into: the whole array is stored as
    compact JSON text in a single cell. Scalars (str, int, float, bool) and
    None are copied as-is; booleans only become 0/1 when a row is inserted.

    Args:
        obj: A parsed JSON object
        parent_key: The key path of `obj` (used in recursion)
        delimiter: The delimiter used to join nested keys

    Returns:
        A flat dictionary of key path -> scalar value

    Examples:
        >>> flatten_json_object({"a": {"b": 1, "c": {"d": 2}}})
        {'a_b': 1, 'a_c_d': 2}

        >>> flatten_json_object({"tags": ["x", "y"]})
        {'tags': '["x","y"]'}
    """
    items = {}

    for key, value in obj.items():
        new_key = f"{parent_key}{delimiter}{key}" if parent_key else key

        if value is None:
            items[new_key] = None
        elif isinstance(value, dict):
            # Colliding paths from sibling branches: last write wins
            items.update(flatten_json_object(value, new_key, delimiter))
        elif isinstance(value, list):
            items[new_key] = serialize_array(value)
        else:
            items[new_key] = value

    return items
