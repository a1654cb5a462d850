"""
Value Serialization - JSON conversion for parsed value trees.

Dependencies are kept to json (stdlib) and the value classes from
whowlang.parser.parser, so consumers can serialize results without
pulling in the CLI or configuration layers.

Two forms are supported:
- plain: values become ordinary JSON (strings, numbers, booleans, null, arrays, objects)
- typed: every value is tagged with '_type' so Int/Float and nesting survive a round trip

Usage:
    from whowlang.parser.value_serde import serialize_values, deserialize_values
"""

import json
from typing import Any, Dict, Optional, Union

from whowlang.parser.parser import (
    Value,
    StringValue,
    IntValue,
    FloatValue,
    BoolValue,
    NullValue,
    ArrayValue,
    TableValue,
)


def to_plain(values: Dict[str, Value]) -> Dict[str, Any]:
    """Convert a parsed mapping to plain JSON-compatible data."""
    return {key: value.to_python() for key, value in values.items()}


def to_typed(values: Dict[str, Value]) -> Dict[str, Any]:
    """Convert a parsed mapping to the typed, '_type'-tagged form."""
    return {key: value.to_dict() for key, value in values.items()}


def serialize_values(
    values: Dict[str, Value],
    typed: bool = False,
    indent: Optional[int] = None,
    sort_keys: bool = False,
) -> bytes:
    """
    Serialize a parsed mapping to JSON bytes.

    Args:
        values: Mapping returned by the parser
        typed: Emit the '_type'-tagged form instead of plain JSON
        indent: JSON indentation, or None for compact output
        sort_keys: Sort object keys

    Returns:
        UTF-8 encoded JSON bytes
    """
    data = to_typed(values) if typed else to_plain(values)
    return _dump_json(data, indent, sort_keys)


def serialize_documents(
    documents: Dict[str, Dict[str, Value]],
    typed: bool = False,
    indent: Optional[int] = None,
    sort_keys: bool = False,
) -> bytes:
    """Serialize several parsed mappings as one JSON object keyed by document name."""
    convert = to_typed if typed else to_plain
    data = {name: convert(values) for name, values in documents.items()}
    return _dump_json(data, indent, sort_keys)


def _dump_json(data: Any, indent: Optional[int], sort_keys: bool) -> bytes:
    separators = (',', ':') if indent is None else None
    return json.dumps(
        data,
        indent=indent,
        sort_keys=sort_keys,
        separators=separators,
        ensure_ascii=False,
    ).encode('utf-8')


def value_from_dict(data: Dict[str, Any]) -> Value:
    """Rebuild a single value from its typed dict form. Raises ValueError on malformed input."""
    if not isinstance(data, dict):
        raise ValueError(f"Expected a typed value object, got {type(data).__name__}")
    value_type = data.get('_type')

    try:
        if value_type == 'string':
            return StringValue(data['value'])
        elif value_type == 'int':
            return IntValue(data['value'])
        elif value_type == 'float':
            return FloatValue(float(data['value']))
        elif value_type == 'bool':
            return BoolValue(data['value'])
        elif value_type == 'null':
            return NullValue()
        elif value_type == 'array':
            items = data['items']
            if not isinstance(items, list):
                raise ValueError("Typed array 'items' must be a list")
            return ArrayValue([value_from_dict(item) for item in items])
        elif value_type == 'table':
            entries = data['entries']
            if not isinstance(entries, dict):
                raise ValueError("Typed table 'entries' must be an object")
            return TableValue({key: value_from_dict(v) for key, v in entries.items()})
    except KeyError as e:
        raise ValueError(f"Typed {value_type} value is missing {e.args[0]!r}") from None
    except TypeError as e:
        raise ValueError(f"Malformed typed {value_type} value: {e}") from None
    raise ValueError(f"Unknown value type {value_type!r}")


def deserialize_values(data: Union[bytes, str]) -> Dict[str, Value]:
    """
    Deserialize a typed JSON document back into a value mapping.

    Args:
        data: JSON bytes or string produced by serialize_values(..., typed=True)

    Returns:
        Dict of key -> Value
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    raw = json.loads(data)
    if not isinstance(raw, dict):
        raise ValueError("Typed document must be a JSON object")
    return {key: value_from_dict(value) for key, value in raw.items()}


def count_values(values: Dict[str, Value]) -> int:
    """
    Count value nodes in a parsed mapping, including nested ones.

    Args:
        values: Mapping returned by the parser

    Returns:
        Total value count
    """
    def count(value: Value) -> int:
        if isinstance(value, ArrayValue):
            return 1 + sum(count(item) for item in value.items)
        if isinstance(value, TableValue):
            return 1 + sum(count(v) for v in value.entries.values())
        return 1

    return sum(count(value) for value in values.values())
