"""
Shared utilities for the declaration generators.
Handles schema-to-TypeScript type mapping and doc comment rendering.
"""
from typing import Any, List, Optional

# --- Type Mapping ---
PROTO_TO_TS_TYPE = {
    'double': 'number',
    'float': 'number',
    'int32': 'number',
    'int64': 'number',
    'uint32': 'number',
    'uint64': 'number',
    'sint32': 'number',
    'sint64': 'number',
    'fixed32': 'number',
    'fixed64': 'number',
    'sfixed32': 'number',
    'sfixed64': 'number',
    'bool': 'boolean',
    'string': 'string',
    'bytes': 'string',
}

THRIFT_TO_TS_TYPE = {
    'bool': 'boolean',
    'byte': 'number',
    'i8': 'number',
    'i16': 'number',
    'i32': 'number',
    'i64': 'number',
    'double': 'number',
    'string': 'string',
    'binary': 'string',
}


def strip_leading_dot(type_name: str) -> str:
    return type_name[1:] if type_name and type_name.startswith('.') else type_name


def map_key_type(ts_type: str) -> str:
    """Record keys can only be numbers or strings."""
    return 'number' if ts_type == 'number' else 'string'


def array_of(ts_type: str) -> str:
    return f"{ts_type}[]"


def record_of(key_ts: str, value_ts: str) -> str:
    return f"Record<{map_key_type(key_ts)}, {value_ts}>"


def type_mapping(type_name: str, repeated: bool = False, key_type: Optional[str] = None) -> str:
    """Map a proto field type to a TypeScript type string."""
    ts_type = PROTO_TO_TS_TYPE.get(type_name, strip_leading_dot(type_name))
    if key_type is not None:
        return record_of(PROTO_TO_TS_TYPE.get(key_type, 'string'), ts_type)
    if repeated:
        return array_of(ts_type)
    return ts_type


def thrift_type_mapping(type_name: str) -> str:
    return THRIFT_TO_TS_TYPE.get(type_name, type_name)


# --- Comments ---
def format_default_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, str):
        return value
    return repr(value)


def attach_comment(line: str, comment: Optional[str] = None, default_value: Optional[Any] = None,
                   indent: str = "") -> List[str]:
    """
    Prefix a declaration line with a JSDoc block when there is a comment or default value.
    Returns the lines to emit, all indented with indent.
    """
    doc_lines = [l for l in (comment or "").strip().splitlines()]
    if default_value is not None:
        doc_lines.append(f"@default {format_default_value(default_value)}")
    if not doc_lines:
        return [f"{indent}{line}"]
    if len(doc_lines) == 1:
        return [f"{indent}/** {doc_lines[0]} */", f"{indent}{line}"]
    lines = [f"{indent}/**"]
    for doc_line in doc_lines:
        lines.append(f"{indent} * {doc_line}".rstrip())
    lines.append(f"{indent} */")
    lines.append(f"{indent}{line}")
    return lines
