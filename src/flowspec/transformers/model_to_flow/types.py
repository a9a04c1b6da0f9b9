"""
Message declarations: field type strings back to Python annotations.

    string -> str            Array<T> -> list[T]
    number -> float          Record<K, V> -> dict[K, V]
    boolean -> bool          { a: T; b?: U } -> {"a": T, "b": NotRequired[U]}
    Date -> datetime         "x" | "y" -> Literal["x", "y"]
    unknown -> Any           A | B -> A | B
    null -> None             SomeName -> "SomeName"
"""

from __future__ import annotations

import ast
import json
from typing import Any

from ...core.type_strings import (
    array_inner,
    is_object_type,
    is_string_literal,
    parse_object_members,
    record_args,
    split_top_level,
)
from .emit import assign, const, name, subscript

PRIMITIVE_ANNOTATIONS = {
    "string": "str",
    "number": "float",
    "boolean": "bool",
    "Date": "datetime",
    "unknown": "Any",
    "any": "Any",
}

MARKER_FOR_KIND = {"command": "Command", "event": "Event", "state": "State"}


def _literal_value(text: str) -> Any:
    if is_string_literal(text):
        if text[0] == "'":
            return text[1:-1]
        return json.loads(text)
    if text in ("true", "false"):
        return text == "true"
    try:
        return json.loads(text)
    except ValueError:
        return None


def _is_literal(text: str) -> bool:
    if is_string_literal(text) or text in ("true", "false"):
        return True
    try:
        json.loads(text)
    except ValueError:
        return False
    return text != "null"


def _union(parts: list[ast.expr]) -> ast.expr:
    out = parts[0]
    for part in parts[1:]:
        out = ast.BinOp(left=out, op=ast.BitOr(), right=part)
    return out


def object_to_dict(type_str: str) -> ast.Dict:
    keys: list[ast.expr | None] = []
    values: list[ast.expr] = []
    for member, member_type, required in parse_object_members(type_str):
        keys.append(const(member))
        values.append(field_annotation(member_type, required))
    return ast.Dict(keys=keys, values=values)


def type_to_annotation(type_str: str) -> ast.expr:
    """Annotation expression for a model type string."""
    t = type_str.strip()

    parts = split_top_level(t, "|")
    if len(parts) > 1:
        literals = [p for p in parts if _is_literal(p)]
        others = [type_to_annotation(p) for p in parts if not _is_literal(p)]
        members: list[ast.expr] = []
        if literals:
            members.append(subscript(name("Literal"), *(const(_literal_value(p)) for p in literals)))
        return _union(members + others)

    if t in PRIMITIVE_ANNOTATIONS:
        return name(PRIMITIVE_ANNOTATIONS[t])
    if t == "null":
        return const(None)
    if _is_literal(t):
        return subscript(name("Literal"), const(_literal_value(t)))

    inner = array_inner(t)
    if inner is not None:
        return subscript(name("list"), type_to_annotation(inner))
    record = record_args(t)
    if record is not None:
        return subscript(name("dict"), type_to_annotation(record[0]), type_to_annotation(record[1]))
    if is_object_type(t):
        return object_to_dict(t)

    # Named or generic types are forward references
    return const(t) if t else name("Any")


def field_annotation(type_str: str, required: bool = True) -> ast.expr:
    annotation = type_to_annotation(type_str)
    return annotation if required else subscript(name("NotRequired"), annotation)


def message_declaration(message: Any, ident: str) -> ast.Assign:
    """``Ident = Command["Name", {"field": annotation, ...}]``"""
    marker = name(MARKER_FOR_KIND[message.type])
    items: list[ast.expr] = [const(message.name)]
    if message.fields:
        items.append(
            ast.Dict(
                keys=[const(f.name) for f in message.fields],
                values=[field_annotation(f.type, f.required) for f in message.fields],
            )
        )
    return assign(ident, subscript(marker, *items))
