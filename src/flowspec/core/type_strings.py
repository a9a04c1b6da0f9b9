"""
Language-neutral field type strings.

Message fields in the Model carry their type as a small textual type language
shared with downstream tooling:

    string | number | boolean | Date | unknown | null
    Array<T>            Record<K, V>          { a: T; b?: U }
    A | B               "literal"             SomeTypeName

This module converts Python annotation ASTs into that language and offers the
string helpers used by inference, inlining and code generation.
"""

from __future__ import annotations

import ast
import json
import re
import types
from typing import Literal, NotRequired, Required, Union, get_args, get_origin

PRIMITIVES = frozenset({"string", "number", "boolean", "Date", "unknown", "any", "null"})

_NAME_MAP = {
    "str": "string",
    "bytes": "string",
    "UUID": "string",
    "int": "number",
    "float": "number",
    "complex": "number",
    "Decimal": "number",
    "bool": "boolean",
    "datetime": "Date",
    "date": "Date",
    "time": "Date",
    "Any": "unknown",
    "object": "unknown",
    "None": "null",
    "NoneType": "null",
}

_SEQUENCE_NAMES = frozenset(
    {"list", "List", "Sequence", "MutableSequence", "Iterable", "Collection", "set", "Set",
     "frozenset", "FrozenSet", "AbstractSet", "tuple", "Tuple"}
)
_MAPPING_NAMES = frozenset({"dict", "Dict", "Mapping", "MutableMapping", "OrderedDict", "defaultdict"})
_WRAPPER_NAMES = frozenset({"Required", "NotRequired", "ReadOnly", "Final", "ClassVar"})

IDENT_RE = re.compile(r"^[A-Za-z_]\w*$")


def _leaf_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _subscript_args(node: ast.Subscript) -> list[ast.expr]:
    sl = node.slice
    if isinstance(sl, ast.Tuple):
        return list(sl.elts)
    return [sl]


def _literal_text(value: object) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return repr(value)


def _join_union(parts: list[str]) -> str:
    seen: list[str] = []
    for part in parts:
        for piece in split_top_level(part, "|"):
            if piece not in seen:
                seen.append(piece)
    return " | ".join(seen)


def unwrap_field_annotation(node: ast.expr) -> tuple[ast.expr, bool]:
    """
    Strip ``NotRequired``/``Required`` style wrappers from a field annotation.

    Returns:
        The inner annotation and whether the field is required
    """
    required = True
    while isinstance(node, ast.Subscript) and _leaf_name(node.value) in _WRAPPER_NAMES:
        if _leaf_name(node.value) == "NotRequired":
            required = False
        node = _subscript_args(node)[0]
    return node, required


def annotation_to_type(node: ast.expr | None) -> str:
    """Convert a Python annotation AST into a model type string."""
    if node is None:
        return "unknown"

    if isinstance(node, ast.Constant):
        if node.value is None:
            return "null"
        if isinstance(node.value, str):
            # Forward reference: parse the string as an annotation
            try:
                inner = ast.parse(node.value, mode="eval").body
            except SyntaxError:
                return node.value
            return annotation_to_type(inner)
        if node.value is Ellipsis:
            return "unknown"
        return _literal_text(node.value)

    if isinstance(node, (ast.Name, ast.Attribute)):
        name = _leaf_name(node) or "unknown"
        if name in _NAME_MAP:
            return _NAME_MAP[name]
        if name in _SEQUENCE_NAMES:
            return "Array<unknown>"
        if name in _MAPPING_NAMES:
            return "Record<string, unknown>"
        return name

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _join_union([annotation_to_type(node.left), annotation_to_type(node.right)])

    if isinstance(node, ast.Dict):
        return dict_to_type(node)

    if isinstance(node, ast.List):
        # Callable-style argument lists are not field types
        return "unknown"

    if isinstance(node, ast.Subscript):
        return _subscript_to_type(node)

    return "unknown"


def _subscript_to_type(node: ast.Subscript) -> str:
    name = _leaf_name(node.value) or ""
    args = _subscript_args(node)

    if name in _WRAPPER_NAMES:
        return annotation_to_type(args[0])
    if name == "Annotated":
        return annotation_to_type(args[0])
    if name == "Optional":
        return _join_union([annotation_to_type(args[0]), "null"])
    if name == "Union":
        return _join_union([annotation_to_type(a) for a in args])
    if name == "Literal":
        values = [
            _literal_text(a.value) if isinstance(a, ast.Constant) else annotation_to_type(a)
            for a in args
        ]
        return _join_union(values)
    if name in _SEQUENCE_NAMES:
        if name in ("tuple", "Tuple"):
            items = [a for a in args if not (isinstance(a, ast.Constant) and a.value is Ellipsis)]
            inner = _join_union([annotation_to_type(a) for a in items]) if items else "unknown"
        else:
            inner = annotation_to_type(args[0])
        return f"Array<{inner}>"
    if name in _MAPPING_NAMES:
        if len(args) == 2:
            return f"Record<{annotation_to_type(args[0])}, {annotation_to_type(args[1])}>"
        return "Record<string, unknown>"
    inner = ", ".join(annotation_to_type(a) for a in args)
    return f"{name}<{inner}>" if name else "unknown"


def dict_to_type(node: ast.Dict) -> str:
    """Convert an inline ``{"a": str, "b": NotRequired[int]}`` into ``{ a: string; b?: number }``."""
    parts = []
    for key, value in zip(node.keys, node.values, strict=True):
        if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
            continue
        inner, required = unwrap_field_annotation(value)
        parts.append(f"{key.value}{'' if required else '?'}: {annotation_to_type(inner)}")
    if not parts:
        return "{}"
    return "{ " + "; ".join(parts) + " }"


# =============================================================================
# String helpers
# =============================================================================


def split_top_level(text: str, delim: str) -> list[str]:
    """Split ``text`` on ``delim`` outside of ``{}``, ``<>``, ``[]`` and quotes."""
    out: list[str] = []
    depth = 0
    quote: str | None = None
    cur: list[str] = []
    for ch in text:
        if quote:
            cur.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch in "{<[":
            depth += 1
        elif ch in "}>]":
            depth -= 1
        if ch == delim and depth == 0:
            piece = "".join(cur).strip()
            if piece:
                out.append(piece)
            cur = []
        else:
            cur.append(ch)
    piece = "".join(cur).strip()
    if piece:
        out.append(piece)
    return out


def is_primitive(type_str: str) -> bool:
    return type_str.strip() in PRIMITIVES


def _encloses(t: str, open_ch: str, close_ch: str, start: int) -> bool:
    """True when the bracket at ``start`` closes at the last character."""
    depth = 0
    for i in range(start, len(t)):
        if t[i] == open_ch:
            depth += 1
        elif t[i] == close_ch:
            depth -= 1
            if depth == 0:
                return i == len(t) - 1
    return False


def is_object_type(type_str: str) -> bool:
    t = type_str.strip()
    return t.startswith("{") and t.endswith("}") and _encloses(t, "{", "}", 0)


def array_inner(type_str: str) -> str | None:
    """Return ``T`` for ``Array<T>``, else None."""
    t = type_str.strip()
    if t.startswith("Array<") and _encloses(t, "<", ">", len("Array")):
        return t[len("Array<") : -1].strip()
    return None


def record_args(type_str: str) -> tuple[str, str] | None:
    t = type_str.strip()
    if t.startswith("Record<") and _encloses(t, "<", ">", len("Record")):
        parts = split_top_level(t[len("Record<") : -1], ",")
        if len(parts) == 2:
            return parts[0], parts[1]
    return None


def parse_object_members(type_str: str) -> list[tuple[str, str, bool]]:
    """
    Parse ``{ a: T; b?: U }`` into ``[(name, type, required), ...]``.

    Both ``;`` and ``,`` are accepted as member separators.
    """
    t = type_str.strip()
    if not is_object_type(t):
        return []
    body = t[1:-1].strip()
    if not body:
        return []
    members: list[tuple[str, str, bool]] = []
    for chunk in split_top_level(body, ";"):
        for part in split_top_level(chunk, ","):
            name, sep, rest = part.partition(":")
            if not sep:
                continue
            name = name.strip().strip("'\"")
            required = True
            if name.endswith("?"):
                name = name[:-1]
                required = False
            members.append((name, rest.strip(), required))
    return members


def is_string_literal(type_str: str) -> bool:
    t = type_str.strip()
    return len(t) >= 2 and t[0] == t[-1] and t[0] in ("'", '"')


def referenced_names(type_str: str) -> list[str]:
    """Identifiers in a type string that are not primitives or structural keywords."""
    names: list[str] = []
    for token in re.findall(r'"(?:[^"\\]|\\.)*"|\'[^\']*\'|[A-Za-z_]\w*\b(?!\s*\??\s*:)', type_str):
        if token[0] in "'\"":
            continue
        if token in PRIMITIVES or token in ("Array", "Record", "true", "false"):
            continue
        if token not in names:
            names.append(token)
    return names


# =============================================================================
# Runtime annotations
# =============================================================================


def runtime_field_type(value: object) -> tuple[str, bool]:
    """
    Convert a runtime annotation object (``str``, ``list[int]``,
    ``NotRequired[str]``, an inline dict) into ``(type string, required)``.
    """
    origin = get_origin(value)
    if origin is NotRequired:
        return runtime_field_type(get_args(value)[0])[0], False
    if origin is Required:
        return runtime_field_type(get_args(value)[0])[0], True
    return _runtime_type(value), True


def _runtime_type(value: object) -> str:
    if value is None or value is type(None):
        return "null"
    if isinstance(value, str):
        try:
            return annotation_to_type(ast.parse(value, mode="eval").body)
        except SyntaxError:
            return value
    if isinstance(value, dict):
        parts = []
        for key, inner in value.items():
            type_str, required = runtime_field_type(inner)
            parts.append(f"{key}{'' if required else '?'}: {type_str}")
        return "{ " + "; ".join(parts) + " }" if parts else "{}"

    origin = get_origin(value)
    args = get_args(value)
    if origin is Union or origin is types.UnionType:
        return _join_union([_runtime_type(a) for a in args])
    if origin is Literal:
        return _join_union([_literal_text(a) for a in args])
    if origin is not None:
        name = getattr(origin, "__name__", "")
        if name in _SEQUENCE_NAMES:
            return f"Array<{_runtime_type(args[0]) if args else 'unknown'}>"
        if name in _MAPPING_NAMES:
            if len(args) == 2:
                return f"Record<{_runtime_type(args[0])}, {_runtime_type(args[1])}>"
            return "Record<string, unknown>"
        return "unknown"

    name = getattr(value, "__name__", None)
    if name is None:
        return "unknown"
    return annotation_to_type(ast.Name(id=name))
