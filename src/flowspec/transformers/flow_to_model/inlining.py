"""
Inline named field types into structural ones.

A field typed ``Array<Product>`` where ``Product`` is a known shape becomes
``Array<{ id: string; price: number }>`` so the Model stands on its own.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...core.type_extractor import DataField
from ...core.type_strings import IDENT_RE, array_inner, is_object_type, split_top_level

ShapeLookup = Mapping[str, list[DataField]]

_UNTOUCHED = frozenset({"string", "number", "boolean", "Date", "unknown", "any"})


def _inline_identifier(name: str, lookup: ShapeLookup, seen: set[str]) -> str | None:
    # cyclic shapes stay named
    if name in seen:
        return None
    seen.add(name)
    fields = lookup.get(name)
    if not fields:
        return None
    parts = []
    for f in fields:
        nested = inline_type_string(f.type, lookup, seen)
        parts.append(f"{f.name}{'' if f.required else '?'}: {nested or f.type}")
    return "{ " + "; ".join(parts) + " }"


def inline_type_string(type_str: str, lookup: ShapeLookup, seen: set[str] | None = None) -> str | None:
    """
    Return the inlined form of ``type_str``, or None if nothing changes.

    ``unknown`` members of a multi-part union are rewritten to ``null``.
    """
    seen = set() if seen is None else seen
    t = type_str.strip()

    inner = array_inner(t)
    if inner is not None:
        inlined = inline_type_string(inner, lookup, seen)
        return f"Array<{inlined}>" if inlined is not None else None

    if t in _UNTOUCHED or is_object_type(t):
        return None

    parts = split_top_level(t, "|")
    if len(parts) > 1:
        out = []
        for part in parts:
            if part in _UNTOUCHED or part == "null":
                out.append(part)
            else:
                out.append(inline_type_string(part, lookup, seen) or part)
        if "unknown" in out:
            out = ["null" if p == "unknown" else p for p in out]
        result = " | ".join(out)
        return result if result != t else None

    if IDENT_RE.match(t):
        return _inline_identifier(t, lookup, seen)
    return None


def inline_all_message_field_types(messages: Mapping[str, Any], lookup: ShapeLookup) -> None:
    """Inline every message field type in place."""
    for message in messages.values():
        fields = []
        for f in message.fields:
            inlined = inline_type_string(f.type, lookup)
            fields.append(f.model_copy(update={"type": inlined}) if inlined is not None else f)
        message.fields = fields
