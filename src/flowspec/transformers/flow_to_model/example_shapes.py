"""
Structural field types inferred from example payloads.

Examples often carry richer shapes than the declared field types (a list of
dicts where the declaration only says ``list``). Hints collected here upgrade
weak field types once every example has been seen.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from ...core.model import MessageField

# message name -> field name -> structural type string
ExampleShapeHints = dict[str, dict[str, str]]


def _primitive_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (datetime, date)):
        return "Date"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    return "unknown"


def type_from_example(value: Any) -> str:
    """
    Structural type string of an example value.

    Lists take the type of their first element; dicts become object types.
    """
    if isinstance(value, (list, tuple)):
        inner = type_from_example(value[0]) if value else "unknown"
        return f"Array<{inner}>"
    if isinstance(value, Mapping):
        entries = "; ".join(f"{k}: {type_from_example(v)}" for k, v in value.items())
        return f"{{ {entries} }}"
    return _primitive_of(value)


def is_structural(type_str: str) -> bool:
    t = type_str.strip()
    return t.startswith("{") or t.startswith("Array<{")


def should_apply_example_shape(current: str, inferred: str) -> bool:
    """
    Whether ``inferred`` should replace ``current``.

    Unions are never narrowed to a single type; otherwise only a structural
    type replaces a non-structural one. The rule is one-directional so
    repeated runs converge on the same field types.
    """
    if " | " in current and " | " not in inferred:
        return False
    return not is_structural(current) and is_structural(inferred)


def collect_example_hints(message_name: str, example_data: Any, hints: ExampleShapeHints) -> None:
    if not isinstance(example_data, Mapping):
        return
    by_field = hints.setdefault(message_name, {})
    for key, value in example_data.items():
        inferred = type_from_example(value)
        existing = by_field.get(key)
        if existing is None or should_apply_example_shape(existing, inferred):
            by_field[key] = inferred


def apply_example_shape_hints(messages: Mapping[str, Any], hints: ExampleShapeHints) -> None:
    """Upgrade message field types in place where a hint is more structural."""
    for message_name, by_field in hints.items():
        message = messages.get(message_name)
        if message is None:
            continue
        upgraded: list[MessageField] = []
        for f in message.fields:
            hint = by_field.get(f.name)
            if hint is not None and should_apply_example_shape(f.type, hint):
                f = f.model_copy(update={"type": hint})
            upgraded.append(f)
        message.fields = upgraded
