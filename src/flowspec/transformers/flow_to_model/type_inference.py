"""
Resolution of the ``InferredType`` placeholder.

Untyped example data is recorded under the placeholder name; this module
picks the declared message type the data belongs to.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ...core.type_extractor import INFERRED_TYPE, Classification, TypeInfo
from ...core.type_strings import is_object_type, parse_object_members

logger = logging.getLogger(__name__)

# Ranks for structural matches; lower is better
EXACT_MATCH = 0
SUPERSET_MATCH = 1


def _data_field_keys(info: TypeInfo) -> set[str] | None:
    """Keys of an envelope ``data: { ... }`` field, if the type has one."""
    data = next((f for f in info.data_fields if f.name == "data"), None)
    if data is None or not is_object_type(data.type):
        return None
    return {name for name, _, _ in parse_object_members(data.type)}


def _match_rank(info: TypeInfo, example_keys: set[str]) -> int | None:
    """Structural match rank of ``example_keys`` against ``info``, or None.

    Empty example data and field-less types never match.
    """
    if not example_keys:
        return None
    inner = _data_field_keys(info)
    if inner and example_keys <= inner:
        return EXACT_MATCH if example_keys == inner else SUPERSET_MATCH
    fields = set(info.field_names)
    if fields and example_keys <= fields:
        return EXACT_MATCH if example_keys == fields else SUPERSET_MATCH
    return None


def _structural_match(candidates: list[TypeInfo], example_data: Mapping[str, Any]) -> TypeInfo | None:
    keys = set(example_data)
    ranked = [(rank, info) for info in candidates if (rank := _match_rank(info, keys)) is not None]
    if not ranked:
        return None
    best = min(rank for rank, _ in ranked)
    winners = [info for rank, info in ranked if rank == best]
    if len(winners) > 1:
        logger.debug(
            "Ambiguous match for keys %s: %s; using %s",
            sorted(keys),
            [w.string_literal for w in winners],
            winners[0].string_literal,
        )
    return winners[0]


def resolve_inferred_type(
    name: str,
    expected: Classification | str | None,
    example_data: Any,
    types: Mapping[str, TypeInfo] | None,
) -> str:
    """
    Return the message name ``name`` stands for.

    Names other than the placeholder are returned unchanged. Candidates are
    filtered by ``expected`` first; a single candidate wins outright,
    otherwise the example's keys are matched against each candidate's fields.
    With no match the unfiltered candidates are tried, and failing that the
    placeholder is kept.
    """
    if name != INFERRED_TYPE or not types:
        return name

    everything = [info for info in types.values() if info.string_literal != INFERRED_TYPE]
    data = example_data if isinstance(example_data, Mapping) else {}

    if expected is not None:
        filtered = [info for info in everything if info.classification == expected]
        if len(filtered) == 1:
            return filtered[0].string_literal
        match = _structural_match(filtered, data)
        if match is not None:
            return match.string_literal

    if expected is None and len(everything) == 1:
        return everything[0].string_literal
    match = _structural_match(everything, data)
    if match is not None:
        return match.string_literal

    logger.debug("Could not resolve %s (expected %s, keys %s)", name, expected, sorted(data))
    return name


def create_type_resolver(
    flow_types: Mapping[str, TypeInfo],
    union_types: Mapping[str, TypeInfo],
):
    """
    Resolver that looks in the flow's own types first, then in every type
    of the build.
    """

    def resolve(name: str, expected: Classification | str | None, example_data: Any) -> tuple[str, TypeInfo | None]:
        resolved = resolve_inferred_type(name, expected, example_data, flow_types)
        if resolved == INFERRED_TYPE and union_types:
            resolved = resolve_inferred_type(name, expected, example_data, union_types)
        info = flow_types.get(resolved) or union_types.get(resolved)
        return resolved, info

    return resolve
