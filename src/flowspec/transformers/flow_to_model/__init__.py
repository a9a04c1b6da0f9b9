"""
Flow -> Model transformation.

Registered flows carry example data and message names as the author wrote
them. The transformer resolves every reference to a declared message type,
builds the message table, collects integrations and returns a Model.

Pipeline:
    1. Messages contributed by registered integrations
    2. Per-flow type lookup (the flow's own file first, then every file)
    3. Given/When/Then processing
    4. Integrations from data items, ``via`` and the registry
    5. Example shape hints, then inlining of named field types
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from ...core import paths
from ...core.model import Flow, Model
from ...core.type_extractor import DataField, TypeInfo
from .assemble import assemble_model
from .example_shapes import apply_example_shape_hints, collect_example_hints
from .inlining import inline_all_message_field_types
from .integrations import IntegrationCollector, collect_flow_integrations
from .messages import create_message, integration_messages, prefer_new_fields
from .spec_processors import ProcessingState, process_flow
from .type_inference import create_type_resolver, resolve_inferred_type

logger = logging.getLogger(__name__)

_FLOW_SUFFIX = re.compile(r"([._-]?flow)?\.py$")


def _normalized(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _file_matches_flow(path: str, flow_name: str) -> bool:
    stem = _FLOW_SUFFIX.sub("", paths.basename(path))
    return _normalized(stem) == _normalized(flow_name)


def _union_types(types_by_file: Mapping[str, Mapping[str, TypeInfo]]) -> dict[str, TypeInfo]:
    union: dict[str, TypeInfo] = {}
    for file_types in types_by_file.values():
        for name, info in file_types.items():
            union.setdefault(name, info)
    return union


def _flow_types(flow: Flow, types_by_file: Mapping[str, Mapping[str, TypeInfo]]) -> Mapping[str, TypeInfo]:
    if flow.source_file and flow.source_file in types_by_file:
        return types_by_file[flow.source_file]
    for path, file_types in types_by_file.items():
        if _file_matches_flow(path, flow.name):
            return file_types
    return {}


def _shape_lookup(
    union: Mapping[str, TypeInfo],
    shapes: Mapping[str, list[DataField]] | None,
) -> dict[str, list[DataField]]:
    lookup = dict(shapes or {})
    for info in union.values():
        if info.data_fields:
            lookup.setdefault(info.string_literal, info.data_fields)
            if info.declared_name:
                lookup.setdefault(info.declared_name, info.data_fields)
    return lookup


def flows_to_model(
    flows: Iterable[Flow],
    types_by_file: Mapping[str, Mapping[str, TypeInfo]] | None = None,
    integrations: Iterable[Any] | None = None,
    export_names: Mapping[str, str] | None = None,
    integration_sources: Mapping[str, str] | None = None,
    shapes: Mapping[str, list[DataField]] | None = None,
) -> Model:
    """
    Transform registered flows into a Model.

    The input flows are copied; the caller's objects are left untouched.

    Args:
        flows: Flows captured by the registry
        types_by_file: Graph path -> declared message types of that file
        integrations: Integration values registered at runtime
        export_names: Integration name -> variable it was exported under
        integration_sources: Integration name -> module it was imported from
        shapes: Plain structural declarations used to inline field types

    Returns:
        The assembled Model; unresolved placeholders are left in place
    """
    flows = [flow.model_copy(deep=True) for flow in flows]
    types_by_file = types_by_file or {}
    registered = list(integrations or [])
    union = _union_types(types_by_file)

    state = ProcessingState(resolve=create_type_resolver({}, union))
    for message in integration_messages(registered):
        state.add_message(message)

    collector = IntegrationCollector(export_names, integration_sources)
    for flow in flows:
        state.resolve = create_type_resolver(_flow_types(flow, types_by_file), union)
        process_flow(flow, state)
        collect_flow_integrations(flow, collector, state)
    for integration in registered:
        collector.add(integration.name)

    apply_example_shape_hints(state.messages, state.hints)
    if union:
        inline_all_message_field_types(state.messages, _shape_lookup(union, shapes))

    model = assemble_model(flows, state.messages, list(collector.integrations.values()))
    logger.debug(
        "flows_to_model: flows=%d messages=%d integrations=%d",
        len(model.flows),
        len(model.messages),
        len(model.integrations or []),
    )
    return model


__all__ = [
    "apply_example_shape_hints",
    "collect_example_hints",
    "create_message",
    "create_type_resolver",
    "flows_to_model",
    "inline_all_message_field_types",
    "prefer_new_fields",
    "resolve_inferred_type",
]
