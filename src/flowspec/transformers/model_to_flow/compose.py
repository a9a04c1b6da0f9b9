"""
Source composition: declarations, flow blocks and imports for a Model.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any

from ...core.model import DataSink, IntegrationDestination, IntegrationOrigin, Model
from ...core.type_strings import referenced_names
from .emit import identifier
from .flows import flow_block
from .imports import DSL_FUNCTIONS, MARKERS, build_imports
from .types import message_declaration
from .usage import analyze_code_usage


@dataclass
class Names:
    """Python identifiers chosen for model names."""

    messages: dict[str, str] = field(default_factory=dict)
    integration_sources: dict[str, str] = field(default_factory=dict)

    def message_ident(self, name: str) -> str:
        if name not in self.messages:
            ident = identifier(name)
            taken = set(self.messages.values()) | set(DSL_FUNCTIONS) | set(MARKERS)
            base, n = ident, 2
            while ident in taken:
                ident, n = f"{base}{n}", n + 1
            self.messages[name] = ident
        return self.messages[name]


def _flow_systems(model: Model) -> list[str]:
    systems: list[str] = []
    for flow in model.flows:
        for slice_ in flow.slices:
            systems.extend(slice_.via or [])
            for item in slice_.server.data or []:
                origin_or_dest = item.destination if isinstance(item, DataSink) else item.origin
                if isinstance(origin_or_dest, (IntegrationDestination, IntegrationOrigin)):
                    systems.extend(origin_or_dest.systems)
                with_state = getattr(item, "with_state", None)
                if with_state is not None and isinstance(with_state.origin, IntegrationOrigin):
                    systems.extend(with_state.origin.systems)
    return systems


def collect_names(model: Model) -> Names:
    names = Names()
    for message in model.messages:
        names.message_ident(message.name)
    for integration in model.integrations or []:
        names.integration_sources.setdefault(identifier(integration.name), integration.source)
    for system in _flow_systems(model):
        names.integration_sources.setdefault(identifier(system), f"{system.lower()}_integration")
    return names


def _message_closure(selected: list[str], by_name: dict[str, Any]) -> set[str]:
    """``selected`` plus every message their field types name."""
    out: set[str] = set()
    pending = list(selected)
    while pending:
        current = pending.pop()
        if current in out or current not in by_name:
            continue
        out.add(current)
        for f in by_name[current].fields:
            pending.extend(referenced_names(f.type))
    return out


def _render(imports: list[ast.stmt], declarations: list[ast.stmt], flows: list[ast.stmt]) -> str:
    groups = []
    if imports:
        groups.append("\n".join(ast.unparse(ast.fix_missing_locations(s)) for s in imports))
    if declarations:
        groups.append("\n".join(ast.unparse(ast.fix_missing_locations(s)) for s in declarations))
    groups.extend(ast.unparse(ast.fix_missing_locations(s)) for s in flows)
    return "\n\n".join(groups) + "\n"


def _statements(
    model: Model,
    messages: list[Any],
    names: Names,
    flow_import: str,
    integration_sources: dict[str, str],
    integration_import: str | None,
) -> str:
    declarations: list[ast.stmt] = [message_declaration(m, names.message_ident(m.name)) for m in messages]
    flows: list[ast.stmt] = [flow_block(f, names.messages) for f in model.flows]
    imports = build_imports(declarations + flows, flow_import, integration_sources, integration_import)
    return _render(imports, declarations, flows)


def generate_source(model: Model, flow_import: str = "flowspec", integration_import: str | None = None) -> str:
    """
    Generate flow source for ``model`` (unformatted).

    A preliminary file declaring everything is analyzed for usage; the final
    file declares only the messages and integrations the flows use.
    """
    names = collect_names(model)
    preliminary = _statements(
        model, list(model.messages), names, flow_import, names.integration_sources, integration_import
    )

    usage = analyze_code_usage(
        preliminary,
        names.messages.values(),
        names.integration_sources,
        (*DSL_FUNCTIONS, *MARKERS),
    )

    by_name = {m.name: m for m in model.messages}
    if not any(flow.slices for flow in model.flows):
        keep = set(by_name)
    else:
        used = [name for name, ident in names.messages.items() if ident in usage.types]
        keep = _message_closure(used, by_name)
    messages = [m for m in model.messages if m.name in keep]
    sources = {k: v for k, v in names.integration_sources.items() if k in usage.integrations}

    return _statements(model, messages, names, flow_import, sources, integration_import)
