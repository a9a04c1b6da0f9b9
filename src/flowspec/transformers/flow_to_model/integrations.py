"""
Integration collection.

Flows name integrations in data items and ``via`` lists. Integration values
registered while the flow files ran are listed even when no flow uses them.
"""

from __future__ import annotations

from collections.abc import Mapping

from ...core.model import (
    DataSink,
    Flow,
    Integration,
    IntegrationDestination,
    IntegrationOrigin,
    MessageKind,
)
from .messages import create_message
from .spec_processors import ProcessingState

INTEGRATION_MESSAGE_KINDS = {
    "command": MessageKind.COMMAND,
    "query": MessageKind.STATE,
    "reaction": MessageKind.EVENT,
}


def default_source(name: str) -> str:
    return f"{name.lower()}_integration"


class IntegrationCollector:
    """
    Ordered, de-duplicated integration table.

    Names are normalized to the variable an integration was exported under
    so ``via`` lists, data items and the integration table agree.
    """

    def __init__(
        self,
        export_names: Mapping[str, str] | None = None,
        integration_sources: Mapping[str, str] | None = None,
    ):
        self.export_names = dict(export_names or {})
        self.integration_sources = dict(integration_sources or {})
        self.integrations: dict[str, Integration] = {}

    def name_for(self, name: str) -> str:
        return self.export_names.get(name, name)

    def add(self, name: str) -> str:
        listed = self.name_for(name)
        if listed not in self.integrations:
            self.integrations[listed] = Integration(
                name=listed,
                description=f"{listed} integration",
                source=self.integration_sources.get(name) or default_source(listed),
            )
        return listed

    def add_all(self, names: list[str]) -> list[str]:
        return [self.add(n) for n in names]


def _collect_from_data(flow: Flow, collector: IntegrationCollector, state: ProcessingState) -> None:
    for slice_ in flow.slices:
        for item in slice_.server.data or []:
            if isinstance(item, DataSink):
                destination = item.destination
                if isinstance(destination, IntegrationDestination):
                    destination.systems = collector.add_all(destination.systems)
                    if destination.message is not None:
                        kind = INTEGRATION_MESSAGE_KINDS[destination.message.type]
                        name, info = state.resolve(destination.message.name, kind, None)
                        state.add_message(create_message(name, info, kind))
                with_state = item.with_state
                if with_state is not None and isinstance(with_state.origin, IntegrationOrigin):
                    with_state.origin.systems = collector.add_all(with_state.origin.systems)
            elif isinstance(item.origin, IntegrationOrigin):
                item.origin.systems = collector.add_all(item.origin.systems)


def _collect_from_via(flow: Flow, collector: IntegrationCollector) -> None:
    for slice_ in flow.slices:
        if slice_.via:
            slice_.via = collector.add_all(slice_.via)


def collect_flow_integrations(flow: Flow, collector: IntegrationCollector, state: ProcessingState) -> None:
    """
    Add the integrations ``flow`` references.

    Data-item and ``via`` references are rewritten in place to the listed
    names.
    """
    _collect_from_data(flow, collector, state)
    _collect_from_via(flow, collector)
