"""
Caller-owned registry of flows and integrations.

Executing flow files is what populates a registry: every ``with flow(...)``
block registers a Flow and every module-level Integration is registered
after its module runs. A registry is bound to the running context with
``activate()``; DSL calls find it through ``current_registry()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from ..core.errors import DSLError
from ..core.model import Flow

if TYPE_CHECKING:
    from .context import FlowContext
    from .integrations import Integration

logger = logging.getLogger(__name__)

_active_registry: ContextVar[Registry | None] = ContextVar("flowspec_registry", default=None)


class Registry:
    """
    Flows and integrations captured from executed source.

    Attributes:
        flows: Registered flows in registration order
        integrations: Registered integrations in registration order
        export_names: Integration name -> module variable it was found under
        integration_sources: Integration name -> module it was imported from
        current_module: Graph path of the module currently executing
        context: Building state of the flow currently being declared
    """

    def __init__(self) -> None:
        self.flows: list[Flow] = []
        self.integrations: list[Integration] = []
        self.export_names: dict[str, str] = {}
        self.integration_sources: dict[str, str] = {}
        self.current_module: str | None = None
        self.context: FlowContext | None = None

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    def register(self, flow: Flow | dict[str, Any]) -> Flow:
        """Validate and register a flow."""
        model = flow if isinstance(flow, Flow) else Flow.model_validate(flow)
        self.flows.append(model)
        logger.debug("Registered flow %s with %d slices", model.name, len(model.slices))
        return model

    def get_all_flows(self) -> list[Flow]:
        return list(self.flows)

    # -------------------------------------------------------------------------
    # Integrations
    # -------------------------------------------------------------------------

    def register_integration(self, integration: Integration, export_name: str | None = None) -> None:
        if not any(existing is integration or existing.name == integration.name for existing in self.integrations):
            self.integrations.append(integration)
            logger.debug("Registered integration %s", integration.name)
        if export_name and integration.name not in self.export_names:
            self.export_names[integration.name] = export_name

    def record_integration_source(self, integration: Integration, source: str) -> None:
        """Remember where an integration was imported from (first import wins)."""
        self.integration_sources.setdefault(integration.name, source)

    def export_name_for(self, integration: Integration) -> str:
        return self.export_names.get(integration.name, integration.name)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        self.flows.clear()
        self.integrations.clear()
        self.export_names.clear()
        self.integration_sources.clear()
        self.current_module = None
        self.context = None

    @contextmanager
    def activate(self) -> Iterator[Registry]:
        """Bind this registry to the current context."""
        token = _active_registry.set(self)
        try:
            yield self
        finally:
            _active_registry.reset(token)

    @contextmanager
    def executing(self, path: str) -> Iterator[None]:
        """Mark ``path`` as the module currently executing."""
        previous = self.current_module
        self.current_module = path
        try:
            yield
        finally:
            self.current_module = previous


def current_registry() -> Registry:
    """
    Return the active registry.

    Raises:
        DSLError: If no registry is active
    """
    registry = _active_registry.get()
    if registry is None:
        raise DSLError("No active registry. Run flow files through execute_graph() or use Registry.activate().")
    return registry
