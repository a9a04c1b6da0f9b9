"""
flowspec: a bidirectional compiler between flow DSL modules and the Model.

Flow files are ordinary Python modules that call the DSL::

    from flowspec import Command, Event, command, example, flow, rule, server, specs

``get_flows`` discovers and runs them, ``flows_to_model`` turns what they
registered into a Model and ``model_to_flow`` goes the other way.
"""

from ._version import get_version
from .core.errors import ConfigError, DSLError, FlowSpecError, GraphError, ModelValidationError
from .core.ids import add_auto_ids, has_all_ids
from .core.model import Model, parse_app
from .core.validator import validate_references
from .core.vfs import InMemoryFileStore, LocalFileStore
from .dsl import (
    Command,
    Event,
    Integration,
    MessageType,
    Registry,
    State,
    client,
    command,
    create_integration,
    current_registry,
    data,
    example,
    flow,
    gql,
    query,
    react,
    rule,
    server,
    should,
    sink,
    source,
    specs,
)
from .get_flows import FlowsResult, clear_get_flows_cache, get_flows
from .loader import execute_graph
from .transformers import flows_to_model, model_to_flow

__version__ = get_version()

__all__ = [
    "__version__",
    # DSL
    "Command",
    "Event",
    "State",
    "MessageType",
    "Integration",
    "create_integration",
    "flow",
    "command",
    "query",
    "react",
    "client",
    "server",
    "specs",
    "should",
    "rule",
    "example",
    "data",
    "sink",
    "source",
    "gql",
    # Runtime
    "Registry",
    "current_registry",
    "execute_graph",
    "get_flows",
    "clear_get_flows_cache",
    "FlowsResult",
    "InMemoryFileStore",
    "LocalFileStore",
    # Model
    "Model",
    "parse_app",
    "flows_to_model",
    "model_to_flow",
    "validate_references",
    "add_auto_ids",
    "has_all_ids",
    # Errors
    "FlowSpecError",
    "GraphError",
    "DSLError",
    "ConfigError",
    "ModelValidationError",
]
